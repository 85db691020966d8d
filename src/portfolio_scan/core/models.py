"""Data models for portfolio analysis"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, FrozenSet
from urllib.parse import quote, unquote


# pkg:type/namespace/name@version?qualifiers#subpath
PURL_PATTERN = re.compile(
    r'^pkg:(?P<type>[A-Za-z][A-Za-z0-9.+-]*)/+'
    r'(?P<remainder>[^?#]+)'
    r'(?:\?[^#]*)?'
    r'(?:#.*)?$'
)


@dataclass(frozen=True)
class PackageIdentifier:
    """Canonical package coordinate used to route components to analyzers"""

    ecosystem_type: Optional[str]   # npm, maven, pypi, ... or None when origin is unknown
    name: str
    version: Optional[str] = None
    namespace: Optional[str] = None

    def matches_ecosystem(self, ecosystem: Optional[str]) -> bool:
        """Case-insensitive comparison of the ecosystem tag"""
        if self.ecosystem_type is None or ecosystem is None:
            return False
        return self.ecosystem_type.lower() == ecosystem.lower()

    @property
    def coordinate(self) -> str:
        """Namespace-qualified package name (e.g. '@scope/pkg')"""
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def to_purl(self) -> str:
        """Render as a package URL"""
        ecosystem = (self.ecosystem_type or 'generic').lower()
        path = quote(self.name, safe='')
        if self.namespace:
            namespace = '/'.join(quote(part, safe='') for part in self.namespace.split('/'))
            path = f"{namespace}/{path}"
        purl = f"pkg:{ecosystem}/{path}"
        if self.version:
            purl += f"@{quote(self.version, safe='')}"
        return purl

    @classmethod
    def parse(cls, purl: Optional[str]) -> Optional['PackageIdentifier']:
        """
        Parse a package URL

        Malformed input is treated as an absent identifier rather than an error.

        Args:
            purl: Package URL such as 'pkg:npm/%40scope/pkg@1.0.0'

        Returns:
            PackageIdentifier, or None if the purl is missing or unparseable
        """
        if not purl or not isinstance(purl, str):
            return None

        match = PURL_PATTERN.match(purl.strip())
        if not match:
            return None

        # Version separator is the last '@' after the final '/' (namespaces may start with '@')
        remainder = match.group('remainder')
        version = None
        last_segment_start = remainder.rfind('/') + 1
        at = remainder.rfind('@')
        if at > last_segment_start:
            remainder, version = remainder[:at], remainder[at + 1:]

        segments = [unquote(s) for s in remainder.strip('/').split('/') if s]
        if not segments or not segments[-1].strip():
            return None

        return cls(
            ecosystem_type=match.group('type').lower(),
            name=segments[-1],
            version=unquote(version) if version else None,
            namespace='/'.join(segments[:-1]) or None,
        )


@dataclass(frozen=True)
class Component:
    """Inventory item. Identity is the stable, ordered ``id``."""

    id: int
    name: str = field(compare=False)
    version: Optional[str] = field(default=None, compare=False)
    package_identifier: Optional[PackageIdentifier] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        result = {'id': self.id, 'name': self.name}
        if self.version:
            result['version'] = self.version
        if self.package_identifier:
            result['purl'] = self.package_identifier.to_purl()
        return result


@dataclass(frozen=True)
class Project:
    """Logical grouping of components. Equal by ``id`` only."""

    id: str
    name: str = field(default='', compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name or self.id}


@dataclass(frozen=True)
class Dependency:
    """Links one project to one component"""

    project: Project
    component: Component


@dataclass(frozen=True)
class Vulnerability:
    """Known security weakness, treated as an opaque value"""

    vuln_id: str
    source: Optional[str] = field(default=None, compare=False)
    title: Optional[str] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        result = {'id': self.vuln_id}
        if self.source:
            result['source'] = self.source
        if self.title:
            result['title'] = self.title
        return result


class NotificationScope(str, Enum):
    PORTFOLIO = "PORTFOLIO"
    SYSTEM = "SYSTEM"


class NotificationGroup(str, Enum):
    NEW_VULNERABILITY = "NEW_VULNERABILITY"


class NotificationLevel(str, Enum):
    INFORMATIONAL = "INFORMATIONAL"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class NewVulnerabilityIdentified:
    """Payload of a new vulnerability notification"""

    vulnerability: Vulnerability
    component: Component
    affected_projects: FrozenSet[Project] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vulnerability': self.vulnerability.to_dict(),
            'component': self.component.to_dict(),
            'affected_projects': [
                p.to_dict() for p in sorted(self.affected_projects, key=lambda p: p.id)
            ],
        }


@dataclass(frozen=True)
class NotificationEvent:
    """Structured event handed to the notification bus"""

    scope: NotificationScope
    group: NotificationGroup
    title: str
    content: str
    level: NotificationLevel
    subject: NewVulnerabilityIdentified

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'scope': self.scope.value,
            'group': self.group.value,
            'title': self.title,
            'content': self.content,
            'level': self.level.value,
            'subject': self.subject.to_dict(),
        }
