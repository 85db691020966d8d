"""Routing policy that decides which analyzer owns which component"""

from dataclasses import dataclass
from typing import Dict, Optional

from .exceptions import ConfigurationException
from .models import PackageIdentifier


GENERAL_PURPOSE = 'general'
SPECIALIZED = 'specialized'


@dataclass(frozen=True)
class EligibilityRule:
    """
    Claim rule declared by an analyzer

    A general-purpose analyzer claims components with no package identifier
    and every ecosystem not reserved by a specialized analyzer. A specialized
    analyzer claims exactly one ecosystem tag.
    """

    kind: str
    ecosystem: Optional[str] = None

    @classmethod
    def general(cls) -> 'EligibilityRule':
        return cls(kind=GENERAL_PURPOSE)

    @classmethod
    def specialized(cls, ecosystem: str) -> 'EligibilityRule':
        return cls(kind=SPECIALIZED, ecosystem=ecosystem)

    @property
    def is_general(self) -> bool:
        return self.kind == GENERAL_PURPOSE

    def describe(self) -> str:
        if self.is_general:
            return 'general-purpose'
        return f'specialized ({self.ecosystem})'


class AnalyzerRegistry:
    """
    Static, validated table of analyzer claim rules

    Validation happens once at construction so that routing itself can never
    fail. Every package identifier is claimed by exactly one registered
    analyzer.
    """

    def __init__(self, rules: Dict[str, EligibilityRule]):
        """
        Build and validate the registry

        Args:
            rules: Mapping of analyzer name to its claim rule

        Raises:
            ConfigurationException: If claims overlap or leave components unclaimed
        """
        self._rules = dict(rules)
        self._general_analyzer: Optional[str] = None
        # Structure: {lowercased ecosystem: analyzer name}
        self._reserved: Dict[str, str] = {}
        self._validate()

    def _validate(self):
        general = []

        for name, rule in sorted(self._rules.items()):
            if rule.kind == GENERAL_PURPOSE:
                general.append(name)
            elif rule.kind == SPECIALIZED:
                tag = (rule.ecosystem or '').strip().lower()
                if not tag:
                    raise ConfigurationException(
                        f"Specialized analyzer '{name}' does not declare an ecosystem"
                    )
                if tag in self._reserved:
                    raise ConfigurationException(
                        f"Ecosystem '{tag}' is claimed by both "
                        f"'{self._reserved[tag]}' and '{name}'"
                    )
                self._reserved[tag] = name
            else:
                raise ConfigurationException(
                    f"Analyzer '{name}' has unknown eligibility kind '{rule.kind}'"
                )

        if not general:
            raise ConfigurationException(
                "No general-purpose analyzer configured; components without a "
                "reserved ecosystem would never be analyzed"
            )
        if len(general) > 1:
            raise ConfigurationException(
                f"Multiple general-purpose analyzers configured: {', '.join(general)}"
            )

        self._general_analyzer = general[0]

    def get_rule(self, analyzer_name: str) -> Optional[EligibilityRule]:
        return self._rules.get(analyzer_name)

    def get_analyzer_names(self):
        return sorted(self._rules.keys())

    def reserved_ecosystems(self) -> Dict[str, str]:
        """Ecosystem tags reserved by specialized analyzers, mapped to analyzer name"""
        return dict(self._reserved)

    def claimant(self, package_identifier: Optional[PackageIdentifier]) -> str:
        """
        Name the single analyzer that owns a package identifier

        Args:
            package_identifier: Identifier to route, or None when absent

        Returns:
            Analyzer name
        """
        if package_identifier is None or package_identifier.ecosystem_type is None:
            return self._general_analyzer
        tag = package_identifier.ecosystem_type.lower()
        return self._reserved.get(tag, self._general_analyzer)

    def should_analyze(self, analyzer_name: str,
                       package_identifier: Optional[PackageIdentifier]) -> bool:
        """
        Decide whether an analyzer should process a component

        Args:
            analyzer_name: Registered analyzer name
            package_identifier: Component's package identifier, or None

        Returns:
            True if the analyzer owns the component. Unregistered analyzers own nothing.
        """
        rule = self._rules.get(analyzer_name)
        if rule is None:
            return False

        if package_identifier is None or package_identifier.ecosystem_type is None:
            return rule.is_general

        tag = package_identifier.ecosystem_type.lower()
        if rule.is_general:
            return tag not in self._reserved

        return self._reserved.get(tag) == analyzer_name
