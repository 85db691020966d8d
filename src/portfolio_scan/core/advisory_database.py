"""Advisory list used by the bundled analyzers to find vulnerable components"""

import csv
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set

from semantic_version import NpmSpec, Version

from .exceptions import InventoryFormatException
from .models import Vulnerability

logger = logging.getLogger(__name__)


REQUIRED_HEADERS = {'vulnerability', 'ecosystem', 'name', 'version'}

# Ecosystems whose advisory versions may be semver ranges
RANGE_ECOSYSTEMS = {'npm'}


@dataclass(frozen=True)
class Advisory:
    vulnerability: Vulnerability
    ecosystem: str          # '' applies to components without a package identifier
    name: str
    version_spec: str

    def matches_version(self, version: Optional[str]) -> bool:
        """
        Check whether a component version falls under this advisory

        npm advisories accept semver ranges ('<4.17.21', '^1.0.0'); everything
        else is compared as an exact version string.
        """
        if not version:
            return False
        if version == self.version_spec:
            return True
        if self.ecosystem not in RANGE_ECOSYSTEMS:
            return False
        try:
            return Version.coerce(version) in NpmSpec(self.version_spec)
        except ValueError:
            return False


class AdvisoryDatabase:
    """
    Loads advisories from CSV files

    CSV Format:
        vulnerability,ecosystem,name,version
        CVE-2021-23337,npm,lodash,<4.17.21
        CVE-2021-44228,maven,org.apache.logging.log4j/log4j-core,2.14.1
        CVE-2020-0001,,libfoo,1.0.0
    """

    def __init__(self):
        self.loaded_files: List[str] = []
        # Structure: {ecosystem: {package_name: [Advisory, ...]}}
        self.advisories: Dict[str, Dict[str, List[Advisory]]] = defaultdict(lambda: defaultdict(list))

    def load_csv(self, csv_path: str, source: Optional[str] = None) -> int:
        """
        Load a single advisory CSV file

        Rows with empty or missing fields are skipped with a warning.

        Args:
            csv_path: Path to CSV file
            source: Advisory source recorded on each vulnerability (defaults to file stem)

        Returns:
            Number of advisories loaded

        Raises:
            InventoryFormatException: If the file is missing, unreadable or has wrong headers
        """
        path = Path(csv_path)
        source = source or path.stem
        loaded = 0

        try:
            with open(path, 'r', encoding='utf-8-sig', newline='') as f:
                reader = csv.DictReader(f)
                headers = set(reader.fieldnames or [])

                if not REQUIRED_HEADERS.issubset(headers):
                    raise InventoryFormatException(
                        str(path),
                        f"expected headers 'vulnerability,ecosystem,name,version', "
                        f"got: {','.join(reader.fieldnames or [])}"
                    )

                for row_num, row in enumerate(reader, start=2):  # Header is line 1
                    vuln_id = (row.get('vulnerability') or '').strip()
                    ecosystem = (row.get('ecosystem') or '').strip().lower()
                    name = (row.get('name') or '').strip()
                    version = (row.get('version') or '').strip()

                    if not vuln_id or not name or not version:
                        logger.warning(f"Skipping row {row_num} of {path} with empty fields: {row}")
                        continue

                    self.add(Advisory(
                        vulnerability=Vulnerability(vuln_id=vuln_id, source=source,
                                                    title=(row.get('title') or '').strip() or None),
                        ecosystem=ecosystem,
                        name=name,
                        version_spec=version,
                    ))
                    loaded += 1

        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise InventoryFormatException(str(path), str(e)) from e

        self.loaded_files.append(str(path))
        logger.info(f"Loaded {loaded} advisories from {path}")
        return loaded

    def add(self, advisory: Advisory):
        self.advisories[advisory.ecosystem][advisory.name].append(advisory)

    def affected(self, ecosystem: Optional[str], name: str,
                 version: Optional[str]) -> List[Vulnerability]:
        """
        Find vulnerabilities affecting a package version

        Args:
            ecosystem: Ecosystem tag, or None for components of unknown origin
            name: Package name (namespace-qualified where the ecosystem has namespaces)
            version: Package version

        Returns:
            Matching vulnerabilities in advisory order, without duplicates
        """
        key = (ecosystem or '').lower()
        candidates = self.advisories.get(key, {}).get(name, [])

        found = []
        seen: Set[str] = set()
        for advisory in candidates:
            if advisory.vulnerability.vuln_id in seen:
                continue
            if advisory.matches_version(version):
                seen.add(advisory.vulnerability.vuln_id)
                found.append(advisory.vulnerability)
        return found

    def get_ecosystems(self) -> Set[str]:
        return set(self.advisories.keys())

    def get_advisory_count(self, ecosystem: Optional[str] = None) -> int:
        if ecosystem is not None:
            eco_advisories = self.advisories.get(ecosystem.lower(), {})
            return sum(len(items) for items in eco_advisories.values())
        return sum(
            len(items)
            for eco_advisories in self.advisories.values()
            for items in eco_advisories.values()
        )
