"""General-purpose analyzer for every ecosystem without a dedicated analyzer"""

from typing import List

from portfolio_scan.core import Component, Vulnerability
from portfolio_scan.core.advisory_database import AdvisoryDatabase
from .base import ComponentAnalyzer


class DependencyCheckAnalyzer(ComponentAnalyzer):
    """
    Fallback analyzer

    Owns components without a package identifier (matched against advisories
    with a blank ecosystem by component name and version) and every ecosystem
    not reserved by a specialized analyzer.
    """

    name = 'dependency-check'

    def __init__(self, registry, tracker, emitter, advisories: AdvisoryDatabase):
        super().__init__(registry, tracker, emitter)
        self.advisories = advisories

    def find_vulnerabilities(self, component: Component) -> List[Vulnerability]:
        purl = component.package_identifier
        if purl is None or purl.ecosystem_type is None:
            return self.advisories.affected(None, component.name, component.version)

        return self.advisories.affected(
            purl.ecosystem_type, purl.coordinate, purl.version or component.version
        )
