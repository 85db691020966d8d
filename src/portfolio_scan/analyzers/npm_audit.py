"""npm ecosystem analyzer"""

from typing import List

from portfolio_scan.core import Component, Vulnerability
from portfolio_scan.core.advisory_database import AdvisoryDatabase
from .base import ComponentAnalyzer


class NpmAuditAnalyzer(ComponentAnalyzer):
    """
    Analyzer for npm packages

    Owns the ecosystem reserved by its rule ('npm' in ANALYZER_RULES). Advisory
    versions may be npm semver ranges (^, ~, <, >=, ...).
    """

    name = 'npm-audit'

    def __init__(self, registry, tracker, emitter, advisories: AdvisoryDatabase):
        super().__init__(registry, tracker, emitter)
        self.advisories = advisories

    def find_vulnerabilities(self, component: Component) -> List[Vulnerability]:
        purl = component.package_identifier
        return self.advisories.affected(self.rule.ecosystem, purl.coordinate, purl.version or component.version)
