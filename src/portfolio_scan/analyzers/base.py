"""Base analyzer shared by all ecosystem analyzers"""

import logging
from abc import ABC, abstractmethod
from typing import List

from portfolio_scan.core import (
    ALREADY_KNOWN,
    AnalyzerRegistry,
    AssociationTracker,
    Component,
    ConfigurationException,
    EligibilityRule,
    NotificationEmitter,
    Vulnerability,
)

logger = logging.getLogger(__name__)


class ComponentAnalyzer(ABC):
    """
    Base class for analyzers

    Each analyzer is responsible for:
    1. Declaring the components it owns (its EligibilityRule)
    2. Finding vulnerabilities in an owned component
    3. Reporting new vulnerability/component associations exactly once

    Iteration over the inventory is not an analyzer concern: pass
    ``analyzer.analyze_batch`` to PortfolioBatchScanner.run_full_scan.
    """

    name: str = ''

    def __init__(self, registry: AnalyzerRegistry, tracker: AssociationTracker,
                 emitter: NotificationEmitter):
        """
        Initialize analyzer

        Args:
            registry: Validated routing table; must contain this analyzer's name
            tracker: Records associations and collects affected projects
            emitter: Dispatches new-vulnerability notifications

        Raises:
            ConfigurationException: If the registry has no rule for this analyzer
        """
        if registry.get_rule(self.name) is None:
            raise ConfigurationException(
                f"Analyzer '{self.name}' has no eligibility rule; registered analyzers: "
                f"{', '.join(registry.get_analyzer_names())}"
            )
        self.registry = registry
        self.tracker = tracker
        self.emitter = emitter

        self.components_analyzed = 0
        self.findings = 0
        self.notifications = 0

    @property
    def rule(self) -> EligibilityRule:
        return self.registry.get_rule(self.name)

    @abstractmethod
    def find_vulnerabilities(self, component: Component) -> List[Vulnerability]:
        """
        Run detection against one component

        Args:
            component: Component this analyzer owns

        Returns:
            Vulnerabilities currently affecting the component
        """
        pass

    def analyze_batch(self, components: List[Component]):
        """Analyze every component in the batch that this analyzer owns"""
        for component in components:
            if not self.registry.should_analyze(self.name, component.package_identifier):
                continue

            self.components_analyzed += 1
            for vulnerability in self.find_vulnerabilities(component):
                self.findings += 1
                self.report_finding(vulnerability, component)

    def report_finding(self, vulnerability: Vulnerability, component: Component) -> bool:
        """
        Record a finding and notify if the association is new

        Returns:
            True if a notification was emitted
        """
        affected_projects = self.tracker.record_and_collect(vulnerability, component)
        if affected_projects is ALREADY_KNOWN:
            return False

        self.emitter.emit_new_association(vulnerability, component, affected_projects)
        self.notifications += 1
        logger.debug(
            f"{self.name}: {vulnerability.vuln_id} newly associated with component {component.id} "
            f"({len(affected_projects)} affected project(s))"
        )
        return True
