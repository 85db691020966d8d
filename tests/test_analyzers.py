"""End-to-end tests for analyzers driven by PortfolioBatchScanner."""

import pytest

from portfolio_scan.analyzers import (
    ComponentAnalyzer,
    DependencyCheckAnalyzer,
    NpmAuditAnalyzer,
    build_registry,
    get_analyzer_class,
    get_available_analyzers,
)
from portfolio_scan.core import (
    AnalyzerRegistry,
    AssociationTracker,
    CollectingNotificationBus,
    Component,
    ConfigurationException,
    EligibilityRule,
    InMemoryRepository,
    NotificationEmitter,
    PackageIdentifier,
    PortfolioBatchScanner,
    Project,
    ScanConfig,
    Vulnerability,
)
from portfolio_scan.core.advisory_database import Advisory, AdvisoryDatabase


def advisory(vuln_id, ecosystem, name, version):
    return Advisory(vulnerability=Vulnerability(vuln_id=vuln_id), ecosystem=ecosystem,
                    name=name, version_spec=version)


@pytest.fixture
def advisories():
    db = AdvisoryDatabase()
    db.add(advisory('CVE-2021-23337', 'npm', 'lodash', '<4.17.21'))
    db.add(advisory('CVE-2021-44228', 'maven', 'org.apache.logging.log4j/log4j-core', '2.14.1'))
    db.add(advisory('CVE-2019-9999', '', 'libfoo', '1.0.0'))
    return db


@pytest.fixture
def repository():
    repo = InMemoryRepository()
    repo.add_component(Component(id=1, name='lodash', version='4.17.20',
                                 package_identifier=PackageIdentifier.parse('pkg:npm/lodash@4.17.20')))
    repo.add_component(Component(id=2, name='log4j-core', version='2.14.1',
                                 package_identifier=PackageIdentifier.parse(
                                     'pkg:maven/org.apache.logging.log4j/log4j-core@2.14.1')))
    repo.add_component(Component(id=3, name='libfoo', version='1.0.0'))
    return repo


@pytest.fixture
def bus():
    return CollectingNotificationBus()


def make_analyzers(repository, bus, advisories):
    registry = build_registry()
    tracker = AssociationTracker(repository, repository)
    emitter = NotificationEmitter(bus)
    return (NpmAuditAnalyzer(registry, tracker, emitter, advisories),
            DependencyCheckAnalyzer(registry, tracker, emitter, advisories))


def notified(bus):
    return sorted((e.subject.vulnerability.vuln_id, e.subject.component.id) for e in bus.events)


def test_registry_helpers():
    assert set(get_available_analyzers()) == {'npm-audit', 'dependency-check'}
    assert get_analyzer_class('NPM-AUDIT') is NpmAuditAnalyzer
    assert get_analyzer_class('unknown') is None


def test_each_analyzer_sees_only_its_components(repository, bus, advisories):
    npm, general = make_analyzers(repository, bus, advisories)
    scanner = PortfolioBatchScanner(repository)

    scanner.run_full_scan(npm.analyze_batch)
    assert npm.components_analyzed == 1
    assert notified(bus) == [('CVE-2021-23337', 1)]

    scanner.run_full_scan(general.analyze_batch)
    assert general.components_analyzed == 2
    assert notified(bus) == [('CVE-2019-9999', 3), ('CVE-2021-23337', 1), ('CVE-2021-44228', 2)]


def test_rules_come_from_registry(repository, bus, advisories):
    npm, general = make_analyzers(repository, bus, advisories)

    assert npm.rule.ecosystem == 'npm'
    assert general.rule.is_general


def test_general_analyzer_skips_npm_page(bus, advisories):
    """Test the general analyzer performs no association checks for npm components."""
    repository = InMemoryRepository()
    repository.add_component(Component(id=1, name='lodash', version='4.17.20',
                                       package_identifier=PackageIdentifier.parse('pkg:npm/lodash@4.17.20')))

    class CountingTracker(AssociationTracker):
        calls = 0

        def record_and_collect(self, vulnerability, component):
            CountingTracker.calls += 1
            return super().record_and_collect(vulnerability, component)

    registry = build_registry()
    general = DependencyCheckAnalyzer(registry, CountingTracker(repository, repository),
                                      NotificationEmitter(bus), advisories)

    PortfolioBatchScanner(repository).run_full_scan(general.analyze_batch)

    assert general.components_analyzed == 0
    assert CountingTracker.calls == 0
    assert bus.events == []


def test_rescan_does_not_notify_twice(repository, bus, advisories):
    npm, general = make_analyzers(repository, bus, advisories)
    scanner = PortfolioBatchScanner(repository, ScanConfig(batch_size=1))

    for _ in range(3):
        scanner.run_full_scan(npm.analyze_batch)
        scanner.run_full_scan(general.analyze_batch)

    assert len(bus.events) == 3
    assert npm.findings == 3
    assert npm.notifications == 1


def test_two_analyzers_reporting_same_pair_notify_once(repository, bus):
    """Test overlapping findings from different analyzers share association state."""
    registry = build_registry()
    tracker = AssociationTracker(repository, repository)
    emitter = NotificationEmitter(bus)
    shared = Vulnerability(vuln_id='SHARED-1')

    class AlwaysFinds(ComponentAnalyzer):
        name = 'dependency-check'

        def find_vulnerabilities(self, component):
            return [shared]

    first = AlwaysFinds(registry, tracker, emitter)
    second = AlwaysFinds(registry, tracker, emitter)
    component = repository.get_component(3)

    assert first.report_finding(shared, component) is True
    assert second.report_finding(shared, component) is False
    assert len(bus.events) == 1


def test_late_dependent_scenario(bus):
    """
    Test V on a component with no dependents notifies with no projects; a later
    dependent shows up on W's notification and V is not notified again.
    """
    repository = InMemoryRepository()
    component = repository.add_component(Component(id=10, name='libfoo', version='1.0.0'))
    db = AdvisoryDatabase()
    db.add(advisory('V', '', 'libfoo', '1.0.0'))

    registry = build_registry()
    tracker = AssociationTracker(repository, repository)
    general = DependencyCheckAnalyzer(registry, tracker, NotificationEmitter(bus), db)
    scanner = PortfolioBatchScanner(repository)

    scanner.run_full_scan(general.analyze_batch)
    assert len(bus.events) == 1
    assert bus.events[0].subject.vulnerability.vuln_id == 'V'
    assert bus.events[0].subject.affected_projects == frozenset()

    project = repository.add_project(Project(id='api', name='API'))
    repository.add_dependency(project, component)
    db.add(advisory('W', '', 'libfoo', '1.0.0'))

    scanner.run_full_scan(general.analyze_batch)
    assert [e.subject.vulnerability.vuln_id for e in bus.events] == ['V', 'W']
    assert bus.events[1].subject.affected_projects == {project}


def test_affected_projects_deduplicated_end_to_end(repository, bus, advisories):
    project_a = repository.add_project(Project(id='a'))
    project_b = repository.add_project(Project(id='b'))
    component = repository.get_component(1)
    repository.add_dependency(project_a, component)
    repository.add_dependency(project_a, component)
    repository.add_dependency(project_b, component)

    npm, _ = make_analyzers(repository, bus, advisories)
    PortfolioBatchScanner(repository).run_full_scan(npm.analyze_batch)

    assert bus.events[0].subject.affected_projects == {project_a, project_b}
    assert len(bus.events[0].subject.affected_projects) == 2


def test_malformed_purl_routed_to_general(bus, advisories):
    repository = InMemoryRepository()
    repository.add_component(Component(id=1, name='libfoo', version='1.0.0',
                                       package_identifier=PackageIdentifier.parse('npm:libfoo')))
    npm, general = make_analyzers(repository, bus, advisories)
    scanner = PortfolioBatchScanner(repository)

    scanner.run_full_scan(npm.analyze_batch)
    scanner.run_full_scan(general.analyze_batch)

    assert npm.components_analyzed == 0
    assert general.components_analyzed == 1
    assert notified(bus) == [('CVE-2019-9999', 1)]


def test_analyzer_error_recorded_as_failed_batch(repository, bus, advisories):
    class Exploding(DependencyCheckAnalyzer):
        def find_vulnerabilities(self, component):
            if component.id == 3:
                raise RuntimeError('engine crashed')
            return super().find_vulnerabilities(component)

    registry = build_registry()
    analyzer = Exploding(registry, AssociationTracker(repository, repository),
                         NotificationEmitter(bus), advisories)

    summary = PortfolioBatchScanner(repository, ScanConfig(batch_size=1)).run_full_scan(analyzer.analyze_batch)

    assert summary.batches_completed == 2
    assert summary.batches_failed == 1
    assert summary.failures[0].first_component_id == 3
    assert notified(bus) == [('CVE-2021-44228', 2)]


def test_analyzer_missing_from_registry_is_rejected(repository, bus, advisories):
    registry = AnalyzerRegistry({
        'dependency-check': EligibilityRule.general(),
        'npm': EligibilityRule.specialized('npm'),
    })

    with pytest.raises(ConfigurationException) as exc_info:
        NpmAuditAnalyzer(registry, AssociationTracker(repository, repository),
                         NotificationEmitter(bus), advisories)

    assert "'npm-audit'" in str(exc_info.value)
    assert 'dependency-check' in str(exc_info.value)


def test_npm_analyzer_queries_its_rule_ecosystem(bus):
    """Test the specialized analyzer looks up advisories for the ecosystem its rule reserves."""
    repository = InMemoryRepository()
    repository.add_component(Component(id=1, name='lodash', version='4.17.20',
                                       package_identifier=PackageIdentifier.parse('pkg:yarn/lodash@4.17.20')))
    db = AdvisoryDatabase()
    db.add(advisory('CVE-2021-23337', 'npm', 'lodash', '<4.17.21'))
    db.add(advisory('YARN-1', 'yarn', 'lodash', '4.17.20'))

    registry = AnalyzerRegistry({
        'dependency-check': EligibilityRule.general(),
        'npm-audit': EligibilityRule.specialized('yarn'),
    })
    npm = NpmAuditAnalyzer(registry, AssociationTracker(repository, repository),
                           NotificationEmitter(bus), db)

    PortfolioBatchScanner(repository).run_full_scan(npm.analyze_batch)

    assert npm.components_analyzed == 1
    assert notified(bus) == [('YARN-1', 1)]
