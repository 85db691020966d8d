"""Detection of newly observed vulnerability/component associations"""

from typing import FrozenSet, Union

from .models import Component, Project, Vulnerability
from .repository import AssociationRepository, DependencyRepository


class _AlreadyKnown:
    """Outcome returned when an association was recorded before"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'ALREADY_KNOWN'

    def __bool__(self):
        return False


ALREADY_KNOWN = _AlreadyKnown()

AssociationOutcome = Union[FrozenSet[Project], _AlreadyKnown]


class AssociationTracker:
    """
    Decides whether a (vulnerability, component) pair is new

    A new pair yields the distinct set of projects depending on the component,
    possibly empty. A pair seen before yields ALREADY_KNOWN. Callers compare
    with ``is ALREADY_KNOWN``: an empty project set is falsy too.
    """

    def __init__(self, associations: AssociationRepository, dependencies: DependencyRepository):
        self.associations = associations
        self.dependencies = dependencies

    def check_and_collect_affected_projects(self, vulnerability: Vulnerability,
                                            component: Component) -> AssociationOutcome:
        """
        Read-only check against the persisted associations

        Use when the association write is performed elsewhere and already
        serialized per pair; otherwise use record_and_collect.
        """
        if self.associations.exists(vulnerability, component):
            return ALREADY_KNOWN
        return self.collect_affected_projects(component)

    def record_and_collect(self, vulnerability: Vulnerability,
                           component: Component) -> AssociationOutcome:
        """
        Atomically record the association and report whether this call created it

        Only the caller whose insert wins sees the affected projects, so two
        concurrent analyzers reporting the same pair cannot both notify.
        """
        if not self.associations.add_if_absent(vulnerability, component):
            return ALREADY_KNOWN
        return self.collect_affected_projects(component)

    def collect_affected_projects(self, component: Component) -> FrozenSet[Project]:
        return frozenset(d.project for d in self.dependencies.dependencies_of(component))
