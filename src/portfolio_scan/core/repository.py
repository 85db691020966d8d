"""Repository interfaces consumed by the scanning core, plus an in-memory implementation"""

import json
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from .exceptions import InventoryFormatException
from .models import Component, Dependency, PackageIdentifier, Project, Vulnerability


class InventoryRepository(ABC):
    """Component inventory, paginated by ascending component id"""

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def fetch_page(self, offset: int, limit: int,
                   after_id: Optional[int] = None) -> List[Component]:
        """
        Fetch one page of components ordered by id ascending

        Args:
            offset: Number of matching components to skip
            limit: Maximum number of components to return
            after_id: If set, only components with an id greater than this are considered

        Returns:
            List of components (empty when exhausted)
        """
        pass


class DependencyRepository(ABC):

    @abstractmethod
    def dependencies_of(self, component: Component) -> List[Dependency]:
        pass


class AssociationRepository(ABC):
    """Persisted (vulnerability, component) associations"""

    @abstractmethod
    def exists(self, vulnerability: Vulnerability, component: Component) -> bool:
        pass

    @abstractmethod
    def add_if_absent(self, vulnerability: Vulnerability, component: Component) -> bool:
        """
        Record an association unless it already exists

        Must be atomic per (vulnerability, component) key: of several concurrent
        callers for the same key exactly one observes True.

        Returns:
            True if this call created the association, False if it already existed
        """
        pass


class InMemoryRepository(InventoryRepository, DependencyRepository, AssociationRepository):
    """
    Thread-safe in-memory store implementing all repository interfaces

    Used by the CLI (loaded from a JSON inventory file) and by tests.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._components: Dict[int, Component] = {}
        self._projects: Dict[str, Project] = {}
        # Structure: {component_id: [Dependency, ...]}
        self._dependencies: Dict[int, List[Dependency]] = defaultdict(list)
        self._associations: Set[Tuple[str, int]] = set()

    def add_component(self, component: Component) -> Component:
        with self._lock:
            self._components[component.id] = component
        return component

    def remove_component(self, component_id: int):
        with self._lock:
            self._components.pop(component_id, None)
            self._dependencies.pop(component_id, None)

    def add_project(self, project: Project) -> Project:
        with self._lock:
            self._projects[project.id] = project
        return project

    def add_dependency(self, project: Project, component: Component) -> Dependency:
        dependency = Dependency(project=project, component=component)
        with self._lock:
            self._projects.setdefault(project.id, project)
            self._dependencies[component.id].append(dependency)
        return dependency

    def remove_association(self, vulnerability: Vulnerability, component: Component):
        with self._lock:
            self._associations.discard((vulnerability.vuln_id, component.id))

    def get_component(self, component_id: int) -> Optional[Component]:
        with self._lock:
            return self._components.get(component_id)

    def get_projects(self) -> List[Project]:
        with self._lock:
            return sorted(self._projects.values(), key=lambda p: p.id)

    def get_association_count(self) -> int:
        with self._lock:
            return len(self._associations)

    # InventoryRepository

    def count(self) -> int:
        with self._lock:
            return len(self._components)

    def fetch_page(self, offset: int, limit: int,
                   after_id: Optional[int] = None) -> List[Component]:
        with self._lock:
            ids = sorted(self._components)
            if after_id is not None:
                ids = [i for i in ids if i > after_id]
            return [self._components[i] for i in ids[offset:offset + limit]]

    # DependencyRepository

    def dependencies_of(self, component: Component) -> List[Dependency]:
        with self._lock:
            return list(self._dependencies.get(component.id, []))

    # AssociationRepository

    def exists(self, vulnerability: Vulnerability, component: Component) -> bool:
        with self._lock:
            return (vulnerability.vuln_id, component.id) in self._associations

    def add_if_absent(self, vulnerability: Vulnerability, component: Component) -> bool:
        key = (vulnerability.vuln_id, component.id)
        with self._lock:
            if key in self._associations:
                return False
            self._associations.add(key)
            return True


def load_inventory(path: str) -> InMemoryRepository:
    """
    Load an inventory JSON file into an in-memory repository

    Format:
        {
          "components": [{"id": 1, "name": "lodash", "version": "4.17.20",
                          "purl": "pkg:npm/lodash@4.17.20"}],
          "projects": [{"id": "web", "name": "Web Frontend"}],
          "dependencies": [{"project": "web", "component": 1}]
        }

    Args:
        path: Path to inventory JSON file

    Returns:
        Populated InMemoryRepository

    Raises:
        InventoryFormatException: If the file cannot be read or is malformed
    """
    try:
        with open(Path(path), 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InventoryFormatException(str(path), str(e)) from e

    if not isinstance(data, dict):
        raise InventoryFormatException(str(path), "top-level value must be an object")

    repository = InMemoryRepository()

    try:
        for entry in data.get('components', []):
            repository.add_component(Component(
                id=int(entry['id']),
                name=entry['name'],
                version=entry.get('version'),
                package_identifier=PackageIdentifier.parse(entry.get('purl')),
            ))

        for entry in data.get('projects', []):
            repository.add_project(Project(id=str(entry['id']), name=entry.get('name', '')))

        projects = {p.id: p for p in repository.get_projects()}
        for entry in data.get('dependencies', []):
            project_id = str(entry['project'])
            component = repository.get_component(int(entry['component']))
            if project_id not in projects or component is None:
                raise InventoryFormatException(
                    str(path), f"dependency references unknown project or component: {entry}"
                )
            repository.add_dependency(projects[project_id], component)

    except (KeyError, TypeError, ValueError) as e:
        raise InventoryFormatException(str(path), f"missing or invalid field {e}") from e

    return repository
