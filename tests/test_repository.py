"""Unit tests for the in-memory repository and inventory loading."""

import json
import os
import tempfile
import threading

import pytest

from portfolio_scan.core import Component, InMemoryRepository, Project, load_inventory
from portfolio_scan.core.exceptions import InventoryFormatException


@pytest.fixture
def inventory_file():
    """Create a temporary inventory JSON file."""
    data = {
        'components': [
            {'id': 3, 'name': 'lodash', 'version': '4.17.20', 'purl': 'pkg:npm/lodash@4.17.20'},
            {'id': 1, 'name': 'libfoo', 'version': '1.0.0'},
            {'id': 2, 'name': 'weird', 'purl': 'not-a-purl'},
        ],
        'projects': [{'id': 'web', 'name': 'Web Frontend'}, {'id': 'api'}],
        'dependencies': [
            {'project': 'web', 'component': 3},
            {'project': 'api', 'component': 3},
            {'project': 'api', 'component': 1},
        ],
    }
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        json.dump(data, f)
        temp_path = f.name

    yield temp_path

    # Cleanup
    if os.path.exists(temp_path):
        os.unlink(temp_path)


def write_temp_json(content):
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        f.write(content)
        return f.name


def test_load_inventory(inventory_file):
    repository = load_inventory(inventory_file)

    assert repository.count() == 3
    assert [c.id for c in repository.fetch_page(0, 10)] == [1, 2, 3]

    lodash = repository.get_component(3)
    assert lodash.package_identifier.ecosystem_type == 'npm'
    assert repository.get_component(1).package_identifier is None
    assert repository.get_component(2).package_identifier is None

    projects = {d.project.id for d in repository.dependencies_of(lodash)}
    assert projects == {'web', 'api'}


def test_fetch_page_offset_and_after_id():
    repository = InMemoryRepository()
    for component_id in [5, 1, 9, 3, 7]:
        repository.add_component(Component(id=component_id, name=str(component_id)))

    assert [c.id for c in repository.fetch_page(1, 2)] == [3, 5]
    assert [c.id for c in repository.fetch_page(0, 2, after_id=5)] == [7, 9]
    assert repository.fetch_page(0, 2, after_id=9) == []


def test_get_component_while_components_change():
    repository = InMemoryRepository()
    stop = threading.Event()
    errors = []

    def churn():
        component_id = 1000
        while not stop.is_set():
            repository.add_component(Component(id=component_id, name='churn'))
            repository.remove_component(component_id)
            component_id += 1

    def read():
        try:
            for _ in range(2000):
                assert repository.get_component(1).name == 'stable'
        except Exception as e:
            errors.append(e)

    repository.add_component(Component(id=1, name='stable'))
    writer = threading.Thread(target=churn)
    readers = [threading.Thread(target=read) for _ in range(4)]
    writer.start()
    for reader in readers:
        reader.start()
    for reader in readers:
        reader.join()
    stop.set()
    writer.join()

    assert errors == []
    assert repository.get_component(1000) is None


def test_dependencies_of_unknown_component_is_empty():
    repository = InMemoryRepository()
    assert repository.dependencies_of(Component(id=99, name='ghost')) == []


def test_remove_component_drops_dependencies():
    repository = InMemoryRepository()
    component = repository.add_component(Component(id=1, name='a'))
    repository.add_dependency(Project(id='p'), component)

    repository.remove_component(1)

    assert repository.count() == 0
    assert repository.dependencies_of(component) == []


@pytest.mark.parametrize('content', [
    'not json',
    '[1, 2, 3]',
    '{"components": [{"name": "missing-id"}]}',
    '{"components": [{"id": "abc", "name": "x"}]}',
    '{"components": [{"id": 1, "name": "x"}], "dependencies": [{"project": "nope", "component": 1}]}',
])
def test_malformed_inventory_raises(content):
    path = write_temp_json(content)
    try:
        with pytest.raises(InventoryFormatException):
            load_inventory(path)
    finally:
        os.unlink(path)


def test_missing_inventory_raises():
    with pytest.raises(InventoryFormatException):
        load_inventory('/nonexistent/inventory.json')
