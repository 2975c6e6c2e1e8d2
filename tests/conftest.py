"""
Shared fixtures: a Database over in-memory stores and the bundled schemas
"""

import pytest

from dlxdb.database import Database
from dlxdb.models.containers import Container
from dlxdb.services.type_router import TypeRouter
from dlxdb.services.validator import SchemaRegistry, ValidationGate
from dlxdb.stores.memory import MemoryStore


@pytest.fixture(scope="session")
def registry():
    return SchemaRegistry.default()


@pytest.fixture
def router():
    return TypeRouter()


@pytest.fixture
def gate(router, registry):
    return ValidationGate(router, registry)


@pytest.fixture
def stores():
    return {container: MemoryStore(container) for container in Container}


@pytest.fixture
def db(stores, registry):
    return Database(stores, registry=registry, bulk_limit=100, name="test")
