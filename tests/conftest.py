import pytest

from medmigrate.loaders.memory_store import InMemoryStore
from medmigrate.models.migration import MigrationConfig
from medmigrate.orchestrator import MigrationOrchestrator
from medmigrate.services.schema_registry import SchemaRegistry


@pytest.fixture
def registry():
    return SchemaRegistry()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def orchestrator(store, registry):
    return MigrationOrchestrator(store=store, registry=registry, config=MigrationConfig(user_id="operator-1"))
