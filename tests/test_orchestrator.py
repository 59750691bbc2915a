import logging

import pytest

from medmigrate.extractors.base import NoDataFoundError
from medmigrate.loaders.memory_store import InMemoryStore
from medmigrate.loaders.rest_store import RestRecordStore
from medmigrate.models.migration import MigrationConfig, MigrationOutcome, MigrationSource, MigrationTarget
from medmigrate.orchestrator import MigrationOrchestrator, create_store

from .dumps import MYSQLDUMP, PATIENT_DUMP


class TestPreview:

    def test_concrete_scenario(self, orchestrator):
        preview = orchestrator.generate_preview(PATIENT_DUMP, "patient_tbl", "patients")

        assert preview.source is MigrationSource.PATIENT
        assert preview.target is MigrationTarget.PATIENTS
        assert preview.total_records == 2
        assert preview.fields == ["id_patient", "nif", "first_name"]
        assert preview.mappings == {
            "id_patient": "id",
            "nif": "identification_card_number",
            "first_name": "first_name",
        }
        assert preview.unmapped_fields == []

    def test_unmapped_fields_get_suggestions(self, orchestrator):
        preview = orchestrator.generate_preview(MYSQLDUMP, "patient_tbl", "patients")

        assert preview.unmapped_fields == ["blood_group"]
        assert "blood_group" in preview.suggestions

    def test_preview_is_limited(self, registry, store):
        rows = ",".join(f"({i},'N{i}')" for i in range(1, 26))
        dump = f"INSERT INTO patient_tbl (id_patient, first_name) VALUES {rows};"
        orchestrator = MigrationOrchestrator(store=store, registry=registry, config=MigrationConfig(preview_limit=5))

        preview = orchestrator.generate_preview(dump, "patient_tbl", "patients")

        assert preview.total_records == 25
        assert len(preview.data) == 5

    def test_preview_writes_nothing(self, orchestrator, store):
        orchestrator.generate_preview(PATIENT_DUMP, "patient_tbl", "patients")
        assert store.tables == {}
        assert store.audit_log == []

    def test_no_data(self, orchestrator):
        with pytest.raises(NoDataFoundError):
            orchestrator.generate_preview("-- nothing here\n", "patient_tbl", "patients")

    def test_structure_only_dump_is_empty_not_an_error(self, orchestrator):
        preview = orchestrator.generate_preview(MYSQLDUMP.split("LOCK TABLES")[0], "patient_tbl", "patients")

        assert preview.total_records == 0
        assert preview.fields == []
        assert preview.mappings == {}

    def test_unknown_source(self, orchestrator):
        with pytest.raises(ValueError):
            orchestrator.generate_preview(PATIENT_DUMP, "legacy-billing", "patients")


class TestMigrate:

    def test_concrete_scenario(self, orchestrator, store):
        mappings = orchestrator.generate_preview(PATIENT_DUMP, "patient_tbl", "patients").mappings

        result = orchestrator.migrate_data(PATIENT_DUMP, "patient_tbl", "patients", mappings)

        assert result.records_inserted == 2
        assert result.errors == ()
        assert store.audit_log[0]["user_id"] == "operator-1"

    def test_no_data_is_a_failed_result(self, orchestrator, store):
        result = orchestrator.migrate_data("", "patient_tbl", "patients", {})

        assert result.outcome is MigrationOutcome.FAILURE
        assert result.errors == ("Migration failed: No data found in the SQL file for patient_tbl",)
        assert store.audit_log == []


class TestCreateStore:

    def test_requires_url(self):
        with pytest.raises(ValueError):
            create_store(MigrationConfig())

    def test_rest_store_from_config(self):
        config = MigrationConfig(store_url="https://db.example/", store_api_key="secret", dry_run=True)

        store = create_store(config)

        assert isinstance(store, RestRecordStore)
        assert store.base_url == "https://db.example"
        assert store.dry_run


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("MEDMIGRATE_STORE_URL", "https://env.example")
    monkeypatch.setenv("MEDMIGRATE_USER_ID", "env-user")
    monkeypatch.delenv("MEDMIGRATE_STORE_KEY", raising=False)

    config = MigrationConfig.from_env(MigrationConfig.from_dict({"store_api_key": "file-key", "preview_limit": 3}))

    assert config.store_url == "https://env.example"
    assert config.store_api_key == "file-key"
    assert config.user_id == "env-user"
    assert config.preview_limit == 3


def test_missing_store_is_announced(registry, caplog):
    with caplog.at_level(logging.WARNING, logger="medmigrate.orchestrator"):
        orchestrator = MigrationOrchestrator(registry=registry)

    assert isinstance(orchestrator.store, InMemoryStore)
    assert "No record store given" in caplog.text


def test_given_store_is_used_quietly(store, registry, caplog):
    with caplog.at_level(logging.WARNING, logger="medmigrate.orchestrator"):
        orchestrator = MigrationOrchestrator(store=store, registry=registry)

    assert orchestrator.store is store
    assert caplog.text == ""
