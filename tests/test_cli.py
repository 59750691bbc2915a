import json

import pytest

from medmigrate.cli import main

from .dumps import PATIENT_DUMP


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MEDMIGRATE_STORE_URL", "MEDMIGRATE_STORE_KEY", "MEDMIGRATE_CATALOG_DIR", "MEDMIGRATE_USER_ID"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def dump_file(tmp_path):
    path = tmp_path / "patients.sql"
    path.write_text(PATIENT_DUMP, encoding="utf-8")
    return str(path)


def test_preview_json(dump_file, capsys):
    assert main(["preview", dump_file, "--source", "patient_tbl", "--target", "patients", "--json"]) == 0

    preview = json.loads(capsys.readouterr().out)
    assert preview["total_records"] == 2
    assert preview["mappings"]["nif"] == "identification_card_number"


def test_preview_saves_mapping(dump_file, tmp_path):
    mapping_file = tmp_path / "mapping.json"

    assert main([
        "preview", dump_file, "--source", "patient_tbl", "--target", "patients",
        "--save-mapping", str(mapping_file),
    ]) == 0

    assert json.loads(mapping_file.read_text())["id_patient"] == "id"


def test_preview_empty_dump(tmp_path, capsys):
    path = tmp_path / "empty.sql"
    path.write_text("", encoding="utf-8")

    assert main(["preview", str(path), "--source", "patient_tbl", "--target", "patients"]) == 1
    assert "No data found" in capsys.readouterr().err


def test_run_against_memory_store(dump_file, capsys):
    assert main(["run", dump_file, "--source", "patient_tbl", "--target", "patients", "--store", "memory"]) == 0

    out = capsys.readouterr().out
    assert "Outcome: success" in out
    assert "Inserted: 2" in out


def test_run_with_invalid_mapping(dump_file, tmp_path, capsys):
    mapping_file = tmp_path / "mapping.json"
    mapping_file.write_text(json.dumps({"nif": "tax_number"}))

    code = main([
        "run", dump_file, "--source", "patient_tbl", "--target", "patients",
        "--store", "memory", "--mapping", str(mapping_file),
    ])

    assert code == 1
    assert "tax_number" in capsys.readouterr().err


def test_run_without_store_url(dump_file):
    assert main(["run", dump_file, "--source", "patient_tbl", "--target", "patients"]) == 2


def test_targets(capsys):
    assert main(["targets"]) == 0
    out = capsys.readouterr().out
    assert "patients" in out
    assert "record_log_tbl-activity_logs" in out


def test_no_command():
    assert main([]) == 1
