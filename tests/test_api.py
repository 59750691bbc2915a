import pytest
from fastapi.testclient import TestClient

from medmigrate.api.main import app
from medmigrate.api.routes.migrations import get_orchestrator
from medmigrate.orchestrator import MigrationOrchestrator

from .dumps import PATIENT_DUMP
from .test_executor import OfflineStore


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_preview(client):
    response = client.post("/api/migrations/preview", json={
        "content": PATIENT_DUMP,
        "source": "patient_tbl",
        "target": "patients",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["total_records"] == 2
    assert body["mappings"]["id_patient"] == "id"
    assert body["unmapped_fields"] == []


def test_preview_without_data(client):
    response = client.post("/api/migrations/preview", json={
        "content": "-- empty",
        "source": "patient_tbl",
        "target": "patients",
    })
    assert response.status_code == 400


def test_unknown_source_is_rejected(client):
    response = client.post("/api/migrations/preview", json={
        "content": PATIENT_DUMP,
        "source": "billing_tbl",
        "target": "patients",
    })
    assert response.status_code == 422


def test_execute(client):
    response = client.post("/api/migrations/execute", json={
        "content": PATIENT_DUMP,
        "source": "patient_tbl",
        "target": "patients",
        "mappings": {"id_patient": "id", "nif": "identification_card_number", "first_name": "first_name"},
        "user_id": "u1",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["outcome"] == "success"
    assert body["records_inserted"] == 2
    assert body["errors"] == []


def test_execute_without_data_is_a_failed_result(client):
    response = client.post("/api/migrations/execute", json={
        "content": "-- empty",
        "source": "patient_tbl",
        "target": "patients",
    })

    assert response.status_code == 200
    assert response.json()["outcome"] == "failure"


def test_execute_with_bad_mapping(client):
    response = client.post("/api/migrations/execute", json={
        "content": PATIENT_DUMP,
        "source": "patient_tbl",
        "target": "patients",
        "mappings": {"nif": "tax_number"},
    })
    assert response.status_code == 400


def test_execute_store_unavailable(registry):
    app.dependency_overrides[get_orchestrator] = lambda: MigrationOrchestrator(store=OfflineStore(), registry=registry)
    try:
        response = TestClient(app).post("/api/migrations/execute", json={
            "content": PATIENT_DUMP,
            "source": "patient_tbl",
            "target": "patients",
        })
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
