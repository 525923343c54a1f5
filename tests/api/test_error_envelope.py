"""Exception handlers on a bare app"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tavern.api.errors import INTERNAL_ERROR_MESSAGE, register_exception_handlers
from tavern.core.errors import ConflictError, PolicyError


@pytest.fixture()
def error_client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/policy")
    def policy():
        raise PolicyError("Quest can only be deleted while DRAFT")

    @app.get("/conflict")
    def conflict():
        raise ConflictError("taken")

    @app.get("/boom")
    def boom():
        raise RuntimeError("database on fire")

    return TestClient(app, raise_server_exceptions=False)


def test_domain_errors_keep_their_status(error_client):
    response = error_client.get("/policy")
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Quest can only be deleted while DRAFT",
    }
    assert error_client.get("/conflict").status_code == 409


def test_unexpected_errors_are_hidden(error_client, caplog):
    response = error_client.get("/boom")
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": INTERNAL_ERROR_MESSAGE}
    assert "database on fire" not in response.text
    assert any(record.exc_info for record in caplog.records)


def test_method_not_allowed_uses_envelope(error_client):
    response = error_client.post("/policy")
    assert response.status_code == 405
    assert response.json()["success"] is False
