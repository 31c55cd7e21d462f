from __future__ import annotations

import json
import logging
from datetime import datetime

import pytest
from fastapi import FastAPI, Request, Response
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from dmat_service.api import routes
from dmat_service.api.envelopes import SUCCESS_MESSAGE
from dmat_service.api.error_handlers import register_error_handlers
from dmat_service.api.gate import AccountValidationMiddleware, matches_gated_path
from dmat_service.config import Settings
from dmat_service.domain.contracts import AccountRequest
from dmat_service.domain.errors import MALFORMED_PAYLOAD_MESSAGE
from dmat_service.main import create_app
from factories import valid_payload

CREATE_PATH = "/api/dmat/create"


class RecordingService:
    """Account service double that keeps every accepted request."""

    def __init__(self) -> None:
        self.accepted: list[AccountRequest] = []

    def create_account(self, request: AccountRequest) -> None:
        self.accepted.append(request)


def _gate_count(outcome: str) -> float:
    return REGISTRY.get_sample_value("dmat_gate_decisions_total", {"outcome": outcome}) or 0.0


def test_valid_request_returns_success_envelope(api_client):
    response = api_client.post(CREATE_PATH, json=valid_payload())
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Success"
    assert body["message"] == SUCCESS_MESSAGE
    assert set(body) == {"requestTime", "status", "message"}
    datetime.fromisoformat(body["requestTime"])


def test_invalid_request_returns_all_failures(api_client):
    response = api_client.post(
        CREATE_PATH,
        json={"securityCode": "AB", "rowCount": 0, "pageIndex": 0, "mobileNumber": "12345"},
    )
    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/json")
    body = response.json()
    assert set(body) == {"requestTime", "status", "errors"}
    assert body["status"] == "Failed"
    assert "SecCode must be exactly 4 alphanumeric characters." in body["errors"]
    assert "RowCount must be greater than 0 and it must be a positive integer." in body["errors"]
    assert "PageIndex must be greater than 0 and it must be a positive integer." in body["errors"]
    assert "MobileNumber must be exactly 10 digits." in body["errors"]
    assert "FullName is required." in body["errors"]
    datetime.fromisoformat(body["requestTime"])


def test_explicit_empty_nominee_name_is_rejected(api_client):
    response = api_client.post(CREATE_PATH, json=valid_payload(nomineeName=""))
    assert response.status_code == 400
    assert response.json()["errors"] == ["NomineeName cannot exceed 100 characters."]


def test_malformed_body_returns_single_error(api_client):
    response = api_client.post(
        CREATE_PATH, content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["errors"] == [MALFORMED_PAYLOAD_MESSAGE]


def test_wrongly_typed_field_is_malformed(api_client):
    response = api_client.post(CREATE_PATH, json=valid_payload(rowCount="10"))
    assert response.status_code == 400
    assert response.json()["errors"] == [MALFORMED_PAYLOAD_MESSAGE]


def test_property_names_are_matched_case_insensitively(api_client):
    payload = {key.upper(): value for key, value in valid_payload().items()}
    response = api_client.post(CREATE_PATH, json=payload)
    assert response.status_code == 200


def test_handler_receives_the_validated_request(api_client):
    service = RecordingService()
    api_client.app.state.account_service = service
    response = api_client.post(CREATE_PATH, json=valid_payload(secCode="Z9Y8"))
    assert response.status_code == 200
    assert len(service.accepted) == 1
    assert service.accepted[0].security_code == "Z9Y8"


def test_rejected_request_never_reaches_handler(api_client):
    service = RecordingService()
    api_client.app.state.account_service = service
    response = api_client.post(CREATE_PATH, json=valid_payload(panNumber="abcde1234f"))
    assert response.status_code == 400
    assert service.accepted == []


def test_gate_replays_original_bytes_downstream():
    app = FastAPI()
    app.add_middleware(AccountValidationMiddleware)

    @app.post(CREATE_PATH)
    async def echo(request: Request) -> Response:
        return Response(content=await request.body(), media_type="application/octet-stream")

    raw = json.dumps(valid_payload(), indent=3).encode("utf-8")
    with TestClient(app) as client:
        response = client.post(CREATE_PATH, content=raw, headers={"Content-Type": "application/json"})
    assert response.status_code == 200
    assert response.content == raw


def test_non_post_requests_bypass_the_gate(api_client):
    response = api_client.get(CREATE_PATH)
    assert response.status_code == 405


def test_other_paths_bypass_the_gate(api_client):
    response = api_client.post("/api/dmat/created", json={})
    assert response.status_code == 404


@pytest.mark.parametrize("path", ["/API/DMAT/CREATE", "/api/dmat/create/extra"])
def test_gate_matches_path_segments_case_insensitively(api_client, path):
    response = api_client.post(path, json={})
    assert response.status_code == 400
    assert response.json()["status"] == "Failed"


def test_matches_gated_path():
    assert matches_gated_path("/api/dmat/create")
    assert matches_gated_path("/api/dmat/create/")
    assert matches_gated_path("/Api/Dmat/Create/more")
    assert not matches_gated_path("/api/dmat/createx")
    assert not matches_gated_path("/api/dmat")


def test_route_maps_decode_errors_when_gate_is_absent():
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(routes.router)
    app.state.account_service = RecordingService()
    with TestClient(app) as client:
        response = client.post(CREATE_PATH, content=b"[]", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["errors"] == [MALFORMED_PAYLOAD_MESSAGE]


def test_gate_decisions_are_counted(api_client):
    passed, rejected, malformed = _gate_count("pass"), _gate_count("rejected"), _gate_count("malformed")
    api_client.post(CREATE_PATH, json=valid_payload())
    api_client.post(CREATE_PATH, json={})
    api_client.post(CREATE_PATH, content=b"{", headers={"Content-Type": "application/json"})
    assert _gate_count("pass") == passed + 1
    assert _gate_count("rejected") == rejected + 1
    assert _gate_count("malformed") == malformed + 1

    metrics = api_client.get("/metrics")
    assert metrics.status_code == 200
    assert 'dmat_gate_decisions_total{outcome="rejected"}' in metrics.text


def test_healthz(api_client):
    response = api_client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_docs_are_served_when_enabled(api_client):
    assert api_client.get("/docs").status_code == 200
    schema = api_client.get("/openapi.json").json()
    operation = schema["paths"][CREATE_PATH]["post"]
    assert "securityCode" in operation["requestBody"]["content"]["application/json"]["schema"]["properties"]


def test_docs_are_hidden_when_disabled():
    app = create_app(Settings(log_file="", docs_enabled=False))
    with TestClient(app) as client:
        assert client.get("/docs").status_code == 404
        assert client.get("/openapi.json").status_code == 404


def test_https_redirect_when_enabled():
    app = create_app(Settings(log_file="", https_redirect=True))
    with TestClient(app) as client:
        response = client.post(CREATE_PATH, json=valid_payload(), follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"].startswith("https://")


def test_unhandled_errors_return_generic_failure_envelope():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/explode")
    def explode() -> None:
        raise RuntimeError("database password is hunter2")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/explode")
    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "Failed"
    assert body["errors"] == ["An unexpected error occurred."]
    assert "hunter2" not in response.text


def test_rejection_is_logged_once(api_client, caplog):
    with caplog.at_level(logging.DEBUG, logger="dmat_service.api.gate"):
        response = api_client.post(CREATE_PATH, json=valid_payload(email="bad"))
    assert response.status_code == 400
    gate_records = [record for record in caplog.records if record.name == "dmat_service.api.gate"]
    assert len(gate_records) == 1
    assert "rejected" in gate_records[0].getMessage()
