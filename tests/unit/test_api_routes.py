"""
Unit tests for API v1 routes.

Tests endpoint responses and the mapping of domain errors onto HTTP
status codes, with mocked services and in-memory adapters.
"""

from base64 import b64encode
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.repository.memory import InMemoryApplicationRepository, InMemoryProfileStore
from src.adapters.storage.memory import InMemoryDocumentStore
from src.api.dependencies import get_current_identity, get_registration_service
from src.api.v1.routes import router
from src.domain.exceptions import AuthProviderError, RegistrationRejected
from src.domain.ports import AuthEvent, AuthEventKind, SessionIdentity
from src.domain.registration import ErrorKind, RegisteredAccount, RegistrationService

IDENTITY = SessionIdentity(user_id="user-1", email="hari@example.com")
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def basic_auth_header(email: str, password: str) -> dict:
    """Create HTTP BASIC AUTH header for testing."""
    credentials = f"{email}:{password}"
    encoded = b64encode(credentials.encode()).decode()
    return {"Authorization": f"Basic {encoded}"}


@pytest.fixture
def app() -> FastAPI:
    """Create test FastAPI application with in-memory adapters."""
    test_app = FastAPI()
    test_app.include_router(router, prefix="/v1")

    test_app.state.auth_provider = MagicMock()
    test_app.state.profile_store = InMemoryProfileStore()
    test_app.state.application_repository = InMemoryApplicationRepository()
    test_app.state.document_store = InMemoryDocumentStore()

    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


@pytest.fixture
def authed(app: FastAPI) -> TestClient:
    """Client whose requests are authenticated as IDENTITY."""
    app.dependency_overrides[get_current_identity] = lambda: IDENTITY
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestRegisterEndpoint:
    """Tests for POST /v1/register endpoint."""

    def test_register_success_returns_201(self, app: FastAPI) -> None:
        mock_service = MagicMock(spec=RegistrationService)
        mock_service.register.return_value = RegisteredAccount("user-1", "hari@example.com")
        app.dependency_overrides[get_registration_service] = lambda: mock_service
        client = TestClient(app)

        try:
            response = client.post(
                "/v1/register",
                json={"email": "hari@example.com", "full_name_nepali": "हरि शर्मा", "accepted_terms": True},
            )

            assert response.status_code == 201
            assert response.json()["user_id"] == "user-1"
            assert "confirm your email" in response.json()["message"]
            submission = mock_service.register.call_args.args[0]
            assert submission.full_name_local_script == "हरि शर्मा"
            assert submission.accepted_terms is True
        finally:
            app.dependency_overrides.clear()

    def test_rule_failure_returns_422_with_message(self, app: FastAPI) -> None:
        mock_service = MagicMock(spec=RegistrationService)
        mock_service.register.side_effect = RegistrationRejected(
            ErrorKind.UNDERAGE, "You must be at least 18 years old to register."
        )
        app.dependency_overrides[get_registration_service] = lambda: mock_service

        try:
            response = TestClient(app).post("/v1/register", json={})

            assert response.status_code == 422
            assert response.json() == {"detail": "You must be at least 18 years old to register."}
        finally:
            app.dependency_overrides.clear()

    def test_provider_error_returns_400(self, app: FastAPI) -> None:
        mock_service = MagicMock(spec=RegistrationService)
        mock_service.register.side_effect = AuthProviderError("User already registered")
        app.dependency_overrides[get_registration_service] = lambda: mock_service

        try:
            response = TestClient(app).post("/v1/register", json={})

            assert response.status_code == 400
            assert response.json()["detail"] == "User already registered"
        finally:
            app.dependency_overrides.clear()

    def test_real_pipeline_reports_first_failure(self, client: TestClient) -> None:
        """An empty form fails on the first rule."""
        response = client.post("/v1/register", json={})

        assert response.status_code == 422
        assert response.json()["detail"] == "Please enter your first and last name."


class TestPasswordReset:
    def test_invalid_email_returns_400(self, client: TestClient) -> None:
        response = client.post("/v1/password-reset", json={"email": "nope"})
        assert response.status_code == 400

    def test_valid_email(self, client: TestClient, app: FastAPI) -> None:
        response = client.post("/v1/password-reset", json={"email": "hari@example.com"})

        assert response.status_code == 200
        assert response.json() == {"message": "Reset link sent. Please check your inbox."}
        app.state.auth_provider.request_password_reset.assert_called_once_with("hari@example.com")

    def test_reset_confirm_updates_recovered_identity(self, client: TestClient, app: FastAPI) -> None:
        provider = app.state.auth_provider
        provider.recover.return_value = AuthEvent(AuthEventKind.PASSWORD_RECOVERY, IDENTITY)

        response = client.post(
            "/v1/password-reset/confirm",
            json={"token": "reset-token", "new_password": "newpass1", "confirm_password": "newpass1"},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Password updated. You can now sign in."}
        provider.recover.assert_called_once_with("reset-token")
        provider.update_password.assert_called_once_with(IDENTITY, "newpass1")

    def test_reset_confirm_mismatch_keeps_token(self, client: TestClient, app: FastAPI) -> None:
        """A password rule failure is reported without redeeming the token."""
        response = client.post(
            "/v1/password-reset/confirm",
            json={"token": "reset-token", "new_password": "newpass1", "confirm_password": "newpass2"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Passwords do not match."
        app.state.auth_provider.recover.assert_not_called()

    def test_reset_confirm_invalid_token(self, client: TestClient, app: FastAPI) -> None:
        app.state.auth_provider.recover.side_effect = AuthProviderError("Token has expired or is invalid")

        response = client.post(
            "/v1/password-reset/confirm",
            json={"token": "stale", "new_password": "newpass1", "confirm_password": "newpass1"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Token has expired or is invalid"
        app.state.auth_provider.update_password.assert_not_called()


class TestConfirmEmail:
    def test_confirm_success(self, client: TestClient, app: FastAPI) -> None:
        app.state.auth_provider.confirm_email.return_value = IDENTITY

        response = client.post("/v1/confirm", json={"token": "confirm-token"})

        assert response.status_code == 200
        assert response.json() == {"message": "Email confirmed. You are now signed in."}
        app.state.auth_provider.confirm_email.assert_called_once_with("confirm-token")

    def test_invalid_token_returns_400(self, client: TestClient, app: FastAPI) -> None:
        app.state.auth_provider.confirm_email.side_effect = AuthProviderError("Token has expired or is invalid")

        response = client.post("/v1/confirm", json={"token": "stale"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Token has expired or is invalid"

    def test_empty_token_returns_422(self, client: TestClient) -> None:
        assert client.post("/v1/confirm", json={"token": ""}).status_code == 422


class TestCalendarConvert:
    def test_ad_to_bs(self, client: TestClient) -> None:
        response = client.post("/v1/calendar/convert", json={"date": "2024-04-13", "calendar": "AD"})

        assert response.status_code == 200
        assert response.json() == {"ad": "2024-04-13", "bs": "2081-01-01"}

    def test_bs_to_ad(self, client: TestClient) -> None:
        response = client.post("/v1/calendar/convert", json={"date": "2081-01-01", "calendar": "BS"})
        assert response.json() == {"ad": "2024-04-13", "bs": "2081-01-01"}

    @pytest.mark.parametrize("date", ["2024-02-30", "13-04-2024", "3000-01-01"])
    def test_unconvertible_returns_422(self, client: TestClient, date: str) -> None:
        response = client.post("/v1/calendar/convert", json={"date": date, "calendar": "AD"})
        assert response.status_code == 422


class TestAuthentication:
    def test_missing_credentials_returns_401(self, client: TestClient) -> None:
        assert client.get("/v1/application").status_code == 401

    def test_rejected_credentials_return_provider_message(self, client: TestClient, app: FastAPI) -> None:
        app.state.auth_provider.authenticate.side_effect = AuthProviderError("Email not confirmed")

        response = client.get("/v1/application", headers=basic_auth_header("hari@example.com", "secret1"))

        assert response.status_code == 401
        assert response.json()["detail"] == "Email not confirmed"

    def test_valid_credentials(self, client: TestClient, app: FastAPI) -> None:
        app.state.auth_provider.authenticate.return_value = IDENTITY

        response = client.get("/v1/application", headers=basic_auth_header("Hari@Example.com", "secret1"))

        assert response.status_code == 200
        app.state.auth_provider.authenticate.assert_called_once_with("hari@example.com", "secret1")


class TestApplicationEndpoints:
    def test_partial_personal_update(self, authed: TestClient) -> None:
        authed.put("/v1/application/personal", json={"full_name": "Hari Sharma"})
        response = authed.put("/v1/application/personal", json={"gender": "male"})

        assert response.status_code == 200
        personal = response.json()["personal"]
        assert personal["full_name"] == "Hari Sharma"
        assert personal["gender"] == "male"

    def test_upload_document(self, authed: TestClient) -> None:
        response = authed.put(
            "/v1/application/documents/signature",
            content=PNG,
            headers={"Content-Type": "image/png"},
        )

        assert response.status_code == 200
        assert response.json()["documents"]["signature"].startswith("user-1/signature/")

    def test_upload_wrong_type_returns_422(self, authed: TestClient) -> None:
        response = authed.put(
            "/v1/application/documents/signature",
            content=b"%PDF-1.4",
            headers={"Content-Type": "application/pdf"},
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Only JPG and PNG images are allowed."

    def test_declared_oversize_rejected_before_body_read(self, app: FastAPI, authed: TestClient) -> None:
        """A Content-Length above 3 MB is refused without storing anything."""
        store = MagicMock()
        app.state.document_store = store

        response = authed.put(
            "/v1/application/documents/signature",
            content=PNG,
            headers={"Content-Type": "image/png", "Content-Length": str(3 * 1024 * 1024 + 1)},
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "File must be smaller than 3MB."
        store.put.assert_not_called()

    def test_unknown_slot_returns_422(self, authed: TestClient) -> None:
        response = authed.put(
            "/v1/application/documents/driving_licence",
            content=PNG,
            headers={"Content-Type": "image/png"},
        )
        assert response.status_code == 422

    def test_remove_document(self, authed: TestClient) -> None:
        authed.put("/v1/application/documents/signature", content=PNG, headers={"Content-Type": "image/png"})
        response = authed.delete("/v1/application/documents/signature")

        assert response.status_code == 200
        assert response.json()["documents"] == {}

    def test_incomplete_verification_returns_409(self, authed: TestClient) -> None:
        response = authed.post("/v1/application/verification")

        assert response.status_code == 409
        assert response.json()["detail"] == (
            "Please complete all required sections before submitting for verification."
        )

    def test_failed_exam_locks_retry(self, authed: TestClient) -> None:
        first = authed.post("/v1/application/exam-attempts", json={"score": 79})
        assert first.status_code == 200
        assert first.json()["exam"]["phase"] == "failed_locked"

        retry = authed.post("/v1/application/exam-attempts", json={"score": 100})
        assert retry.status_code == 409
        assert "90 days" in retry.json()["detail"]

    def test_exam_score_out_of_range(self, authed: TestClient) -> None:
        response = authed.post("/v1/application/exam-attempts", json={"score": 120})
        assert response.status_code == 422
