"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes. Adapters are
created during app lifespan and stored in app.state.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from src.domain.exceptions import AuthProviderError
from src.domain.ports import SessionIdentity
from src.domain.registration import RegistrationService
from src.domain.session import AuthSessionCoordinator
from src.domain.workflow import ApplicationWorkflow


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the auth provider and profile store for the domain service.
    """
    state = request.app.state
    return RegistrationService(auth_provider=state.auth_provider, profile_store=state.profile_store)


def get_workflow(request: Request) -> ApplicationWorkflow:
    """Create application workflow with the repository and document store."""
    state = request.app.state
    return ApplicationWorkflow(
        repository=state.application_repository,
        document_store=state.document_store,
    )


def get_session_coordinator(request: Request) -> AuthSessionCoordinator:
    """Create a coordinator with a fresh per-request session."""
    state = request.app.state
    return AuthSessionCoordinator(auth_provider=state.auth_provider, profile_store=state.profile_store)


# HTTP BASIC AUTH security scheme for OpenAPI documentation
http_basic = HTTPBasic()


def get_current_identity(
    request: Request,
    credentials: HTTPBasicCredentials = Depends(http_basic),
) -> SessionIdentity:
    """
    Authenticate the citizen from the HTTP BASIC AUTH header.

    FastAPI's HTTPBasic returns 401 for a missing or malformed header;
    rejected credentials (including unconfirmed email) also return 401
    with the provider's message.

    Returns:
        The authenticated identity
    """
    email = credentials.username.strip().lower()
    try:
        return request.app.state.auth_provider.authenticate(email, credentials.password)
    except AuthProviderError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Basic"},
        ) from None
