"""
In-memory auth provider adapter - Implements AuthProvider protocol.

Stands in for the hosted authentication backend during development and
tests. Passwords are hashed with bcrypt; confirmation and recovery
tokens are generated with the secrets module and delivered through a
Mailer.

Error messages follow the hosted backend's wording so the session
coordinator's handling (e.g. the "confirm" check on sign-in) behaves
the same against either.
"""

import logging
import secrets
import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import bcrypt

from src.domain.exceptions import AuthProviderError
from src.domain.ports import AuthEvent, AuthEventKind, Mailer, SessionIdentity

logger = logging.getLogger(__name__)

ALREADY_REGISTERED = "User already registered"
INVALID_CREDENTIALS = "Invalid login credentials"
EMAIL_NOT_CONFIRMED = "Email not confirmed"
SESSION_MISSING = "Auth session missing!"
INVALID_TOKEN = "Token has expired or is invalid"


@dataclass
class _Account:
    user_id: str
    email: str
    password_hash: str
    metadata: dict[str, Any] = field(default_factory=dict)
    confirmed: bool = False

    def identity(self) -> SessionIdentity:
        return SessionIdentity(user_id=self.user_id, email=self.email, metadata=dict(self.metadata))


class InMemoryAuthProvider:
    """
    Implements AuthProvider protocol with in-process accounts.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, mailer: Mailer, bcrypt_cost: int = 10) -> None:
        self._mailer = mailer
        self._bcrypt_cost = bcrypt_cost
        self._accounts: dict[str, _Account] = {}
        self._confirmation_tokens: dict[str, str] = {}
        self._recovery_tokens: dict[str, str] = {}
        self._session: SessionIdentity | None = None
        self._lock = threading.Lock()

    def create_account(self, email: str, password: str, metadata: Mapping[str, Any]) -> str:
        key = email.strip().lower()
        with self._lock:
            if key in self._accounts:
                raise AuthProviderError(ALREADY_REGISTERED)
            account = _Account(
                user_id=str(uuid.uuid4()),
                email=email,
                password_hash=self._hash_password(password),
                metadata=dict(metadata),
            )
            self._accounts[key] = account
        self._send_confirmation(account)
        return account.user_id

    def confirm_email(self, token: str) -> SessionIdentity:
        """Confirm a signup token and open a session for the account."""
        with self._lock:
            key = self._confirmation_tokens.pop(token, None)
            if key is None:
                raise AuthProviderError(INVALID_TOKEN)
            account = self._accounts[key]
            account.confirmed = True
            self._session = account.identity()
            return self._session

    def authenticate(self, email: str, password: str) -> SessionIdentity:
        with self._lock:
            account = self._accounts.get(email.strip().lower())
        if account is None or not bcrypt.checkpw(password.encode(), account.password_hash.encode()):
            raise AuthProviderError(INVALID_CREDENTIALS)
        if not account.confirmed:
            raise AuthProviderError(EMAIL_NOT_CONFIRMED)
        identity = account.identity()
        with self._lock:
            self._session = identity
        return identity

    def current_session(self) -> SessionIdentity | None:
        with self._lock:
            return self._session

    def sign_out(self) -> None:
        with self._lock:
            self._session = None

    def request_password_reset(self, email: str) -> None:
        # Unknown emails succeed silently to avoid account enumeration.
        key = email.strip().lower()
        with self._lock:
            account = self._accounts.get(key)
            if account is None:
                return
            token = secrets.token_urlsafe(16)
            self._recovery_tokens[token] = key
        self._mailer.send_password_reset(account.email, token)

    def recover(self, token: str) -> AuthEvent:
        """
        Redeem a recovery token.

        Opens a session for the account and returns the PASSWORD_RECOVERY
        event the session coordinator consumes.
        """
        with self._lock:
            key = self._recovery_tokens.pop(token, None)
            if key is None:
                raise AuthProviderError(INVALID_TOKEN)
            self._session = self._accounts[key].identity()
            return AuthEvent(AuthEventKind.PASSWORD_RECOVERY, self._session)

    def update_password(self, identity: SessionIdentity | None, new_password: str) -> None:
        # The caller's identity is used, not the shared _session, which any
        # later sign-in replaces.
        if identity is None:
            raise AuthProviderError(SESSION_MISSING)
        with self._lock:
            account = self._accounts.get(identity.email.strip().lower())
            if account is None or account.user_id != identity.user_id:
                raise AuthProviderError(SESSION_MISSING)
            account.password_hash = self._hash_password(new_password)
        logger.info("Password updated for %s", account.user_id)

    def resend_confirmation(self, email: str) -> None:
        with self._lock:
            account = self._accounts.get(email.strip().lower())
        if account is None or account.confirmed:
            return
        self._send_confirmation(account)

    def _send_confirmation(self, account: _Account) -> None:
        token = secrets.token_urlsafe(16)
        with self._lock:
            self._confirmation_tokens[token] = account.email.strip().lower()
        self._mailer.send_confirmation(account.email, token)

    def _hash_password(self, password: str) -> str:
        """Hash password using bcrypt with the configured cost factor."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self._bcrypt_cost)).decode()
