"""
Auth session coordination.

AuthSessionCoordinator is the single place that maps auth-provider
events and account actions (sign in, email confirmation, password
reset, confirmation resend) onto the session state shown to the
citizen. Each action returns a StatusNotice; collaborator errors are
surfaced verbatim.
"""

import logging
from dataclasses import dataclass, field

from . import validators
from .exceptions import AuthProviderError, ProfileStoreError, ProfileTableMissing
from .ports import AuthEvent, AuthEventKind, AuthProvider, ProfileStore, Role, SessionIdentity

logger = logging.getLogger(__name__)

RECOVERY_PROMPT = "Please create a new password to continue."
CONFIRM_EMAIL_FIRST = "Please confirm your email before signing in."
RESET_EMAIL_INVALID = "Enter a valid email to receive reset instructions."
RESET_LINK_SENT = "Reset link sent. Please check your inbox."
NEW_PASSWORD_TOO_SHORT = "New password must be at least 6 characters."
NEW_PASSWORD_MISMATCH = "Passwords do not match."
PASSWORD_UPDATED = "Password updated. You can now sign in."
STORED_EMAIL_INVALID = "Stored email is invalid. Please re-enter your email in the login form."
CONFIRMATION_RESENT = "Verification email sent again. Please check your inbox."
SIGNED_IN = "Signed in successfully."
SIGNED_OUT = "Signed out."
EMAIL_CONFIRMED = "Email confirmed. You are now signed in."


@dataclass(frozen=True)
class StatusNotice:
    """Outcome of a session action: an error or an informational message."""

    error: str = ""
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


def role_label(role: Role | None) -> str:
    if role is Role.ADMIN:
        return "Admin"
    if role is Role.USER:
        return "User"
    return "Viewer"


@dataclass
class SessionState:
    """Per-session view of who is signed in and which auth flow is open."""

    identity: SessionIdentity | None = None
    role: Role | None = None
    password_recovery: bool = False
    pending_confirmation_email: str = ""
    notice: StatusNotice = field(default_factory=StatusNotice)

    @property
    def effective_role(self) -> Role:
        return self.role or Role.USER

    @property
    def is_admin(self) -> bool:
        return self.effective_role is Role.ADMIN

    @property
    def role_label(self) -> str:
        return role_label(self.role)


def _check_new_password(new_password: str, confirmation: str) -> StatusNotice | None:
    check = validators.validate_password(new_password, NEW_PASSWORD_TOO_SHORT)
    if not check:
        return StatusNotice(error=check.message)
    check = validators.validate_password_match(new_password, confirmation, NEW_PASSWORD_MISMATCH)
    if not check:
        return StatusNotice(error=check.message)
    return None


def _fallback_role(identity: SessionIdentity) -> Role:
    try:
        return Role(identity.metadata_role or Role.USER.value)
    except ValueError:
        return Role.USER


@dataclass
class AuthSessionCoordinator:
    """
    Maps external auth events and account actions onto a SessionState.

    The coordinator owns no global state; the caller passes the session
    it belongs to.
    """

    auth_provider: AuthProvider
    profile_store: ProfileStore
    session: SessionState = field(default_factory=SessionState)

    def bootstrap(self) -> SessionState:
        """Adopt any session the provider already has open."""
        identity = self.auth_provider.current_session()
        return self.handle(AuthEvent(AuthEventKind.INITIAL_SESSION, identity))

    def handle(self, event: AuthEvent) -> SessionState:
        """
        Apply one inbound auth event.

        Any event carrying an identity re-hydrates the role; an event
        without one clears it. PASSWORD_RECOVERY additionally opens the
        password-reset flow.
        """
        self.session.identity = event.identity
        if event.identity is not None:
            self._hydrate_role(event.identity)
        else:
            self.session.role = None

        if event.kind is AuthEventKind.PASSWORD_RECOVERY:
            logger.info("Password recovery opened")
            self.session.password_recovery = True
            self.session.notice = StatusNotice(message=RECOVERY_PROMPT)
        return self.session

    def _hydrate_role(self, identity: SessionIdentity) -> None:
        fallback = _fallback_role(identity)
        try:
            role = self.profile_store.get_role(identity.user_id)
        except ProfileTableMissing:
            logger.warning("Profiles table missing; using fallback role for %s", identity.user_id)
            self.session.role = fallback
            return
        except ProfileStoreError as exc:
            logger.error("Role lookup failed for %s: %s", identity.user_id, exc.message)
            self.session.notice = StatusNotice(error=exc.message)
            self.session.role = fallback
            return
        self.session.role = role or fallback

    def sign_in(self, email: str, password: str) -> StatusNotice:
        try:
            identity = self.auth_provider.authenticate(email, password)
        except AuthProviderError as exc:
            if "confirm" in exc.message.lower():
                self.session.pending_confirmation_email = email
                return self._notify(StatusNotice(error=CONFIRM_EMAIL_FIRST))
            self.session.pending_confirmation_email = ""
            return self._notify(StatusNotice(error=exc.message))

        self.session.notice = StatusNotice()
        self.handle(AuthEvent(AuthEventKind.SIGNED_IN, identity))
        self.session.pending_confirmation_email = ""
        if self.session.notice.error:
            return self.session.notice
        return self._notify(StatusNotice(message=SIGNED_IN))

    def sign_out(self) -> StatusNotice:
        self.auth_provider.sign_out()
        self.handle(AuthEvent(AuthEventKind.SIGNED_OUT))
        return self._notify(StatusNotice(message=SIGNED_OUT))

    def request_password_reset(self, email: str) -> StatusNotice:
        if not validators.validate_email(email):
            return StatusNotice(error=RESET_EMAIL_INVALID)
        try:
            self.auth_provider.request_password_reset(email)
        except AuthProviderError as exc:
            return StatusNotice(error=exc.message)
        return StatusNotice(message=RESET_LINK_SENT)

    def confirm_signup(self, token: str) -> StatusNotice:
        """Redeem the emailed confirmation token; the citizen is then signed in."""
        try:
            identity = self.auth_provider.confirm_email(token)
        except AuthProviderError as exc:
            return self._notify(StatusNotice(error=exc.message))
        self.session.notice = StatusNotice()
        self.handle(AuthEvent(AuthEventKind.SIGNED_IN, identity))
        self.session.pending_confirmation_email = ""
        if self.session.notice.error:
            return self.session.notice
        return self._notify(StatusNotice(message=EMAIL_CONFIRMED))

    def complete_password_reset(self, token: str, new_password: str, confirmation: str) -> StatusNotice:
        """
        Redeem an emailed reset token and set the new password in one step.

        Passwords are checked before the token is spent.
        """
        rejected = _check_new_password(new_password, confirmation)
        if rejected is not None:
            return rejected
        try:
            event = self.auth_provider.recover(token)
        except AuthProviderError as exc:
            return self._notify(StatusNotice(error=exc.message))
        self.handle(event)
        return self.update_password(new_password, confirmation)

    def update_password(self, new_password: str, confirmation: str) -> StatusNotice:
        rejected = _check_new_password(new_password, confirmation)
        if rejected is not None:
            return rejected
        try:
            self.auth_provider.update_password(self.session.identity, new_password)
        except AuthProviderError as exc:
            return StatusNotice(error=exc.message)
        self.session.password_recovery = False
        return StatusNotice(message=PASSWORD_UPDATED)

    def resend_confirmation(self) -> StatusNotice | None:
        """Resend signup confirmation to the remembered email, if any."""
        email = self.session.pending_confirmation_email
        if not email:
            return None
        if not validators.validate_email(email):
            return StatusNotice(error=STORED_EMAIL_INVALID)
        try:
            self.auth_provider.resend_confirmation(email)
        except AuthProviderError as exc:
            return StatusNotice(error=exc.message)
        return StatusNotice(message=CONFIRMATION_RESENT)

    def close_password_recovery(self) -> None:
        self.session.password_recovery = False
        self.session.notice = StatusNotice()

    def _notify(self, notice: StatusNotice) -> StatusNotice:
        self.session.notice = notice
        return notice
