"""Authentication service: registration, login, activation and password reset."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.models.user import TokenKind, User
from app.services.mailer import Mailer
from app.services.users import get_user_service

logger = logging.getLogger("chirp")


@dataclass
class AuthResult:
    """Result of an authentication attempt."""

    success: bool
    error: str | None = None
    user: User | None = None
    session_token: str | None = None


class AuthService:
    """Handles account lifecycle flows built on the user model."""

    def register(self, db: Session, mailer: Mailer, name: str, email: str, password: str) -> User:
        """Create a pending account and send its activation email.

        Raises ValidationError for invalid or duplicate input.
        """
        user = get_user_service().create(db, name, email, password)
        user.send_activation_email(mailer)
        logger.info("Registered user %s", user.id)
        return user

    def authenticate(self, db: Session, email: str, password: str) -> AuthResult:
        """Authenticate a user by email and password."""
        user = get_user_service().find_by_email(db, email)
        if not user or not user.check_password(password):
            return AuthResult(success=False, error="Invalid email or password")

        if not user.activated:
            return AuthResult(success=False, error="Account not activated. Check your email for the activation link.")

        return AuthResult(success=True, user=user, session_token=user.session_token(db))

    def logout(self, db: Session, user: User) -> None:
        """Forget the user, revoking every access token issued for it."""
        user.forget(db)

    def activate_account(self, db: Session, email: str, token: str) -> AuthResult:
        """Activate the account if the activation token matches."""
        user = get_user_service().find_by_email(db, email)
        if not user or user.activated or not user.authenticated(TokenKind.ACTIVATION, token):
            return AuthResult(success=False, error="Invalid activation link")

        user.activate(db)
        logger.info("Activated user %s", user.id)
        return AuthResult(success=True, user=user, session_token=user.session_token(db))

    def request_password_reset(self, db: Session, mailer: Mailer, email: str) -> str | None:
        """Create a reset digest and email the reset link.

        Returns the token if user exists, None otherwise.
        Caller should not reveal whether the user was found.
        """
        user = get_user_service().find_by_email(db, email)
        if not user:
            return None

        user.create_reset_digest(db)
        user.send_password_reset_email(mailer)
        return user.reset_token

    def reset_password(self, db: Session, email: str, token: str, new_password: str) -> AuthResult:
        """Set a new password using a valid, unexpired reset token.

        A blank or too-short password raises ValidationError.
        """
        user = get_user_service().find_by_email(db, email)
        if not user or not user.activated or not user.reset_digest or not user.authenticated(TokenKind.RESET, token):
            return AuthResult(success=False, error="Invalid or expired reset link")

        if user.password_reset_expired():
            user.clear_reset_digest(db)
            return AuthResult(success=False, error="Password reset has expired.")

        user.set_password(new_password)
        get_user_service().save(db, user)
        user.clear_reset_digest(db)
        logger.info("Password reset for user %s", user.id)

        return AuthResult(success=True, user=user, session_token=user.session_token(db))


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
