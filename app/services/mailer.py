"""Account email delivery."""

import logging
from typing import TYPE_CHECKING, Protocol
from urllib.parse import quote, urlencode

from app.config import get_settings

if TYPE_CHECKING:
    from app.models.user import User

logger = logging.getLogger("chirp")


class Mailer(Protocol):
    """Contract for sending account emails."""

    def send_activation_email(self, user: "User", token: str) -> None: ...

    def send_password_reset_email(self, user: "User", token: str) -> None: ...


def build_activation_url(user: "User", token: str) -> str:
    base_url = get_settings().APP_BASE_URL.rstrip("/")
    return f"{base_url}/account-activations/{quote(token)}/edit?{urlencode({'email': user.email})}"


def build_password_reset_url(user: "User", token: str) -> str:
    base_url = get_settings().APP_BASE_URL.rstrip("/")
    return f"{base_url}/password-resets/{quote(token)}/edit?{urlencode({'email': user.email})}"


class LogMailer:
    """Writes account links to the server log instead of sending mail."""

    def send_activation_email(self, user: "User", token: str) -> None:
        logger.info("ACCOUNT ACTIVATION for %s: %s", user.email, build_activation_url(user, token))

    def send_password_reset_email(self, user: "User", token: str) -> None:
        logger.info("PASSWORD RESET for %s: %s", user.email, build_password_reset_url(user, token))


_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    """Get singleton mailer instance."""
    global _mailer
    if _mailer is None:
        _mailer = LogMailer()
    return _mailer
