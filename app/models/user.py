"""User model."""

import enum
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Column, DateTime, Integer, String, event
from sqlalchemy.orm import Query, Session, relationship

from app.config import get_settings
from app.database import Base, update_columns
from app.errors import ValidationError
from app.services import credentials

if TYPE_CHECKING:
    from app.models.micropost import Micropost
    from app.services.mailer import Mailer

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class TokenKind(str, enum.Enum):
    """Which digest a presented token is checked against."""

    REMEMBER = "remember"
    ACTIVATION = "activation"
    RESET = "reset"


class User(Base):
    """Registered account with its credential digests."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_digest = Column(String(256), nullable=False)
    activated = Column(Boolean, nullable=False, default=False)
    activated_at = Column(DateTime, nullable=True)
    activation_digest = Column(String(256), nullable=True)
    remember_digest = Column(String(256), nullable=True)
    reset_digest = Column(String(256), nullable=True)
    reset_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    active_relationships = relationship(
        "Relationship",
        foreign_keys="Relationship.follower_id",
        back_populates="follower",
        cascade="all, delete-orphan",
    )
    passive_relationships = relationship(
        "Relationship",
        foreign_keys="Relationship.followed_id",
        back_populates="followed",
        cascade="all, delete-orphan",
    )
    microposts = relationship("Micropost", back_populates="user", cascade="all, delete-orphan")

    # Plaintext tokens. Held on the instance only, never mapped to a column.
    remember_token = None
    activation_token = None
    reset_token = None

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"

    # --- Password ---

    def set_password(self, plaintext: str | None, allow_blank: bool = False) -> None:
        """Validate and hash a new password.

        With allow_blank, a missing password leaves the current digest as is
        (profile edits that don't touch the credential).
        """
        if plaintext is None or plaintext == "":
            if allow_blank:
                return
            raise ValidationError.single("password", "can't be blank")
        if not plaintext.strip():
            raise ValidationError.single("password", "can't be blank")

        min_length = get_settings().PASSWORD_MIN_LENGTH
        if len(plaintext) < min_length:
            raise ValidationError.single("password", f"is too short (minimum is {min_length} characters)")
        if len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError.single("password", f"is too long (maximum is {MAX_PASSWORD_BYTES} bytes)")

        self.password_digest = credentials.digest(plaintext)

    def check_password(self, plaintext: str) -> bool:
        return credentials.verify(self.password_digest, plaintext)

    # --- Remember / session tokens ---

    def remember(self, db: Session) -> str:
        """Issue a new remember token, replacing any previous one."""
        self.remember_token = credentials.new_token()
        update_columns(db, self, remember_digest=credentials.digest(self.remember_token))
        return self.remember_token

    def forget(self, db: Session) -> None:
        """Drop the remember digest so no outstanding remember token verifies."""
        self.remember_token = None
        update_columns(db, self, remember_digest=None)

    def session_token(self, db: Session) -> str:
        """Token that ties a login session to the current remember digest."""
        return self.remember_token or self.remember(db)

    def authenticated(self, kind: TokenKind, token: str) -> bool:
        """Return True if the token matches the digest of the given kind."""
        digests = {
            TokenKind.REMEMBER: self.remember_digest,
            TokenKind.ACTIVATION: self.activation_digest,
            TokenKind.RESET: self.reset_digest,
        }
        return credentials.verify(digests[TokenKind(kind)], token)

    # --- Activation ---

    def create_activation_digest(self) -> None:
        self.activation_token = credentials.new_token()
        self.activation_digest = credentials.digest(self.activation_token)

    def activate(self, db: Session) -> None:
        update_columns(db, self, activated=True, activated_at=datetime.utcnow())

    def send_activation_email(self, mailer: "Mailer") -> None:
        if self.activation_token is None:
            raise ValueError("activation token is only available right after the digest is created")
        mailer.send_activation_email(self, self.activation_token)

    # --- Password reset ---

    def create_reset_digest(self, db: Session) -> None:
        self.reset_token = credentials.new_token()
        update_columns(
            db,
            self,
            reset_digest=credentials.digest(self.reset_token),
            reset_sent_at=datetime.utcnow(),
        )

    def clear_reset_digest(self, db: Session) -> None:
        self.reset_token = None
        update_columns(db, self, reset_digest=None, reset_sent_at=None)

    def send_password_reset_email(self, mailer: "Mailer") -> None:
        if self.reset_token is None:
            raise ValueError("reset token is only available right after the digest is created")
        mailer.send_password_reset_email(self, self.reset_token)

    def password_reset_expired(self) -> bool:
        """True once the reset window has passed. Callers check for a reset digest first."""
        if self.reset_sent_at is None:
            raise ValueError("no password reset has been requested")
        window = timedelta(hours=get_settings().PASSWORD_RESET_EXPIRE_HOURS)
        return self.reset_sent_at < datetime.utcnow() - window

    # --- Social graph ---

    def feed(self, db: Session) -> "Query[Micropost]":
        from app.services.microposts import get_micropost_service

        return get_micropost_service().feed(db, self.id)

    def follow(self, db: Session, other: "User") -> None:
        from app.services.relationships import get_relationship_graph

        get_relationship_graph().add_edge(db, self, other)

    def unfollow(self, db: Session, other: "User") -> None:
        from app.services.relationships import get_relationship_graph

        get_relationship_graph().remove_edge(db, self, other)

    def is_following(self, db: Session, other: "User") -> bool:
        from app.services.relationships import get_relationship_graph

        return get_relationship_graph().is_edge(db, self, other)


@event.listens_for(User, "before_insert")
def _create_activation_digest(mapper, connection, target: User) -> None:
    if target.activation_digest is None:
        target.create_activation_digest()
