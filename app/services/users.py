"""User service for lookup, validated saves, profile edits and deletion."""

import logging
import re

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import ValidationError
from app.models.user import User

logger = logging.getLogger("chirp")


class UserService:
    """Handles user persistence behind model validation."""

    def find(self, db: Session, user_id: int) -> User | None:
        return db.get(User, user_id)

    def find_by_email(self, db: Session, email: str) -> User | None:
        """Case-insensitive email lookup."""
        return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    def create(self, db: Session, name: str, email: str, password: str | None) -> User:
        """Build and save a new, not yet activated user."""
        user = User(name=name, email=email)
        user.set_password(password)
        return self.save(db, user)

    def update_profile(
        self,
        db: Session,
        user: User,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> User:
        """Apply profile changes. A blank password keeps the current one."""
        if name is not None:
            user.name = name
        if email is not None:
            user.email = email
        try:
            user.set_password(password, allow_blank=True)
        except ValidationError:
            db.rollback()
            raise
        return self.save(db, user)

    def validate(self, db: Session, user: User) -> dict[str, list[str]]:
        """Return field errors for the user, empty when valid."""
        settings = get_settings()
        errors: dict[str, list[str]] = {}

        name = (user.name or "").strip()
        if not name:
            errors.setdefault("name", []).append("can't be blank")
        elif len(name) > settings.NAME_MAX_LENGTH:
            errors.setdefault("name", []).append(f"is too long (maximum is {settings.NAME_MAX_LENGTH} characters)")

        email = user.email or ""
        if not email:
            errors.setdefault("email", []).append("can't be blank")
        else:
            if len(email) > settings.EMAIL_MAX_LENGTH:
                errors.setdefault("email", []).append(
                    f"is too long (maximum is {settings.EMAIL_MAX_LENGTH} characters)"
                )
            if not re.fullmatch(settings.EMAIL_REGEX, email, re.IGNORECASE):
                errors.setdefault("email", []).append("is invalid")
            if self._email_taken(db, user):
                errors.setdefault("email", []).append("has already been taken")

        if not user.password_digest:
            errors.setdefault("password", []).append("can't be blank")

        return errors

    def save(self, db: Session, user: User) -> User:
        """Validate and persist the user. Raises ValidationError with every failing field."""
        if user.email:
            user.email = user.email.strip().lower()
        if user.name:
            user.name = user.name.strip()

        errors = self.validate(db, user)
        if errors:
            db.rollback()
            raise ValidationError(errors)

        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # a concurrent insert won the unique index on email
            db.rollback()
            raise ValidationError.single("email", "has already been taken") from None
        db.refresh(user)
        return user

    def delete(self, db: Session, user: User) -> None:
        """Delete the user along with its follow edges and microposts."""
        user_id = user.id
        db.delete(user)
        db.commit()
        logger.info("Deleted user %s", user_id)

    def _email_taken(self, db: Session, user: User) -> bool:
        query = db.query(User.id).filter(func.lower(User.email) == user.email.lower())
        if user.id is not None:
            query = query.filter(User.id != user.id)
        return query.first() is not None


_user_service: UserService | None = None


def get_user_service() -> UserService:
    """Get singleton user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
