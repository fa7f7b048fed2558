"""Micropost service for authoring posts and composing feeds."""

from sqlalchemy import or_, select
from sqlalchemy.orm import Query, Session

from app.config import get_settings
from app.errors import ValidationError
from app.models.micropost import Micropost
from app.models.relationship import Relationship
from app.models.user import User


class MicropostService:
    """Handles micropost creation and feed queries."""

    def create(self, db: Session, user: User, content: str) -> Micropost:
        """Create a micropost. Raises ValidationError on blank or overlong content."""
        max_length = get_settings().MICROPOST_MAX_LENGTH
        content = (content or "").strip()
        if not content:
            raise ValidationError.single("content", "can't be blank")
        if len(content) > max_length:
            raise ValidationError.single("content", f"is too long (maximum is {max_length} characters)")

        post = Micropost(user_id=user.id, content=content)
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    def feed(self, db: Session, user_id: int) -> Query:
        """Posts by the user and everyone they follow, newest first. Not executed until iterated."""
        followed_ids = select(Relationship.followed_id).where(Relationship.follower_id == user_id)
        return (
            db.query(Micropost)
            .filter(or_(Micropost.user_id == user_id, Micropost.user_id.in_(followed_ids)))
            .order_by(Micropost.created_at.desc(), Micropost.id.desc())
        )


_micropost_service: MicropostService | None = None


def get_micropost_service() -> MicropostService:
    """Get singleton micropost service instance."""
    global _micropost_service
    if _micropost_service is None:
        _micropost_service = MicropostService()
    return _micropost_service
