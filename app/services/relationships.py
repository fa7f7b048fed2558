"""Follow graph between users."""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.relationship import Relationship
from app.models.user import User

logger = logging.getLogger("chirp")


class RelationshipGraph:
    """Adds, removes and queries directed follow edges."""

    def _find_edge(self, db: Session, follower: User, followed: User) -> Relationship | None:
        return (
            db.query(Relationship)
            .filter(Relationship.follower_id == follower.id, Relationship.followed_id == followed.id)
            .first()
        )

    def add_edge(self, db: Session, follower: User, followed: User) -> None:
        """Make follower follow followed. Self-follows and repeat follows are no-ops."""
        if follower.id == followed.id:
            return
        if self._find_edge(db, follower, followed):
            return
        db.add(Relationship(follower_id=follower.id, followed_id=followed.id))
        db.commit()
        logger.info("User %s followed user %s", follower.id, followed.id)

    def remove_edge(self, db: Session, follower: User, followed: User) -> None:
        """Delete the follow edge if there is one."""
        edge = self._find_edge(db, follower, followed)
        if not edge:
            return
        db.delete(edge)
        db.commit()
        logger.info("User %s unfollowed user %s", follower.id, followed.id)

    def is_edge(self, db: Session, follower: User, followed: User) -> bool:
        return self._find_edge(db, follower, followed) is not None

    def followers(self, db: Session, user: User) -> list[User]:
        """Users following the given user, by id."""
        return (
            db.query(User)
            .join(Relationship, Relationship.follower_id == User.id)
            .filter(Relationship.followed_id == user.id)
            .order_by(User.id)
            .all()
        )

    def following(self, db: Session, user: User) -> list[User]:
        """Users the given user follows, by id."""
        return (
            db.query(User)
            .join(Relationship, Relationship.followed_id == User.id)
            .filter(Relationship.follower_id == user.id)
            .order_by(User.id)
            .all()
        )

    def followers_count(self, db: Session, user: User) -> int:
        return db.query(func.count(Relationship.id)).filter(Relationship.followed_id == user.id).scalar() or 0

    def following_count(self, db: Session, user: User) -> int:
        return db.query(func.count(Relationship.id)).filter(Relationship.follower_id == user.id).scalar() or 0


_relationship_graph: RelationshipGraph | None = None


def get_relationship_graph() -> RelationshipGraph:
    """Get singleton relationship graph instance."""
    global _relationship_graph
    if _relationship_graph is None:
        _relationship_graph = RelationshipGraph()
    return _relationship_graph
