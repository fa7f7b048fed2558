"""User profile, follow graph and feed API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.user import (
    FeedResponse,
    MicropostRequest,
    MicropostResponse,
    UpdateProfileRequest,
    UserListResponse,
    UserProfileResponse,
    UserResponse,
)
from app.services.microposts import get_micropost_service
from app.services.relationships import get_relationship_graph
from app.services.users import get_user_service

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = get_user_service().find(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _profile(db: Session, user: User, viewer: User) -> UserProfileResponse:
    graph = get_relationship_graph()
    return UserProfileResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        activated=user.activated,
        followers_count=graph.followers_count(db, user),
        following_count=graph.following_count(db, user),
        is_following=viewer.is_following(db, user),
    )


@router.get("/me", response_model=UserProfileResponse)
def get_me(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> UserProfileResponse:
    """Get the current user's profile."""
    return _profile(db, user, user)


@router.patch("/me", response_model=UserResponse)
def update_me(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Edit name, email or password. Omit the password to keep the current one."""
    user = get_user_service().update_profile(db, user, name=body.name, email=body.email, password=body.password)
    return UserResponse.model_validate(user)


@router.delete("/me")
def delete_me(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """Delete the current account with its follow edges and microposts."""
    get_user_service().delete(db, user)
    return {"message": "Account deleted"}


@router.get("/me/feed", response_model=FeedResponse)
def get_feed(
    offset: int = 0,
    limit: int = 30,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FeedResponse:
    """Posts by the current user and everyone they follow."""
    query = user.feed(db)
    total = query.count()
    posts = query.offset(offset).limit(limit).all()
    return FeedResponse(
        items=[MicropostResponse.model_validate(p) for p in posts],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.post("/me/microposts", response_model=MicropostResponse)
def create_micropost(
    body: MicropostRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MicropostResponse:
    """Publish a micropost."""
    post = get_micropost_service().create(db, user, body.content)
    return MicropostResponse.model_validate(post)


@router.get("/{user_id}", response_model=UserProfileResponse)
def get_user(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserProfileResponse:
    """Get a user's profile with follow counts."""
    other = _get_user_or_404(db, user_id)
    return _profile(db, other, user)


@router.post("/{user_id}/follow")
def follow(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Follow a user. Following yourself is ignored."""
    other = _get_user_or_404(db, user_id)
    user.follow(db, other)
    return {"following": user.is_following(db, other)}


@router.delete("/{user_id}/follow")
def unfollow(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Stop following a user."""
    other = _get_user_or_404(db, user_id)
    user.unfollow(db, other)
    return {"following": False}


@router.get("/{user_id}/followers", response_model=UserListResponse)
def list_followers(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserListResponse:
    """List the users following a user."""
    other = _get_user_or_404(db, user_id)
    users = get_relationship_graph().followers(db, other)
    return UserListResponse(items=[UserResponse.model_validate(u) for u in users], total=len(users))


@router.get("/{user_id}/following", response_model=UserListResponse)
def list_following(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserListResponse:
    """List the users a user follows."""
    other = _get_user_or_404(db, user_id)
    users = get_relationship_graph().following(db, other)
    return UserListResponse(items=[UserResponse.model_validate(u) for u in users], total=len(users))
