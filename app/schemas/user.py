"""Pydantic schemas for user and follow endpoints."""

from datetime import datetime

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    activated: bool

    model_config = {"from_attributes": True}


class UserProfileResponse(UserResponse):
    followers_count: int
    following_count: int
    is_following: bool


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class MicropostRequest(BaseModel):
    content: str


class MicropostResponse(BaseModel):
    id: int
    user_id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class FeedResponse(BaseModel):
    items: list[MicropostResponse]
    total: int
    offset: int
    limit: int
