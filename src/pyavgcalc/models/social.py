"""Social analytics payloads (users, posts, comments) and views."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from pyavgcalc.models._base import EpochTimestamp, ResponseModel, UpstreamModel


class UsersPayload(UpstreamModel):
    """Reply to ``GET /users``: a mapping of user id to display name."""

    users: dict[str, str]

    @field_validator("users", mode="before")
    @classmethod
    def _stringify_keys(cls, value: object) -> object:
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return value


class Post(UpstreamModel):
    id: int
    user_id: int | None = Field(default=None, alias="userid")
    content: str = ""
    timestamp: EpochTimestamp = None


class PostsPayload(UpstreamModel):
    posts: list[Post] = Field(default_factory=list)


class Comment(UpstreamModel):
    id: int
    post_id: int | None = Field(default=None, alias="postid")
    content: str = ""


class CommentsPayload(UpstreamModel):
    comments: list[Comment] = Field(default_factory=list)


class TopUser(ResponseModel):
    id: str
    name: str
    post_count: int


class PostSummary(ResponseModel):
    """A post enriched with its author name and comment count."""

    id: int
    user_id: str
    user_name: str
    content: str
    timestamp: datetime | None = None
    comment_count: int = 0
