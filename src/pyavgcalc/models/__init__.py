"""Typed models for upstream payloads and service responses."""

from pyavgcalc.models.credential import AuthResponse, Credential, RegistrationResponse
from pyavgcalc.models.numbers import Number, NumbersPayload, WindowSnapshot
from pyavgcalc.models.social import (
    Comment,
    CommentsPayload,
    Post,
    PostsPayload,
    PostSummary,
    TopUser,
    UsersPayload,
)

__all__ = [
    "AuthResponse",
    "Comment",
    "CommentsPayload",
    "Credential",
    "Number",
    "NumbersPayload",
    "Post",
    "PostSummary",
    "PostsPayload",
    "RegistrationResponse",
    "TopUser",
    "UsersPayload",
    "WindowSnapshot",
]
