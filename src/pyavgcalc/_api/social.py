"""Social analytics endpoints.

Endpoints:
  - /users
  - /users/{user_id}/posts
  - /posts/{post_id}/comments
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pyavgcalc._constants import USERS_ENDPOINT
from pyavgcalc.exceptions import UpstreamError
from pyavgcalc.fetcher import CredentialGatedFetcher, UpstreamRequest
from pyavgcalc.models.social import Comment, CommentsPayload, Post, PostsPayload, UsersPayload

_logger = logging.getLogger(__name__)


async def fetch_users(fetcher: CredentialGatedFetcher, *, timeout: float) -> dict[str, str]:
    """Fetch the user directory. Required: failures raise."""
    payload = await fetcher.fetch_required(UpstreamRequest("GET", USERS_ENDPOINT, timeout=timeout))
    try:
        return UsersPayload.model_validate(payload).users
    except ValidationError as exc:
        raise UpstreamError(f"{USERS_ENDPOINT} returned an unexpected shape", endpoint=USERS_ENDPOINT) from exc


async def fetch_user_posts(fetcher: CredentialGatedFetcher, user_id: str, *, timeout: float) -> list[Post]:
    """Fetch one user's posts, degrading to an empty list."""
    endpoint = f"/users/{user_id}/posts"
    result = await fetcher.fetch(UpstreamRequest("GET", endpoint, timeout=timeout))
    if not result.is_ok:
        _logger.warning("Posts for user %s unavailable: %s", user_id, result.describe())
        return []
    try:
        return PostsPayload.model_validate(result.payload).posts
    except ValidationError:
        _logger.warning("Posts for user %s had an unexpected shape", user_id)
        return []


async def fetch_post_comments(fetcher: CredentialGatedFetcher, post_id: int, *, timeout: float) -> list[Comment]:
    """Fetch one post's comments, degrading to an empty list."""
    endpoint = f"/posts/{post_id}/comments"
    result = await fetcher.fetch(UpstreamRequest("GET", endpoint, timeout=timeout))
    if not result.is_ok:
        _logger.warning("Comments for post %s unavailable: %s", post_id, result.describe())
        return []
    try:
        return CommentsPayload.model_validate(result.payload).comments
    except ValidationError:
        _logger.warning("Comments for post %s had an unexpected shape", post_id)
        return []
