"""Social analytics: top users and popular/latest posts."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from pyavgcalc._api.social import fetch_post_comments, fetch_user_posts, fetch_users
from pyavgcalc._constants import DEFAULT_ANALYTICS_CONCURRENCY, LATEST_POSTS_LIMIT, TOP_USERS_LIMIT
from pyavgcalc.config import AvgCalcConfig
from pyavgcalc.exceptions import InvalidPostTypeError
from pyavgcalc.fetcher import CredentialGatedFetcher
from pyavgcalc.models.social import Comment, Post, PostSummary, TopUser

_logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")

POST_KINDS: tuple[str, ...] = ("popular", "latest")

_EPOCH = datetime.min.replace(tzinfo=UTC)


@dataclass
class _CacheEntry:
    value: Any
    stored_at: float


class TtlCache:
    """Tiny per-key cache with a monotonic clock."""

    def __init__(self, ttl: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._ttl <= 0 or self._clock() - entry.stored_at >= self._ttl:
            del self._entries[key]
            return None
        return entry.value

    def put(self, key: str, value: Any) -> None:
        if self._ttl > 0:
            self._entries[key] = _CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()


class SocialAnalytics:
    """Aggregate users, posts and comments from the upstream.

    The user list is required; per-user posts and per-post comments degrade
    to empty when unavailable. At most *concurrency* of those per-user and
    per-post calls are in flight at once.
    """

    def __init__(
        self,
        fetcher: CredentialGatedFetcher,
        *,
        timeout: float,
        cache: TtlCache | None = None,
        concurrency: int = DEFAULT_ANALYTICS_CONCURRENCY,
    ) -> None:
        self._fetcher = fetcher
        self._timeout = timeout
        self._cache = cache if cache is not None else TtlCache(0)
        self._limit = asyncio.Semaphore(concurrency)

    @classmethod
    def from_config(cls, config: AvgCalcConfig, fetcher: CredentialGatedFetcher) -> SocialAnalytics:
        return cls(
            fetcher,
            timeout=config.exchange_timeout,
            cache=TtlCache(config.analytics_cache_ttl),
            concurrency=config.analytics_concurrency,
        )

    async def _fan_out(self, fetch: Callable[[K], Awaitable[T]], keys: Iterable[K]) -> list[T]:
        """Run *fetch* for every key under the concurrency limit, in key order.

        If one call raises, the others are cancelled before the error propagates.
        """

        async def run(key: K) -> T:
            async with self._limit:
                return await fetch(key)

        tasks = [asyncio.create_task(run(key)) for key in keys]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _user_posts(self, user_id: str) -> list[Post]:
        return await fetch_user_posts(self._fetcher, user_id, timeout=self._timeout)

    async def _post_comments(self, post_id: int) -> list[Comment]:
        return await fetch_post_comments(self._fetcher, post_id, timeout=self._timeout)

    async def top_users(self, limit: int = TOP_USERS_LIMIT) -> list[TopUser]:
        """Users with the most posts, highest first.

        Raises
        ------
        UpstreamError
            The user list could not be fetched.
        """
        key = f"top_users:{limit}"
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        users = await fetch_users(self._fetcher, timeout=self._timeout)
        post_lists = await self._fan_out(self._user_posts, users)
        counted = [
            TopUser(id=user_id, name=name, post_count=len(posts))
            for (user_id, name), posts in zip(users.items(), post_lists, strict=True)
        ]
        # sorted() is stable, so ties keep upstream order.
        ranked = sorted(counted, key=lambda user: user.post_count, reverse=True)
        top = ranked[:limit]
        self._cache.put(key, top)
        return list(top)

    async def _post_summaries(self) -> list[PostSummary]:
        users = await fetch_users(self._fetcher, timeout=self._timeout)
        post_lists = await self._fan_out(self._user_posts, users)
        owned = [
            (user_id, users[user_id], post)
            for user_id, posts in zip(users, post_lists, strict=True)
            for post in posts
        ]
        comment_lists = await self._fan_out(self._post_comments, [post.id for _, _, post in owned])
        return [
            PostSummary(
                id=post.id,
                user_id=user_id,
                user_name=user_name,
                content=post.content,
                timestamp=post.timestamp,
                comment_count=len(comments),
            )
            for (user_id, user_name, post), comments in zip(owned, comment_lists, strict=True)
        ]

    async def posts(self, kind: str = "latest") -> list[PostSummary]:
        """Most-commented posts (``popular``) or the newest posts (``latest``).

        ``popular`` returns every post tied for the highest comment count;
        posts without comments never qualify.

        Raises
        ------
        InvalidPostTypeError
            *kind* is not a supported listing.
        UpstreamError
            The user list could not be fetched.
        """
        if kind not in POST_KINDS:
            raise InvalidPostTypeError(kind)

        key = f"posts:{kind}"
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        summaries = await self._post_summaries()
        if kind == "popular":
            most = max((s.comment_count for s in summaries), default=0)
            result = [s for s in summaries if most > 0 and s.comment_count == most]
        else:
            result = sorted(summaries, key=lambda s: (s.timestamp or _EPOCH, s.id), reverse=True)[:LATEST_POSTS_LIMIT]

        _logger.debug("Computed %s posts view: %d of %d posts", kind, len(result), len(summaries))
        self._cache.put(key, result)
        return list(result)
