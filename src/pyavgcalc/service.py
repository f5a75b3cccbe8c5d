"""Window service: one refresh of a category window per inbound request."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pyavgcalc._api.numbers import build_numbers_request, parse_numbers
from pyavgcalc.config import AvgCalcConfig
from pyavgcalc.exceptions import InvalidCategoryError
from pyavgcalc.fetcher import CredentialGatedFetcher
from pyavgcalc.models.numbers import WindowSnapshot
from pyavgcalc.window import BoundedUniqueWindow, average, build_windows

_logger = logging.getLogger(__name__)


class WindowService:
    """Fetch new numbers for a category and fold them into its window.

    Each category's lock is held from the previous-state capture through the
    ingest, so ``windowPrevState`` is always the exact state that
    ``windowCurrState`` was derived from. Categories never block each other.
    """

    def __init__(
        self,
        fetcher: CredentialGatedFetcher,
        windows: Mapping[str, BoundedUniqueWindow],
        *,
        fetch_timeout: float,
    ) -> None:
        self._fetcher = fetcher
        self._windows = dict(windows)
        self._fetch_timeout = fetch_timeout

    @classmethod
    def from_config(cls, config: AvgCalcConfig, fetcher: CredentialGatedFetcher) -> WindowService:
        return cls(
            fetcher,
            build_windows(config.categories, config.window_size),
            fetch_timeout=config.fetch_timeout,
        )

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(self._windows)

    def window(self, category: str) -> BoundedUniqueWindow:
        try:
            return self._windows[category]
        except KeyError:
            raise InvalidCategoryError(category, self.categories) from None

    async def handle(self, category: str) -> WindowSnapshot:
        """Refresh *category*'s window and report before/after state.

        Raises
        ------
        InvalidCategoryError
            *category* is not configured. Nothing is fetched or mutated.
        AuthError
            The upstream rejected the credential even after a refresh.
        """
        window = self.window(category)

        async with window.lock:
            previous = window.snapshot()
            result = parse_numbers(await self._fetcher.fetch(build_numbers_request(category, self._fetch_timeout)))
            if not result.is_ok:
                _logger.warning("No new numbers for %r: %s", category, result.describe())
            fetched = result.values()
            current = window.ingest_and_snapshot(fetched)

        _logger.debug("Window %r: %d fetched, %d -> %d values", category, len(fetched), len(previous), len(current))
        return WindowSnapshot(
            window_prev_state=list(previous),
            window_curr_state=list(current),
            numbers=fetched,
            avg=average(current),
        )
