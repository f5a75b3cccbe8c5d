"""Credential store: load, obtain, cache and refresh the bearer credential."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from pyavgcalc._api.auth import authenticate, register
from pyavgcalc._transport import Transport
from pyavgcalc.config import AvgCalcConfig
from pyavgcalc.exceptions import AuthError, TransportError, UpstreamError
from pyavgcalc.models.credential import Credential

_logger = logging.getLogger(__name__)


class CredentialStore:
    """Single shared owner of the upstream bearer credential.

    Usage::

        store = CredentialStore(config, transport)
        credential = await store.current()
        ...
        credential = await store.refresh(stale=credential)

    ``current()`` and ``refresh()`` share one lock so that at most one
    registration exchange is in flight. A caller that asks to replace a
    credential which another caller already replaced gets the replacement
    back instead of triggering a second exchange.
    """

    def __init__(
        self,
        config: AvgCalcConfig,
        transport: Transport,
        *,
        path: str | os.PathLike[str] | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._path = Path(path if path is not None else config.credential_path)
        self._credential: Credential | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def cached(self) -> Credential | None:
        return self._credential

    def load(self) -> Credential | None:
        """Read the persisted credential, or ``None`` if missing or malformed."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError:
            _logger.warning("Could not read credential file %s", self._path, exc_info=True)
            return None

        try:
            credential = Credential.model_validate_json(raw)
        except ValidationError as exc:
            _logger.warning(
                "Ignoring malformed credential file %s (%d validation error(s))",
                self._path,
                exc.error_count(),
            )
            return None

        _logger.info("Loaded persisted credential from %s", self._path)
        return credential

    def _persist(self, credential: Credential) -> None:
        """Write the credential atomically. Failures are logged, never raised."""
        data = json.dumps(credential.model_dump(mode="json"), indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".credential-", dir=self._path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(data)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError:
            _logger.warning(
                "Could not persist credential to %s; continuing with in-memory credential",
                self._path,
                exc_info=True,
            )

    async def obtain(self) -> Credential:
        """Run the register + auth exchange and make the result current.

        Raises
        ------
        AuthError
            If either step fails or returns an unexpected shape.
        """
        try:
            registration = await register(self._config, self._transport)
            credential = await authenticate(self._config, self._transport, registration)
        except (UpstreamError, TransportError) as exc:
            _logger.error("Credential exchange failed: %s", exc)
            raise AuthError(
                f"Failed to register or authenticate: {exc}",
                endpoint=getattr(exc, "endpoint", ""),
            ) from exc

        _logger.info("Obtained new credential (expires at %s)", credential.expires_at.isoformat())
        self._credential = credential
        self._persist(credential)
        return credential

    async def current(self) -> Credential:
        """Return the cached credential, loading or obtaining one on first use."""
        credential = self._credential
        if credential is not None:
            return credential
        async with self._lock:
            if self._credential is not None:
                return self._credential
            loaded = self.load()
            if loaded is not None:
                self._credential = loaded
                return loaded
            return await self.obtain()

    async def refresh(self, *, stale: Credential | None = None) -> Credential:
        """Replace the credential after the upstream rejected it.

        Parameters
        ----------
        stale : Credential or None
            The credential the caller saw rejected. If the cached credential
            is no longer this one, a concurrent refresh already happened and
            its result is returned as is. ``None`` always re-runs the exchange.
        """
        async with self._lock:
            cached = self._credential
            if stale is not None and cached is not None and cached.token != stale.token:
                _logger.debug("Credential already refreshed by a concurrent caller")
                return cached
            _logger.info("Refreshing rejected credential")
            return await self.obtain()
