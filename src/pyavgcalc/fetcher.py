"""Credential-gated upstream fetches.

Every authenticated upstream call goes through :class:`CredentialGatedFetcher`:

1. attach the current bearer credential,
2. issue the call under a hard timeout,
3. on a 401, refresh the credential once and retry once,
4. surface a second 401 as :class:`AuthError`.

Non-auth failures are returned as :class:`FetchResult` values instead of
being raised, so callers choose between degrading (number windows) and
failing (:meth:`CredentialGatedFetcher.fetch_required`).
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from collections.abc import Mapping
from typing import Any

from pyavgcalc._constants import AUTH_FAILURE_STATUSES
from pyavgcalc._transport import Transport, wait_with_timeout
from pyavgcalc.credentials import CredentialStore
from pyavgcalc.exceptions import AuthError, TransportError, UpstreamError, UpstreamTimeoutError
from pyavgcalc.models.credential import Credential

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class UpstreamRequest:
    """An authenticated upstream call, replayable for the retry attempt."""

    method: str
    endpoint: str
    timeout: float | None = None
    params: Mapping[str, str] | None = None
    json_body: Mapping[str, Any] | None = None


class FetchOutcome(enum.StrEnum):
    OK = "ok"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclasses.dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of one gated fetch.

    The failure reason is kept for logging; it never reaches response bodies.
    """

    outcome: FetchOutcome
    payload: Any = None
    reason: str = ""
    status: int | None = None

    @classmethod
    def ok(cls, payload: Any, *, status: int | None = 200) -> FetchResult:
        return cls(FetchOutcome.OK, payload=payload, status=status)

    @classmethod
    def timed_out(cls, reason: str = "timed out") -> FetchResult:
        return cls(FetchOutcome.TIMED_OUT, reason=reason)

    @classmethod
    def failed(cls, reason: str, *, status: int | None = None) -> FetchResult:
        return cls(FetchOutcome.FAILED, reason=reason, status=status)

    @property
    def is_ok(self) -> bool:
        return self.outcome is FetchOutcome.OK

    @property
    def is_unauthorized(self) -> bool:
        return self.outcome is FetchOutcome.FAILED and self.status in AUTH_FAILURE_STATUSES

    def values(self) -> list[Any]:
        """Collapse to a list: the payload when OK and a list, else empty."""
        if self.is_ok and isinstance(self.payload, list):
            return list(self.payload)
        return []

    def describe(self) -> str:
        if self.is_ok:
            return "ok"
        if self.status is not None:
            return f"{self.outcome.value} (HTTP {self.status}): {self.reason}"
        return f"{self.outcome.value}: {self.reason}"


class CredentialGatedFetcher:
    """Run upstream calls with a bearer credential and one refresh-and-retry."""

    def __init__(self, transport: Transport, store: CredentialStore) -> None:
        self._transport = transport
        self._store = store

    async def _send(self, request: UpstreamRequest, credential: Credential) -> FetchResult:
        headers = {"authorization": credential.authorization_header()}
        try:
            response = await wait_with_timeout(
                self._transport.request(
                    request.method,
                    request.endpoint,
                    headers=headers,
                    json_body=request.json_body,
                    params=request.params,
                    timeout=request.timeout,
                ),
                request.timeout,
            )
        except UpstreamTimeoutError as exc:
            return FetchResult.timed_out(str(exc))
        except (TransportError, UpstreamError) as exc:
            return FetchResult.failed(str(exc), status=getattr(exc, "status_code", None))

        if not response.ok:
            return FetchResult.failed(f"HTTP {response.status} from {request.endpoint}", status=response.status)
        if response.payload is None:
            return FetchResult.failed(f"Empty or non-JSON body from {request.endpoint}", status=response.status)
        return FetchResult.ok(response.payload, status=response.status)

    async def fetch(self, request: UpstreamRequest) -> FetchResult:
        """Issue *request*; refresh and retry exactly once on a 401.

        Raises
        ------
        AuthError
            The credential could not be obtained or refreshed, or the retried
            call was rejected again.
        """
        # Attempt 1
        credential = await self._store.current()
        result = await self._send(request, credential)
        if not result.is_unauthorized:
            return result

        # Refresh, then attempt 2
        _logger.info("%s %s rejected (HTTP %s); refreshing credential", request.method, request.endpoint, result.status)
        credential = await self._store.refresh(stale=credential)
        result = await self._send(request, credential)
        if not result.is_unauthorized:
            return result

        raise AuthError(
            f"{request.endpoint} rejected a freshly refreshed credential (HTTP {result.status})",
            endpoint=request.endpoint,
        )

    async def fetch_required(self, request: UpstreamRequest) -> Any:
        """Like :meth:`fetch` but raise instead of degrading.

        Raises
        ------
        UpstreamTimeoutError
            The call timed out.
        UpstreamError
            Any other non-success outcome.
        """
        result = await self.fetch(request)
        if result.is_ok:
            return result.payload
        if result.outcome is FetchOutcome.TIMED_OUT:
            raise UpstreamTimeoutError(result.reason, endpoint=request.endpoint)
        raise UpstreamError(result.reason, status_code=result.status, endpoint=request.endpoint)
