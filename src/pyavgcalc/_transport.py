"""JSON-over-HTTP transport for the upstream evaluation service."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyavgcalc._constants import USER_AGENT
from pyavgcalc._redact import redact_for_log
from pyavgcalc.config import AvgCalcConfig
from pyavgcalc.exceptions import TransportError, UpstreamTimeoutError

_logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    """Refuse the non-standard ``NaN``/``Infinity`` literals."""
    raise ValueError(f"non-standard JSON constant {name}")


@dataclasses.dataclass(frozen=True, slots=True)
class UpstreamResponse:
    """Status and decoded body of an upstream reply.

    ``payload`` is ``None`` when the body was empty or not JSON; callers
    decide whether that shape is acceptable.
    """

    status: int
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Structural transport interface used by the fetcher and endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        headers: Mapping[str, str] | None = None,
        json_body: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> UpstreamResponse:
        ...


class HttpTransport:
    """aiohttp transport; one shared client session per process."""

    def __init__(self, config: AvgCalcConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        headers: Mapping[str, str] | None = None,
        json_body: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> UpstreamResponse:
        """Send one request and decode the JSON reply.

        Raises
        ------
        UpstreamTimeoutError
            The call did not complete within *timeout* seconds. The in-flight
            request is cancelled.
        TransportError
            Connection-level failure.
        """
        url = f"{self._config.base_url}{endpoint}"
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if json_body is not None:
            request_headers["content-type"] = "application/json"
        if headers:
            request_headers.update(headers)

        client_timeout = aiohttp.ClientTimeout(total=timeout) if timeout is not None else None

        _logger.debug("%s %s", method, url)
        if self._config.api_trace_enabled and json_body is not None:
            _logger.debug("%s %s body=%s", method, endpoint, redact_for_log(json_body))

        try:
            async with self._http.request(
                method,
                url,
                headers=request_headers,
                json=json_body,
                params=params,
                timeout=client_timeout,
            ) as resp:
                body = await resp.read()
                status = resp.status
                charset = resp.charset or "utf-8"
        except TimeoutError as exc:
            raise UpstreamTimeoutError(
                f"{method} {endpoint} timed out after {timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        payload: Any = None
        if body.strip():
            try:
                payload = json.loads(body.decode(charset), parse_constant=_reject_constant)
            except (ValueError, LookupError):
                _logger.debug("Undecodable body from %s (HTTP %s): %r", endpoint, status, body[:200])

        if self._config.api_trace_enabled:
            _logger.debug("%s %s -> %s %s", method, endpoint, status, redact_for_log(payload))

        return UpstreamResponse(status=status, payload=payload)


async def wait_with_timeout(coro: Any, timeout: float | None) -> Any:
    """Await *coro*, mapping ``asyncio`` timeouts to :class:`UpstreamTimeoutError`."""
    if timeout is None:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout)
    except TimeoutError as exc:
        raise UpstreamTimeoutError(f"Call exceeded {timeout}s") from exc
