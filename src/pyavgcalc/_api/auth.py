"""Registration and token exchange endpoints.

Endpoints:
  - /register
  - /auth

Both calls are unauthenticated and required for correctness: any failure
raises :class:`UpstreamError` rather than degrading.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from pyavgcalc._constants import AUTH_ENDPOINT, REGISTER_ENDPOINT
from pyavgcalc._redact import redact_for_log
from pyavgcalc._transport import Transport, UpstreamResponse
from pyavgcalc.config import AvgCalcConfig
from pyavgcalc.exceptions import UpstreamError
from pyavgcalc.models._base import expiry_from_lifetime
from pyavgcalc.models.credential import AuthResponse, Credential, RegistrationResponse

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _parse_required(model: type[M], endpoint: str, response: UpstreamResponse) -> M:
    if not response.ok:
        raise UpstreamError(
            f"{endpoint} failed: HTTP {response.status} {redact_for_log(response.payload)}",
            status_code=response.status,
            endpoint=endpoint,
        )
    if not isinstance(response.payload, dict):
        raise UpstreamError(
            f"{endpoint} returned a non-object payload",
            status_code=response.status,
            endpoint=endpoint,
        )
    try:
        return model.model_validate(response.payload)
    except ValidationError as exc:
        raise UpstreamError(
            f"{endpoint} returned an unexpected shape: {exc.error_count()} validation error(s)",
            status_code=response.status,
            endpoint=endpoint,
        ) from exc


async def register(config: AvgCalcConfig, transport: Transport) -> RegistrationResponse:
    """Register the configured identity and return the issued client id/secret."""
    payload = config.identity.to_payload()
    _logger.debug("Registering identity %s", redact_for_log(payload))
    response = await transport.request(
        "POST",
        REGISTER_ENDPOINT,
        json_body=payload,
        timeout=config.exchange_timeout,
    )
    return _parse_required(RegistrationResponse, REGISTER_ENDPOINT, response)


async def authenticate(
    config: AvgCalcConfig,
    transport: Transport,
    registration: RegistrationResponse,
    *,
    now: datetime | None = None,
) -> Credential:
    """Exchange the registration client id/secret for a bearer credential."""
    body = registration.auth_payload()
    response = await transport.request(
        "POST",
        AUTH_ENDPOINT,
        json_body=body,
        timeout=config.exchange_timeout,
    )
    auth = _parse_required(AuthResponse, AUTH_ENDPOINT, response)
    identity: dict[str, Any] = dict(body)
    return Credential(
        token=auth.token,
        token_type=auth.token_type,
        expires_at=expiry_from_lifetime(auth.expires_in, now=now),
        identity=identity,
    )
