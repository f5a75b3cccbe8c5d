"""Base models shared by upstream payloads and service responses.

Upstream payloads mix key styles (``clientID``, ``token_type``,
``rollNo``), so :class:`UpstreamModel` relies on explicit aliases and
ignores unknown keys. Response bodies returned to inbound callers use
:class:`ResponseModel`, which serializes snake_case fields as camelCase.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Anything at or above this is an absolute epoch, not a lifetime in seconds.
_EPOCH_THRESHOLD = 1_000_000_000
# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_epoch(value: Any) -> datetime | None:
    """Convert an epoch timestamp (seconds **or** milliseconds) to a UTC datetime.

    ISO-8601 strings are parsed too; naive values are taken as UTC.
    Unparseable strings and out-of-range epochs yield ``None``.
    """
    if value is None:
        return value
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            try:
                return parse_epoch(datetime.fromisoformat(value.strip()))
            except ValueError:
                return None
    try:
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000
        return datetime.fromtimestamp(ts, tz=UTC)
    except (TypeError, OverflowError, OSError, ValueError):
        return None


def expiry_from_lifetime(expires_in: float | int, *, now: datetime | None = None) -> datetime:
    """Resolve an ``expires_in`` value to an absolute instant.

    Small values are a lifetime relative to *now*; large values are
    already an epoch timestamp.
    """
    if expires_in >= _EPOCH_THRESHOLD:
        result = parse_epoch(expires_in)
        assert result is not None  # noqa: S101
        return result
    now = now or datetime.now(UTC)
    return now + timedelta(seconds=float(expires_in))


EpochTimestamp = Annotated[datetime | None, BeforeValidator(parse_epoch)]
"""Annotated type that coerces epoch numbers (seconds or ms) to UTC datetimes."""


class UpstreamModel(BaseModel):
    """Base for payloads received from the upstream evaluation service."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ResponseModel(BaseModel):
    """Base for bodies returned to inbound callers."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
