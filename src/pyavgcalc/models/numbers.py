"""Number category payloads and window response models."""

from __future__ import annotations

import math
from typing import Annotated

from pydantic import AfterValidator, Field, StrictFloat, StrictInt

from pyavgcalc.models._base import ResponseModel, UpstreamModel

Number = int | float


def _require_finite(value: Number) -> Number:
    """Reject ``NaN``, infinities and integers too large for a double."""
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        raise ValueError("number must be a finite double")
    return value


FiniteNumber = Annotated[StrictInt | StrictFloat, AfterValidator(_require_finite)]


class NumbersPayload(UpstreamModel):
    """Reply to a category endpoint: ``{"numbers": [...]}``.

    Strict types reject booleans and numeric strings, and non-finite or
    out-of-range values are rejected too, so that any other shape is
    treated as malformed.
    """

    numbers: list[FiniteNumber]


class WindowSnapshot(ResponseModel):
    """Result of one window refresh.

    Serialized as ``{windowPrevState, windowCurrState, numbers, avg}``.
    """

    window_prev_state: list[Number] = Field(default_factory=list)
    window_curr_state: list[Number] = Field(default_factory=list)
    numbers: list[Number] = Field(default_factory=list)
    avg: float = 0.0
