"""Number category endpoints.

Endpoints:
  - /primes, /fibo, /even, /rand
"""

from __future__ import annotations

from pydantic import ValidationError

from pyavgcalc._constants import CATEGORY_ENDPOINTS
from pyavgcalc.fetcher import FetchResult, UpstreamRequest
from pyavgcalc.models.numbers import Number, NumbersPayload


def build_numbers_request(category: str, timeout: float) -> UpstreamRequest:
    return UpstreamRequest(method="GET", endpoint=CATEGORY_ENDPOINTS[category], timeout=timeout)


def parse_numbers(result: FetchResult) -> FetchResult:
    """Narrow an OK result to its ``numbers`` list.

    Any shape other than ``{"numbers": [<number>, ...]}`` turns the result
    into a failure so it degrades to an empty fetch.
    """
    if not result.is_ok:
        return result
    try:
        parsed = NumbersPayload.model_validate(result.payload)
    except ValidationError:
        return FetchResult.failed("malformed numbers payload", status=result.status)
    values: list[Number] = list(parsed.numbers)
    return FetchResult.ok(values, status=result.status)
