"""Custom exception hierarchy for pyavgcalc."""

from __future__ import annotations


class AvgCalcError(Exception):
    """Base exception for all pyavgcalc errors."""


class ConfigError(AvgCalcError):
    """Invalid or missing configuration."""


class TransportError(AvgCalcError):
    """HTTP-level failure (connection refused, DNS, reset)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class UpstreamError(AvgCalcError):
    """Upstream answered with a non-success status or an unexpected payload shape."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class UpstreamTimeoutError(UpstreamError):
    """Upstream did not answer within the request timeout."""


class AuthError(AvgCalcError):
    """Credential exchange failed, or the upstream rejected a freshly refreshed token.

    Raised after exactly one refresh-and-retry; the fetcher never attempts a
    third call with the same request.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class InvalidRequestError(AvgCalcError):
    """Client input rejected before any upstream call or state change."""


class InvalidCategoryError(InvalidRequestError):
    """Number category is not one of the configured window categories."""

    def __init__(self, category: str, allowed: tuple[str, ...] = ()) -> None:
        self.category = category
        self.allowed = allowed
        valid = ", ".join(allowed) if allowed else "none"
        super().__init__(f"Invalid number ID {category!r}. Valid IDs are: {valid}")


class InvalidPostTypeError(InvalidRequestError):
    """Post listing type is neither ``popular`` nor ``latest``."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f'Invalid type parameter {kind!r}. Use "popular" or "latest".')
