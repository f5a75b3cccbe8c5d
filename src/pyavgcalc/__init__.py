"""pyavgcalc - Sliding-window number averaging over a credential-gated upstream."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyavgcalc")
except PackageNotFoundError:
    __version__ = "0+local"
from pyavgcalc.analytics import SocialAnalytics
from pyavgcalc.config import AvgCalcConfig, RegistrationIdentity
from pyavgcalc.credentials import CredentialStore
from pyavgcalc.exceptions import (
    AuthError,
    AvgCalcError,
    ConfigError,
    InvalidCategoryError,
    InvalidPostTypeError,
    InvalidRequestError,
    TransportError,
    UpstreamError,
    UpstreamTimeoutError,
)
from pyavgcalc.fetcher import CredentialGatedFetcher, FetchOutcome, FetchResult, UpstreamRequest
from pyavgcalc.models import Credential, PostSummary, TopUser, WindowSnapshot
from pyavgcalc.service import WindowService
from pyavgcalc.window import BoundedUniqueWindow, WindowState, average

__all__ = [
    "__version__",
    "AuthError",
    "AvgCalcConfig",
    "AvgCalcError",
    "BoundedUniqueWindow",
    "ConfigError",
    "Credential",
    "CredentialGatedFetcher",
    "CredentialStore",
    "FetchOutcome",
    "FetchResult",
    "InvalidCategoryError",
    "InvalidPostTypeError",
    "InvalidRequestError",
    "PostSummary",
    "RegistrationIdentity",
    "SocialAnalytics",
    "TopUser",
    "TransportError",
    "UpstreamError",
    "UpstreamRequest",
    "UpstreamTimeoutError",
    "WindowService",
    "WindowSnapshot",
    "WindowState",
    "average",
]
