"""Service configuration for pyavgcalc."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyavgcalc._constants import (
    BASE_URL,
    CATEGORY_ENDPOINTS,
    DEFAULT_ANALYTICS_CACHE_TTL,
    DEFAULT_ANALYTICS_CONCURRENCY,
    DEFAULT_CREDENTIAL_PATH,
    DEFAULT_EXCHANGE_TIMEOUT,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_WINDOW_SIZE,
)
from pyavgcalc.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class RegistrationIdentity:
    """Identity fields posted to the upstream registration endpoint.

    The upstream may only accept a given identity once, which is why the
    resulting credential is persisted between process starts.
    """

    email: str
    name: str
    mobile_no: str
    github_username: str
    roll_no: str
    college_name: str
    access_code: str

    def to_payload(self) -> dict[str, str]:
        return {
            "email": self.email,
            "name": self.name,
            "mobileNo": self.mobile_no,
            "githubUsername": self.github_username,
            "rollNo": self.roll_no,
            "collegeName": self.college_name,
            "accessCode": self.access_code,
        }


@dataclasses.dataclass(frozen=True)
class AvgCalcConfig:
    """Service configuration.

    Parameters
    ----------
    identity : RegistrationIdentity
        Fixed identity used for the registration/authentication exchange.
    base_url : str
        Upstream evaluation service base URL (no trailing slash).
    window_size : int
        Capacity of every per-category window.
    categories : tuple of str
        Enabled number categories. Must be a subset of ``p``, ``f``, ``e``, ``r``.
    fetch_timeout : float
        Hard timeout in seconds for a single number fetch.
    exchange_timeout : float
        Timeout in seconds for the credential exchange and analytics calls.
    credential_path : str
        File the obtained credential is persisted to.
    analytics_cache_ttl : float
        Seconds the analytics views are served from cache. ``0`` disables caching.
    analytics_concurrency : int
        Maximum number of per-user and per-post analytics calls in flight at once.
    host : str
        Bind address for the HTTP server.
    port : int
        Bind port for the HTTP server.
    api_trace_enabled : bool
        Log redacted upstream payloads at DEBUG level.
    """

    identity: RegistrationIdentity
    base_url: str = BASE_URL
    window_size: int = DEFAULT_WINDOW_SIZE
    categories: tuple[str, ...] = tuple(CATEGORY_ENDPOINTS)
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    exchange_timeout: float = DEFAULT_EXCHANGE_TIMEOUT
    credential_path: str = DEFAULT_CREDENTIAL_PATH
    analytics_cache_ttl: float = DEFAULT_ANALYTICS_CACHE_TTL
    analytics_concurrency: int = DEFAULT_ANALYTICS_CONCURRENCY
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ConfigError(f"window_size must be positive, got {self.window_size}")
        if self.fetch_timeout <= 0:
            raise ConfigError(f"fetch_timeout must be positive, got {self.fetch_timeout}")
        if self.analytics_concurrency < 1:
            raise ConfigError(f"analytics_concurrency must be positive, got {self.analytics_concurrency}")
        unknown = [c for c in self.categories if c not in CATEGORY_ENDPOINTS]
        if unknown:
            raise ConfigError(f"Unsupported categories: {', '.join(unknown)}")
        if not self.categories:
            raise ConfigError("At least one category must be enabled")

    @classmethod
    def from_env(cls, **overrides: Any) -> AvgCalcConfig:
        """Create configuration from environment variables.

        Reads the ``AVGCALC_*`` identity variables (``AVGCALC_EMAIL``,
        ``AVGCALC_NAME``, ``AVGCALC_MOBILE_NO``, ``AVGCALC_GITHUB_USERNAME``,
        ``AVGCALC_ROLL_NO``, ``AVGCALC_COLLEGE_NAME``, ``AVGCALC_ACCESS_CODE``)
        plus optional tuning variables. Explicit keyword arguments override
        environment values.

        Raises
        ------
        ConfigError
            If an identity field is missing or a numeric variable is invalid.
        """
        env = os.environ

        identity = overrides.pop("identity", None)
        if isinstance(identity, dict):
            identity = RegistrationIdentity(**identity)
        if identity is None:
            _ENV_IDENTITY_MAP = {
                "AVGCALC_EMAIL": "email",
                "AVGCALC_NAME": "name",
                "AVGCALC_MOBILE_NO": "mobile_no",
                "AVGCALC_GITHUB_USERNAME": "github_username",
                "AVGCALC_ROLL_NO": "roll_no",
                "AVGCALC_COLLEGE_NAME": "college_name",
                "AVGCALC_ACCESS_CODE": "access_code",
            }
            missing = [key for key in _ENV_IDENTITY_MAP if not env.get(key)]
            if missing:
                raise ConfigError(f"Missing registration identity variables: {', '.join(missing)}")
            identity = RegistrationIdentity(**{field: env[key] for key, field in _ENV_IDENTITY_MAP.items()})

        config_kwargs: dict[str, Any] = {"identity": identity}

        _ENV_STR_MAP = {
            "AVGCALC_BASE_URL": "base_url",
            "AVGCALC_CREDENTIAL_PATH": "credential_path",
            "AVGCALC_HOST": "host",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "AVGCALC_WINDOW_SIZE": ("window_size", int),
            "AVGCALC_PORT": ("port", int),
            "AVGCALC_FETCH_TIMEOUT": ("fetch_timeout", float),
            "AVGCALC_EXCHANGE_TIMEOUT": ("exchange_timeout", float),
            "AVGCALC_ANALYTICS_CACHE_TTL": ("analytics_cache_ttl", float),
            "AVGCALC_ANALYTICS_CONCURRENCY": ("analytics_concurrency", int),
        }
        for env_key, (field_name, caster) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = caster(val)
            except ValueError as exc:
                raise ConfigError(f"{env_key} must be a number, got {val!r}") from exc

        categories_env = env.get("AVGCALC_CATEGORIES")
        if categories_env is not None and "categories" not in overrides:
            config_kwargs["categories"] = tuple(c.strip() for c in categories_env.split(",") if c.strip())

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("AVGCALC_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)
        if "base_url" in config_kwargs:
            config_kwargs["base_url"] = str(config_kwargs["base_url"]).rstrip("/")

        return cls(**config_kwargs)
