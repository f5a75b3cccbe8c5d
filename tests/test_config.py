from __future__ import annotations

import pytest

from pyavgcalc.config import AvgCalcConfig, RegistrationIdentity
from pyavgcalc.exceptions import ConfigError

_IDENTITY_ENV = {
    "AVGCALC_EMAIL": "student@example.edu",
    "AVGCALC_NAME": "Test Student",
    "AVGCALC_MOBILE_NO": "9999999999",
    "AVGCALC_GITHUB_USERNAME": "teststudent",
    "AVGCALC_ROLL_NO": "22000001",
    "AVGCALC_COLLEGE_NAME": "Example University",
    "AVGCALC_ACCESS_CODE": "abcXYZ",
}


@pytest.fixture
def identity_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in _IDENTITY_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.mark.usefixtures("identity_env")
def test_from_env_defaults() -> None:
    config = AvgCalcConfig.from_env()

    assert config.identity.roll_no == "22000001"
    assert config.window_size == 10
    assert config.fetch_timeout == 0.5
    assert config.categories == ("p", "f", "e", "r")
    assert config.api_trace_enabled is False


@pytest.mark.usefixtures("identity_env")
def test_from_env_reads_tuning_and_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AVGCALC_WINDOW_SIZE", "20")
    monkeypatch.setenv("AVGCALC_FETCH_TIMEOUT", "0.25")
    monkeypatch.setenv("AVGCALC_CATEGORIES", "p, e")
    monkeypatch.setenv("AVGCALC_BASE_URL", "http://upstream.test/api/")
    monkeypatch.setenv("AVGCALC_API_TRACE_ENABLED", "yes")
    monkeypatch.setenv("AVGCALC_ANALYTICS_CONCURRENCY", "2")

    config = AvgCalcConfig.from_env(window_size=5)

    assert config.window_size == 5
    assert config.fetch_timeout == 0.25
    assert config.categories == ("p", "e")
    assert config.base_url == "http://upstream.test/api"
    assert config.api_trace_enabled is True
    assert config.analytics_concurrency == 2


def test_from_env_requires_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _IDENTITY_ENV:
        monkeypatch.delenv(key, raising=False)

    with pytest.raises(ConfigError, match="AVGCALC_EMAIL"):
        AvgCalcConfig.from_env()


@pytest.mark.usefixtures("identity_env")
def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AVGCALC_PORT", "eighty")

    with pytest.raises(ConfigError, match="AVGCALC_PORT"):
        AvgCalcConfig.from_env()


def test_unknown_category_rejected(identity: RegistrationIdentity) -> None:
    with pytest.raises(ConfigError, match="x"):
        AvgCalcConfig(identity=identity, categories=("p", "x"))


def test_identity_payload_uses_upstream_keys(identity: RegistrationIdentity) -> None:
    payload = identity.to_payload()

    assert payload["mobileNo"] == "9999999999"
    assert payload["githubUsername"] == "teststudent"
    assert set(payload) == {
        "email",
        "name",
        "mobileNo",
        "githubUsername",
        "rollNo",
        "collegeName",
        "accessCode",
    }


def test_analytics_concurrency_must_be_positive(identity: RegistrationIdentity) -> None:
    with pytest.raises(ConfigError, match="analytics_concurrency"):
        AvgCalcConfig(identity=identity, analytics_concurrency=0)
