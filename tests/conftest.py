from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from pyavgcalc._transport import UpstreamResponse
from pyavgcalc.config import AvgCalcConfig, RegistrationIdentity
from pyavgcalc.credentials import CredentialStore
from pyavgcalc.fetcher import CredentialGatedFetcher

NUMBER_ENDPOINTS = {"/primes", "/fibo", "/even", "/rand"}


@dataclass
class FakeUpstream:
    """In-memory stand-in for the evaluation service implementing ``Transport``."""

    numbers: dict[str, list[Any]] = field(default_factory=dict)
    users: dict[str, str] = field(default_factory=dict)
    posts: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    comments: dict[int, list[dict[str, Any]]] = field(default_factory=dict)
    delays: dict[str, float] = field(default_factory=dict)
    overrides: dict[str, UpstreamResponse] = field(default_factory=dict)
    register_status: int = 200
    issue_rejected_tokens: bool = False
    expires_in: float = 1743574344
    calls: list[tuple[str, str]] = field(default_factory=list)
    auth_headers: list[str | None] = field(default_factory=list)
    valid_tokens: set[str] = field(default_factory=set)
    issued: int = 0

    def count(self, endpoint: str) -> int:
        return sum(1 for _, called in self.calls if called == endpoint)

    def revoke_all(self) -> None:
        self.valid_tokens.clear()

    def _authorized(self, headers: Mapping[str, str] | None) -> bool:
        value = (headers or {}).get("authorization")
        self.auth_headers.append(value)
        if not value or not value.startswith("Bearer "):
            return False
        return value.removeprefix("Bearer ") in self.valid_tokens

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
        self.calls.append((method, endpoint))

        if endpoint == "/register":
            if self.register_status != 200:
                return UpstreamResponse(self.register_status, {"message": "registration closed"})
            assert json_body is not None
            return UpstreamResponse(
                200,
                {
                    "email": json_body["email"],
                    "name": json_body["name"],
                    "rollNo": json_body["rollNo"],
                    "accessCode": json_body["accessCode"],
                    "clientID": "client-1",
                    "clientSecret": "secret-1",
                },
            )

        if endpoint == "/auth":
            assert json_body is not None
            assert json_body["clientID"] == "client-1"
            self.issued += 1
            token = f"token-{self.issued}"
            if not self.issue_rejected_tokens:
                self.valid_tokens.add(token)
            return UpstreamResponse(
                201,
                {"token_type": "Bearer", "access_token": token, "expires_in": self.expires_in},
            )

        if not self._authorized(headers):
            return UpstreamResponse(401, {"message": "Unauthorized"})

        delay = self.delays.get(endpoint)
        if delay:
            await asyncio.sleep(delay)

        if endpoint in self.overrides:
            return self.overrides[endpoint]

        if endpoint in NUMBER_ENDPOINTS:
            return UpstreamResponse(200, {"numbers": list(self.numbers.get(endpoint, []))})

        if endpoint == "/users":
            return UpstreamResponse(200, {"users": dict(self.users)})

        if endpoint.startswith("/users/") and endpoint.endswith("/posts"):
            user_id = endpoint.split("/")[2]
            return UpstreamResponse(200, {"posts": self.posts.get(user_id, [])})

        if endpoint.startswith("/posts/") and endpoint.endswith("/comments"):
            post_id = int(endpoint.split("/")[2])
            return UpstreamResponse(200, {"comments": self.comments.get(post_id, [])})

        return UpstreamResponse(404, {"message": "not found"})


@pytest.fixture
def identity() -> RegistrationIdentity:
    return RegistrationIdentity(
        email="student@example.edu",
        name="Test Student",
        mobile_no="9999999999",
        github_username="teststudent",
        roll_no="22000001",
        college_name="Example University",
        access_code="abcXYZ",
    )


@pytest.fixture
def config(identity: RegistrationIdentity, tmp_path: Path) -> AvgCalcConfig:
    return AvgCalcConfig(
        identity=identity,
        base_url="http://upstream.test/evaluation-service",
        credential_path=str(tmp_path / "auth_token.json"),
        fetch_timeout=0.05,
        exchange_timeout=1.0,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def store(config: AvgCalcConfig, upstream: FakeUpstream) -> CredentialStore:
    return CredentialStore(config, upstream)


@pytest.fixture
def fetcher(upstream: FakeUpstream, store: CredentialStore) -> CredentialGatedFetcher:
    return CredentialGatedFetcher(upstream, store)
