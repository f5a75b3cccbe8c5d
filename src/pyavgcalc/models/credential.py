"""Credential and credential-exchange models."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr

from pyavgcalc.models._base import UpstreamModel


class RegistrationResponse(UpstreamModel):
    """Reply to ``POST /register``.

    The upstream echoes the identity fields next to the issued client id/secret.
    """

    email: StrictStr
    name: StrictStr
    roll_no: StrictStr = Field(alias="rollNo")
    access_code: StrictStr = Field(alias="accessCode")
    client_id: StrictStr = Field(alias="clientID")
    client_secret: StrictStr = Field(alias="clientSecret")

    def auth_payload(self) -> dict[str, str]:
        """Body for ``POST /auth``."""
        return {
            "email": self.email,
            "name": self.name,
            "rollNo": self.roll_no,
            "accessCode": self.access_code,
            "clientID": self.client_id,
            "clientSecret": self.client_secret,
        }


class AuthResponse(UpstreamModel):
    """Reply to ``POST /auth``."""

    token: StrictStr = Field(
        min_length=1,
        validation_alias=AliasChoices("access_token", "token"),
    )
    token_type: StrictStr = "Bearer"
    expires_in: float


class Credential(BaseModel):
    """Bearer credential owned by the credential store.

    ``expires_at`` is kept for diagnostics only; the credential stays in use
    until the upstream rejects it with a 401.

    Parameters
    ----------
    token : str
        Bearer token sent in the ``Authorization`` header.
    token_type : str
        Authorization scheme, normally ``Bearer``.
    expires_at : datetime
        Expiry instant declared by the upstream.
    identity : dict
        Registration fields the token was issued for, including the client
        id/secret needed to re-authenticate.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_at: datetime
    identity: dict[str, str] = Field(default_factory=dict)

    def authorization_header(self) -> str:
        scheme = self.token_type.strip() or "Bearer"
        # Upstream sends lowercase "bearer"; normalize to the canonical scheme name.
        if scheme.lower() == "bearer":
            scheme = "Bearer"
        return f"{scheme} {self.token}"
