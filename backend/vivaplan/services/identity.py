"""Google ID-token verification through the public tokeninfo endpoint."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from vivaplan.core.config import Settings
from vivaplan.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleIdentity:
    email: str
    name: str
    picture: str | None = None


class GoogleIdentityVerifier:
    def __init__(self, *, client_id: str | None, tokeninfo_url: str, timeout: float = 10.0, transport=None):
        self.client_id = client_id
        self.tokeninfo_url = tokeninfo_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleIdentityVerifier":
        return cls(
            client_id=settings.google_client_id,
            tokeninfo_url=settings.google_tokeninfo_url,
            timeout=settings.google_timeout_seconds,
        )

    def verify(self, id_token: str) -> GoogleIdentity:
        if not self.client_id:
            raise AuthenticationError("Google sign-in is not configured")
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(self.tokeninfo_url, params={"id_token": id_token})
        except httpx.HTTPError as exc:
            logger.warning("Google token verification request failed", exc_info=True)
            raise AuthenticationError("Google authentication failed") from exc

        if response.status_code != 200:
            raise AuthenticationError("Invalid Google token")
        claims = response.json()
        if claims.get("aud") != self.client_id:
            raise AuthenticationError("Google token was issued for another client")
        if str(claims.get("email_verified", "")).lower() != "true" or not claims.get("email"):
            raise AuthenticationError("Google account email is not verified")
        email = claims["email"].lower()
        return GoogleIdentity(
            email=email,
            name=claims.get("name") or email.split("@")[0],
            picture=claims.get("picture"),
        )
