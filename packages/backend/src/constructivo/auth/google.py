"""Google OAuth 2.0 authorization-code flow.

Learn: Three steps, all plain HTTPS calls through httpx:
1. Redirect the browser to Google's consent screen (authorization_url)
2. Google redirects back with ?code=... → exchange it for an access token
3. Use the access token to read the profile (email + display name)

Only the email and name are kept; Google tokens are discarded once the
profile has been read.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
import structlog

from constructivo.config import settings

logger = structlog.get_logger()

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class OAuthError(Exception):
    """Raised when Google rejects the exchange or returns an unusable profile."""


@dataclass
class GoogleProfile:
    email: str
    name: str


class GoogleOAuthClient:
    """Minimal Google OAuth client for the sign-in flow."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self._http = http

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, redirect_uri: str, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": "openid profile email",
            "prompt": "select_account",
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str, redirect_uri: str) -> GoogleProfile:
        """Exchange an authorization code and return the user's profile."""
        if self._http is not None:
            return await self._fetch_profile(self._http, code, redirect_uri)
        async with httpx.AsyncClient(timeout=10.0) as http:
            return await self._fetch_profile(http, code, redirect_uri)

    async def _fetch_profile(
        self, http: httpx.AsyncClient, code: str, redirect_uri: str
    ) -> GoogleProfile:
        try:
            token_resp = await http.post(
                TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
            token_resp.raise_for_status()
            access_token = token_resp.json()["access_token"]

            info_resp = await http.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            info_resp.raise_for_status()
            info = info_resp.json()
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning("oauth.exchange_failed", error=str(e))
            raise OAuthError("Google sign-in failed") from e

        email = info.get("email")
        if not email:
            raise OAuthError("No email provided in profile")
        name = info.get("name") or email.split("@")[0]
        return GoogleProfile(email=email, name=name)


def get_google_client() -> GoogleOAuthClient:
    """FastAPI dependency — overridden in tests."""
    return GoogleOAuthClient(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
    )
