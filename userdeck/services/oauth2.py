"""OAuth2 authorization-code login with external identity providers.

    1. GET /auth/ext/{provider}           → redirect to the provider, state cached
    2. GET /auth/ext/{provider}/callback  → verify state, exchange code,
       fetch the profile, find or create the local account
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from userdeck.core.cache import Cache
from userdeck.core.config import Settings, get_settings
from userdeck.core.exceptions import NotFoundError, UnauthorizedError
from userdeck.core.logging import get_logger
from userdeck.models.enums import AuthProvider
from userdeck.models.user import User
from userdeck.services.users import UsersService

logger = get_logger(__name__)

STATE_TTL_SECONDS = 120


@dataclass(frozen=True)
class ProviderEndpoints:
    authorize_url: str
    token_url: str
    userinfo_url: str
    scopes: tuple[str, ...]


PROVIDERS: dict[AuthProvider, ProviderEndpoints] = {
    AuthProvider.GOOGLE: ProviderEndpoints(
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://www.googleapis.com/oauth2/v3/userinfo",
        scopes=("openid", "email", "profile"),
    ),
    AuthProvider.MICROSOFT: ProviderEndpoints(
        authorize_url="https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
        token_url="https://login.microsoftonline.com/common/oauth2/v2.0/token",
        userinfo_url="https://graph.microsoft.com/v1.0/me",
        scopes=("openid", "email", "profile", "User.Read"),
    ),
    AuthProvider.FACEBOOK: ProviderEndpoints(
        authorize_url="https://www.facebook.com/v18.0/dialog/oauth",
        token_url="https://graph.facebook.com/v18.0/oauth/access_token",
        userinfo_url="https://graph.facebook.com/v18.0/me?fields=email,name",
        scopes=("email", "public_profile"),
    ),
    AuthProvider.GITHUB: ProviderEndpoints(
        authorize_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        userinfo_url="https://api.github.com/user",
        scopes=("read:user", "user:email"),
    ),
}

GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


def state_key(state: str) -> str:
    return f"oauth_state:{state}"


class OAuth2Service:
    def __init__(
        self,
        cache: Cache,
        users: UsersService,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cache = cache
        self._users = users
        self._settings = settings or get_settings()
        self._transport = transport

    def _client_credentials(self, provider: AuthProvider) -> tuple[str, str]:
        if provider is AuthProvider.LOCAL:
            raise NotFoundError("Page not found")
        client_id = getattr(self._settings, f"{provider.value}_client_id")
        client_secret = getattr(self._settings, f"{provider.value}_client_secret")
        if not client_id or not client_secret:
            raise NotFoundError("Page not found")
        return client_id, client_secret

    def redirect_uri(self, provider: AuthProvider) -> str:
        base = self._settings.backend_url.rstrip("/")
        return f"{base}/api/v1/auth/ext/{provider.value}/callback"

    async def authorization_url(self, provider: AuthProvider) -> str:
        client_id, _ = self._client_credentials(provider)
        endpoints = PROVIDERS[provider]
        state = secrets.token_urlsafe(24)
        await self._cache.set(state_key(state), provider.value, ttl=STATE_TTL_SECONDS)
        query = urlencode({
            "client_id": client_id,
            "redirect_uri": self.redirect_uri(provider),
            "response_type": "code",
            "scope": " ".join(endpoints.scopes),
            "state": state,
        })
        return f"{endpoints.authorize_url}?{query}"

    async def callback(self, provider: AuthProvider, code: str, state: str) -> User:
        client_id, client_secret = self._client_credentials(provider)
        cached = await self._cache.get(state_key(state))
        if cached != provider.value:
            raise UnauthorizedError("Invalid state")
        await self._cache.delete(state_key(state))

        try:
            email, name = await self._fetch_identity(provider, code, client_id, client_secret)
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("OAuth2 exchange failed", provider=provider.value, error=str(exc))
            raise UnauthorizedError("Could not authenticate with provider") from exc

        return await self._users.find_or_create(provider, email, name)

    async def _fetch_identity(
        self, provider: AuthProvider, code: str, client_id: str, client_secret: str
    ) -> tuple[str, str]:
        endpoints = PROVIDERS[provider]
        async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
            resp = await client.post(
                endpoints.token_url,
                data={
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "code": code,
                    "redirect_uri": self.redirect_uri(provider),
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"},
            )
            resp.raise_for_status()
            access_token = resp.json()["access_token"]
            headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}

            resp = await client.get(endpoints.userinfo_url, headers=headers)
            resp.raise_for_status()
            profile = resp.json()

            if provider is AuthProvider.MICROSOFT:
                email = profile.get("mail") or profile.get("userPrincipalName")
                name = profile.get("displayName")
            else:
                email = profile.get("email")
                name = profile.get("name") or profile.get("login")

            if not email and provider is AuthProvider.GITHUB:
                resp = await client.get(GITHUB_EMAILS_URL, headers=headers)
                resp.raise_for_status()
                email = next(
                    (e["email"] for e in resp.json() if e.get("primary") and e.get("verified")),
                    None,
                )

        if not email:
            raise ValueError("Provider returned no email address")
        return email, name or email.split("@")[0]
