from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

STEAM_OPENID_PROVIDER_URL = "https://steamcommunity.com/openid"
STEAM_ID_URL_PREFIX = "https://steamcommunity.com/openid/id/"
STEAM_PLAYER_SUMMARIES_URL = "https://api.steampowered.com/ISteamUser/GetPlayerSummaries/v0002/"

SESSION_COOKIE_NAME = "steam_user"
SESSION_TTL_SECONDS = 3600 * 24 * 7  # 1 week


@dataclass(frozen=True)
class AuthConfig:
    # Steam Web API
    steam_api_key: Optional[str]  # Checked per request, not at startup
    http_timeout_seconds: float

    # OpenID relying party
    public_base_url: Optional[str]  # Default: http://<Host header>
    openid_provider_url: str

    # Session cookie
    session_secret: Optional[str]  # Optional signing; plain cookie when unset
    session_ttl_seconds: int
    cookie_secure: bool

    @property
    def signing_enabled(self) -> bool:
        return bool(self.session_secret)


def _env(name: str) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or None


@lru_cache(maxsize=1)
def load_auth_config() -> AuthConfig:
    """
    Load Steam login configuration from environment variables.

    A missing STEAM_API_KEY is not an error here: the profile fetcher reports it
    on each request that needs it.
    """
    public_base_url = _env("PUBLIC_BASE_URL")
    if public_base_url:
        public_base_url = public_base_url.rstrip("/")

    cookie_secure_env = (_env("AUTH_COOKIE_SECURE") or "").lower()
    if cookie_secure_env in ("1", "true", "yes", "on"):
        cookie_secure = True
    elif cookie_secure_env in ("0", "false", "no", "off"):
        cookie_secure = False
    else:
        # Default: secure cookies when base URL is https; otherwise allow local dev.
        cookie_secure = True if (public_base_url or "").startswith("https://") else False

    try:
        timeout = float(_env("STEAM_API_TIMEOUT_SECONDS") or "10")
    except ValueError:
        timeout = 10.0
    if timeout <= 0:
        timeout = 10.0

    return AuthConfig(
        steam_api_key=_env("STEAM_API_KEY"),
        http_timeout_seconds=timeout,
        public_base_url=public_base_url,
        openid_provider_url=_env("STEAM_OPENID_PROVIDER_URL") or STEAM_OPENID_PROVIDER_URL,
        session_secret=_env("SESSION_SECRET"),
        session_ttl_seconds=SESSION_TTL_SECONDS,
        cookie_secure=cookie_secure,
    )
