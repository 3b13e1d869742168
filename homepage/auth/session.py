from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Tuple
from urllib.parse import quote_plus, unquote_plus

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from homepage.auth import steam_api
from homepage.auth.config import SESSION_COOKIE_NAME, AuthConfig
from homepage.auth.errors import SteamAuthError
from homepage.auth.models import SteamUser

logger = logging.getLogger(__name__)

SESSION_SALT = "homepage-steam-session-v1"
DELIMITER = "|"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

ProfileFetcher = Callable[[str], SteamUser]


def _serializer(cfg: AuthConfig) -> Optional[URLSafeTimedSerializer]:
    if not cfg.session_secret:
        return None
    return URLSafeTimedSerializer(secret_key=cfg.session_secret, salt=SESSION_SALT)


def encode_session(cfg: AuthConfig, user: SteamUser) -> str:
    # Unsigned unless SESSION_SECRET is set: anyone who knows the format can forge it.
    token = quote_plus(f"{user.steamid}{DELIMITER}{user.personaname}")
    s = _serializer(cfg)
    if s is None:
        return token
    return s.dumps(token)


def _unwrap(cfg: AuthConfig, value: str) -> Optional[str]:
    s = _serializer(cfg)
    if s is None:
        return value
    try:
        token = s.loads(value, max_age=cfg.session_ttl_seconds)
    except (BadSignature, BadTimeSignature):
        return None
    return token if isinstance(token, str) else None


def decode_session(cfg: AuthConfig, value: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return (steamid, cached display name), or None when there is no usable session."""
    if not value:
        return None
    token = _unwrap(cfg, value)
    if token is None or _BAD_ESCAPE.search(token):
        return None
    parts = unquote_plus(token).split(DELIMITER)
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


def current_user(
    cfg: AuthConfig,
    value: Optional[str],
    fetch_profile: Optional[ProfileFetcher] = None,
) -> Optional[SteamUser]:
    """
    Resolve the session cookie into a SteamUser.

    The full profile is re-fetched on every call. If that fails, the user stays
    logged in with the id and name cached in the cookie.
    """
    decoded = decode_session(cfg, value)
    if decoded is None:
        return None
    steam_id, cached_name = decoded

    fetch = fetch_profile or steam_api.fetch_player_summary
    try:
        return fetch(steam_id)
    except SteamAuthError as e:
        logger.warning("Error fetching Steam user info: %s", str(e))
        return SteamUser(steamid=steam_id, personaname=cached_name)


def session_cookie_kwargs(cfg: AuthConfig, value: str) -> dict:
    # No domain: host-only cookie.
    return {
        "key": SESSION_COOKIE_NAME,
        "value": value,
        "max_age": cfg.session_ttl_seconds,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookie_kwargs(cfg: AuthConfig) -> dict:
    return {
        "key": SESSION_COOKIE_NAME,
        "value": "",
        "max_age": -1,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }
