from __future__ import annotations

from typing import Optional

from fastapi import Request

from homepage.auth.config import SESSION_COOKIE_NAME, load_auth_config
from homepage.auth.models import SteamUser
from homepage.auth.session import current_user


def authenticate_request(request: Request) -> Optional[SteamUser]:
    """
    Return the logged-in Steam user for a request, or None.

    A missing or malformed cookie is the normal logged-out state, not an error.
    """
    cfg = load_auth_config()
    return current_user(cfg, request.cookies.get(SESSION_COOKIE_NAME))
