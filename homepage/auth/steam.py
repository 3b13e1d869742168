from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import HTTPException, Request
from fastapi.responses import RedirectResponse

from homepage.auth import steam_api
from homepage.auth.config import STEAM_ID_URL_PREFIX, AuthConfig, load_auth_config
from homepage.auth.errors import SteamAuthError, VerificationError
from homepage.auth.models import SteamUser
from homepage.auth.openid import (
    DiscoveryCache,
    InMemoryDiscoveryCache,
    InMemoryNonceStore,
    NonceStore,
    build_login_url,
    verify_assertion,
)
from homepage.auth.session import encode_session, session_cookie_kwargs

logger = logging.getLogger(__name__)

Verifier = Callable[[AuthConfig, str, DiscoveryCache, NonceStore], str]
ProfileFetcher = Callable[[str], SteamUser]


def public_base_url(cfg: AuthConfig, request: Request) -> str:
    """Configured base URL, or http://<Host> of the current request."""
    if cfg.public_base_url:
        return cfg.public_base_url
    host = request.headers.get("host") or request.url.netloc
    return f"http://{host}"


class SteamLogin:
    """
    Two-phase Steam OpenID login on a single endpoint.

    Without `openid.mode` in the query the user is redirected to Steam; with it the
    request is treated as the provider callback. The nonce store and discovery cache
    live for as long as this object (one per process).
    """

    def __init__(
        self,
        nonce_store: Optional[NonceStore] = None,
        discovery_cache: Optional[DiscoveryCache] = None,
        *,
        verify: Optional[Verifier] = None,
        fetch_profile: Optional[ProfileFetcher] = None,
        path: str = "/login",
    ):
        self.nonce_store = nonce_store if nonce_store is not None else InMemoryNonceStore()
        self.discovery_cache = discovery_cache if discovery_cache is not None else InMemoryDiscoveryCache()
        self._verify = verify or verify_assertion
        self._fetch_profile = fetch_profile
        self.path = path

    def handle(self, request: Request) -> RedirectResponse:
        cfg = load_auth_config()
        if request.query_params.get("openid.mode"):
            return self.complete(cfg, request)
        return self.begin(cfg, request)

    def begin(self, cfg: AuthConfig, request: Request) -> RedirectResponse:
        realm = public_base_url(cfg, request)
        try:
            url = build_login_url(cfg, self.nonce_store, self.discovery_cache, realm=realm, return_to=realm + self.path)
        except VerificationError as e:
            logger.warning("Could not start Steam login: %s", str(e))
            raise HTTPException(status_code=500, detail=f"Steam authentication failed: {e}")
        resp = RedirectResponse(url=url, status_code=302)
        resp.headers["Cache-Control"] = "no-store"
        return resp

    def complete(self, cfg: AuthConfig, request: Request) -> RedirectResponse:
        callback_url = public_base_url(cfg, request) + request.url.path
        if request.url.query:
            callback_url += "?" + request.url.query

        try:
            claimed_id = self._verify(cfg, callback_url, self.discovery_cache, self.nonce_store)
        except VerificationError as e:
            logger.warning("Steam authentication failed: %s", str(e))
            raise HTTPException(status_code=500, detail=f"Steam authentication failed: {e}")

        steam_id = claimed_id[len(STEAM_ID_URL_PREFIX) :] if claimed_id.startswith(STEAM_ID_URL_PREFIX) else claimed_id

        fetch = self._fetch_profile or steam_api.fetch_player_summary
        try:
            user = fetch(steam_id)
        except SteamAuthError as e:
            logger.warning("Failed to get Steam user info for %s: %s", steam_id, str(e))
            raise HTTPException(status_code=500, detail=f"Failed to get Steam user info: {e}")

        logger.info("Steam login for %s", steam_id)
        resp = RedirectResponse(url="/", status_code=302)
        resp.headers["Cache-Control"] = "no-store"
        resp.set_cookie(**session_cookie_kwargs(cfg, encode_session(cfg, user)))
        return resp
