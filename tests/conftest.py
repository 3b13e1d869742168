"""
Pytest config.

Tests import the local `homepage/` package from the repo root, with or without an
editable install. Config loaders are `lru_cache`d, so every test starts from a
clean cache and a Steam-free environment.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl

import pytest
import requests


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


_ENV_VARS = (
    "STEAM_API_KEY",
    "STEAM_API_TIMEOUT_SECONDS",
    "STEAM_OPENID_PROVIDER_URL",
    "PUBLIC_BASE_URL",
    "SESSION_SECRET",
    "AUTH_COOKIE_SECURE",
    "PORT",
    "HOST",
    "LOG_LEVEL",
    "SITE_STATIC_DIR",
    "SITE_TEMPLATES_DIR",
)


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch: pytest.MonkeyPatch):
    from homepage.auth.config import load_auth_config
    from homepage.config import load_site_config

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    load_auth_config.cache_clear()
    load_site_config.cache_clear()
    yield
    load_auth_config.cache_clear()
    load_site_config.cache_clear()


class FakeResponse:
    """Minimal stand-in for `requests.Response`."""

    def __init__(
        self,
        status_code: int = 200,
        json_data=None,
        text: str = "",
        content: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        url: str = "",
    ):
        self.status_code = status_code
        self.headers = headers or {}
        self.url = url
        self._json = json_data
        self.text = text
        self.content = content or text.encode("utf-8")

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


@pytest.fixture
def fake_response():
    return FakeResponse


OPENID2_NS = "http://specs.openid.net/auth/2.0"

_XRDS = """<?xml version="1.0" encoding="UTF-8"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)">
  <XRD>
    <Service priority="0">
      <Type>http://specs.openid.net/auth/2.0/%s</Type>
      <URI>https://steamcommunity.com/openid/login</URI>
    </Service>
  </XRD>
</xrds:XRDS>
"""


class FakeSteam:
    """
    Steam's OpenID provider and Web API, answered from memory.

    GETs of the provider URL return the OP identifier XRDS, GETs of an
    `/openid/id/<steamid>` URL return that user's XRDS. Association requests are
    refused, so verification always goes through check_authentication.
    """

    op_endpoint = "https://steamcommunity.com/openid/login"

    def __init__(self):
        self.gets: List[str] = []
        self.check_auth: List[Tuple[str, Dict[str, str]]] = []
        self.associate_requests = 0
        self.is_valid = "true"
        self.players: List[dict] = []

    def get(self, url, params=None, headers=None, timeout=None, **kwargs):
        from homepage.auth.config import STEAM_ID_URL_PREFIX, STEAM_PLAYER_SUMMARIES_URL

        self.gets.append(url)
        if url == STEAM_PLAYER_SUMMARIES_URL:
            return FakeResponse(json_data={"response": {"players": self.players}}, url=url)
        service_type = "signon" if url.startswith(STEAM_ID_URL_PREFIX) else "server"
        return FakeResponse(
            text=_XRDS % service_type,
            headers={"Content-Type": "application/xrds+xml; charset=utf-8"},
            url=url,
        )

    def post(self, url, data=None, headers=None, timeout=None, **kwargs):
        args = dict(parse_qsl(data or ""))
        if args.get("openid.mode") == "associate":
            self.associate_requests += 1
            return FakeResponse(status_code=400, text=f"ns:{OPENID2_NS}\nerror:associations are not supported\n", url=url)
        self.check_auth.append((url, args))
        return FakeResponse(text=f"ns:{OPENID2_NS}\nis_valid:{self.is_valid}\n", url=url)


@pytest.fixture
def fake_steam(monkeypatch) -> FakeSteam:
    steam = FakeSteam()
    monkeypatch.setattr(requests, "get", steam.get)
    monkeypatch.setattr(requests, "post", steam.post)
    return steam
