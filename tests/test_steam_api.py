from __future__ import annotations

import pytest
import requests

from homepage.auth.config import STEAM_PLAYER_SUMMARIES_URL, load_auth_config
from homepage.auth.errors import ConfigError, NetworkError, NotFoundError, ParseError, ProfileFetchError
from homepage.auth.steam_api import fetch_player_summary

PLAYER = {
    "steamid": "76561197960435530",
    "personaname": "Robin",
    "profileurl": "https://steamcommunity.com/id/robinwalker/",
    "avatar": "https://avatars.steamstatic.com/abc.jpg",
    "avatarmedium": "https://avatars.steamstatic.com/abc_medium.jpg",
    "avatarfull": "https://avatars.steamstatic.com/abc_full.jpg",
    "communityvisibilitystate": 3,
}


@pytest.fixture
def steam_key(monkeypatch):
    monkeypatch.setenv("STEAM_API_KEY", "test-key")
    load_auth_config.cache_clear()


def test_missing_api_key_is_config_error() -> None:
    with pytest.raises(ConfigError):
        fetch_player_summary("76561197960435530")


def test_returns_first_player_verbatim(steam_key, monkeypatch, fake_response) -> None:
    calls = []

    def fake_get(url, *args, **kwargs):
        calls.append((url, kwargs))
        return fake_response(json_data={"response": {"players": [PLAYER, dict(PLAYER, steamid="2")]}})

    monkeypatch.setattr(requests, "get", fake_get)
    user = fetch_player_summary("76561197960435530")

    assert user.steamid == PLAYER["steamid"]
    assert user.personaname == PLAYER["personaname"]
    assert user.profileurl == PLAYER["profileurl"]
    assert user.avatar == PLAYER["avatar"]
    assert user.avatarmedium == PLAYER["avatarmedium"]
    assert user.avatarfull == PLAYER["avatarfull"]

    url, kwargs = calls[0]
    assert url == STEAM_PLAYER_SUMMARIES_URL
    assert kwargs["params"] == {"key": "test-key", "steamids": "76561197960435530"}
    assert kwargs["timeout"] == 10.0


def test_empty_players_is_not_found(steam_key, monkeypatch, fake_response) -> None:
    monkeypatch.setattr(requests, "get", lambda *a, **k: fake_response(json_data={"response": {"players": []}}))
    with pytest.raises(NotFoundError):
        fetch_player_summary("1")


def test_connection_error_is_network_error_without_key(steam_key, monkeypatch) -> None:
    def fake_get(url, *args, **kwargs):
        raise requests.exceptions.ConnectionError(f"Max retries exceeded with url: {url}?key=test-key")

    monkeypatch.setattr(requests, "get", fake_get)
    with pytest.raises(NetworkError) as exc:
        fetch_player_summary("1")
    assert "test-key" not in str(exc.value)


def test_http_error_status_is_network_error(steam_key, monkeypatch, fake_response) -> None:
    monkeypatch.setattr(requests, "get", lambda *a, **k: fake_response(status_code=403, text="Forbidden"))
    with pytest.raises(NetworkError) as exc:
        fetch_player_summary("1")
    assert "403" in str(exc.value)


def test_invalid_json_is_parse_error(steam_key, monkeypatch, fake_response) -> None:
    monkeypatch.setattr(requests, "get", lambda *a, **k: fake_response(text="<html>oops</html>"))
    with pytest.raises(ParseError):
        fetch_player_summary("1")


@pytest.mark.parametrize(
    "payload",
    [
        {"players": []},
        {"response": {"players": "nope"}},
        {"response": {"players": [{"personaname": "no id"}]}},
        [],
    ],
)
def test_unexpected_shape_is_parse_error(steam_key, monkeypatch, fake_response, payload) -> None:
    monkeypatch.setattr(requests, "get", lambda *a, **k: fake_response(json_data=payload))
    with pytest.raises(ParseError):
        fetch_player_summary("1")


def test_timeout_is_configurable(monkeypatch, fake_response) -> None:
    monkeypatch.setenv("STEAM_API_KEY", "k")
    monkeypatch.setenv("STEAM_API_TIMEOUT_SECONDS", "2.5")
    load_auth_config.cache_clear()
    seen = {}

    def fake_get(url, *args, **kwargs):
        seen["timeout"] = kwargs.get("timeout")
        return fake_response(json_data={"response": {"players": [PLAYER]}})

    monkeypatch.setattr(requests, "get", fake_get)
    fetch_player_summary("1")
    assert seen["timeout"] == 2.5


@pytest.mark.parametrize("error", [NetworkError, ParseError, NotFoundError])
def test_fetch_errors_share_a_documented_base(error) -> None:
    assert issubclass(error, ProfileFetchError)
    assert ProfileFetchError.__doc__
    assert not issubclass(ConfigError, ProfileFetchError)
