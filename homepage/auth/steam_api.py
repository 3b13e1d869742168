"""
Steam Web API client (player summaries only).

Every call is a fresh synchronous round trip: no retries, no caching.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests
from pydantic import ValidationError

from homepage.auth.config import STEAM_PLAYER_SUMMARIES_URL, AuthConfig, load_auth_config
from homepage.auth.errors import ConfigError, NetworkError, NotFoundError, ParseError
from homepage.auth.models import PlayerSummariesResponse, SteamUser

logger = logging.getLogger(__name__)


def fetch_player_summary(steam_id: str, cfg: Optional[AuthConfig] = None) -> SteamUser:
    """
    Fetch the public profile for a 64-bit Steam id.

    Raises:
        ConfigError: STEAM_API_KEY is not configured
        NetworkError: the HTTPS call failed or returned an error status
        ParseError: the body is not the expected JSON envelope
        NotFoundError: Steam returned no player for this id
    """
    cfg = cfg or load_auth_config()
    if not cfg.steam_api_key:
        raise ConfigError("STEAM_API_KEY environment variable not set")

    params = {"key": cfg.steam_api_key, "steamids": steam_id}
    try:
        r = requests.get(STEAM_PLAYER_SUMMARIES_URL, params=params, timeout=cfg.http_timeout_seconds)
    except requests.RequestException as e:
        # Exception text includes the request URL, which carries the API key.
        raise NetworkError(f"Steam API request failed ({type(e).__name__})") from e
    if r.status_code >= 400:
        raise NetworkError(f"Steam API request failed (status={r.status_code})")

    try:
        data = r.json()
    except ValueError as e:
        raise ParseError("Steam API returned invalid JSON") from e

    try:
        envelope = PlayerSummariesResponse.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Unexpected Steam API response shape: {e.error_count()} error(s)") from e

    players = envelope.response.players
    if not players:
        raise NotFoundError("no player data returned from Steam")

    logger.debug("Fetched Steam profile for %s", steam_id)
    return players[0]
