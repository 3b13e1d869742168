from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class SteamUser(BaseModel):
    """Steam profile as returned by GetPlayerSummaries (only the fields the site shows)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    steamid: str
    personaname: str = ""
    profileurl: str = ""
    avatar: str = ""
    avatarmedium: str = ""
    avatarfull: str = ""


class _PlayerList(BaseModel):
    players: List[SteamUser] = Field(default_factory=list)


class PlayerSummariesResponse(BaseModel):
    """Envelope: {"response": {"players": [...]}}."""

    response: _PlayerList
