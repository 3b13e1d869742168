from __future__ import annotations


class SteamAuthError(Exception):
    """Base class for Steam login and profile errors."""


class ConfigError(SteamAuthError):
    """Required configuration (e.g. STEAM_API_KEY) is missing."""


class ProfileFetchError(SteamAuthError):
    """The player profile could not be fetched from the Steam Web API."""


class NetworkError(ProfileFetchError):
    """The Steam Web API call could not complete."""


class ParseError(ProfileFetchError):
    """The Steam Web API returned something other than the expected JSON envelope."""


class NotFoundError(ProfileFetchError):
    """The Steam Web API returned no player for the requested id."""


class VerificationError(SteamAuthError):
    """The OpenID assertion was rejected or malformed."""
