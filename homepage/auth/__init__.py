"""
Steam login for the site.

Design goals:
- No server-side user storage; identity lives in the `steam_user` cookie.
- OpenID 2.0 against Steam, profile data from the Steam Web API.
- Shared relying-party state (nonce store, discovery cache) is injected, not global.
"""
