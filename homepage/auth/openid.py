"""
Steam OpenID 2.0 relying party, built on python-openid.

The library does the protocol work: Yadis discovery, signed-field and return_to
checks, re-discovery of the claimed identifier, signature verification (a stored
association when there is one, otherwise check_authentication with the provider)
and nonce replay protection through the store. This module supplies the pieces the
library leaves to the application: an HTTP fetcher on top of `requests`, a
process-wide discovery cache, and a store that is safe to share between threads.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple
from urllib.parse import parse_qsl, urlsplit

import requests
from openid import fetchers
from openid.consumer import consumer
from openid.consumer.discover import DiscoveryFailure, OpenIDServiceEndpoint
from openid.consumer.discover import discover as openid_discover
from openid.message import OPENID2_NS, Message
from openid.store.memstore import MemoryStore

from homepage.auth.config import AuthConfig
from homepage.auth.errors import VerificationError

logger = logging.getLogger(__name__)

DISCOVERY_TTL_SECONDS = 3600

DiscoveryResult = Tuple[str, List[OpenIDServiceEndpoint]]


@dataclass(frozen=True)
class DiscoveredServices:
    claimed_id: str
    services: List[OpenIDServiceEndpoint]
    fetched_at: float


class NonceStore(Protocol):
    """
    python-openid store interface.

    `useNonce` marks a response nonce as seen and returns False on replay or when the
    nonce timestamp is too far from now. Associations are kept alongside.
    """

    def useNonce(self, server_url: str, timestamp: int, salt: str) -> bool:
        ...

    def storeAssociation(self, server_url: str, association: Any) -> None:
        ...

    def getAssociation(self, server_url: str, handle: Optional[str] = None) -> Any:
        ...

    def removeAssociation(self, server_url: str, handle: str) -> bool:
        ...


class DiscoveryCache(Protocol):
    """Discovery results keyed by identifier URL."""

    def get(self, url: str) -> Optional[DiscoveredServices]:
        ...

    def put(self, url: str, info: DiscoveredServices) -> None:
        ...


class InMemoryNonceStore(MemoryStore):
    """MemoryStore that can be shared by concurrent request threads."""

    def __init__(self):
        super().__init__()
        self._lock = threading.RLock()

    def useNonce(self, server_url, timestamp, salt):
        with self._lock:
            self.cleanupNonces()
            return super().useNonce(server_url, timestamp, salt)

    def storeAssociation(self, server_url, association):
        with self._lock:
            super().storeAssociation(server_url, association)

    def getAssociation(self, server_url, handle=None):
        with self._lock:
            return super().getAssociation(server_url, handle)

    def removeAssociation(self, server_url, handle):
        with self._lock:
            return super().removeAssociation(server_url, handle)


class InMemoryDiscoveryCache:
    """Process-local discovery cache; entries expire after ttl_seconds."""

    def __init__(self, ttl_seconds: int = DISCOVERY_TTL_SECONDS):
        self._ttl = ttl_seconds
        self._entries: Dict[str, DiscoveredServices] = {}
        self._lock = threading.Lock()

    def get(self, url: str) -> Optional[DiscoveredServices]:
        with self._lock:
            info = self._entries.get(url)
            if info is None:
                return None
            if time.time() - info.fetched_at >= self._ttl:
                del self._entries[url]
                return None
            return info

    def put(self, url: str, info: DiscoveredServices) -> None:
        with self._lock:
            self._entries[url] = info


class RequestsFetcher(fetchers.HTTPFetcher):
    """python-openid HTTP fetcher backed by `requests`."""

    def __init__(self, timeout: float):
        self.timeout = timeout

    def fetch(self, url, body=None, headers=None):
        headers = dict(headers or {})
        try:
            if body is None:
                r = requests.get(url, headers=headers, timeout=self.timeout)
            else:
                headers.setdefault("Content-Type", "application/x-www-form-urlencoded")
                r = requests.post(url, data=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise fetchers.HTTPFetchingError(why=f"{type(e).__name__} while fetching {url}") from e
        # The library looks up headers by lower-case name.
        return fetchers.HTTPResponse(
            final_url=r.url or url,
            status=r.status_code,
            headers={k.lower(): v for k, v in r.headers.items()},
            body=r.text,
        )


def _use_requests_fetcher(cfg: AuthConfig) -> None:
    current = fetchers.getDefaultFetcher()
    if isinstance(current, RequestsFetcher) and current.timeout == cfg.http_timeout_seconds:
        return
    fetchers.setDefaultFetcher(RequestsFetcher(cfg.http_timeout_seconds), wrap_exceptions=False)


def discover(cache: DiscoveryCache, url: str) -> DiscoveryResult:
    """python-openid discovery for `url`, served from `cache` while fresh."""
    cached = cache.get(url)
    if cached is not None:
        return cached.claimed_id, cached.services

    claimed_id, services = openid_discover(url)
    if services:
        cache.put(url, DiscoveredServices(claimed_id=claimed_id, services=services, fetched_at=time.time()))
        logger.info("Discovered OpenID endpoint %s for %s", services[0].server_url, url)
    return claimed_id, services


class _SteamConsumer(consumer.GenericConsumer):
    """GenericConsumer whose discovery goes through a DiscoveryCache."""

    def __init__(self, store: NonceStore, discovery_cache: DiscoveryCache):
        super().__init__(store)
        self.discovery_cache = discovery_cache

    def _discover(self, uri):
        return discover(self.discovery_cache, uri)


def build_login_url(
    cfg: AuthConfig,
    nonce_store: NonceStore,
    discovery_cache: DiscoveryCache,
    *,
    realm: str,
    return_to: str,
) -> str:
    """Discover the Steam OP endpoint and build the checkid_setup redirect to it."""
    _use_requests_fetcher(cfg)
    try:
        _, services = discover(discovery_cache, cfg.openid_provider_url)
    except (DiscoveryFailure, fetchers.HTTPFetchingError) as e:
        raise VerificationError(f"OpenID discovery failed: {e}") from e
    if not services:
        raise VerificationError("OpenID discovery returned no provider endpoint")

    auth_request = _SteamConsumer(nonce_store, discovery_cache).begin(services[0])
    # OpenID 1 bookkeeping; Steam speaks 2.0, so return_to stays exactly as given.
    auth_request.return_to_args.pop(consumer.GenericConsumer.openid1_nonce_query_arg_name, None)
    return auth_request.redirectURL(realm, return_to)


def verify_assertion(
    cfg: AuthConfig,
    callback_url: str,
    discovery_cache: DiscoveryCache,
    nonce_store: NonceStore,
) -> str:
    """Verify the provider's callback and return the claimed identifier URL."""
    query = dict(parse_qsl(urlsplit(callback_url).query, keep_blank_values=True))
    if query.get("openid.ns") != OPENID2_NS:
        raise VerificationError("unsupported OpenID namespace")

    _use_requests_fetcher(cfg)
    relying_party = _SteamConsumer(nonce_store, discovery_cache)
    try:
        response = relying_party.complete(Message.fromPostArgs(query), None, callback_url)
    except (DiscoveryFailure, fetchers.HTTPFetchingError) as e:
        raise VerificationError(f"OpenID discovery failed: {e}") from e

    if response.status == consumer.SUCCESS:
        return response.identity_url
    if response.status == consumer.CANCEL:
        raise VerificationError("login was cancelled")
    if response.status == consumer.FAILURE:
        raise VerificationError(str(response.message or "provider returned an error"))
    raise VerificationError(f"unexpected OpenID response status {response.status!r}")
