"""IP lookup service with caching and round-robin provider selection."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests

from ipcheck.models import APIProvider, CachedIPInfo, IPInfo, IPLocationNetResponse

logger = logging.getLogger(__name__)

CACHE_TTL = 3600.0
REQUEST_TIMEOUT = 10.0
IPLOCATION_NET = "iplocation.net"
IPLOCATION_NET_URL = "https://www.iplocation.net/get-ipdata"


class ProviderError(Exception):
    """A provider could not answer a lookup."""


class ProviderNotFoundError(ProviderError, LookupError):
    """No provider has the requested name."""


class LookupFailedError(ProviderError):
    """No provider was able to answer a lookup."""


class IPService:
    """Looks up IP information through configured providers and caches results for an hour."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session if session is not None else requests.Session()
        self._cache: dict[str, CachedIPInfo] = {}
        self._cache_lock = threading.Lock()
        self._providers: list[APIProvider] = [
            APIProvider(name=IPLOCATION_NET, url=IPLOCATION_NET_URL, enabled=True),
        ]
        self._current_index = 0
        self._index_lock = threading.Lock()

    def get_ip_info(self, ip: str, ipv_type: str = "4") -> IPInfo:
        """Return information on ``ip``, from the cache if a fresh entry exists."""
        cached = self._cached(ip)
        if cached is not None:
            return cached.data
        info = self._fetch_from_providers(ip, ipv_type)
        now = time.time()
        with self._cache_lock:
            self._cache[ip] = CachedIPInfo(data=info, cached_at=now, expires_at=now + CACHE_TTL)
        return info

    def _cached(self, ip: str) -> CachedIPInfo | None:
        with self._cache_lock:
            entry = self._cache.get(ip)
            if entry is None:
                return None
            if entry.is_expired():
                del self._cache[ip]
                return None
            return entry

    def _fetch_from_providers(self, ip: str, ipv_type: str) -> IPInfo:
        enabled = [provider for provider in self._providers if provider.enabled]
        if not enabled:
            raise LookupFailedError("no enabled providers available")
        ipv_type = ipv_type or "4"
        for _ in enabled:
            provider = self._next_provider(enabled)
            try:
                return self._fetch_from_provider(provider, ip, ipv_type)
            except ProviderError as exc:
                logger.warning("Provider %s failed: %s", provider.name, exc)
        raise LookupFailedError("all providers failed to fetch IP information")

    def _next_provider(self, providers: list[APIProvider]) -> APIProvider:
        with self._index_lock:
            index = self._current_index % len(providers)
            self._current_index = (index + 1) % len(providers)
            return providers[index]

    def _fetch_from_provider(self, provider: APIProvider, ip: str, ipv_type: str) -> IPInfo:
        if provider.name == IPLOCATION_NET:
            return self._fetch_from_iplocation_net(provider.url, ip, ipv_type)
        raise ProviderError(f"unsupported provider: {provider.name}")

    def _fetch_from_iplocation_net(self, url: str, ip: str, ipv_type: str) -> IPInfo:
        form = {"ip": ip, "ipv": ipv_type, "source": "ip2location"}
        try:
            response = self._session.post(url, data=form, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise ProviderError(f"failed to make request: {exc}") from exc
        with response:
            if response.status_code != 200:
                raise ProviderError(f"API returned status code: {response.status_code}")
            try:
                parsed = IPLocationNetResponse.from_dict(response.json())
            except ValueError as exc:
                raise ProviderError(f"failed to decode response: {exc}") from exc
        return parsed.to_ip_info()

    def add_provider(self, provider: APIProvider) -> None:
        """Append a provider to the rotation."""
        self._providers.append(provider)

    def list_providers(self) -> list[APIProvider]:
        """Return the configured providers in order."""
        return list(self._providers)

    def enable_provider(self, name: str, enabled: bool) -> None:
        """Enable or disable the first provider called ``name``."""
        for provider in self._providers:
            if provider.name == name:
                provider.enabled = enabled
                return
        raise ProviderNotFoundError(f"provider {name} not found")

    def clear_cache(self) -> None:
        """Drop every cached entry."""
        with self._cache_lock:
            self._cache.clear()

    def cache_stats(self) -> dict[str, Any]:
        """Return the number of cached entries and a summary of each."""
        with self._cache_lock:
            entries = [
                {
                    "ip": ip,
                    "cached_at": int(info.cached_at),
                    "expires_at": int(info.expires_at),
                    "expired": info.is_expired(),
                }
                for ip, info in self._cache.items()
            ]
        return {"total_entries": len(entries), "entries": entries}