from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Tuple

import requests

from models import Coordinate, RawPlace


class SearchProviderError(RuntimeError):
    """Restaurant search could not be performed (network, upstream status, bad payload)."""


class RestaurantSearchProvider(Protocol):
    name: str

    def search(self, cuisine: Optional[str], origin: Coordinate, radius_m: int) -> List[RawPlace]:
        ...


@dataclass
class _RetryPolicy:
    retries: int = 3
    base_delay: float = 0.5


class CachedHttpClient:
    """requests.Session wrapper with retry on transient failures and a TTL LRU cache."""

    error_cls: type[SearchProviderError] = SearchProviderError

    def __init__(self, timeout: int, *, cache_ttl: int = 60 * 30, cache_max: int = 128) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        self.retry = _RetryPolicy()
        self._cache_ttl = cache_ttl
        self._cache_max = cache_max
        self._cache: OrderedDict[str, Tuple[float, Any]] = OrderedDict()

    def _cache_get(self, key: str):
        entry = self._cache.get(key)
        if not entry:
            return None
        ts, value = entry
        if time.time() - ts > self._cache_ttl:
            self._cache.pop(key, None)
            return None
        self._cache.move_to_end(key)
        return value

    def _cache_set(self, key: str, value) -> None:
        if len(self._cache) >= self._cache_max:
            self._cache.popitem(last=False)
        self._cache[key] = (time.time(), value)

    def _request(self, method: str, url: str, **kwargs) -> dict:
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as exc:  # network error
                if attempt <= self.retry.retries:
                    time.sleep(self.retry.base_delay * attempt)
                    continue
                raise self.error_cls(f"request error: {exc}")

            if resp.status_code in (429, 500, 502, 503, 504):
                if attempt <= self.retry.retries:
                    time.sleep(self.retry.base_delay * attempt)
                    continue
                raise self.error_cls(f"upstream {resp.status_code}: {resp.text[:300]}")

            if not resp.ok:
                raise self.error_cls(f"upstream {resp.status_code}: {resp.text[:300]}")

            try:
                return resp.json()
            except ValueError:
                raise self.error_cls("invalid json response")
