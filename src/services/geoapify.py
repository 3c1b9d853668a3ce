from __future__ import annotations

from typing import List, Optional

from loguru import logger

from config import Configuration
from models import Coordinate, GeoapifyFeature
from services.provider import CachedHttpClient, SearchProviderError


class GeoapifyError(SearchProviderError):
    pass


def geoapify_categories(cuisine: Optional[str]) -> str:
    if not cuisine:
        return "catering.restaurant"
    key = cuisine.strip().lower().replace(" ", "_").replace("-", "_")
    if key == "bbq":
        key = "barbecue"
    return f"catering.restaurant.{key}"


class GeoapifyClient(CachedHttpClient):
    name = "geoapify"
    error_cls = GeoapifyError

    def __init__(self, cfg: Configuration) -> None:
        cfg.require_geoapify()
        super().__init__(cfg.search_timeout)
        self.cfg = cfg
        self.base = cfg.geoapify_base_url.rstrip("/")

    def search(self, cuisine: Optional[str], origin: Coordinate, radius_m: int) -> List[GeoapifyFeature]:
        categories = geoapify_categories(cuisine)
        limit = self.cfg.search_max_results
        key = f"circle:{categories}:{origin.lon:.4f},{origin.lat:.4f}:{int(radius_m)}:{limit}"
        cached = self._cache_get(key)
        if cached is not None:
            return list(cached)
        params = {
            "categories": categories,
            "filter": f"circle:{origin.lon},{origin.lat},{int(radius_m)}",
            "bias": f"proximity:{origin.lon},{origin.lat}",
            "limit": limit,
            "apiKey": self.cfg.geoapify_api_key,
        }
        payload = self._request(
            "GET",
            f"{self.base}/v2/places",
            params=params,
            headers={"Accept": "application/json"},
        )
        features = (payload.get("features") if isinstance(payload, dict) else None) or []
        results = [GeoapifyFeature.from_json(f) for f in features if isinstance(f, dict)]
        logger.debug("geoapify categories={} radius_m={} results={}", categories, radius_m, len(results))
        self._cache_set(key, list(results))
        return results
