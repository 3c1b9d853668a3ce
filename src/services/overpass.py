from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger

from config import Configuration
from models import Coordinate, OsmElement
from services.provider import CachedHttpClient, SearchProviderError

# Food types offered on the preference form mapped to OSM cuisine=* values.
OSM_CUISINE_MAP: Dict[str, str] = {
    "pizza": "pizza",
    "chinese": "chinese",
    "mexican": "mexican",
    "italian": "italian",
    "american": "american",
    "asian": "asian",
    "sandwich": "sandwich",
    "indian": "indian",
    "thai": "thai",
    "mediterranean": "greek",
    "japanese": "japanese",
    "bbq": "barbecue",
}


class OverpassError(SearchProviderError):
    pass


def osm_cuisine(food_type: Optional[str]) -> Optional[str]:
    if not food_type:
        return None
    key = food_type.strip().lower()
    return OSM_CUISINE_MAP.get(key, key)


def build_query(cuisine: Optional[str], origin: Coordinate, radius_m: int) -> str:
    selector = '["amenity"="restaurant"]'
    if cuisine:
        selector += f'["cuisine"="{cuisine}"]'
    around = f"(around:{int(radius_m)},{origin.lat},{origin.lon})"
    return (
        "[out:json];\n"
        "(\n"
        f"  node{selector}{around};\n"
        f"  way{selector}{around};\n"
        ");\n"
        "out center;"
    )


class OverpassClient(CachedHttpClient):
    """OpenStreetMap Overpass interpreter; free and keyless."""

    name = "overpass"
    error_cls = OverpassError

    def __init__(self, cfg: Configuration) -> None:
        super().__init__(cfg.search_timeout)
        self.cfg = cfg
        self.url = cfg.overpass_url

    def search(self, cuisine: Optional[str], origin: Coordinate, radius_m: int) -> List[OsmElement]:
        tag = osm_cuisine(cuisine)
        key = f"{tag or '*'}:{origin.lat:.4f},{origin.lon:.4f}:{int(radius_m)}"
        cached = self._cache_get(key)
        if cached is not None:
            return list(cached)
        query = build_query(tag, origin, radius_m)
        payload = self._request(
            "POST",
            self.url,
            data=query.encode("utf-8"),
            headers={"Content-Type": "text/plain", "Accept": "application/json"},
        )
        elements = payload.get("elements") if isinstance(payload, dict) else None
        if not isinstance(elements, list):
            raise OverpassError("response missing 'elements'")
        results = [OsmElement.from_json(e) for e in elements if isinstance(e, dict)]
        logger.debug("overpass cuisine={} radius_m={} results={}", tag or "*", radius_m, len(results))
        self._cache_set(key, list(results))
        return results
