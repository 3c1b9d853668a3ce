from __future__ import annotations

from typing import List, Optional

from loguru import logger

from config import Configuration
from models import Coordinate, RawPlace
from services.geoapify import GeoapifyClient
from services.overpass import OverpassClient
from services.provider import RestaurantSearchProvider


def build_search_provider(cfg: Configuration) -> RestaurantSearchProvider:
    provider = (cfg.search_provider or "overpass").lower()
    if provider == "geoapify":
        return GeoapifyClient(cfg)
    if provider != "overpass":
        raise ValueError(f"unknown SEARCH_PROVIDER: {cfg.search_provider}")
    return OverpassClient(cfg)


def search_with_fallback(
    provider: RestaurantSearchProvider,
    cuisine: Optional[str],
    origin: Coordinate,
    radius_m: int,
) -> List[RawPlace]:
    """Search for the cuisine; if nothing comes back, search once more without the filter.

    Only an empty result broadens the search. Provider errors propagate.
    """
    results = provider.search(cuisine, origin, radius_m)
    if results or not cuisine:
        return list(results)
    logger.info("no {} restaurants within {}m, broadening search", cuisine, radius_m)
    return list(provider.search(None, origin, radius_m))
