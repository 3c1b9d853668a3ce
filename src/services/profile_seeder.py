"""Populate the restaurant profile cache out of band.

For each cuisine the search provider is asked for nearby restaurants, and for
each restaurant the text generator is asked for a menu/review profile. Calls
to the generator are spaced by a fixed delay to stay under rate limits.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from loguru import logger

from config import Configuration
from models import Coordinate, Restaurant, RestaurantProfile
from services.llm import GenerationError, TextGenerator
from services.normalizer import normalize_places
from services.profile_cache import RestaurantProfileCache
from services.provider import RestaurantSearchProvider, SearchProviderError
from utils import extract_json_object

CUISINE_TYPES = [
    "pizza",
    "chinese",
    "mexican",
    "italian",
    "american",
    "sandwich",
    "indian",
    "thai",
    "mediterranean",
    "japanese",
    "bbq",
]


@dataclass
class SeedStats:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0


def build_profile_prompt(name: str, cuisine: str) -> str:
    return (
        f"You are a restaurant data analyst. Provide realistic, typical menu information for a {cuisine} "
        f'restaurant named "{name}".\n\n'
        "Provide:\n"
        "1. Popular dishes (5-7 items): name, estimated customer mentions, portion size "
        "(small/medium/large/shareable), tags (e.g. spicy, vegetarian, gluten-free-option)\n"
        "2. Customer insights (3-5 quotes): the dish, the quote, and its sentiment\n"
        "3. Portion reputation (generous/standard/light), price range ($/$$/$$$), dietary options, "
        "estimated average rating between 3.5 and 5.0\n\n"
        "Format your response as JSON:\n"
        "{\n"
        '  "popular_dishes": [{"name": "string", "mentions": 0, "portion": "string", "tags": ["string"]}],\n'
        '  "customer_quotes": [{"dish": "string", "quote": "string", "sentiment": "positive/neutral/negative"}],\n'
        '  "portion_reputation": "generous/standard/light",\n'
        '  "price_range": "$/$$/$$$",\n'
        '  "dietary_options": ["string"],\n'
        '  "avg_rating": 4.0\n'
        "}\n\n"
        f"Be specific to {cuisine} cuisine. Use dish names that would appear on a real menu."
    )


def parse_profile(name: str, cuisine: str, text: str) -> RestaurantProfile:
    block = extract_json_object(text)
    if block is None:
        raise ValueError("no JSON object in generator response")
    data = json.loads(block)
    if not isinstance(data, dict):
        raise ValueError("generator response is not a JSON object")
    return RestaurantProfile.from_dict({**data, "name": name, "cuisine": cuisine})


class ProfileSeeder:
    def __init__(
        self,
        cfg: Configuration,
        provider: RestaurantSearchProvider,
        generator: TextGenerator,
        cache: RestaurantProfileCache,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = cfg
        self.provider = provider
        self.generator = generator
        self.cache = cache
        self.sleep = sleep

    def restaurants_for(self, cuisine: str, origin: Coordinate, radius_m: int) -> List[Restaurant]:
        try:
            raws = self.provider.search(cuisine, origin, radius_m)
        except SearchProviderError as exc:
            logger.error("search for {} restaurants failed: {}", cuisine, exc)
            return []
        return normalize_places(raws, origin, cuisine)[: self.cfg.seed_per_cuisine]

    def seed_one(self, restaurant: Restaurant, cuisine: str) -> bool:
        try:
            raw = self.generator.generate(
                build_profile_prompt(restaurant.name, cuisine),
                temperature=self.cfg.llm_temperature,
                max_tokens=1500,
            )
            profile = parse_profile(restaurant.name, cuisine, raw)
        except (GenerationError, ValueError) as exc:
            logger.warning("could not profile {}: {}", restaurant.name, exc)
            return False
        self.cache.put(
            profile,
            location={"lat": restaurant.lat, "lng": restaurant.lon},
            last_updated=time.time(),
            source="ai_generated",
        )
        logger.info("saved profile for {} ({} dishes)", restaurant.name, len(profile.popular_dishes))
        return True

    def run(
        self,
        origin: Coordinate,
        radius_m: int,
        cuisines: Optional[Sequence[str]] = None,
    ) -> SeedStats:
        stats = SeedStats()
        for cuisine in cuisines or CUISINE_TYPES:
            restaurants = self.restaurants_for(cuisine, origin, radius_m)
            if not restaurants:
                logger.warning("no {} restaurants found, skipping", cuisine)
                continue
            logger.info("processing {} {} restaurants", len(restaurants), cuisine)
            for restaurant in restaurants:
                stats.processed += 1
                if self.seed_one(restaurant, cuisine):
                    stats.succeeded += 1
                else:
                    stats.failed += 1
                self.sleep(self.cfg.seed_delay_sec)
        logger.info("seeding done processed={} ok={} failed={}", stats.processed, stats.succeeded, stats.failed)
        return stats
