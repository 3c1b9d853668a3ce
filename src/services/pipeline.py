from __future__ import annotations

import asyncio
import time
from typing import List, Optional, Sequence

from loguru import logger

from config import Configuration
from models import Coordinate, Preference, RankedRestaurant
from services.aggregator import aggregate_preferences
from services.candidate_search import search_with_fallback
from services.normalizer import normalize_places
from services.provider import RestaurantSearchProvider
from services.ranking import rank_restaurants
from services.reasoner import ExplanationGenerator


class RankingPipeline:
    """Turns a preference snapshot into an ordered, explained restaurant list.

    Steps: aggregate, search (broadened once when empty), normalize, score,
    sort, truncate, then explain every survivor concurrently. Only a search
    provider failure aborts the request.
    """

    def __init__(
        self,
        cfg: Configuration,
        provider: RestaurantSearchProvider,
        explainer: Optional[ExplanationGenerator] = None,
    ) -> None:
        self.cfg = cfg
        self.provider = provider
        self.explainer = explainer

    async def rank(
        self,
        preferences: Sequence[Preference],
        origin: Coordinate,
        radius_m: int,
        *,
        explain: bool = True,
    ) -> List[RankedRestaurant]:
        snapshot = list(preferences)
        summary = aggregate_preferences(snapshot)
        food_type = summary.dominant_cuisine

        start = time.time()
        raws = await asyncio.to_thread(search_with_fallback, self.provider, food_type, origin, radius_m)
        restaurants = normalize_places(raws, origin, food_type)
        ranked = rank_restaurants(restaurants, summary, max_results=self.cfg.max_results)
        logger.info(
            "ranking cuisine={} raw={} valid={} kept={} search_s={:.2f}",
            food_type,
            len(raws),
            len(restaurants),
            len(ranked),
            time.time() - start,
        )

        if explain and self.explainer is not None and ranked:
            explanations = await asyncio.gather(
                *(self.explainer.explain_async(item.restaurant, snapshot) for item in ranked)
            )
            for item, explanation in zip(ranked, explanations):
                item.explanation = explanation

        return ranked
