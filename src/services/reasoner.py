from __future__ import annotations

import asyncio
import json
import time
from typing import Any, List, Optional, Sequence

from loguru import logger

from config import Configuration
from models import Explanation, PersonMatch, Preference, Restaurant, RestaurantProfile
from services.llm import TextGenerator
from services.profile_cache import RestaurantProfileCache
from utils import extract_json_object, strip_thinking_tokens

INSUFFICIENT_DATA_MESSAGE = "Not enough data available for personalized recommendations."
GENERATION_ERROR_MESSAGE = "Error generating personalized recommendations."
TIMEOUT_MESSAGE = "Personalized recommendations took too long; showing the restaurant without them."


def insufficient_data_explanation() -> Explanation:
    return Explanation(team_consensus=INSUFFICIENT_DATA_MESSAGE)


def error_explanation(message: str = GENERATION_ERROR_MESSAGE) -> Explanation:
    return Explanation(team_consensus=message)


def _menu_lines(profile: RestaurantProfile) -> List[str]:
    lines = []
    for dish in profile.popular_dishes:
        tags = ", ".join(dish.tags)
        extra = f", {tags}" if tags else ""
        lines.append(f"- {dish.name} ({dish.portion} portion{extra}, mentioned by {dish.mentions} customers)")
    return lines


def _member_lines(preferences: Sequence[Preference]) -> List[str]:
    lines = []
    for idx, pref in enumerate(preferences, start=1):
        lines.append(f"{idx}. {pref.name}")
        lines.append(f"   - Preferred Cuisine: {pref.food_type}")
        lines.append(f"   - Hunger Level: {pref.hunger_level}")
        lines.append(f"   - Flavor Preference: {pref.flavor_preference}")
        lines.append(f"   - Mood/Occasion: {pref.mood}")
        if pref.specific_craving:
            lines.append(f"   - Craving: {pref.specific_craving}")
    return lines


def build_prompt(restaurant: Restaurant, profile: RestaurantProfile, preferences: Sequence[Preference]) -> str:
    quotes = [f'- "{q.quote}" (about {q.dish})' for q in profile.customer_quotes]
    parts = [
        "You are a restaurant recommendation analyst helping a team decide where to eat lunch.",
        "",
        f"Restaurant: {restaurant.name}",
        f"Cuisine: {restaurant.cuisine}",
        f"Address: {restaurant.address}",
        f"Distance: {restaurant.distance}",
        f"Average Rating: {profile.avg_rating}",
        f"Price Range: {profile.price_range}",
        f"Portion Reputation: {profile.portion_reputation}",
        f"Dietary Options: {', '.join(profile.dietary_options) or 'none listed'}",
        "",
        "ACTUAL MENU ITEMS (from customer reviews):",
        *(_menu_lines(profile) or ["- (none recorded)"]),
        "",
        "REAL CUSTOMER FEEDBACK:",
        *(quotes or ["- (none recorded)"]),
        "",
        "Team Members and Their Preferences:",
        *_member_lines(preferences),
        "",
        "Based on the ACTUAL MENU ITEMS above, provide:",
        "1. Team consensus: 2-3 sentences explaining why this restaurant works for the team",
        "2. Per-person matches: for EACH team member, recommend SPECIFIC dishes from the menu that match their preferences",
        "3. Conflicts: identify anyone whose preferences aren't well met and suggest alternatives",
        "4. Dietary insights: suggest specific dishes for different hunger levels/flavors",
        "",
        "IMPORTANT: Only recommend dishes that are listed in the menu above. Be specific with dish names.",
        "",
        "Format as JSON:",
        "{",
        '  "teamConsensus": "string",',
        '  "perPersonMatches": [{"name": "string", "match": "string (mention specific dishes)"}],',
        '  "conflicts": ["string"],',
        '  "dietaryInsights": "string (mention specific dishes)"',
        "}",
    ]
    return "\n".join(parts)


def synthesized_explanation(
    restaurant: Restaurant, profile: RestaurantProfile, preferences: Sequence[Preference]
) -> Explanation:
    """Deterministic explanation using only dish names present in the profile."""
    dishes = [d.name for d in profile.popular_dishes]
    if dishes:
        consensus = (
            f"{restaurant.name} offers {restaurant.cuisine} cuisine with popular items including "
            f"{' and '.join(dishes[:2])}."
        )
        insights = f"Popular dishes include: {', '.join(dishes[:3])}"
    else:
        consensus = f"{restaurant.name} offers {restaurant.cuisine} cuisine."
        insights = ""
    return Explanation(
        team_consensus=consensus,
        per_person_matches=[
            PersonMatch(name=p.name, match="See the popular dishes for recommendations") for p in preferences
        ],
        conflicts=[],
        dietary_insights=insights,
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return " ".join(_text(v) for v in value if _text(v))
    return str(value).strip()


def coerce_explanation(data: Any) -> Optional[Explanation]:
    """Map a decoded JSON object onto the Explanation shape, or None if it is not usable."""
    if not isinstance(data, dict):
        return None
    consensus = _text(data.get("teamConsensus") or data.get("team_consensus"))
    if not consensus:
        return None
    matches: List[PersonMatch] = []
    for item in data.get("perPersonMatches") or data.get("per_person_matches") or []:
        if isinstance(item, dict) and item.get("name"):
            matches.append(PersonMatch(name=_text(item["name"]), match=_text(item.get("match"))))
    raw_conflicts = data.get("conflicts") or []
    if isinstance(raw_conflicts, str):
        raw_conflicts = [raw_conflicts]
    conflicts = [_text(c) for c in raw_conflicts if _text(c)] if isinstance(raw_conflicts, list) else []
    return Explanation(
        team_consensus=consensus,
        per_person_matches=matches,
        conflicts=conflicts,
        dietary_insights=_text(data.get("dietaryInsights") or data.get("dietary_insights")),
    )


def parse_explanation(text: str) -> Optional[Explanation]:
    block = extract_json_object(strip_thinking_tokens(text or ""))
    if block is None:
        return None
    try:
        data = json.loads(block)
    except json.JSONDecodeError:
        return None
    return coerce_explanation(data)


class ExplanationGenerator:
    def __init__(
        self,
        cfg: Configuration,
        cache: RestaurantProfileCache,
        generator: Optional[TextGenerator] = None,
    ) -> None:
        self.cfg = cfg
        self.cache = cache
        self.generator = generator

    def explain(self, restaurant: Restaurant, preferences: Sequence[Preference]) -> Explanation:
        """Never raises: cache miss, provider failure and bad output each map to a fallback."""
        try:
            profile = self.cache.get(restaurant.name)
        except Exception as exc:
            logger.warning("profile lookup failed for {}: {}", restaurant.name, exc)
            profile = None
        if profile is None:
            return insufficient_data_explanation()

        if self.generator is None:
            logger.warning("no text generator configured; cannot explain {}", restaurant.name)
            return error_explanation()

        prompt = build_prompt(restaurant, profile, preferences)
        start = time.time()
        try:
            raw = self.generator.generate(
                prompt,
                temperature=self.cfg.llm_temperature,
                max_tokens=self.cfg.llm_max_tokens,
            )
        except Exception as exc:
            logger.warning("explanation generation failed for {}: {}", restaurant.name, exc)
            return error_explanation()
        logger.debug("explanation for {} generated in {:.2f}s", restaurant.name, time.time() - start)

        parsed = parse_explanation(raw)
        if parsed is None:
            logger.warning("unstructured explanation for {}; using menu fallback", restaurant.name)
            return synthesized_explanation(restaurant, profile, preferences)
        return parsed

    async def explain_async(self, restaurant: Restaurant, preferences: Sequence[Preference]) -> Explanation:
        timeout = self.cfg.explanation_timeout_sec
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.explain, restaurant, preferences),
                timeout=timeout if timeout and timeout > 0 else None,
            )
        except asyncio.TimeoutError:
            logger.warning("explanation for {} timed out after {}s", restaurant.name, timeout)
            return error_explanation(TIMEOUT_MESSAGE)
        except Exception as exc:
            logger.warning("explanation task for {} failed: {}", restaurant.name, exc)
            return error_explanation()
