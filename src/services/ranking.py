from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from models import PreferenceSummary, RankedRestaurant, Restaurant

HUNGER_WEIGHT = 3
FLAVOR_WEIGHT = 5
MOOD_WEIGHT = 4
RATING_BONUS = 2
RATING_BONUS_THRESHOLD = 4.2

HUNGER_PATTERNS: Dict[str, FrozenSet[str]] = {
    "very-hungry": frozenset({"american", "bbq", "pizza", "italian"}),
    "light": frozenset({"japanese", "mediterranean", "sandwich", "asian"}),
}

FLAVOR_PATTERNS: Dict[str, FrozenSet[str]] = {
    "spicy": frozenset({"thai", "indian", "mexican", "chinese"}),
    "fresh": frozenset({"mediterranean", "japanese", "sandwich"}),
    "savory": frozenset({"bbq", "american", "italian"}),
    "sweet-savory": frozenset({"chinese", "asian", "thai"}),
}

MOOD_PATTERNS: Dict[str, FrozenSet[str]] = {
    "comfort": frozenset({"pizza", "italian", "american"}),
    "healthy": frozenset({"mediterranean", "japanese", "sandwich"}),
    "indulgent": frozenset({"bbq", "american", "italian"}),
    "adventurous": frozenset({"thai", "indian", "japanese", "asian"}),
}


def _bonus(patterns: Dict[str, FrozenSet[str]], signal: Optional[str], cuisine: str, weight: int) -> int:
    bucket = patterns.get(signal or "")
    if bucket and cuisine in bucket:
        return weight
    return 0


def score_breakdown(restaurant: Restaurant, summary: PreferenceSummary) -> Tuple[int, int]:
    """(score, max possible) before normalization.

    Hunger, flavor and mood weights always count toward the maximum. The
    rating bonus only counts when it is earned.
    """
    cuisine = (restaurant.cuisine or "").strip().lower()
    score = 0
    total = 0

    score += _bonus(HUNGER_PATTERNS, summary.dominant_hunger, cuisine, HUNGER_WEIGHT)
    total += HUNGER_WEIGHT

    score += _bonus(FLAVOR_PATTERNS, summary.dominant_flavor, cuisine, FLAVOR_WEIGHT)
    total += FLAVOR_WEIGHT

    score += _bonus(MOOD_PATTERNS, summary.dominant_mood, cuisine, MOOD_WEIGHT)
    total += MOOD_WEIGHT

    if restaurant.rating >= RATING_BONUS_THRESHOLD:
        score += RATING_BONUS
        total += RATING_BONUS

    return score, total


def score_restaurant(restaurant: Restaurant, summary: PreferenceSummary) -> float:
    """Team compatibility in [0, 100]."""
    score, total = score_breakdown(restaurant, summary)
    if total <= 0:
        return 50.0
    return score / total * 100


def _sort_key(item: RankedRestaurant) -> Tuple[int, float, float]:
    # scored (including 0) before unscored; score desc; distance asc
    if item.match_score is None:
        return (1, 0.0, item.restaurant.distance_miles)
    return (0, -item.match_score, item.restaurant.distance_miles)


def sort_ranked(items: Sequence[RankedRestaurant]) -> List[RankedRestaurant]:
    return sorted(items, key=_sort_key)


def rank_restaurants(
    restaurants: Sequence[Restaurant],
    summary: Optional[PreferenceSummary],
    *,
    max_results: int = 10,
) -> List[RankedRestaurant]:
    """Score, order and truncate. Without a summary every entry stays unscored."""
    max_results = max(1, max_results)
    ranked = [
        RankedRestaurant(
            restaurant=r,
            match_score=score_restaurant(r, summary) if summary is not None else None,
        )
        for r in restaurants
    ]
    return sort_ranked(ranked)[:max_results]
