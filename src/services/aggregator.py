from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from models import Preference, PreferenceSummary


class NoPreferencesError(ValueError):
    """Raised when a ranking is requested before anyone submitted a preference."""

    def __init__(self, message: str = "Add some preferences first!") -> None:
        super().__init__(message)


def vote_counts(values: Iterable[Optional[str]]) -> Dict[str, int]:
    """Frequency map whose key order is first appearance."""
    counts: Dict[str, int] = {}
    for value in values:
        if value is None:
            continue
        counts[value] = counts.get(value, 0) + 1
    return counts


def dominant_value(values: Iterable[Optional[str]]) -> Optional[str]:
    """Most frequent value; on a tie the one seen first wins."""
    best: Optional[str] = None
    best_count = 0
    for value, count in vote_counts(values).items():
        if count > best_count:
            best, best_count = value, count
    return best


def aggregate_preferences(preferences: Sequence[Preference]) -> PreferenceSummary:
    if not preferences:
        raise NoPreferencesError()
    prefs: List[Preference] = list(preferences)
    votes = vote_counts(p.food_type for p in prefs)
    return PreferenceSummary(
        dominant_cuisine=dominant_value(p.food_type for p in prefs) or "",
        dominant_hunger=dominant_value(p.hunger_level for p in prefs) or "",
        dominant_flavor=dominant_value(p.flavor_preference for p in prefs) or "",
        dominant_mood=dominant_value(p.mood for p in prefs) or "",
        votes=votes,
        team_size=len(prefs),
    )
