from __future__ import annotations

import time
import uuid
from typing import Dict, List, Optional

from models import LunchOrder, Preference


class PreferenceStore:
    """In-memory list of today's lunch preferences."""

    def __init__(self) -> None:
        self._items: Dict[str, Preference] = {}

    def create(
        self,
        name: str,
        food_type: str,
        hunger_level: str,
        flavor_preference: str,
        mood: str,
        specific_craving: Optional[str] = None,
    ) -> Preference:
        pref = Preference(
            id=uuid.uuid4().hex,
            name=name,
            food_type=food_type,
            hunger_level=hunger_level,
            flavor_preference=flavor_preference,
            mood=mood,
            specific_craving=specific_craving or None,
            timestamp=time.time(),
        )
        self._items[pref.id] = pref
        return pref

    def list(self) -> List[Preference]:
        """Newest submission first."""
        # reverse=True keeps input order for equal timestamps, so feed newest-inserted first
        return sorted(reversed(list(self._items.values())), key=lambda p: p.timestamp, reverse=True)

    def get(self, pref_id: str) -> Optional[Preference]:
        return self._items.get(pref_id)

    def delete(self, pref_id: str) -> bool:
        return self._items.pop(pref_id, None) is not None

    def clear(self) -> int:
        count = len(self._items)
        self._items.clear()
        return count

    def __len__(self) -> int:
        return len(self._items)


class OrderStore:
    """Restaurants the team settled on, with the preferences they were picked for."""

    def __init__(self) -> None:
        self._orders: List[LunchOrder] = []

    def record(self, restaurant_name: str, restaurant_address: str, preferences: List[Preference]) -> LunchOrder:
        order = LunchOrder(
            id=uuid.uuid4().hex,
            restaurant_name=restaurant_name,
            restaurant_address=restaurant_address,
            timestamp=time.time(),
            preferences=list(preferences),
        )
        self._orders.append(order)
        return order

    def latest(self) -> Optional[LunchOrder]:
        return self._orders[-1] if self._orders else None
