import asyncio
import json
from unittest.mock import MagicMock

import pytest

from config import Configuration
from models import Coordinate, DishMention, OsmElement, Preference, RestaurantProfile
from services.aggregator import NoPreferencesError
from services.candidate_search import search_with_fallback
from services.llm import GenerationError
from services.overpass import OverpassClient
from services.pipeline import RankingPipeline
from services.profile_cache import RestaurantProfileCache
from services.provider import SearchProviderError
from services.reasoner import INSUFFICIENT_DATA_MESSAGE, ExplanationGenerator

ORIGIN = Coordinate(lat=45.1589, lon=-93.3954)


class FakeProvider:
    name = "fake"

    def __init__(self, by_cuisine=None, error=None):
        self.by_cuisine = by_cuisine or {}
        self.error = error
        self.calls = []

    def search(self, cuisine, origin, radius_m):
        self.calls.append(cuisine)
        if self.error is not None:
            raise self.error
        return list(self.by_cuisine.get(cuisine, []))


class CountingGenerator:
    name = "counting"

    def __init__(self):
        self.calls = 0

    def generate(self, prompt, *, temperature, max_tokens):
        self.calls += 1
        raise RuntimeError("should not be reached without profiles")


def _pref(name, food="pizza", hunger="very-hungry", flavor="savory", mood="comfort"):
    return Preference(id=name, name=name, food_type=food, hunger_level=hunger, flavor_preference=flavor, mood=mood)


def _el(name, lat, lon, **tags):
    return OsmElement(tags={"name": name, **tags}, lat=lat, lon=lon)


def _pipeline(provider, cfg=None, generator=None, cache=None):
    cfg = cfg or Configuration()
    explainer = ExplanationGenerator(cfg, cache or RestaurantProfileCache(), generator)
    return RankingPipeline(cfg, provider, explainer)


def test_empty_preferences_rejected_before_search():
    provider = FakeProvider()
    with pytest.raises(NoPreferencesError):
        asyncio.run(_pipeline(provider).rank([], ORIGIN, 5000))
    assert provider.calls == []


def test_ranks_by_score_then_distance():
    provider = FakeProvider(
        {
            "pizza": [
                _el("Far Pizza", 45.25, -93.39, cuisine="pizza"),
                _el("Near Pizza", 45.16, -93.39, cuisine="pizza"),
                _el("Sushi Spot", 45.159, -93.395, cuisine="japanese"),
                OsmElement(tags={"cuisine": "pizza"}, lat=45.2, lon=-93.4),
            ]
        }
    )
    prefs = [_pref("ann"), _pref("bob")]
    ranked = asyncio.run(_pipeline(provider).rank(prefs, ORIGIN, 5000))
    assert provider.calls == ["pizza"]
    assert [r.restaurant.name for r in ranked] == ["Near Pizza", "Far Pizza", "Sushi Spot"]
    assert ranked[0].match_score > ranked[2].match_score
    assert all(r.explanation.team_consensus == INSUFFICIENT_DATA_MESSAGE for r in ranked)


def test_empty_search_broadens_once():
    provider = FakeProvider({None: [_el("Any Diner", 45.16, -93.39, cuisine="american")]})
    ranked = asyncio.run(_pipeline(provider).rank([_pref("ann", food="thai")], ORIGIN, 5000))
    assert provider.calls == ["thai", None]
    assert [r.restaurant.name for r in ranked] == ["Any Diner"]


def test_broadened_search_can_also_be_empty():
    provider = FakeProvider()
    ranked = asyncio.run(_pipeline(provider).rank([_pref("ann")], ORIGIN, 5000))
    assert ranked == []
    assert provider.calls == ["pizza", None]


def test_cuisine_falls_back_to_food_type():
    provider = FakeProvider({"pizza": [_el("Mystery", 45.16, -93.39)]})
    ranked = asyncio.run(_pipeline(provider).rank([_pref("ann")], ORIGIN, 5000))
    assert ranked[0].restaurant.cuisine == "pizza"


def test_provider_error_is_fatal_and_not_retried():
    provider = FakeProvider(error=SearchProviderError("upstream 503"))
    with pytest.raises(SearchProviderError):
        asyncio.run(_pipeline(provider).rank([_pref("ann")], ORIGIN, 5000))
    assert provider.calls == ["pizza"]


def test_results_truncated_to_ten():
    elements = [_el(f"Pizza {i}", 45.16 + i * 0.001, -93.39, cuisine="pizza") for i in range(14)]
    provider = FakeProvider({"pizza": elements})
    ranked = asyncio.run(_pipeline(provider).rank([_pref("ann")], ORIGIN, 5000))
    assert len(ranked) == 10


def test_explain_false_skips_explanations():
    generator = CountingGenerator()
    provider = FakeProvider({"pizza": [_el("Near Pizza", 45.16, -93.39, cuisine="pizza")]})
    ranked = asyncio.run(_pipeline(provider, generator=generator).rank([_pref("ann")], ORIGIN, 5000, explain=False))
    assert ranked[0].explanation is None
    assert generator.calls == 0


def test_search_with_fallback_without_cuisine_searches_once():
    provider = FakeProvider()
    assert search_with_fallback(provider, None, ORIGIN, 1000) == []
    assert provider.calls == [None]


class PerRestaurantGenerator:
    name = "per-restaurant"

    def __init__(self, responses):
        self.responses = responses

    def generate(self, prompt, *, temperature, max_tokens):
        for name, outcome in self.responses.items():
            if f"Restaurant: {name}\n" in prompt:
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise AssertionError("unexpected prompt")


def test_each_explanation_fails_on_its_own():
    cache = RestaurantProfileCache()
    for name in ("Near Pizza", "Mid Pizza"):
        cache.put(RestaurantProfile(name=name, cuisine="pizza", popular_dishes=[DishMention(name="Pepperoni")]))
    parsed = {"teamConsensus": "Everyone likes pepperoni", "perPersonMatches": [{"name": "ann", "match": "Pepperoni"}]}
    generator = PerRestaurantGenerator(
        {"Near Pizza": GenerationError("quota exceeded"), "Mid Pizza": json.dumps(parsed)}
    )
    provider = FakeProvider(
        {
            "pizza": [
                _el("Far Pizza", 45.25, -93.39, cuisine="pizza"),
                _el("Mid Pizza", 45.20, -93.39, cuisine="pizza"),
                _el("Near Pizza", 45.16, -93.39, cuisine="pizza"),
            ]
        }
    )
    ranked = asyncio.run(_pipeline(provider, generator=generator, cache=cache).rank([_pref("ann")], ORIGIN, 5000))
    assert [r.restaurant.name for r in ranked] == ["Near Pizza", "Mid Pizza", "Far Pizza"]
    near, mid, far = (r.explanation for r in ranked)
    assert near.team_consensus == "Error generating personalized recommendations."
    assert mid.team_consensus == "Everyone likes pepperoni"
    assert [m.match for m in mid.per_person_matches] == ["Pepperoni"]
    assert far.team_consensus == INSUFFICIENT_DATA_MESSAGE


def test_large_overpass_response_is_ranked_in_full():
    far = [
        {"type": "node", "id": i, "lat": 45.30, "lon": -93.39, "tags": {"name": f"Far Sushi {i}", "cuisine": "japanese"}}
        for i in range(50)
    ]
    near = [
        {
            "type": "node",
            "id": 100 + i,
            "lat": 45.16 + i * 0.001,
            "lon": -93.39,
            "tags": {"name": f"Near Pizza {i}", "cuisine": "pizza", "stars": "4.8"},
        }
        for i in range(10)
    ]
    resp = MagicMock(status_code=200, ok=True, text="")
    resp.json.return_value = {"elements": far + near}
    client = OverpassClient(Configuration())
    client.session.request = MagicMock(return_value=resp)

    ranked = asyncio.run(_pipeline(client).rank([_pref("ann")], ORIGIN, 5000, explain=False))
    assert len(client.search("pizza", ORIGIN, 5000)) == 60
    assert [r.restaurant.name for r in ranked] == [f"Near Pizza {i}" for i in range(10)]
    assert all(r.match_score == 100 for r in ranked)
