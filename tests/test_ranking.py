import math

from models import PreferenceSummary, RankedRestaurant, Restaurant
from services.ranking import rank_restaurants, score_breakdown, score_restaurant, sort_ranked


def _restaurant(name="R", cuisine="thai", rating=4.0, distance=1.0):
    return Restaurant(
        name=name,
        address="addr",
        lat=0.0,
        lon=0.0,
        distance_miles=distance,
        distance=f"{distance:.1f} miles",
        cuisine=cuisine,
        rating=rating,
    )


def _summary(hunger, flavor, mood, cuisine="thai"):
    return PreferenceSummary(
        dominant_cuisine=cuisine,
        dominant_hunger=hunger,
        dominant_flavor=flavor,
        dominant_mood=mood,
    )


def test_full_match_without_rating_bonus_is_100():
    r = _restaurant(cuisine="american", rating=4.0)
    s = _summary("very-hungry", "savory", "comfort")
    assert score_breakdown(r, s) == (12, 12)
    assert score_restaurant(r, s) == 100


def test_partial_match_with_rating_bonus():
    # thai: no very-hungry bonus, spicy +5, adventurous +4, rating +2 -> 11/14
    r = _restaurant(cuisine="thai", rating=4.5)
    s = _summary("very-hungry", "spicy", "adventurous")
    assert score_breakdown(r, s) == (11, 14)
    assert math.isclose(score_restaurant(r, s), 100 * 11 / 14, rel_tol=1e-9)


def test_chinese_is_not_an_adventurous_cuisine():
    r = _restaurant(cuisine="chinese", rating=4.5)
    s = _summary("very-hungry", "spicy", "adventurous")
    assert score_breakdown(r, s) == (7, 14)
    assert score_restaurant(r, s) == 50


def test_rating_bonus_only_counts_when_earned():
    s = _summary("light", "fresh", "healthy")
    assert score_breakdown(_restaurant(cuisine="pizza", rating=4.19), s) == (0, 12)
    assert score_breakdown(_restaurant(cuisine="pizza", rating=4.2), s) == (2, 14)


def test_unknown_signals_still_count_weight():
    s = _summary("moderate", "umami", "bored")
    assert score_breakdown(_restaurant(cuisine="thai", rating=3.0), s) == (0, 12)
    assert score_restaurant(_restaurant(cuisine="thai", rating=3.0), s) == 0


def test_cuisine_matching_is_case_insensitive():
    s = _summary("light", "fresh", "healthy")
    assert score_restaurant(_restaurant(cuisine="Japanese", rating=4.0), s) == 100


def test_score_is_deterministic():
    r = _restaurant(cuisine="indian", rating=4.3)
    s = _summary("light", "spicy", "adventurous")
    assert score_restaurant(r, s) == score_restaurant(r, s)


def test_sort_scored_before_unscored():
    items = [
        RankedRestaurant(_restaurant("a", distance=5), 90.0),
        RankedRestaurant(_restaurant("b", distance=1), None),
        RankedRestaurant(_restaurant("c", distance=2), 70.0),
    ]
    assert [i.match_score for i in sort_ranked(items)] == [90.0, 70.0, None]


def test_sort_ties_broken_by_distance():
    items = [
        RankedRestaurant(_restaurant("far", distance=4), 50.0),
        RankedRestaurant(_restaurant("near", distance=1), 50.0),
        RankedRestaurant(_restaurant("u-far", distance=3), None),
        RankedRestaurant(_restaurant("u-near", distance=2), None),
    ]
    assert [i.restaurant.name for i in sort_ranked(items)] == ["near", "far", "u-near", "u-far"]


def test_zero_score_is_still_a_score():
    items = [
        RankedRestaurant(_restaurant("unscored", distance=0.1), None),
        RankedRestaurant(_restaurant("zero-far", distance=9), 0.0),
        RankedRestaurant(_restaurant("zero-near", distance=3), 0.0),
    ]
    assert [i.restaurant.name for i in sort_ranked(items)] == ["zero-near", "zero-far", "unscored"]


def test_rank_truncates_to_max_results():
    restaurants = [_restaurant(f"r{i}", cuisine="pizza", distance=i) for i in range(15)]
    ranked = rank_restaurants(restaurants, _summary("very-hungry", "savory", "comfort"), max_results=10)
    assert len(ranked) == 10
    assert [r.restaurant.name for r in ranked] == [f"r{i}" for i in range(10)]


def test_rank_without_summary_orders_by_distance():
    restaurants = [_restaurant("b", distance=2), _restaurant("a", distance=1)]
    ranked = rank_restaurants(restaurants, None)
    assert [r.restaurant.name for r in ranked] == ["a", "b"]
    assert all(r.match_score is None for r in ranked)
