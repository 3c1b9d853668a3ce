import json

from models import CustomerQuote, DishMention, RestaurantProfile
from services.profile_cache import RestaurantProfileCache
from utils import profile_key


def test_profile_key_normalization():
    assert profile_key("Culver's") == "culver_s"
    assert profile_key("Pizza Ranch #12") == "pizza_ranch__12"
    assert profile_key("ABC") == "abc"


def test_put_and_get_persist(tmp_path):
    path = tmp_path / "profiles.json"
    cache = RestaurantProfileCache(str(path))
    profile = RestaurantProfile(
        name="Culver's",
        cuisine="american",
        popular_dishes=[DishMention(name="ButterBurger", mentions=50, portion="large", tags=["classic"])],
        customer_quotes=[CustomerQuote(dish="ButterBurger", quote="So good", sentiment="positive")],
    )
    assert cache.put(profile, source="ai_generated") == "culver_s"

    reloaded = RestaurantProfileCache(str(path))
    assert "CULVER'S" in reloaded
    got = reloaded.get("culver's")
    assert got == profile
    assert json.loads(path.read_text())["culver_s"]["source"] == "ai_generated"


def test_missing_file_is_empty(tmp_path):
    cache = RestaurantProfileCache(str(tmp_path / "absent.json"))
    assert len(cache) == 0
    assert cache.get("anything") is None


def test_unreadable_file_is_empty(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    assert RestaurantProfileCache(str(path)).get("x") is None


def test_loose_profile_data_is_coerced(tmp_path):
    path = tmp_path / "profiles.json"
    path.write_text(
        json.dumps(
            {
                "taco_town": {
                    "name": "Taco Town",
                    "popular_dishes": [{"name": "Al Pastor", "mentions": "12"}, {"mentions": 3}, "junk"],
                    "customer_quotes": [{"quote": "Great salsa"}],
                    "avg_rating": "n/a",
                }
            }
        )
    )
    profile = RestaurantProfileCache(str(path)).get("Taco Town")
    assert [d.name for d in profile.popular_dishes] == ["Al Pastor"]
    assert profile.popular_dishes[0].mentions == 12
    assert profile.customer_quotes[0].sentiment == "neutral"
    assert profile.avg_rating == 4.0
