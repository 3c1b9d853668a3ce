from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, Field

from config import Configuration
from models import Coordinate, LunchOrder, Preference, RankedRestaurant
from services.aggregator import NoPreferencesError, aggregate_preferences
from services.candidate_search import build_search_provider
from services.llm import TextGenerator, build_text_generator
from services.pipeline import RankingPipeline
from services.preference_store import OrderStore, PreferenceStore
from services.profile_cache import RestaurantProfileCache
from services.provider import RestaurantSearchProvider, SearchProviderError
from services.reasoner import ExplanationGenerator
from services.report import build_report

METERS_PER_MILE = 1609.344


class PreferenceRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Who is eating")
    food_type: str = Field(..., min_length=1, description="Cuisine vote, e.g. pizza")
    hunger_level: str = Field(..., min_length=1, description="light | moderate | very-hungry")
    flavor_preference: str = Field(..., min_length=1, description="spicy | fresh | savory | sweet-savory")
    mood: str = Field(..., min_length=1, description="comfort | healthy | indulgent | adventurous")
    specific_craving: Optional[str] = Field(None, description="Free-text craving")


class PreferencePayload(BaseModel):
    id: str
    name: str
    food_type: str
    hunger_level: str
    flavor_preference: str
    mood: str
    specific_craving: Optional[str] = None
    timestamp: float


class MostPopular(BaseModel):
    food_type: str
    votes: int


class PreferencesResponse(BaseModel):
    preferences: List[PreferencePayload]
    most_popular: Optional[MostPopular] = None


class SearchRequest(BaseModel):
    lat: Optional[float] = Field(None, description="Search origin latitude; defaults to the office")
    lng: Optional[float] = Field(None, description="Search origin longitude; defaults to the office")
    radius_m: Optional[int] = Field(None, gt=0, description="Search radius in meters")
    explain: bool = Field(True, description="Attach AI explanations")


class RestaurantPayload(BaseModel):
    name: str
    address: str
    rating: float
    price_level: str
    distance: str
    distance_miles: float
    cuisine: str
    phone: Optional[str] = None
    website: Optional[str] = None
    lat: float
    lon: float


class RankedPayload(BaseModel):
    restaurant: RestaurantPayload
    match_score: Optional[float] = None
    explanation: Optional[Dict[str, Any]] = None


class SearchResponse(BaseModel):
    food_type: str
    summary: Dict[str, Any]
    restaurants: List[RankedPayload]
    report_markdown: str


class OrderRequest(BaseModel):
    restaurant_name: str = Field(..., min_length=1)
    restaurant_address: str = ""


class OrderPayload(BaseModel):
    id: str
    restaurant_name: str
    restaurant_address: str
    timestamp: float
    team: List[str]


def _pref_payload(p: Preference) -> PreferencePayload:
    return PreferencePayload(
        id=p.id,
        name=p.name,
        food_type=p.food_type,
        hunger_level=p.hunger_level,
        flavor_preference=p.flavor_preference,
        mood=p.mood,
        specific_craving=p.specific_craving,
        timestamp=p.timestamp,
    )


def _ranked_payload(item: RankedRestaurant) -> RankedPayload:
    r = item.restaurant
    return RankedPayload(
        restaurant=RestaurantPayload(
            name=r.name,
            address=r.address,
            rating=r.rating,
            price_level=r.price_level,
            distance=r.distance,
            distance_miles=round(r.distance_miles, 3),
            cuisine=r.cuisine,
            phone=r.phone,
            website=r.website,
            lat=r.lat,
            lon=r.lon,
        ),
        match_score=round(item.match_score, 2) if item.match_score is not None else None,
        explanation=item.explanation.to_dict() if item.explanation is not None else None,
    )


def _order_payload(order: LunchOrder) -> OrderPayload:
    return OrderPayload(
        id=order.id,
        restaurant_name=order.restaurant_name,
        restaurant_address=order.restaurant_address,
        timestamp=order.timestamp,
        team=[p.name for p in order.preferences],
    )


def create_app(
    cfg: Optional[Configuration] = None,
    *,
    provider: Optional[RestaurantSearchProvider] = None,
    generator: Optional[TextGenerator] = None,
    cache: Optional[RestaurantProfileCache] = None,
) -> FastAPI:
    cfg = cfg or Configuration.from_env()
    provider = provider or build_search_provider(cfg)
    if generator is None:
        generator = build_text_generator(cfg)
    cache = cache or RestaurantProfileCache(cfg.profile_cache_path)

    app = FastAPI(title="Team Lunch Picker")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.cfg = cfg
    app.state.preferences = PreferenceStore()
    app.state.orders = OrderStore()
    app.state.pipeline = RankingPipeline(cfg, provider, ExplanationGenerator(cfg, cache, generator))
    logger.info("cfg: {}", cfg.log_summary())

    @app.get("/healthz")
    def healthz() -> dict:
        return {"status": "ok"}

    @app.get("/health/search")
    def health_search(request: Request) -> dict:
        pipeline: RankingPipeline = request.app.state.pipeline
        origin = Coordinate(lat=cfg.default_lat, lon=cfg.default_lng)
        try:
            pipeline.provider.search(None, origin, 500)
            ok = True
        except SearchProviderError as exc:
            logger.warning("search health check failed: {}", exc)
            ok = False
        return {"ok": ok, "provider": getattr(pipeline.provider, "name", "unknown")}

    @app.get("/health/llm")
    def health_llm() -> dict:
        provider_name = (cfg.llm_provider or "").lower()
        ok = False
        detail = None
        try:
            if provider_name == "ollama":
                r = requests.get(f"{cfg.ollama_base_url.rstrip('/')}/api/tags", timeout=5)
                ok = r.ok
                if r.ok:
                    detail = r.json().get("models", [])
            elif cfg.llm_base_url:
                r = requests.get(f"{cfg.llm_base_url.rstrip('/')}/models", timeout=5)
                ok = r.ok
            else:
                ok = generator is not None
        except Exception as exc:
            ok = False
            detail = str(exc)
        return {"ok": ok, "provider": provider_name or "unset", "detail": detail}

    @app.post("/preferences", response_model=PreferencePayload, status_code=201)
    def submit_preference(req: PreferenceRequest, request: Request) -> PreferencePayload:
        store: PreferenceStore = request.app.state.preferences
        pref = store.create(
            name=req.name.strip(),
            food_type=req.food_type.strip().lower(),
            hunger_level=req.hunger_level.strip().lower(),
            flavor_preference=req.flavor_preference.strip().lower(),
            mood=req.mood.strip().lower(),
            specific_craving=(req.specific_craving or "").strip() or None,
        )
        logger.info("preference from {} for {}", pref.name, pref.food_type)
        return _pref_payload(pref)

    @app.get("/preferences", response_model=PreferencesResponse)
    def list_preferences(request: Request) -> PreferencesResponse:
        store: PreferenceStore = request.app.state.preferences
        prefs = store.list()
        most_popular = None
        if prefs:
            summary = aggregate_preferences(prefs)
            most_popular = MostPopular(
                food_type=summary.dominant_cuisine,
                votes=summary.votes.get(summary.dominant_cuisine, 0),
            )
        return PreferencesResponse(preferences=[_pref_payload(p) for p in prefs], most_popular=most_popular)

    @app.delete("/preferences/{pref_id}")
    def delete_preference(pref_id: str, request: Request) -> dict:
        store: PreferenceStore = request.app.state.preferences
        if not store.delete(pref_id):
            raise HTTPException(status_code=404, detail="preference not found")
        return {"deleted": 1}

    @app.delete("/preferences")
    def reset_preferences(request: Request) -> dict:
        store: PreferenceStore = request.app.state.preferences
        return {"deleted": store.clear()}

    @app.post("/restaurants/search", response_model=SearchResponse)
    async def search_restaurants(req: SearchRequest, request: Request) -> SearchResponse:
        store: PreferenceStore = request.app.state.preferences
        pipeline: RankingPipeline = request.app.state.pipeline
        prefs = store.list()
        origin = Coordinate(
            lat=req.lat if req.lat is not None else cfg.default_lat,
            lon=req.lng if req.lng is not None else cfg.default_lng,
        )
        radius_m = req.radius_m or cfg.default_radius_m
        try:
            ranked = await pipeline.rank(prefs, origin, radius_m, explain=req.explain)
            summary = aggregate_preferences(prefs)
        except NoPreferencesError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except SearchProviderError as exc:
            logger.error("restaurant search failed: {}", exc)
            raise HTTPException(status_code=502, detail="Failed to fetch restaurants")
        except Exception as exc:
            logger.exception("ranking failed: {}", exc)
            raise HTTPException(status_code=500, detail="internal error")

        return SearchResponse(
            food_type=summary.dominant_cuisine,
            summary={
                "dominant_cuisine": summary.dominant_cuisine,
                "dominant_hunger": summary.dominant_hunger,
                "dominant_flavor": summary.dominant_flavor,
                "dominant_mood": summary.dominant_mood,
                "votes": summary.votes,
                "team_size": summary.team_size,
            },
            restaurants=[_ranked_payload(item) for item in ranked],
            report_markdown=build_report(summary, ranked, radius_m / METERS_PER_MILE),
        )

    @app.post("/orders", response_model=OrderPayload, status_code=201)
    def choose_restaurant(req: OrderRequest, request: Request) -> OrderPayload:
        orders: OrderStore = request.app.state.orders
        store: PreferenceStore = request.app.state.preferences
        order = orders.record(req.restaurant_name, req.restaurant_address, store.list())
        logger.info("team will order from {}", order.restaurant_name)
        return _order_payload(order)

    @app.get("/orders/latest", response_model=OrderPayload)
    def latest_order(request: Request) -> OrderPayload:
        orders: OrderStore = request.app.state.orders
        order = orders.latest()
        if order is None:
            raise HTTPException(status_code=404, detail="no restaurant chosen yet")
        return _order_payload(order)

    return app


if __name__ == "__main__":
    import uvicorn

    load_dotenv()
    uvicorn.run(create_app(), host="0.0.0.0", port=8010)
