from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, Field

from utils import mask_secret


class Configuration(BaseModel):
    # Restaurant search
    search_provider: str = Field(default="overpass")
    overpass_url: str = Field(default="https://overpass-api.de/api/interpreter")
    geoapify_api_key: Optional[str] = Field(default=None)
    geoapify_base_url: str = Field(default="https://api.geoapify.com")
    search_timeout: int = Field(default=25)
    search_max_results: int = Field(default=50)

    # Office defaults: 11611 Business Park Blvd N, Champlin, MN
    default_lat: float = Field(default=45.1589)
    default_lng: float = Field(default=-93.3954)
    default_radius_m: int = Field(default=24140)

    # Ranking
    max_results: int = Field(default=10)
    explanation_timeout_sec: float = Field(default=20.0)

    # LLM
    local_llm: Optional[str] = Field(default=None)
    llm_provider: Optional[str] = Field(default=None)
    llm_api_key: Optional[str] = Field(default=None)
    llm_base_url: Optional[str] = Field(default=None)
    llm_model_id: Optional[str] = Field(default=None)
    llm_temperature: float = Field(default=0.7)
    llm_max_tokens: int = Field(default=1200)
    # native ollama base (without /v1)
    ollama_base_url: str = Field(default="http://localhost:11434")

    # Profile cache and seeding
    profile_cache_path: str = Field(default="data/restaurant_profiles.json")
    seed_delay_sec: float = Field(default=2.0)
    seed_radius_m: int = Field(default=16093)
    seed_per_cuisine: int = Field(default=15)

    @classmethod
    def from_env(cls, overrides: Optional[dict[str, Any]] = None) -> "Configuration":
        raw: dict[str, Any] = {}

        env_map = {
            "search_provider": os.getenv("SEARCH_PROVIDER"),
            "overpass_url": os.getenv("OVERPASS_URL"),
            "geoapify_api_key": os.getenv("GEOAPIFY_API_KEY"),
            "geoapify_base_url": os.getenv("GEOAPIFY_BASE_URL"),
            "search_timeout": os.getenv("SEARCH_TIMEOUT"),
            "search_max_results": os.getenv("SEARCH_MAX_RESULTS"),
            "default_lat": os.getenv("DEFAULT_LAT"),
            "default_lng": os.getenv("DEFAULT_LNG"),
            "default_radius_m": os.getenv("DEFAULT_RADIUS_M"),
            "max_results": os.getenv("MAX_RESULTS"),
            "explanation_timeout_sec": os.getenv("EXPLANATION_TIMEOUT_SEC"),
            # LLM
            "local_llm": os.getenv("LOCAL_LLM"),
            "llm_provider": os.getenv("LLM_PROVIDER"),
            "llm_api_key": os.getenv("LLM_API_KEY") or os.getenv("GOOGLE_AI_API_KEY"),
            "llm_base_url": os.getenv("LLM_BASE_URL"),
            "llm_model_id": os.getenv("LLM_MODEL_ID"),
            "llm_temperature": os.getenv("LLM_TEMPERATURE"),
            "llm_max_tokens": os.getenv("LLM_MAX_TOKENS"),
            "ollama_base_url": os.getenv("OLLAMA_BASE_URL"),
            "profile_cache_path": os.getenv("PROFILE_CACHE_PATH"),
            "seed_delay_sec": os.getenv("SEED_DELAY_SEC"),
            "seed_radius_m": os.getenv("SEED_RADIUS_M"),
            "seed_per_cuisine": os.getenv("SEED_PER_CUISINE"),
        }

        for k, v in env_map.items():
            if v is None:
                continue
            raw[k] = v

        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**raw)

    def require_geoapify(self) -> None:
        if not self.geoapify_api_key:
            raise ValueError("GEOAPIFY_API_KEY is required")

    def llm_enabled(self) -> bool:
        return bool(self.llm_provider or self.llm_base_url or self.local_llm)

    def log_summary(self) -> str:
        return (
            "search=%s timeout=%s origin=%.4f,%.4f radius_m=%s llm=%s model=%s api_key=%s cache=%s"
            % (
                self.search_provider,
                self.search_timeout,
                self.default_lat,
                self.default_lng,
                self.default_radius_m,
                self.llm_provider or "unset",
                self.llm_model_id or self.local_llm or "default",
                mask_secret(self.llm_api_key or self.geoapify_api_key),
                self.profile_cache_path,
            )
        )

    def sanitized_ollama_url(self) -> str:
        base = (self.ollama_base_url or "http://localhost:11434").rstrip("/")
        if not base.endswith("/v1"):
            base = f"{base}/v1"
        return base
