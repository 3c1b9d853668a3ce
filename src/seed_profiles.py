"""Seed the restaurant profile cache.

Usage:
  python seed_profiles.py --cuisine pizza --cuisine thai --delay 2
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from dotenv import load_dotenv
from loguru import logger

from config import Configuration
from models import Coordinate
from services.candidate_search import build_search_provider
from services.llm import build_text_generator
from services.profile_cache import RestaurantProfileCache
from services.profile_seeder import CUISINE_TYPES, ProfileSeeder


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Populate restaurant menu/review profiles")
    parser.add_argument("--lat", type=float, default=None, help="search origin latitude")
    parser.add_argument("--lng", type=float, default=None, help="search origin longitude")
    parser.add_argument("--radius-m", type=int, default=None, help="search radius in meters")
    parser.add_argument("--cuisine", action="append", dest="cuisines", choices=CUISINE_TYPES)
    parser.add_argument("--delay", type=float, default=None, help="seconds between generation calls")
    parser.add_argument("--cache", default=None, help="profile cache JSON path")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    cfg = Configuration.from_env(
        {
            "seed_delay_sec": args.delay,
            "profile_cache_path": args.cache,
        }
    )
    logger.info("cfg: {}", cfg.log_summary())

    generator = build_text_generator(cfg)
    if generator is None:
        logger.error("no LLM configured; set LLM_PROVIDER and LLM_API_KEY")
        return 1

    origin = Coordinate(lat=args.lat if args.lat is not None else cfg.default_lat, lon=args.lng if args.lng is not None else cfg.default_lng)
    radius_m = args.radius_m or cfg.seed_radius_m
    seeder = ProfileSeeder(cfg, build_search_provider(cfg), generator, RestaurantProfileCache(cfg.profile_cache_path))
    stats = seeder.run(origin, radius_m, args.cuisines)
    return 0 if stats.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
