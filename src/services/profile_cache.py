from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from models import RestaurantProfile
from utils import profile_key


class RestaurantProfileCache:
    """Menu/review profiles keyed by profile_key(name), persisted as one JSON document.

    The ranking side only reads; the seeding tool writes through put().
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = Path(path) if path else None
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._loaded = False
        self._lock = threading.Lock()

    def _load(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            self._entries = self._read()
            self._loaded = True

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("profile cache {} unreadable: {}", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        entries = {str(k): v for k, v in data.items() if isinstance(v, dict)}
        logger.debug("loaded {} restaurant profiles from {}", len(entries), self.path)
        return entries

    def get(self, name: str) -> Optional[RestaurantProfile]:
        self._load()
        entry = self._entries.get(profile_key(name))
        if entry is None:
            return None
        return RestaurantProfile.from_dict(entry)

    def put(self, profile: RestaurantProfile, **extra: Any) -> str:
        self._load()
        key = profile_key(profile.name)
        with self._lock:
            self._entries[key] = {**profile.to_dict(), **extra}
            self._flush()
        return key

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(self._entries, fh, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)

    def __contains__(self, name: str) -> bool:
        self._load()
        return profile_key(name) in self._entries

    def __len__(self) -> int:
        self._load()
        return len(self._entries)
