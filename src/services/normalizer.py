from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from models import Coordinate, GeoapifyFeature, OsmElement, RawPlace, Restaurant
from utils import format_miles, haversine_miles

DEFAULT_RATING = 4.0
NO_ADDRESS = "Address not available"

EXPENSIVE_CUISINES = {"fine_dining", "french"}
CHEAP_CUISINES = {"fast_food", "burger"}


@dataclass
class _Fields:
    """The handful of values every raw shape has to provide."""

    name: Optional[str]
    coord: Optional[Coordinate]
    housenumber: Optional[str]
    street: Optional[str]
    city: Optional[str]
    state: Optional[str]
    postcode: Optional[str]
    cuisine: Optional[str]
    rating: Optional[object]
    payment: Optional[str]
    phone: Optional[str]
    website: Optional[str]


def _resolve_coord(lat: Optional[float], lon: Optional[float], fallback: Optional[Coordinate]) -> Optional[Coordinate]:
    if lat is not None and lon is not None:
        return Coordinate(lat=lat, lon=lon)
    return fallback


def _osm_fields(el: OsmElement) -> _Fields:
    tags = el.tags or {}
    return _Fields(
        name=tags.get("name"),
        coord=_resolve_coord(el.lat, el.lon, el.center),
        housenumber=tags.get("addr:housenumber"),
        street=tags.get("addr:street"),
        city=tags.get("addr:city"),
        state=tags.get("addr:state"),
        postcode=tags.get("addr:postcode"),
        cuisine=tags.get("cuisine"),
        rating=tags.get("stars"),
        payment=tags.get("payment"),
        phone=tags.get("phone") or tags.get("contact:phone"),
        website=tags.get("website") or tags.get("contact:website"),
    )


def _geoapify_fields(feat: GeoapifyFeature) -> _Fields:
    return _Fields(
        name=feat.name,
        coord=_resolve_coord(feat.lat, feat.lon, feat.centroid),
        housenumber=feat.housenumber,
        street=feat.street,
        city=feat.city,
        state=feat.state,
        postcode=feat.postcode,
        cuisine=feat.cuisine,
        rating=feat.rating,
        payment=feat.payment,
        phone=feat.phone,
        website=feat.website,
    )


def _fields(raw: RawPlace) -> _Fields:
    if isinstance(raw, OsmElement):
        return _osm_fields(raw)
    if isinstance(raw, GeoapifyFeature):
        return _geoapify_fields(raw)
    raise TypeError(f"unsupported place record: {type(raw).__name__}")


def format_address(
    housenumber: Optional[str],
    street: Optional[str],
    city: Optional[str],
    state: Optional[str],
    postcode: Optional[str],
) -> str:
    parts: list[str] = []
    if housenumber and street:
        parts.append(f"{housenumber} {street}")
    elif street:
        parts.append(street)
    parts.extend(p for p in (city, state, postcode) if p)
    return ", ".join(parts) or NO_ADDRESS


def price_level(cuisine: Optional[str], payment: Optional[str]) -> str:
    if payment and "expensive" in payment:
        return "$$$"
    key = (cuisine or "").strip().lower().replace("-", "_")
    if key in EXPENSIVE_CUISINES:
        return "$$$"
    if key in CHEAP_CUISINES:
        return "$"
    return "$$"


def parse_rating(value: object) -> float:
    if value is None or value == "":
        return DEFAULT_RATING
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_RATING


def normalize_place(raw: RawPlace, origin: Coordinate, food_type: str) -> Optional[Restaurant]:
    """Canonical Restaurant for a raw record, or None if it has no name or coordinates."""
    f = _fields(raw)
    if not f.name or f.coord is None:
        return None

    distance = haversine_miles(origin.lat, origin.lon, f.coord.lat, f.coord.lon)
    return Restaurant(
        name=f.name,
        address=format_address(f.housenumber, f.street, f.city, f.state, f.postcode),
        lat=f.coord.lat,
        lon=f.coord.lon,
        distance_miles=distance,
        distance=format_miles(distance),
        cuisine=f.cuisine or food_type,
        rating=parse_rating(f.rating),
        price_level=price_level(f.cuisine, f.payment),
        phone=f.phone or None,
        website=f.website or None,
    )


def normalize_places(raws: Iterable[RawPlace], origin: Coordinate, food_type: str) -> List[Restaurant]:
    out = (normalize_place(raw, origin, food_type) for raw in raws)
    return [r for r in out if r is not None]

