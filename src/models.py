"""Data models for the team lunch picker."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class Coordinate:
    lat: float
    lon: float


@dataclass
class Preference:
    id: str
    name: str
    food_type: str
    hunger_level: str
    flavor_preference: str
    mood: str
    specific_craving: Optional[str] = None
    timestamp: float = 0.0


@dataclass
class OsmElement:
    """Overpass element: a node carries lat/lon, a way carries a center."""

    tags: Dict[str, str] = field(default_factory=dict)
    lat: Optional[float] = None
    lon: Optional[float] = None
    center: Optional[Coordinate] = None
    osm_type: str = "node"
    osm_id: Optional[int] = None

    @classmethod
    def from_json(cls, raw: Dict[str, Any]) -> "OsmElement":
        center = None
        c = raw.get("center")
        if isinstance(c, dict) and c.get("lat") is not None and c.get("lon") is not None:
            center = Coordinate(lat=float(c["lat"]), lon=float(c["lon"]))
        tags = raw.get("tags") or {}
        return cls(
            tags={str(k): str(v) for k, v in tags.items()} if isinstance(tags, dict) else {},
            lat=_as_float(raw.get("lat")),
            lon=_as_float(raw.get("lon")),
            center=center,
            osm_type=str(raw.get("type") or "node"),
            osm_id=raw.get("id"),
        )


@dataclass
class GeoapifyFeature:
    """Geoapify place feature flattened from its properties and geometry."""

    name: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    centroid: Optional[Coordinate] = None
    housenumber: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    cuisine: Optional[str] = None
    rating: Optional[Any] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    payment: Optional[str] = None

    @classmethod
    def from_json(cls, feat: Dict[str, Any]) -> "GeoapifyFeature":
        props = feat.get("properties") or {}
        centroid = None
        geom = feat.get("geometry") or {}
        coords = geom.get("coordinates")
        if geom.get("type", "Point") == "Point" and isinstance(coords, list) and len(coords) >= 2:
            if coords[0] is not None and coords[1] is not None:
                # GeoJSON order is [lon, lat]
                centroid = Coordinate(lat=float(coords[1]), lon=float(coords[0]))
        catering = props.get("catering") or {}
        contact = props.get("contact") or {}
        payment = props.get("payment_options")
        if isinstance(payment, dict):
            payment = ";".join(k for k, v in payment.items() if v)
        return cls(
            name=props.get("name") or None,
            lat=_as_float(props.get("lat")),
            lon=_as_float(props.get("lon")),
            centroid=centroid,
            housenumber=_as_str(props.get("housenumber")),
            street=_as_str(props.get("street")),
            city=_as_str(props.get("city")),
            state=_as_str(props.get("state_code") or props.get("state")),
            postcode=_as_str(props.get("postcode")),
            cuisine=_as_str(catering.get("cuisine") if isinstance(catering, dict) else None),
            rating=props.get("rating"),
            website=_as_str(props.get("website") or contact.get("website")),
            phone=_as_str(contact.get("phone") or props.get("phone")),
            payment=_as_str(payment),
        )


RawPlace = Union[OsmElement, GeoapifyFeature]


@dataclass
class Restaurant:
    name: str
    address: str
    lat: float
    lon: float
    distance_miles: float
    distance: str
    cuisine: str
    rating: float = 4.0
    price_level: str = "$$"
    phone: Optional[str] = None
    website: Optional[str] = None


@dataclass
class PreferenceSummary:
    dominant_cuisine: str
    dominant_hunger: str
    dominant_flavor: str
    dominant_mood: str
    votes: Dict[str, int] = field(default_factory=dict)
    team_size: int = 0


@dataclass
class DishMention:
    name: str
    mentions: int = 0
    portion: str = "standard"
    tags: List[str] = field(default_factory=list)


@dataclass
class CustomerQuote:
    dish: str
    quote: str
    sentiment: str = "neutral"


@dataclass
class RestaurantProfile:
    name: str
    cuisine: str = ""
    popular_dishes: List[DishMention] = field(default_factory=list)
    customer_quotes: List[CustomerQuote] = field(default_factory=list)
    portion_reputation: str = "standard"
    price_range: str = "$$"
    dietary_options: List[str] = field(default_factory=list)
    avg_rating: float = 4.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RestaurantProfile":
        dishes = []
        for d in data.get("popular_dishes") or []:
            if not isinstance(d, dict) or not d.get("name"):
                continue
            try:
                mentions = int(d.get("mentions") or 0)
            except (TypeError, ValueError):
                mentions = 0
            dishes.append(
                DishMention(
                    name=str(d["name"]),
                    mentions=mentions,
                    portion=str(d.get("portion") or "standard"),
                    tags=[str(t) for t in (d.get("tags") or [])],
                )
            )
        quotes = [
            CustomerQuote(dish=str(q.get("dish") or ""), quote=str(q["quote"]), sentiment=str(q.get("sentiment") or "neutral"))
            for q in (data.get("customer_quotes") or [])
            if isinstance(q, dict) and q.get("quote")
        ]
        try:
            avg_rating = float(data.get("avg_rating") or 4.0)
        except (TypeError, ValueError):
            avg_rating = 4.0
        return cls(
            name=str(data.get("name") or ""),
            cuisine=str(data.get("cuisine") or ""),
            popular_dishes=dishes,
            customer_quotes=quotes,
            portion_reputation=str(data.get("portion_reputation") or "standard"),
            price_range=str(data.get("price_range") or "$$"),
            dietary_options=[str(x) for x in (data.get("dietary_options") or [])],
            avg_rating=avg_rating,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PersonMatch:
    name: str
    match: str


@dataclass
class Explanation:
    team_consensus: str
    per_person_matches: List[PersonMatch] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    dietary_insights: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teamConsensus": self.team_consensus,
            "perPersonMatches": [{"name": m.name, "match": m.match} for m in self.per_person_matches],
            "conflicts": list(self.conflicts),
            "dietaryInsights": self.dietary_insights,
        }


@dataclass
class RankedRestaurant:
    restaurant: Restaurant
    match_score: Optional[float] = None
    explanation: Optional[Explanation] = None


@dataclass
class LunchOrder:
    id: str
    restaurant_name: str
    restaurant_address: str
    timestamp: float
    preferences: List[Preference] = field(default_factory=list)


def _as_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None
