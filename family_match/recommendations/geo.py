from __future__ import annotations

import math
import re

from .models import ActivityLocation, Coordinates, FamilyLocation

EARTH_RADIUS_MILES = 3959.0

# Approximate centres of known family ZIP codes.
ZIP_COORDINATES: dict[str, Coordinates] = {
    "78701": Coordinates(lat=30.2672, lng=-97.7431),  # Downtown
    "78702": Coordinates(lat=30.2547, lng=-97.7178),  # East Austin
    "78703": Coordinates(lat=30.2729, lng=-97.7689),  # Tarrytown / Clarksville
    "78704": Coordinates(lat=30.2426, lng=-97.7568),  # Zilker / South Congress
    "78705": Coordinates(lat=30.2955, lng=-97.7414),  # UT Campus
    "78723": Coordinates(lat=30.2888, lng=-97.6781),  # Mueller
    "78739": Coordinates(lat=30.2263, lng=-97.8897),  # Circle C
    "78746": Coordinates(lat=30.2932, lng=-97.8147),  # Westlake Hills
    "78751": Coordinates(lat=30.3077, lng=-97.7264),  # Hyde Park
    "78756": Coordinates(lat=30.3244, lng=-97.7403),  # Rosedale
    "78757": Coordinates(lat=30.3390, lng=-97.7506),  # Allandale / Crestview
    "78613": Coordinates(lat=30.5052, lng=-97.8203),  # Cedar Park
    "78641": Coordinates(lat=30.4947, lng=-97.7876),  # Leander
    "78664": Coordinates(lat=30.5082, lng=-97.6789),  # Round Rock
    "78665": Coordinates(lat=30.5266, lng=-97.6631),  # Round Rock
}

METRO_AREA_CITIES = (
    "austin", "cedar park", "round rock", "pflugerville", "georgetown",
    "leander", "lakeway", "bee cave", "dripping springs", "kyle",
    "buda", "manor", "elgin", "del valle",
)

HOME_STATE_TOKENS = ("texas", " tx")

# (upper bound in miles, score); anything farther scores FAR_DISTANCE_SCORE.
DISTANCE_STEPS: list[tuple[float, float]] = [
    (2, 1.0),
    (5, 0.9),
    (10, 0.7),
    (15, 0.5),
    (25, 0.3),
    (40, 0.1),
]
FAR_DISTANCE_SCORE = 0.05

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_SPACES_RE = re.compile(r"\s+")


def haversine_miles(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in miles."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def distance_to_score(miles: float) -> float:
    for bound, score in DISTANCE_STEPS:
        if miles <= bound:
            return score
    return FAR_DISTANCE_SCORE


def family_coordinates(location: FamilyLocation) -> Coordinates | None:
    """Explicit coordinates, else the centre of a known ZIP code."""
    if location.coordinates is not None:
        return location.coordinates
    if location.zip_code:
        return ZIP_COORDINATES.get(location.zip_code.strip()[:5])
    return None


def normalize_place(name: str) -> str:
    lowered = _NON_ALNUM_RE.sub("", name.lower())
    return _SPACES_RE.sub(" ", lowered).strip()


def same_place(a: str | None, b: str | None) -> bool:
    return bool(a and b and normalize_place(a) == normalize_place(b))


def zip_distance(a: str, b: str) -> int | None:
    """Numeric gap between two ZIP codes, a rough proxy for proximity."""
    digits_a = re.sub(r"\D", "", a)
    digits_b = re.sub(r"\D", "", b)
    if not digits_a or not digits_b:
        return None
    return abs(int(digits_a) - int(digits_b))


def in_metro_area(location: ActivityLocation | FamilyLocation) -> bool:
    city = (location.city or "").lower()
    neighborhood = (location.neighborhood or "").lower()
    return any(m in city or m in neighborhood for m in METRO_AREA_CITIES)


def in_home_state(location: ActivityLocation | FamilyLocation) -> bool:
    address = (getattr(location, "address", None) or "").lower()
    city = (location.city or "").lower()
    return any(t in address or t in city for t in HOME_STATE_TOKENS)
