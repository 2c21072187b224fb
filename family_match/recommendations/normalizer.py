"""
Turn raw vector-search payloads into canonical ``ActivityRecord`` objects.

Payloads come from three upstream shapes (provider rows, camp/event rows and
provider-camp sessions) and are frequently missing fields. Each shape has its
own mapping function; all of them share the field extractors below, which
degrade to empty values instead of raising.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable

from pydantic import ValidationError

from .extraction import (
    infer_days_from_text,
    infer_times_from_text,
    parse_ages,
    parse_ages_from_text,
    parse_days,
    parse_grades,
    parse_price,
    parse_times,
    valid_age_span,
)
from .models import (
    ActivityLocation,
    ActivityRecord,
    AgeBounds,
    Coordinates,
    Flexibility,
    PriceRange,
    Pricing,
    PricingType,
    ProviderInfo,
    RawCandidate,
    Schedule,
    SourceKind,
)

logger = logging.getLogger(__name__)

_AGE_FIELD_PAIRS = [("min_age", "max_age"), ("age_min", "age_max"), ("minAge", "maxAge")]
_AGE_TEXT_KEYS = ("text", "description", "title", "name", "company_name")
_SCHEDULE_TEXT_KEYS = ("text", "description", "title", "notes")
_DAY_KEYS = ("days_of_operation", "schedule", "operating_days", "days")
_TIME_KEYS = ("hours_of_operation", "operating_hours", "hours", "time", "times")
_PRICE_KEYS = ("price", "pricing", "cost", "fee")
_RECURRING_TYPES = {"camp", "class", "program"}
_ZIP_RE = re.compile(r"\b(\d{5})(?:-\d{4})?\b")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, float) and value != value:  # NaN
        return False
    return True


def _first(payload: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if _present(value):
            return value
    return None


def _first_text(payload: dict[str, Any], *keys: str) -> str | None:
    value = _first(payload, *keys)
    return str(value).strip() if value is not None else None


def _as_id(value: Any) -> str | None:
    if not _present(value):
        return None
    try:
        return str(int(float(value)))
    except (TypeError, ValueError, OverflowError):
        return str(value).strip()


def _as_float(value: Any) -> float | None:
    if not _present(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMBER_RE.search(str(value))
        if not match:
            return None
        number = float(match.group(0))
    return number if math.isfinite(number) else None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1", "y"}
    return bool(value) if _present(value) else False


def _safe(extractor: Callable[..., Any], default: Any, *args: Any) -> Any:
    try:
        return extractor(*args)
    except (TypeError, ValueError, AttributeError, KeyError, OverflowError):
        logger.warning(
            "Could not run %s on candidate payload",
            getattr(extractor, "__name__", extractor),
            exc_info=True,
        )
        return default


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------


def extract_age_range(payload: dict[str, Any]) -> AgeBounds | None:
    """Explicit numbers, then grades, then an ages string, then free text."""
    for low_key, high_key in _AGE_FIELD_PAIRS:
        if _present(payload.get(low_key)) and _present(payload.get(high_key)):
            span = valid_age_span(payload[low_key], payload[high_key])
            if span:
                return AgeBounds(min=span[0], max=span[1])

    grades = payload.get("grades")
    if isinstance(grades, str):
        span = parse_grades(grades)
        if span:
            return AgeBounds(min=span[0], max=span[1])

    ages = payload.get("ages")
    if isinstance(ages, str):
        span = parse_ages(ages)
        if span:
            return AgeBounds(min=span[0], max=span[1])

    for key in _AGE_TEXT_KEYS:
        text = payload.get(key)
        if isinstance(text, str):
            span = parse_ages_from_text(text)
            if span:
                return AgeBounds(min=span[0], max=span[1])
    return None


def extract_interests(payload: dict[str, Any]) -> tuple[str, ...]:
    """Category, provider name and title as a best-effort interest set."""
    values: list[str] = []
    explicit = payload.get("interests")
    if isinstance(explicit, (list, tuple)):
        values.extend(str(v) for v in explicit if _present(v))

    category = _first_text(payload, "category")
    if category:
        values.append(category)
    provider_names = [
        n for n in (_first_text(payload, "provider_name"), _first_text(payload, "company_name")) if n
    ]
    values.extend(provider_names)
    title = _first_text(payload, "title")
    if title and title not in provider_names:
        values.append(title)

    seen: dict[str, str] = {}
    for value in values:
        seen.setdefault(value.lower(), value)
    return tuple(seen.values())


def _coordinates(source: dict[str, Any]) -> Coordinates | None:
    lat = _as_float(_first(source, "latitude", "lat"))
    lng = _as_float(_first(source, "longitude", "lng", "lon"))
    if lat is None or lng is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return Coordinates(lat=lat, lng=lng)


def _location_from_string(value: str) -> dict[str, Any]:
    parts = [p.strip() for p in value.split(",") if p.strip()]
    fields: dict[str, Any] = {"address": value.strip()}
    if len(parts) >= 3:
        fields["city"] = parts[-2]
    elif len(parts) == 2:
        fields["city"] = parts[0]
    zip_match = _ZIP_RE.search(value)
    if zip_match:
        fields["zip_code"] = zip_match.group(1)
    return fields


def extract_location(payload: dict[str, Any], *string_keys: str) -> ActivityLocation:
    """Structured location object, else a "City, ST" string, else flat fields."""
    fields: dict[str, Any] = {}
    raw = payload.get("location")

    if isinstance(raw, dict):
        city = _first_text(raw, "municipality", "city")
        state = _first_text(raw, "administrative_area", "state")
        zip_code = _first_text(raw, "postal_code", "zip_code", "zipCode")
        address = _first_text(raw, "address")
        if not address and (city or state):
            address = ", ".join(p for p in (city, state, zip_code) if p)
        fields = {
            "neighborhood": _first_text(raw, "neighborhood"),
            "city": city,
            "zip_code": zip_code,
            "address": address,
            "coordinates": _coordinates(raw),
        }
    else:
        text = raw if isinstance(raw, str) and raw.strip() else _first_text(payload, *string_keys)
        if text:
            fields = _location_from_string(text)

    fields.setdefault("coordinates", None)
    if fields["coordinates"] is None:
        fields["coordinates"] = _coordinates(payload)
    for key, payload_keys in (
        ("neighborhood", ("neighborhood",)),
        ("city", ("city", "municipality")),
        ("zip_code", ("zip_code", "postal_code")),
        ("address", ("address",)),
    ):
        if not fields.get(key):
            fields[key] = _first_text(payload, *payload_keys)
    return ActivityLocation(**fields)


def extract_schedule(payload: dict[str, Any]) -> Schedule:
    days = parse_days(_first(payload, *_DAY_KEYS))
    times = parse_times(_first(payload, *_TIME_KEYS))

    recurring = payload.get("recurring")
    if _present(recurring):
        is_recurring = _as_bool(recurring)
    else:
        is_recurring = str(payload.get("type") or "").lower() in _RECURRING_TYPES

    explicit = str(payload.get("flexibility") or "").lower()
    if explicit in Flexibility.__members__:
        flexibility = Flexibility(explicit)
    elif days and times:
        flexibility = Flexibility.fixed
    elif days or times:
        flexibility = Flexibility.flexible
    else:
        flexibility = Flexibility.very_flexible

    if not days and not times:
        for key in _SCHEDULE_TEXT_KEYS:
            text = payload.get(key)
            if isinstance(text, str):
                days.extend(d for d in infer_days_from_text(text) if d not in days)
                times.extend(t for t in infer_times_from_text(text) if t not in times)

    return Schedule(days=tuple(days), times=tuple(times), recurring=is_recurring, flexibility=flexibility)


def extract_pricing(payload: dict[str, Any]) -> Pricing:
    if _as_bool(payload.get("is_free")):
        return Pricing(type=PricingType.free)

    parsed = parse_price(_first(payload, *_PRICE_KEYS))
    if parsed["free"]:
        return Pricing(type=PricingType.free)

    price_range = parsed["range"]
    low, high = _as_float(payload.get("price_min")), _as_float(payload.get("price_max"))
    if price_range is None and low is not None and high is not None and low <= high:
        price_range = (low, high)

    amount = parsed["amount"]
    pricing_type = PricingType(parsed["period"]) if parsed["period"] else PricingType.per_session
    return Pricing(
        type=pricing_type,
        amount=amount,
        currency="USD" if amount is not None or price_range else None,
        range=PriceRange(min=price_range[0], max=price_range[1]) if price_range else None,
    )


def extract_provider(payload: dict[str, Any], *name_keys: str) -> ProviderInfo:
    rating = _as_float(_first(payload, "rating", "provider_rating", "average_rating"))
    reviews = _as_float(_first(payload, "review_count", "reviews_count", "reviews"))
    experience = _as_float(_first(payload, "years_experience", "experience_years", "experience"))
    return ProviderInfo(
        name=_first_text(payload, *name_keys) or "Unknown Provider",
        rating=min(max(rating, 0.0), 5.0) if rating is not None else None,
        review_count=int(reviews) if reviews is not None and reviews >= 0 else None,
        verified=_as_bool(payload.get("verified")),
        experience=experience if experience is not None and experience >= 0 else None,
    )


# ---------------------------------------------------------------------------
# Per-source mappings
# ---------------------------------------------------------------------------


def _common_fields(
    payload: dict[str, Any],
    location_keys: tuple[str, ...],
    provider_keys: tuple[str, ...],
) -> dict[str, Any]:
    return {
        "description": _first_text(payload, "text", "description", "blurb") or "",
        "category": _first_text(payload, "category") or "General",
        "interests": _safe(extract_interests, (), payload),
        "age_range": _safe(extract_age_range, None, payload),
        "location": _safe(extract_location, ActivityLocation(), payload, *location_keys),
        "schedule": _safe(extract_schedule, Schedule(), payload),
        "pricing": _safe(extract_pricing, Pricing(), payload),
        "provider": _safe(extract_provider, ProviderInfo(), payload, *provider_keys),
    }


def _map_provider(raw: RawCandidate) -> ActivityRecord:
    payload = raw.payload
    return ActivityRecord(
        provider_id=_as_id(_first(payload, "provider_id", "original_id")) or f"candidate-{raw.id}",
        program_id=None,
        source=SourceKind.provider,
        name=_first_text(payload, "company_name", "provider_name", "name", "title") or "Unknown",
        **_common_fields(payload, ("address",), ("company_name", "provider_name", "name", "title")),
    )


def _map_event(raw: RawCandidate) -> ActivityRecord:
    payload = raw.payload
    program_id = _as_id(_first(payload, "camp_id", "event_id", "original_id")) or _as_id(raw.id)
    return ActivityRecord(
        provider_id=_as_id(payload.get("provider_id")) or f"candidate-{raw.id}",
        program_id=program_id,
        source=SourceKind.event,
        name=_first_text(payload, "title", "name", "provider_name") or "Unknown",
        **_common_fields(payload, ("address",), ("provider_name", "company_name", "title", "name")),
    )


def _map_session(raw: RawCandidate) -> ActivityRecord:
    payload = raw.payload
    program_id = _as_id(_first(payload, "session_id", "original_id")) or _as_id(raw.id)
    return ActivityRecord(
        provider_id=_as_id(payload.get("provider_id")) or f"candidate-{raw.id}",
        program_id=program_id,
        source=SourceKind.session,
        name=_first_text(payload, "title", "provider_name") or "Unknown",
        **_common_fields(payload, ("provider_location", "address"), ("provider_name", "title")),
    )


_MAPPERS: dict[SourceKind, Callable[[RawCandidate], ActivityRecord]] = {
    SourceKind.provider: _map_provider,
    SourceKind.event: _map_event,
    SourceKind.session: _map_session,
}


def normalize(raw: RawCandidate) -> ActivityRecord:
    """Map a raw candidate to an ``ActivityRecord``. Never raises."""
    source = raw.source
    try:
        return _MAPPERS[source](raw)
    except (ValidationError, TypeError, ValueError, OverflowError):
        logger.warning("Falling back to a sparse record for candidate %s", raw.id, exc_info=True)
        return ActivityRecord(
            provider_id=_as_id(raw.payload.get("provider_id")) or f"candidate-{raw.id}",
            source=source,
        )
