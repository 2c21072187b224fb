"""
Free-text heuristics used by the normalizer.

Upstream provider, camp and session records rarely carry clean structured
fields, so ages, grades, days, times and prices are recovered from whatever
strings are present. Every function here is pure and returns ``None`` or an
empty list when nothing recognisable is found.
"""
from __future__ import annotations

import math
import re
from typing import Any

MAX_AGE = 25

AgeSpan = tuple[int, int]

# ---------------------------------------------------------------------------
# Ages and grades
# ---------------------------------------------------------------------------

_GRADE_TO_AGE: dict[str, AgeSpan] = {
    "prek": (3, 4),
    "k": (5, 6),
    **{str(n): (5 + n, 6 + n) for n in range(1, 13)},
}

_GRADE_PREFIX_RE = re.compile(r"^(?:grades?|gr\.?)\s*")
_ORDINAL_RE = re.compile(r"(\d+)(?:st|nd|rd|th)\b")
_PREK_RE = re.compile(r"^pre-?\s?k(?:indergarten)?$")
_K_RE = re.compile(r"^k(?:indergarten)?$")
_GRADE_RANGE_RE = re.compile(r"^(pre-?\s?k|k|\d+)\s*(?:-|to|through)\s*(pre-?\s?k|k|\d+)$")

# Checked in order; the first keyword found wins.
_AGE_KEYWORDS: list[tuple[tuple[str, ...], AgeSpan]] = [
    (("all ages", "any age"), (0, 18)),
    (("adult", "18+", "grown up"), (18, MAX_AGE)),
    (("toddler",), (1, 3)),
    (("preschool", "pre-school"), (3, 5)),
    (("infant", "baby"), (0, 2)),
]

# Free text mentions "adult supervision" far more often than it describes an
# adults-only activity, so the text scan uses a narrower adult vocabulary.
_TEXT_AGE_KEYWORDS: list[tuple[re.Pattern[str], AgeSpan]] = [
    (re.compile(r"\b(?:all ages|any age)\b"), (0, 18)),
    (re.compile(r"\b(?:adults only|for adults)\b|\b18\+"), (18, MAX_AGE)),
    (re.compile(r"\btoddlers?\b"), (1, 3)),
    (re.compile(r"\bpre-?school"), (3, 5)),
    (re.compile(r"\b(?:infants?|bab(?:y|ies))\b"), (0, 2)),
]

_FIELD_RANGE_PATTERNS = [
    re.compile(r"^(\d+)\s*-\s*(\d+)$"),
    re.compile(r"ages?\s+(\d+)\s*(?:-|to)\s*(\d+)"),
    re.compile(r"^(\d+)\s*to\s*(\d+)$"),
    re.compile(r"(\d+)\s*through\s*(\d+)"),
]

_FIELD_SINGLE_PATTERNS = [
    re.compile(r"^(\d+)\s*(?:years?\s*old|yo)$"),
    re.compile(r"^age\s*(\d+)$"),
    re.compile(r"^(\d+)\s*years?$"),
    re.compile(r"for\s*(\d+)\s*year\s*olds?"),
]

_TEXT_RANGE_PATTERNS = [
    re.compile(r"ages?\s+(\d+)\s*(?:-|to)\s*(\d+)"),
    re.compile(r"(\d+)\s*to\s*(\d+)\s*years?\s*old"),
    re.compile(r"for\s*(\d+)\s*-\s*(\d+)\s*year\s*olds?"),
    re.compile(r"(\d+)\s*-\s*(\d+)\s*(?:years?|yrs?)\b"),
]

_TEXT_SINGLE_PATTERNS = [
    re.compile(r"for\s*(\d+)\s*year\s*olds?"),
    re.compile(r"\bage\s+(\d+)\b"),
]

_TEXT_GRADE_PATTERNS = [
    re.compile(r"grades?\s+(\d+)\s*-\s*(\d+)"),
    re.compile(r"grades?\s+k\s*-\s*(\d+)"),
]


def valid_age_span(low: Any, high: Any) -> AgeSpan | None:
    """Coerce a min/max pair to ints and accept it only if 0 <= min <= max <= 25."""
    try:
        lo, hi = int(float(low)), int(float(high))
    except (TypeError, ValueError, OverflowError):
        return None
    if 0 <= lo <= hi <= MAX_AGE:
        return lo, hi
    return None


def _grade_token_to_span(token: str) -> AgeSpan | None:
    token = token.replace(" ", "")
    if _PREK_RE.match(token):
        return _GRADE_TO_AGE["prek"]
    if _K_RE.match(token):
        return _GRADE_TO_AGE["k"]
    return _GRADE_TO_AGE.get(token)


def parse_grades(grades: str) -> AgeSpan | None:
    """Map grade strings like "K-5", "PreK-2", "6-12" or "3rd" to ages."""
    text = _GRADE_PREFIX_RE.sub("", grades.lower().strip())
    text = _ORDINAL_RE.sub(r"\1", text)
    if not text:
        return None

    single = _grade_token_to_span(text)
    if single:
        return single

    match = _GRADE_RANGE_RE.match(text)
    if not match:
        return None
    start = _grade_token_to_span(match.group(1))
    end = _grade_token_to_span(match.group(2))
    if not start or not end or start[0] > end[0]:
        return None
    return start[0], end[1]


def _match_keywords(text: str, table: list[tuple[tuple[str, ...], AgeSpan]]) -> AgeSpan | None:
    for keywords, span in table:
        if any(k in text for k in keywords):
            return span
    return None


def _match_numeric_ages(
    text: str,
    range_patterns: list[re.Pattern[str]],
    single_patterns: list[re.Pattern[str]],
) -> AgeSpan | None:
    for pattern in range_patterns:
        for match in pattern.finditer(text):
            span = valid_age_span(match.group(1), match.group(2))
            if span:
                return span

    for pattern in single_patterns:
        match = pattern.search(text)
        if match:
            age = int(match.group(1))
            if 0 <= age <= MAX_AGE:
                # A single age is widened by a year either side.
                return max(0, age - 1), max(age, min(18, age + 1))
    return None


def parse_ages(ages: str) -> AgeSpan | None:
    """Parse an "ages" field such as "3-5", "ages 4-8", "All ages" or "Toddlers"."""
    text = ages.lower().strip()
    if not text:
        return None
    return _match_keywords(text, _AGE_KEYWORDS) or _match_numeric_ages(
        text, _FIELD_RANGE_PATTERNS, _FIELD_SINGLE_PATTERNS,
    )


def parse_ages_from_text(text: str) -> AgeSpan | None:
    """Scan a name, title or description for an age or grade range."""
    lower = text.lower()

    for pattern in _TEXT_GRADE_PATTERNS:
        match = pattern.search(lower)
        if not match:
            continue
        if match.lastindex == 2:
            span = parse_grades(f"{match.group(1)}-{match.group(2)}")
        else:
            span = parse_grades(f"k-{match.group(1)}")
        if span:
            return span

    numeric = _match_numeric_ages(lower, _TEXT_RANGE_PATTERNS, _TEXT_SINGLE_PATTERNS)
    if numeric:
        return numeric
    for pattern, span in _TEXT_AGE_KEYWORDS:
        if pattern.search(lower):
            return span
    return None


# ---------------------------------------------------------------------------
# Days and times
# ---------------------------------------------------------------------------

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")
WEEKEND = ("saturday", "sunday")
ALL_DAYS = WEEKDAYS + WEEKEND

_DAY_ALIASES: dict[str, tuple[str, ...]] = {
    "monday": ("monday", "mon"),
    "tuesday": ("tuesday", "tues", "tue"),
    "wednesday": ("wednesday", "wed"),
    "thursday": ("thursday", "thurs", "thu"),
    "friday": ("friday", "fri"),
    "saturday": ("saturday", "sat"),
    "sunday": ("sunday", "sun"),
}

_DAY_TOKEN_RE = re.compile(r"[a-z]+")
_WEEKDAY_SPAN_RE = re.compile(r"\b(?:weekdays?|m-f|mon(?:day)?\s*(?:-|to|through)\s*fri(?:day)?)\b")
_WEEKEND_SPAN_RE = re.compile(r"\b(?:weekends?|sat(?:urday)?\s*(?:-|and|&)\s*sun(?:day)?)\b")

_CLOCK_RE = re.compile(r"\b(\d{1,2})(?::(\d{2}))?(?!\d)\s*(am|pm|a\.m\.|p\.m\.)?", re.IGNORECASE)
_CLOCK_RANGE_RE = re.compile(
    r"\b(\d{1,2}(?::\d{2})?(?!\d)\s*(?:am|pm)?)\s*(?:-|–|to)\s*(\d{1,2}(?::\d{2})?(?!\d)\s*(?:am|pm)?)",
    re.IGNORECASE,
)
_TIME_KEYWORDS = ("before school", "after school", "morning", "afternoon", "evening")

# Representative hour for each time keyword.
KEYWORD_HOURS: dict[str, int] = {
    "before school": 7,
    "morning": 9,
    "afternoon": 14,
    "after school": 15,
    "evening": 18,
}


def _ordered_days(found: set[str]) -> list[str]:
    return [d for d in ALL_DAYS if d in found]


def parse_days(value: Any) -> list[str]:
    """Standardise a days field (string or list) into ordered weekday names."""
    if isinstance(value, (list, tuple, set)):
        value = " ".join(str(v) for v in value)
    if not isinstance(value, str):
        return []

    lower = value.lower()
    found: set[str] = set()
    if _WEEKDAY_SPAN_RE.search(lower):
        found.update(WEEKDAYS)
    if _WEEKEND_SPAN_RE.search(lower):
        found.update(WEEKEND)

    tokens = set(_DAY_TOKEN_RE.findall(lower))
    # Plurals: "Mondays", "Saturdays"
    tokens |= {t[:-1] for t in tokens if t.endswith("days")}
    for day, aliases in _DAY_ALIASES.items():
        if tokens & set(aliases):
            found.add(day)
    return _ordered_days(found)


def parse_times(value: Any) -> list[str]:
    """Pull clock times ("9:00 AM", "14:00") and ranges ("9am-5pm") out of a string."""
    if isinstance(value, (list, tuple, set)):
        value = " ".join(str(v) for v in value)
    if not isinstance(value, str):
        return []

    times: list[str] = []
    for match in _CLOCK_RANGE_RE.finditer(value):
        times.append(match.group(0).strip())
    for match in _CLOCK_RE.finditer(value):
        token = match.group(0).strip()
        if token and token not in times:
            times.append(token)

    lower = value.lower()
    for keyword in _TIME_KEYWORDS:
        if keyword in lower and keyword not in times:
            times.append(keyword)
    return times


def infer_days_from_text(text: str) -> list[str]:
    """Spot day names or weekday/weekend phrases in a description."""
    lower = text.lower()
    found: set[str] = set()
    if "weekday" in lower or "monday through friday" in lower or "m-f" in lower:
        found.update(WEEKDAYS)
    if "weekend" in lower or "saturday and sunday" in lower or "sat-sun" in lower:
        found.update(WEEKEND)
    for day in ALL_DAYS:
        if day in lower:
            found.add(day)
    return _ordered_days(found)


def infer_times_from_text(text: str) -> list[str]:
    """Spot meridiem clock times and time-of-day keywords in a description."""
    times: list[str] = []
    for match in _CLOCK_RE.finditer(text):
        if match.group(3):
            times.append(match.group(0).strip())
    lower = text.lower()
    for keyword in _TIME_KEYWORDS:
        if keyword in lower:
            times.append(keyword)
    return list(dict.fromkeys(times))


def time_to_hour(value: str) -> int | None:
    """Return the 24-hour starting hour of a time token, range or keyword."""
    lower = value.lower().strip()
    for keyword, hour in KEYWORD_HOURS.items():
        if keyword in lower:
            return hour

    clocks = _CLOCK_RE.findall(lower)
    if not clocks:
        return None
    hour = int(clocks[0][0])
    if hour > 23:
        return None
    meridiem = clocks[0][2].replace(".", "")
    if not meridiem and len(clocks) > 1 and _CLOCK_RANGE_RE.search(lower):
        # "3-5pm": the start shares the end's meridiem unless it would wrap.
        end_hour, end_meridiem = int(clocks[-1][0]), clocks[-1][2].replace(".", "")
        if end_meridiem and hour <= end_hour:
            meridiem = end_meridiem

    if meridiem == "pm" and hour != 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0
    elif not meridiem and 1 <= hour <= 6:
        # Bare "3:30" on a kids' activity is an afternoon time.
        hour += 12
    return hour


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------

_DOLLAR_RE = re.compile(r"\$\s*(\d+(?:,\d{3})*(?:\.\d{1,2})?)")
_NUMBER_RE = re.compile(r"(\d+(?:,\d{3})*(?:\.\d{1,2})?)")
_PER_MONTH_RE = re.compile(r"(?:\bper|\ba|/)\s*mo(?:nth)?\b|monthly", re.IGNORECASE)
_PER_PROGRAM_RE = re.compile(r"per\s*(?:program|camp|week|term|semester|season)|/\s*(?:wk|week)|weekly|total", re.IGNORECASE)


def _to_amount(token: str) -> float:
    return float(token.replace(",", ""))


def parse_price(value: Any) -> dict[str, Any]:
    """
    Interpret a price field.

    Returns a dict with ``free`` (bool), ``amount`` (first dollar figure or
    ``None``), ``range`` (``(low, high)`` when two figures are present) and
    ``period`` (``"per_month"``, ``"per_program"`` or ``None``).
    """
    result: dict[str, Any] = {"free": False, "amount": None, "range": None, "period": None}

    if isinstance(value, bool):
        return result
    if isinstance(value, (int, float)):
        if value == 0:
            result["free"] = True
        elif value > 0 and math.isfinite(value):
            result["amount"] = float(value)
        return result
    if not isinstance(value, str):
        return result

    lower = value.lower()
    if "free" in lower:
        result["free"] = True
        return result

    figures = [_to_amount(t) for t in _DOLLAR_RE.findall(value)]
    if not figures:
        figures = [_to_amount(t) for t in _NUMBER_RE.findall(value)][:2]
    if figures:
        if figures[0] == 0 and len(figures) == 1:
            result["free"] = True
            return result
        result["amount"] = figures[0]
        if len(figures) > 1 and figures[1] > figures[0]:
            result["range"] = (figures[0], figures[1])

    if _PER_MONTH_RE.search(value):
        result["period"] = "per_month"
    elif _PER_PROGRAM_RE.search(value):
        result["period"] = "per_program"
    return result
