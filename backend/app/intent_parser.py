"""Keyword/regex intent parser for evening planning prompts.

A pure function of the prompt (and today's date): extracts date, time, party size,
location, cuisines, vibe, budget, occasion, dietary needs and whether drinks or
dessert were asked for. Location has no default; an empty string means the
prompt did not name one.
"""

from __future__ import annotations

import re
from datetime import date, timedelta

from .contracts import ParsedIntent

DEFAULT_TIME = "7:00 PM"
DEFAULT_PARTY_SIZE = 2

CUISINES = [
    "sushi", "japanese", "italian", "thai", "chinese", "mexican", "indian",
    "french", "korean", "vietnamese", "mediterranean", "american", "seafood",
    "steakhouse", "steak", "pizza", "ramen", "tapas", "greek", "spanish",
    "peruvian", "brazilian", "bbq", "barbecue", "southern", "cajun", "creole",
    "ethiopian", "middle eastern", "turkish", "lebanese", "moroccan", "cuban",
    "caribbean", "hawaiian", "dim sum", "dumplings", "noodles", "pho", "tacos",
    "omakase", "izakaya", "fine dining", "farm to table", "brunch",
]

VIBES = [
    "romantic", "casual", "upscale", "trendy", "quiet", "lively", "intimate",
    "cozy", "modern", "traditional", "hip", "fancy", "relaxed", "chill",
    "sophisticated", "elegant", "fun", "vibrant", "low-key", "high-end",
    "classy", "chic", "laid-back", "energetic", "buzzy", "swanky",
]

VIBE_PHRASES = [
    "not too loud", "good for conversation", "date night", "special occasion",
    "good for groups", "outdoor seating", "rooftop", "great view",
    "people watching", "hidden gem", "hole in the wall", "neighborhood spot",
]

DIETARY = [
    "vegetarian", "vegan", "gluten-free", "gluten free", "dairy-free", "dairy free",
    "kosher", "halal", "pescatarian", "keto", "paleo", "nut-free", "nut free",
]

OCCASIONS = [
    "date night", "birthday", "anniversary", "celebration", "business dinner",
    "first date", "proposal", "engagement", "graduation", "promotion",
    "girls night", "guys night", "family dinner", "catch up", "reunion",
]

# vibe words that imply a price band (provider price filter syntax "1".."4")
BUDGET_KEYWORDS: dict[str, str] = {
    "cheap": "1",
    "budget": "1",
    "affordable": "1,2",
    "inexpensive": "1,2",
    "casual": "1,2",
    "moderate": "2",
    "mid-range": "2",
    "nice": "2,3",
    "upscale": "3,4",
    "fancy": "3,4",
    "fine dining": "4",
    "expensive": "3,4",
    "splurge": "4",
    "high-end": "4",
    "luxury": "4",
}

KNOWN_CITIES = [
    "new york", "nyc", "manhattan", "brooklyn", "queens", "bronx",
    "los angeles", "hollywood", "santa monica", "beverly hills",
    "san francisco", "oakland", "berkeley",
    "chicago", "wicker park", "lincoln park", "river north",
    "miami", "miami beach", "south beach", "wynwood", "brickell",
    "austin", "houston", "dallas", "san antonio", "fort worth",
    "seattle", "capitol hill", "fremont", "ballard",
    "boston", "cambridge", "back bay", "beacon hill",
    "denver", "boulder", "portland", "pearl district",
    "philadelphia", "philly", "rittenhouse",
    "washington dc", "georgetown", "dupont circle",
    "atlanta", "buckhead", "decatur", "nashville", "east nashville",
    "new orleans", "french quarter", "garden district",
    "san diego", "gaslamp", "la jolla", "las vegas",
    "phoenix", "scottsdale", "tempe", "minneapolis", "detroit",
    "cleveland", "cincinnati", "columbus", "pittsburgh", "baltimore",
    "tampa", "orlando", "charlotte", "raleigh", "durham",
    "salt lake city", "sacramento", "san jose", "kansas city", "st louis",
    "indianapolis", "milwaukee", "madison", "memphis", "louisville",
    "honolulu", "soho", "tribeca", "east village", "west village", "chelsea",
    "williamsburg", "lower east side", "upper west side", "upper east side",
]

NON_LOCATIONS = {
    "mood", "evening", "night", "morning", "afternoon", "vibe", "style",
    "a", "the", "my", "our", "town", "advance",
}

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]
WORD_NUMBERS = {
    "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "twelve": 12,
}
LOCATION_ACRONYMS = {"Nyc": "NYC", "Dc": "DC", "Sf": "SF", "La": "LA"}

_TIME_PATTERNS = [
    re.compile(r"(?:\bat|\baround|@)\s*(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2}):(\d{2})\b()"),
]
_PARTY_PATTERNS = [
    re.compile(r"\bparty\s+of\s+(\d+)", re.IGNORECASE),
    re.compile(r"\btable\s+for\s+(\d+)", re.IGNORECASE),
    re.compile(r"\b(\d+)\s+(?:people|guests|persons|of us)\b", re.IGNORECASE),
    re.compile(r"\bfor\s+(\d+)\b(?!\s*(?::|am|pm))", re.IGNORECASE),
    re.compile(r"\b(\d+)\s+(?:top|pax)\b", re.IGNORECASE),
]
_IN_LOCATION = re.compile(
    r"\bin\s+([A-Za-z][A-Za-z\s'-]+?)"
    r"(?:\s+(?:for|at|around|near|tonight|tomorrow|this|next|on|with)\b|\s+\d|,|\.|!|\?|\s*$)",
    re.IGNORECASE,
)
_NEAR_LOCATION = re.compile(
    r"\b(?:near|by)\s+([A-Za-z][A-Za-z\s'-]+?)(?:\s+(?:for|at)\b|\s+\d|,|\.|!|\?|\s*$)",
    re.IGNORECASE,
)
_CITY_STATE = re.compile(r"([A-Z][A-Za-z\s'-]+),\s*([A-Z]{2})\b")
_MONTH_DAY = re.compile(r"\b([a-z]+)\s+(\d{1,2})(?:st|nd|rd|th)?\b")


def format_date(value: date) -> str:
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def _contains(text: str, phrase: str) -> bool:
    return re.search(rf"(?<![a-z]){re.escape(phrase)}(?![a-z])", text) is not None


def extract_date(lower: str, today: date) -> str:
    if "tonight" in lower or "today" in lower:
        return format_date(today)
    if "tomorrow" in lower:
        return format_date(today + timedelta(days=1))
    if "this weekend" in lower:
        days_until_saturday = (5 - today.weekday()) % 7 or 7
        return format_date(today + timedelta(days=days_until_saturday))
    for index, name in enumerate(WEEKDAYS):
        if _contains(lower, name):
            diff = (index - today.weekday()) % 7 or 7
            return format_date(today + timedelta(days=diff))
    for match in _MONTH_DAY.finditer(lower):
        month_name, day_text = match.groups()
        if month_name not in MONTHS:
            continue
        try:
            target = date(today.year, MONTHS.index(month_name) + 1, int(day_text))
        except ValueError:
            continue
        if target < today:
            target = target.replace(year=today.year + 1)
        return format_date(target)
    return format_date(today)


def extract_time(prompt: str) -> str | None:
    for pattern in _TIME_PATTERNS:
        match = pattern.search(prompt)
        if not match:
            continue
        hour = int(match.group(1))
        minutes = match.group(2) or "00"
        period = (match.group(3) or "").upper()
        if hour > 23 or int(minutes) > 59:
            continue
        if hour > 12:
            hour -= 12
            period = "PM"
        if not period:
            # bare numbers are read as dinner-time PM
            period = "PM" if 1 <= hour <= 12 else "AM"
        if hour == 0:
            hour = 12
        return f"{hour}:{minutes} {period}"
    return None


def extract_party_size(prompt: str) -> int:
    for pattern in _PARTY_PATTERNS:
        match = pattern.search(prompt)
        if match:
            size = int(match.group(1))
            if size >= 1:
                return size
    lower = prompt.lower()
    for word, number in WORD_NUMBERS.items():
        if f"for {word}" in lower or f"{word} people" in lower:
            return number
    return DEFAULT_PARTY_SIZE


def clean_location(location: str) -> str:
    words = [word.capitalize() for word in location.split()]
    return " ".join(LOCATION_ACRONYMS.get(word, word) for word in words).strip()


def extract_location(prompt: str) -> str:
    match = _IN_LOCATION.search(prompt)
    if match:
        candidate = match.group(1).strip()
        if candidate.lower() not in NON_LOCATIONS and len(candidate) > 1:
            return clean_location(candidate)

    match = _NEAR_LOCATION.search(prompt)
    if match:
        candidate = match.group(1).strip()
        if candidate.lower() not in NON_LOCATIONS and len(candidate) > 1:
            return clean_location(candidate)

    match = _CITY_STATE.search(prompt)
    if match:
        return f"{match.group(1).strip()}, {match.group(2).strip()}"

    lower = prompt.lower()
    for city in KNOWN_CITIES:
        if _contains(lower, city):
            return clean_location(city)
    return ""


def extract_budget(lower: str) -> int | None:
    match = re.search(r"\$(\d+)", lower)
    if match:
        return int(match.group(1))
    match = re.search(r"(\d+)\s*(?:per person|pp|each)\b", lower)
    if match:
        return int(match.group(1))
    return None


def _matches(lower: str, vocabulary: list[str]) -> list[str]:
    return [term for term in vocabulary if _contains(lower, term)]


def parse_intent(prompt: str, *, today: date | None = None) -> ParsedIntent:
    lower = prompt.lower()
    today = today or date.today()
    occasions = _matches(lower, OCCASIONS)
    return ParsedIntent(
        date=extract_date(lower, today),
        time=extract_time(prompt) or DEFAULT_TIME,
        party_size=extract_party_size(prompt),
        location=extract_location(prompt),
        cuisines=_matches(lower, CUISINES),
        vibe_keywords=_matches(lower, VIBES) + _matches(lower, VIBE_PHRASES),
        budget=extract_budget(lower),
        occasion=occasions[0] if occasions else None,
        include_drinks=re.search(r"\b(?:drinks?|cocktails?|bar|after|nightcap)\b", lower)
        is not None,
        include_dessert=re.search(r"\b(?:dessert|sweets?|ice cream)\b", lower) is not None,
        dietary_restrictions=_matches(lower, DIETARY),
    )


def map_to_price(intent: ParsedIntent) -> str | None:
    """Map an explicit budget, else a price-flavoured vibe word, to a price filter."""
    budget = intent.budget
    if budget:
        if budget <= 20:
            return "1"
        if budget <= 40:
            return "1,2"
        if budget <= 60:
            return "2,3"
        if budget <= 100:
            return "3,4"
        return "4"
    for vibe in intent.vibe_keywords:
        price = BUDGET_KEYWORDS.get(vibe.lower())
        if price:
            return price
    return None


__all__ = ["format_date", "map_to_price", "parse_intent"]
