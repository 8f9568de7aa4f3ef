"""Keyword rules that fold merchant names and bank categories into one taxonomy.

Rules are ordered ``(keywords, category)`` pairs matched as case-insensitive
substrings; the first matching rule wins. Resolution order:

1. ``MERCHANT_OVERRIDES`` against the description
2. category text that already names a taxonomy value other than ``other``
3. ``CATEGORY_KEYWORDS`` against the caller-supplied category text
4. ``MERCHANT_FALLBACKS`` against the description
5. caller text verbatim, else ``other``
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from ..logging import get_logger

LOG = get_logger("categories")

FOOD = "food"
GROCERIES = "groceries"
SHOPPING = "shopping"
ENTERTAINMENT = "entertainment"
HEALTH = "health"
EDUCATION = "education"
ACCOMMODATION = "accommodation"
TRANSFERS = "transfers"
TRAVEL = "travel"
COMMUNICATION = "communication"
VEHICLE = "vehicle"
LAUNDRY = "laundry"
OTHER = "other"

CATEGORIES: Tuple[str, ...] = (
    FOOD,
    GROCERIES,
    SHOPPING,
    ENTERTAINMENT,
    HEALTH,
    EDUCATION,
    ACCOMMODATION,
    TRANSFERS,
    TRAVEL,
    COMMUNICATION,
    VEHICLE,
    LAUNDRY,
    OTHER,
)

Rule = Tuple[Tuple[str, ...], str]

MERCHANT_OVERRIDES: Tuple[Rule, ...] = (
    (("tangerpay",), LAUNDRY),
    (("qut", "queensland university"), EDUCATION),
    (("iglu",), ACCOMMODATION),
)

CATEGORY_KEYWORDS: Tuple[Rule, ...] = (
    (("eating out", "takeaway"), FOOD),
    (("groceries",), GROCERIES),
    (("transfer", "payment"), TRANSFERS),
    (("entertainment",), ENTERTAINMENT),
    (("transport",), VEHICLE),
    (("health",), HEALTH),
    (("education",), EDUCATION),
    (("shopping",), SHOPPING),
    (("travel",), TRAVEL),
    (("accommodation",), ACCOMMODATION),
    (("communication", "phone", "internet"), COMMUNICATION),
    (("laundry",), LAUNDRY),
)

MERCHANT_FALLBACKS: Tuple[Rule, ...] = (
    (("kfc", "mcdonald", "cafe"), FOOD),
    (("mart", "coles", "woolworths", "sunlit", "hanaro", "metro"), GROCERIES),
    (("target",), SHOPPING),
)


def _first_match(text: str, rules: Tuple[Rule, ...]) -> Optional[str]:
    if not text:
        return None
    for keywords, category in rules:
        for keyword in keywords:
            if keyword in text:
                return category
    return None


def _lower(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def map_category(description: Any, category: Any = None) -> str:
    name = _lower(description)
    cat = _lower(category)

    hit = _first_match(name, MERCHANT_OVERRIDES)
    if hit:
        return hit
    # Already-normalized input must stay a fixed point.
    if cat in CATEGORIES and cat != OTHER:
        return cat
    hit = _first_match(cat, CATEGORY_KEYWORDS)
    if hit:
        return hit
    hit = _first_match(name, MERCHANT_FALLBACKS)
    if hit:
        return hit

    if isinstance(category, str) and category.strip():
        LOG.debug("No category rule for %r / %r; keeping model text", description, category)
        return category
    return OTHER
