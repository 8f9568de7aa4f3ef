"""Transaction records and the field-level rules applied to them."""

from .categories import CATEGORIES, map_category
from .models import NormalizedTransaction, SplitItem
from .normalize import normalize_amount, normalize_date, normalize_tx_type

__all__ = [
    "CATEGORIES",
    "NormalizedTransaction",
    "SplitItem",
    "map_category",
    "normalize_amount",
    "normalize_date",
    "normalize_tx_type",
]
