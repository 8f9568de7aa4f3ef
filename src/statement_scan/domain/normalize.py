import math
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from ..logging import get_logger
from .models import TX_EXPENSE, TX_INCOME

_LOG = get_logger("normalize")

_ISO_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_MONTH_DAY_RE = re.compile(r"(\d{1,2})/(\d{1,2})")
_YEAR_MONTH_DAY_RE = re.compile(r"(\d{4})/(\d{1,2})/(\d{1,2})")
# Leading numeric prefix, the way JavaScript's parseFloat reads "24.35 AUD".
_NUMERIC_PREFIX_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_CENT = Decimal("0.01")


def normalize_date(value: Any, *, today: Optional[date] = None) -> str:
    """Coerce a model-supplied date into ISO YYYY-MM-DD.

    Supports:
    - YYYY-MM-DD passthrough
    - M/D and MM/DD (current year assumed)
    - YYYY/M/D
    Anything else, including missing values, becomes today's date.
    """
    today = today or date.today()
    v = str(value).strip() if value is not None else ""
    if not v:
        return today.isoformat()
    if _ISO_RE.fullmatch(v):
        return v
    m = _MONTH_DAY_RE.fullmatch(v)
    if m:
        mth, d = m.groups()
        return f"{today.year:04d}-{int(mth):02d}-{int(d):02d}"
    m = _YEAR_MONTH_DAY_RE.fullmatch(v)
    if m:
        y, mth, d = m.groups()
        return f"{int(y):04d}-{int(mth):02d}-{int(d):02d}"
    _LOG.debug(f"Unrecognized date {v!r}; falling back to {today.isoformat()}")
    return today.isoformat()


def coerce_amount(value: Any) -> Optional[float]:
    """Return a finite float for numbers and numeric strings, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        m = _NUMERIC_PREFIX_RE.match(value.strip())
        if not m:
            return None
        try:
            number = float(m.group(0))
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def normalize_amount(value: Any) -> Optional[float]:
    """Round half away from zero at the cent; None when not a positive number."""
    number = coerce_amount(value)
    if number is None or number <= 0:
        return None
    try:
        rounded = Decimal(str(number)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    if rounded <= 0:
        return None
    return float(rounded)


def normalize_tx_type(value: Any) -> str:
    return TX_INCOME if value == TX_INCOME else TX_EXPENSE
