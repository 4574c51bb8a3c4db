# warehouse/silver/utils.py
"""
Silver Layer Utilities - Scalar cleaning and repair functions.

Every function here is total: malformed or missing input degrades to None,
a numeric default or the "n/a" sentinel. None of them raise on bad data.
"""

import math
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional

import numpy as np
import pandas as pd

# Sentinel for unmapped / empty categorical values
NA = "n/a"

# Non-ISO shapes accepted by to_date; each carries a full year, month and day
DATE_FORMATS = ("%Y/%m/%d", "%d.%m.%Y", "%m/%d/%Y", "%Y%m%d")


def is_missing(value: Any) -> bool:
    """True for None, NaN, NaT and pd.NA."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


# TEXT

def clean_text(value: Any) -> Optional[str]:
    """Trim surrounding whitespace; blank or missing becomes None."""
    if is_missing(value):
        return None
    text = str(value).strip()
    return text or None


def map_code(
    value: Any,
    mapping: Mapping[str, str],
    default: str = NA,
    fold_case: bool = True,
    passthrough: bool = False,
) -> str:
    """
    Expand a short code into its descriptive label.

    Args:
        value: Raw code
        mapping: Code -> label. Keys must be upper case when fold_case is set.
        default: Returned for missing/blank input, and for unknown codes
        fold_case: Compare the trimmed, upper-cased code
        passthrough: Keep unknown (non-blank) values trimmed instead of
            returning the default. Used for open vocabularies.
    """
    text = clean_text(value)
    if text is None:
        return default
    key = text.upper() if fold_case else text
    if key in mapping:
        return mapping[key]
    return text if passthrough else default


def strip_prefix(value: Any, prefix: str, case_sensitive: bool = False) -> Optional[str]:
    """Remove a fixed literal prefix from an identifier."""
    text = clean_text(value)
    if text is None:
        return None
    head = text[:len(prefix)]
    matches = head == prefix if case_sensitive else head.upper() == prefix.upper()
    if matches:
        text = text[len(prefix):]
    return text or None


def remove_separators(value: Any, separator: str = "-") -> Optional[str]:
    """Remove every occurrence of ``separator`` from an identifier."""
    text = clean_text(value)
    if text is None:
        return None
    return text.replace(separator, "") or None


def slice_text(value: Any, start: int = 0, stop: Optional[int] = None) -> Optional[str]:
    """Trimmed substring ``[start:stop]``; empty result becomes None."""
    text = clean_text(value)
    if text is None:
        return None
    return text[start:stop] or None


# NUMERIC

def to_number(value: Any) -> Optional[float]:
    """Parse a finite float; anything else becomes None."""
    if is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def to_integer(value: Any) -> Optional[int]:
    """Parse an integer. Fractions are truncated toward zero."""
    if is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
    number = to_number(value)
    return int(number) if number is not None else None


def integer_or_default(value: Any, default: int = 0) -> int:
    """Parse an integer, substituting ``default`` for null/unparseable input."""
    number = to_integer(value)
    return default if number is None else number


def divide_toward_zero(numerator: int, denominator: int) -> int:
    """Integer division truncated toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


# DATES

def to_date(value: Any) -> Optional[date]:
    """Parse a calendar date from a date, datetime or date-like string."""
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for date_format in DATE_FORMATS:
        try:
            parsed = pd.to_datetime(text, format=date_format, errors="coerce")
        except (TypeError, ValueError, OverflowError):
            continue
        if not is_missing(parsed):
            return parsed.date()
    return None


def parse_yyyymmdd(value: Any) -> Optional[date]:
    """
    Parse an 8-digit YYYYMMDD integer date.

    Zero, negative values, anything whose digit count is not exactly 8,
    non-numeric text and impossible calendar dates all become None.
    """
    if is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        number = int(value)
    elif isinstance(value, (float, np.floating)):
        if not math.isfinite(value) or not float(value).is_integer():
            return None
        number = int(value)
    else:
        text = str(value).strip()
        if text.isdecimal():
            try:
                number = int(text)
            except ValueError:
                return None
        else:
            parsed = to_number(text)
            if parsed is None or not parsed.is_integer():
                return None
            number = int(parsed)

    digits = str(number)
    if number <= 0 or len(digits) != 8:
        return None
    try:
        return datetime.strptime(digits, "%Y%m%d").date()
    except ValueError:
        return None


def null_if_future(value: Any, as_of: Optional[date] = None) -> Optional[date]:
    """Parse a date and null it when it lies after ``as_of`` (default today)."""
    parsed = to_date(value)
    if parsed is None:
        return None
    reference = as_of or date.today()
    return None if parsed > reference else parsed


def day_before(value: Optional[date], days: int = 1) -> Optional[date]:
    """``value`` minus ``days`` days, None-safe."""
    if value is None:
        return None
    try:
        return value - timedelta(days=days)
    except OverflowError:
        return None


# SALES LINE REPAIR

def _expected_sales(quantity: Optional[int], price: Optional[int]) -> Optional[int]:
    if quantity is None or price is None:
        return None
    return quantity * abs(price)


def sales_amount_is_valid(sales: Any, quantity: Any, price: Any) -> bool:
    """
    True when the stored amount can be kept as-is.

    The amount is invalid when null, non-positive, or different from
    quantity * |price| (only checked when both are known).
    """
    amount = to_integer(sales)
    if amount is None or amount <= 0:
        return False
    expected = _expected_sales(to_integer(quantity), to_integer(price))
    return expected is None or amount == expected


def repair_sales_amount(sales: Any, quantity: Any, price: Any) -> Optional[int]:
    """Stored amount when valid, otherwise quantity * |price|."""
    if sales_amount_is_valid(sales, quantity, price):
        return to_integer(sales)
    return _expected_sales(to_integer(quantity), to_integer(price))


def repair_unit_price(sales: Any, quantity: Any, price: Any) -> Optional[int]:
    """
    Stored price when positive, otherwise amount / quantity.

    Amount repair takes precedence: the price is only recomputed from the
    amount when the stored amount was valid. When both are invalid the
    amount is rebuilt from the price and the price is left untouched.
    """
    unit_price = to_integer(price)
    if unit_price is not None and unit_price > 0:
        return unit_price
    if not sales_amount_is_valid(sales, quantity, price):
        return unit_price
    qty = to_integer(quantity)
    if not qty:
        return None
    return divide_toward_zero(to_integer(sales), qty)
