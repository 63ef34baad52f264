"""Value helpers for reading and coercing opaque row fields."""

import math
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

import numpy as np
import pandas as pd

_FALSE_STRINGS = frozenset({"", "false", "0", "no", "off"})

# Sort categories; a column whose present values span more than one is
# compared by string form.
NUMBER = "number"
TEXT = "text"
TEMPORAL = "temporal"
OTHER = "other"


def unwrap(value: Any) -> Any:
    """Convert numpy scalars to their Python equivalents."""
    if isinstance(value, np.generic):
        return value.item()
    return value


def is_missing(value: Any) -> bool:
    """
    Check whether a cell value is absent.

    None, NaN (Python, numpy or Decimal) and pandas NaT/NA count as
    missing. Rows that come from pandas frames carry NaN for empty cells.

    Args:
        value: Cell value

    Returns:
        True if the value should be treated as absent
    """
    value = unwrap(value)
    if value is None or value is pd.NaT or value is pd.NA:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, Decimal) and value.is_nan():
        return True
    return False


def get_field(row: Any, key: str) -> Any:
    """
    Look up a field on a row without raising.

    Mappings are read by key, anything else by attribute.

    Args:
        row: A mapping or an object
        key: Field name

    Returns:
        The value, or None when the row has no such field
    """
    if row is None:
        return None
    if isinstance(row, Mapping):
        try:
            return row.get(key)
        except TypeError:
            return None
    return getattr(row, key, None)


def iter_values(row: Any):
    """Yield every field value of a row (mapping values or public attributes)."""
    if row is None:
        return
    if isinstance(row, Mapping):
        yield from row.values()
        return
    attrs = getattr(row, "__dict__", None)
    if attrs is None:
        yield row
        return
    for name, value in attrs.items():
        if not name.startswith("_"):
            yield value


def to_text(value: Any) -> str:
    """String form of a cell; missing values become the empty string."""
    if is_missing(value):
        return ""
    return str(unwrap(value))


def to_bool(value: Any) -> bool:
    """
    Coerce a cell or filter value to bool.

    Strings such as 'false', '0', 'no' and 'off' are False, so values coming
    back from form widgets and query strings compare the way they read.
    """
    if is_missing(value):
        return False
    value = unwrap(value)
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a cell or filter value to a float.

    Returns:
        The number, or None when the value is missing or not numeric
    """
    if is_missing(value):
        return None
    value = unwrap(value)
    try:
        if isinstance(value, (bool, int, float, Decimal)):
            number = float(value)
        elif isinstance(value, str):
            number = float(Decimal(value.strip()))
        else:
            return None
    except (InvalidOperation, ValueError, OverflowError):
        # Signaling NaN, or an int too large for a float
        return None
    if math.isnan(number):
        return None
    return number


def sort_category(value: Any) -> str:
    """Classify a present value for sorting."""
    value = unwrap(value)
    if isinstance(value, (bool, int, float, Decimal)):
        return NUMBER
    if isinstance(value, str):
        return TEXT
    if isinstance(value, (date, pd.Timestamp)):
        return TEMPORAL
    return OTHER


def sort_key(value: Any, category: str) -> Any:
    """
    Key used to order present values of one column.

    Args:
        value: A present (non-missing) cell value
        category: Shared category of the column, or OTHER for mixed columns

    Returns:
        A key comparable with the keys of the other values of the column
    """
    value = unwrap(value)
    if category == NUMBER:
        # int, float, bool and Decimal compare with each other exactly
        return value
    if category == TEMPORAL:
        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()
        if not isinstance(value, datetime):
            return datetime.combine(value, time())
        return value
    if category == TEXT:
        return value
    return str(value)
