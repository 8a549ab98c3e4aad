"""
Value semantics shared by the evaluator.

Truthiness:
- Falsy: None, "", "0", "false", False, numeric zero, empty arrays and
  empty objects. The strings "0.0" and "00" are truthy.

Display strings:
- None -> "", booleans -> "true"/"false".
- Integral floats below 1e15 render without a fractional part (3.0 -> "3").
- Arrays render their elements joined by ", "; objects render as "".

Comparison:
- == and != compare display strings.
- <, >, <=, >= compare numerically when both sides are numeric, otherwise
  compare display strings. Numeric strings are read as floats; ints and
  floats compare exactly, so very large integers never overflow.

Integers too long to convert to text raise EvaluationError.
"""

import html
import math
import re
from typing import Any, Mapping

from .errors import EvaluationError

# Numeric-looking strings: optional sign, decimal digits with an optional
# fraction, optional exponent, surrounding whitespace allowed.
_NUMERIC_RE = re.compile(
    r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*", re.ASCII
)

_FALSY_STRINGS = ("", "0", "false")

_MAX_EXACT_INTEGRAL = 1e15


def is_truthy(value: Any) -> bool:
    """Determines whether a value counts as true in conditions."""
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value not in _FALSY_STRINGS
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, list | tuple | Mapping):
        return len(value) > 0
    return True


def format_number(value: int | float) -> str:
    """Formats a number without float artifacts for integral values."""
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError as e:
            raise EvaluationError(
                f"Integer too large to display ({value.bit_length()} bits)"
            ) from e
    if math.isfinite(value) and value.is_integer() and abs(value) < _MAX_EXACT_INTEGRAL:
        return str(int(value))
    return repr(value)


def to_display_string(value: Any) -> str:
    """Converts a value to the text emitted by an output tag."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list | tuple):
        return ", ".join(to_display_string(item) for item in value)
    if isinstance(value, Mapping):
        return ""
    return str(value)


def is_numeric(value: Any) -> bool:
    """Checks if a value is a number or a numeric-looking string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return True
    if isinstance(value, str):
        return _NUMERIC_RE.fullmatch(value) is not None
    return False


def _to_number(value: Any) -> int | float:
    if isinstance(value, str):
        return float(value)
    return value


def values_equal(left: Any, right: Any) -> bool:
    """Equality used by == and != (display-string coercion)."""
    return to_display_string(left) == to_display_string(right)


def compare_values(operator: str, left: Any, right: Any) -> bool:
    """Ordering used by <, >, <= and >=."""
    if is_numeric(left) and is_numeric(right):
        a: Any = _to_number(left)
        b: Any = _to_number(right)
    else:
        a = to_display_string(left)
        b = to_display_string(right)

    if operator == "<":
        return a < b
    if operator == "<=":
        return a <= b
    if operator == ">":
        return a > b
    if operator == ">=":
        return a >= b

    raise ValueError(f"Unknown comparison operator: {operator}")


def escape_html(text: str) -> str:
    """HTML-escapes text, quotes included."""
    return html.escape(text, quote=True)
