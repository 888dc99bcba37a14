"""
Metric string parsing.

Backtest metrics are stored as display strings: "45.20%", "−12.50%",
"$1,234.56", "1.85". Every helper here degrades to 0 on null, empty or
malformed input and always returns a finite number, so a bad row can never
break aggregation or rendering.
"""
import math
import re
from typing import Any

UNICODE_MINUS = "−"

_LEADING_INT_RE = re.compile(r"[+-]?\d+")
_LEADING_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")


def _to_finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def _coerce_number(raw: Any):
    """Pass already-typed numbers through; return None for anything non-string."""
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, (int, float)):
        return _to_finite(float(raw))
    return None


def _parse_float(text: str) -> float:
    """Longest leading decimal literal, ignoring anything after it ('12.3.4' -> 12.3)."""
    match = _LEADING_FLOAT_RE.match(text.lstrip())
    if not match:
        return 0.0
    return _to_finite(float(match.group(0)))


def parse_float(raw: Any) -> float:
    """Plain leading-float parse with no cleanup ('1.85' -> 1.85, '1e3' -> 1000.0, '2.1x' -> 2.1)."""
    number = _coerce_number(raw)
    if number is not None:
        return number
    if not raw or not isinstance(raw, str):
        return 0.0
    return _parse_float(raw)


def parse_percentage(raw: Any) -> float:
    """'45.2%' -> 45.2, '−12.50%' -> -12.5, '1,234.56%' -> 1234.56, None -> 0.0"""
    number = _coerce_number(raw)
    if number is not None:
        return number
    if not raw or not isinstance(raw, str):
        return 0.0
    cleaned = raw.replace(UNICODE_MINUS, "-")
    cleaned = cleaned.replace("%", "").replace("$", "").replace(",", "").strip()
    return _parse_float(cleaned)


def parse_dollar(raw: Any) -> float:
    """'$1,234.56' -> 1234.56, '-$500' -> -500.0"""
    return parse_percentage(raw)


def parse_number(raw: Any) -> float:
    """Lenient parse: keep only digits, '.' and '-' ('1.85x' -> 1.85, 'USD 1,500' -> 1500.0)."""
    number = _coerce_number(raw)
    if number is not None:
        return number
    if not raw or not isinstance(raw, str):
        return 0.0
    cleaned = _NON_NUMERIC_RE.sub("", raw.replace(UNICODE_MINUS, "-"))
    return _parse_float(cleaned)


def parse_int(raw: Any) -> int:
    """
    Leading-integer parse for count fields, with parseInt semantics: digits
    stop at the first non-digit, so '152' -> 152, '87 trades' -> 87 and
    '1,204' -> 1. Thousands separators are not stripped; the VMs write trade
    counts without them.
    """
    number = _coerce_number(raw)
    if number is not None:
        return int(number)
    if not raw or not isinstance(raw, str):
        return 0
    match = _LEADING_INT_RE.match(raw.lstrip())
    return int(match.group(0)) if match else 0
