"""Numeric normalizer for package costing inputs.

Form fields arrive mid-edit: a user may clear a box, type a stray letter or
paste a negative figure. Everything that enters the costing engine passes
through ``normalize`` first, so the engine only ever sees non-negative finite
floats.
"""
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable


def normalize(raw: Any) -> float:
    """
    Coerce any input into a non-negative finite float.

    None, "", booleans, non-numeric text, NaN and ±inf → 0.0.
    Negative numbers → 0.0 (the domain has no negative costs, quantities,
    nights or days). Never raises.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0

    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return 0.0
    elif isinstance(raw, Decimal):
        try:
            value = float(raw)
        except (InvalidOperation, ValueError, OverflowError):
            return 0.0
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            return 0.0
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError, OverflowError):
            return 0.0

    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def is_negative_input(raw: Any) -> bool:
    """True when ``raw`` parses as a finite negative number (used by save-time checks)."""
    if raw is None or isinstance(raw, bool):
        return False
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError, OverflowError):
        return False
    return math.isfinite(value) and value < 0


# Ceiling for any derived amount. Products and sums of normalized inputs can
# still overflow; they saturate here so every total stays finite.
AMOUNT_CEILING: float = 1e300


def bounded(value: float) -> float:
    """NaN → 0.0, anything above AMOUNT_CEILING (including +inf) → AMOUNT_CEILING."""
    if math.isnan(value):
        return 0.0
    return min(value, AMOUNT_CEILING)


def safe_product(*factors: float) -> float:
    """Product of non-negative factors; a zero factor wins over an overflowing one."""
    result = 1.0
    for factor in factors:
        if factor == 0:
            return 0.0
        result *= factor
    return bounded(result)


def safe_sum(values: Iterable[float]) -> float:
    """``math.fsum`` of non-negative values, saturating instead of overflowing."""
    try:
        total = math.fsum(values)
    except OverflowError:
        return AMOUNT_CEILING
    return bounded(total)
