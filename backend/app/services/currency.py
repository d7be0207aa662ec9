"""Currency converter - foreign (SAR) aggregate to home currency (BDT)."""
from typing import Any

from app.services.numeric import normalize, safe_product

DEFAULT_EXCHANGE_RATE: float = 1.0


def effective_rate(exchange_rate: Any) -> float:
    """Normalized exchange rate; absent, non-numeric or non-positive reads as 1."""
    rate = normalize(exchange_rate)
    return rate if rate > 0 else DEFAULT_EXCHANGE_RATE


def to_home(amount_foreign: Any, exchange_rate: Any = None) -> float:
    """
    Convert an already-summed foreign amount into home currency.

    Call this once on the Saudi aggregate, never per line item: the SAR→BDT
    rate is a quotation-level parameter.
    """
    return safe_product(normalize(amount_foreign), effective_rate(exchange_rate))
