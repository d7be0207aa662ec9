"""
Category calculators - one pure function per pricing shape.

    standard  : Σ quantity × unit_price
    lodging   : Σ room_count × nightly_rate × nights   (billed per room-night, not per head)
    per_diem  : Σ quantity × days × per_day_rate

Items may be line-item value objects or raw mappings from a deserialized
snapshot; a missing or malformed field counts as 0. Sums use ``math.fsum`` so
the result does not depend on item order; products and sums saturate at
``AMOUNT_CEILING`` rather than overflow.
"""
from typing import Any, Callable, Dict, Iterable, Mapping

from app.services.cost_profile import CATEGORY_SHAPE, CategoryId, PricingShape
from app.services.numeric import normalize, safe_product, safe_sum


def _field(item: Any, name: str) -> float:
    if isinstance(item, Mapping):
        return normalize(item.get(name))
    return normalize(getattr(item, name, None))


def standard_subtotal(items: Iterable[Any]) -> float:
    return safe_sum(
        safe_product(_field(i, "quantity"), _field(i, "unit_price"))
        for i in items or ()
    )


def lodging_subtotal(items: Iterable[Any]) -> float:
    return safe_sum(
        safe_product(_field(i, "room_count"), _field(i, "nightly_rate"), _field(i, "nights"))
        for i in items or ()
    )


def per_diem_subtotal(items: Iterable[Any]) -> float:
    return safe_sum(
        safe_product(_field(i, "quantity"), _field(i, "days"), _field(i, "per_day_rate"))
        for i in items or ()
    )


CALCULATORS: Dict[PricingShape, Callable[[Iterable[Any]], float]] = {
    PricingShape.STANDARD: standard_subtotal,
    PricingShape.LODGING: lodging_subtotal,
    PricingShape.PER_DIEM: per_diem_subtotal,
}


def subtotal_for(category_id: CategoryId, items: Iterable[Any]) -> float:
    """Price ``items`` with the calculator matching ``category_id``'s pricing shape."""
    return CALCULATORS[CATEGORY_SHAPE[category_id]](items)
