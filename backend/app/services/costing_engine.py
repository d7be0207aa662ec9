"""
CostingEngine - package price quotation for Hajj / Umrah agent packages.

Covers:
  - Bangladesh-side per-passenger categories (home currency)
  - Bangladesh-side flat fees (additive, policy controlled)
  - Saudi-side per-passenger categories OR Saudi flat fees (mutually exclusive)
  - Single-point SAR → BDT conversion of the Saudi aggregate
  - Discount with a zero floor
  - Immutable Totals snapshot with per-category breakdown for display/export

Both the package creation flow and the package costing/edit flow call this
module, so creation-time and edit-time totals are derived identically.
"""
import logging
import os
from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from app.services.category_calculators import standard_subtotal, subtotal_for
from app.services.cost_profile import (
    BANGLADESH_CATEGORIES,
    CATEGORY_LABELS,
    SAUDI_CATEGORIES,
    SAUDI_FEE_FIELDS,
    SAUDI_HOTEL_FIELDS,
    SAUDI_SERVICE_FIELDS,
    BangladeshFixedFields,
    CategoryId,
    SaudiFixedFields,
)
from app.services.currency import effective_rate, to_home
from app.services.line_item_store import LineItemStore
from app.services.numeric import normalize, safe_product, safe_sum
from app.services.package_type_selector import (
    SourceKind,
    select_bangladesh_source,
    select_saudi_source,
)

logger = logging.getLogger("hajj-costing")


# ---------------------------------------------------------------------------
# Policy defaults (overridden by the policy dict or environment at runtime)
# ---------------------------------------------------------------------------
BD_FIXED_ALWAYS: str = "always"                 # flat BD fees always add to the BD total
BD_FIXED_WHEN_SELECTED: str = "when_selected"   # only when the selector picks the fixed form
_BD_FIXED_POLICIES = (BD_FIXED_ALWAYS, BD_FIXED_WHEN_SELECTED)
_DEFAULT_BD_FIXED_POLICY: str = BD_FIXED_ALWAYS

_BD_FIXED_NAMES = tuple(f.name for f in fields(BangladeshFixedFields))
_SA_FIXED_NAMES = tuple(f.name for f in fields(SaudiFixedFields))


def _read(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _category_items(profile: Any, category: CategoryId) -> List[Any]:
    categories = _read(profile, "categories")
    if isinstance(categories, LineItemStore):
        return categories.list(category)
    if isinstance(categories, Mapping):
        items = categories.get(category)
        if items is None:
            items = categories.get(category.value)
        if isinstance(items, (list, tuple)):
            return list(items)
    return []


def _fixed_values(profile: Any, side: str, names: tuple) -> Dict[str, float]:
    record = _read(_read(profile, "fixed_fields"), side)
    return {name: normalize(_read(record, name)) for name in names}


# ---------------------------------------------------------------------------
# Totals snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Totals:
    """Immutable result of one recomputation pass. Replaced wholesale, never patched."""
    per_category_subtotal: Mapping[CategoryId, float]
    bangladesh_categories_total: float
    bangladesh_fixed_total: float
    bangladesh_total: float
    saudi_categories_foreign: float
    saudi_fixed_foreign: float
    saudi_total_foreign: float
    saudi_total_home: float
    exchange_rate: float
    subtotal: float
    discount: float
    grand_total: float
    bangladesh_source: SourceKind
    saudi_source: SourceKind
    fixed_breakdown_home: Mapping[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "per_category_subtotal": {c.value: v for c, v in self.per_category_subtotal.items()},
            "bangladesh_categories_total": self.bangladesh_categories_total,
            "bangladesh_fixed_total": self.bangladesh_fixed_total,
            "bangladesh_total": self.bangladesh_total,
            "saudi_categories_foreign": self.saudi_categories_foreign,
            "saudi_fixed_foreign": self.saudi_fixed_foreign,
            "saudi_total_foreign": self.saudi_total_foreign,
            "saudi_total_home": self.saudi_total_home,
            "exchange_rate": self.exchange_rate,
            "subtotal": self.subtotal,
            "discount": self.discount,
            "grand_total": self.grand_total,
            "bangladesh_source": self.bangladesh_source.value,
            "saudi_source": self.saudi_source.value,
            "fixed_breakdown_home": dict(self.fixed_breakdown_home),
        }

    def breakdown_rows(self) -> List[Dict[str, Any]]:
        """
        Display rows, Bangladesh first then Saudi.

        Saudi rows carry both the foreign amount and its home-currency value;
        ``active`` tells whether the row contributes to the grand total.
        """
        rows: List[Dict[str, Any]] = []
        for category in BANGLADESH_CATEGORIES:
            amount = self.per_category_subtotal.get(category, 0.0)
            rows.append({
                "side": "bangladesh",
                "category": category.value,
                "label": CATEGORY_LABELS[category],
                "amount_foreign": None,
                "amount_home": amount,
                "active": True,
            })
        rows.append({
            "side": "bangladesh",
            "category": "bdFixed",
            "label": "Bangladesh Fixed Fees",
            "amount_foreign": None,
            "amount_home": self.bangladesh_fixed_total,
            "active": True,
        })

        saudi_categories_active = self.saudi_source is SourceKind.CATEGORIES
        for category in SAUDI_CATEGORIES:
            amount = self.per_category_subtotal.get(category, 0.0)
            rows.append({
                "side": "saudi",
                "category": category.value,
                "label": CATEGORY_LABELS[category],
                "amount_foreign": amount,
                "amount_home": safe_product(amount, self.exchange_rate),
                "active": saudi_categories_active,
            })
        rows.append({
            "side": "saudi",
            "category": "saFixed",
            "label": "Saudi Fixed Fees",
            "amount_foreign": self.saudi_fixed_foreign,
            "amount_home": safe_product(self.saudi_fixed_foreign, self.exchange_rate),
            "active": not saudi_categories_active,
        })
        return rows


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class PackageCostingEngine:
    """
    Pure, stateless price aggregator for a PackageCostProfile.

    Bangladesh amounts are home currency (BDT); Saudi amounts are foreign
    currency (SAR) until the single conversion step.
    """

    def __init__(self, policy: Optional[Dict[str, Any]] = None) -> None:
        cfg = policy or {}
        bd_policy = str(
            cfg.get("bd_fixed_fields", os.getenv("BD_FIXED_FIELDS_POLICY", _DEFAULT_BD_FIXED_POLICY))
        ).strip().lower()
        if bd_policy not in _BD_FIXED_POLICIES:
            logger.warning(f"Unknown BD fixed-fields policy {bd_policy!r}; using {_DEFAULT_BD_FIXED_POLICY!r}")
            bd_policy = _DEFAULT_BD_FIXED_POLICY
        self.bd_fixed_policy: str = bd_policy

    def compute_totals(self, profile: Any) -> Totals:
        """
        Derive a fresh Totals snapshot from ``profile``.

        Steps:
          1. Bangladesh categories (standard pricing) → bangladesh_categories_total
          2. + Bangladesh flat fees (per policy)       → bangladesh_total
          3. Saudi categories (shape-matched pricing)  → saudi_categories_foreign
          4. categories OR Saudi flat fees             → saudi_total_foreign
          5. one conversion                            → saudi_total_home
          6. subtotal = bangladesh_total + saudi_total_home
          7. grand_total = max(0, subtotal − discount)

        Accepts a PackageCostProfile or a loosely shaped mapping; anything
        missing counts as zero. Never raises.
        """
        per_category: Dict[CategoryId, float] = {}

        # 1. Bangladesh categories
        for category in BANGLADESH_CATEGORIES:
            per_category[category] = standard_subtotal(_category_items(profile, category))
        bd_categories_total = safe_sum(per_category[c] for c in BANGLADESH_CATEGORIES)

        # 2. Bangladesh flat fees - additive, never exclusive
        bd_source = select_bangladesh_source(profile)
        bd_fixed_total = safe_sum(_fixed_values(profile, "bangladesh", _BD_FIXED_NAMES).values())
        if self.bd_fixed_policy == BD_FIXED_WHEN_SELECTED and bd_source is not SourceKind.FIXED:
            bd_fixed_total = 0.0
        bd_total = safe_sum((bd_categories_total, bd_fixed_total))

        # 3. Saudi categories
        for category in SAUDI_CATEGORIES:
            per_category[category] = subtotal_for(category, _category_items(profile, category))
        sa_categories_foreign = safe_sum(per_category[c] for c in SAUDI_CATEGORIES)

        # 4. Saudi source - mutually exclusive
        sa_source = select_saudi_source(profile)
        sa_fixed = _fixed_values(profile, "saudi", _SA_FIXED_NAMES)
        sa_fixed_foreign = safe_sum(sa_fixed.values())
        if sa_source is SourceKind.CATEGORIES:
            sa_total_foreign = sa_categories_foreign
        else:
            sa_total_foreign = sa_fixed_foreign

        # 5. Single-point conversion
        rate = effective_rate(_read(profile, "exchange_rate"))
        sa_total_home = to_home(sa_total_foreign, rate)

        # 6–7. Subtotal, discount floor
        subtotal = safe_sum((bd_total, sa_total_home))
        discount = normalize(_read(profile, "discount"))
        grand_total = max(0.0, subtotal - discount)

        fixed_breakdown = {
            "hotel_costs": to_home(safe_sum(sa_fixed[n] for n in SAUDI_HOTEL_FIELDS), rate),
            "service_costs": to_home(safe_sum(sa_fixed[n] for n in SAUDI_SERVICE_FIELDS), rate),
            "fees": to_home(safe_sum(sa_fixed[n] for n in SAUDI_FEE_FIELDS), rate),
        }

        logger.debug(
            "package totals computed: bd=%.2f sa_foreign=%.2f rate=%s grand=%.2f",
            bd_total, sa_total_foreign, rate, grand_total,
        )

        return Totals(
            per_category_subtotal=MappingProxyType(per_category),
            bangladesh_categories_total=bd_categories_total,
            bangladesh_fixed_total=bd_fixed_total,
            bangladesh_total=bd_total,
            saudi_categories_foreign=sa_categories_foreign,
            saudi_fixed_foreign=sa_fixed_foreign,
            saudi_total_foreign=sa_total_foreign,
            saudi_total_home=sa_total_home,
            exchange_rate=rate,
            subtotal=subtotal,
            discount=discount,
            grand_total=grand_total,
            bangladesh_source=bd_source,
            saudi_source=sa_source,
            fixed_breakdown_home=MappingProxyType(fixed_breakdown),
        )


def compute_totals(profile: Any, policy: Optional[Dict[str, Any]] = None) -> Totals:
    """Module-level shortcut used by both package flows."""
    return PackageCostingEngine(policy).compute_totals(profile)
