"""
Package creation and package costing flows.

Both flows hold one PackageCostProfile, feed edits into it, recompute the
Totals snapshot after every edit and run the save-time policy checks before
handing ``{profile, totals}`` to persistence. The pricing itself always comes
from ``costing_engine``; the flows only decide what gets saved.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from app.services.cost_profile import (
    CategoryId,
    CostSide,
    LineItem,
    PackageCostProfile,
    PackageTypeFlag,
    new_line_item,
)
from app.services.costing_engine import PackageCostingEngine, Totals
from app.services.currency import effective_rate
from app.services.line_item_store import LineItemStore
from app.services.numeric import is_negative_input, normalize
from app.services.package_type_selector import flag_for_package_type
from app.services.profile_codec import profile_from_record, profile_to_record

logger = logging.getLogger("hajj-flows")

ERR_NO_COST = "At least one cost must be greater than 0"
ERR_GRAND_TOTAL = "Grand total must be greater than zero"
ERR_NEGATIVE_RATE = "SAR to BDT rate must not be negative"
ERR_NEGATIVE_DISCOUNT = "Discount must not be negative"
ERR_NAME = "Package name is required"
ERR_YEAR = "Package year is required"
ERR_AGENT = "Agent is required"
ERR_TOTAL_TOO_LARGE = "Grand total exceeds the largest amount that can be stored"

# agent_packages.grand_total is NUMERIC(14, 2)
MAX_STORABLE_TOTAL: float = 999_999_999_999.99


class PackageValidationError(ValueError):
    """Save-time policy failure. ``errors`` lists every failed check."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class PackageCostingSession:
    """Shared edit/recompute/validate behaviour for both flows."""

    def __init__(
        self,
        profile: Optional[PackageCostProfile] = None,
        policy: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.profile = profile if profile is not None else PackageCostProfile()
        self._engine = PackageCostingEngine(policy)
        self._input_errors: Dict[str, str] = {}
        self.totals: Totals = self._engine.compute_totals(self.profile)

    def _recompute(self) -> Totals:
        self.totals = self._engine.compute_totals(self.profile)
        return self.totals

    # -- scalar edits ---------------------------------------------------------

    def set_exchange_rate(self, raw: Any) -> Totals:
        if is_negative_input(raw):
            self._input_errors["exchange_rate"] = ERR_NEGATIVE_RATE
        else:
            self._input_errors.pop("exchange_rate", None)
        self.profile.exchange_rate = effective_rate(raw)
        return self._recompute()

    def set_discount(self, raw: Any) -> Totals:
        if is_negative_input(raw):
            self._input_errors["discount"] = ERR_NEGATIVE_DISCOUNT
        else:
            self._input_errors.pop("discount", None)
        self.profile.discount = normalize(raw)
        return self._recompute()

    def set_package_type(
        self, package_type: str, flag: Union[PackageTypeFlag, str, None] = None
    ) -> Totals:
        """Switch package type. Line items and fixed fields are kept; only what is read changes."""
        self.profile.package_type = str(package_type or "").strip()
        self.profile.package_type_flag = (
            PackageTypeFlag.coerce(flag) if flag else flag_for_package_type(self.profile.package_type)
        )
        return self._recompute()

    def set_fixed_field(self, side: Union[CostSide, str], name: str, raw: Any) -> Totals:
        self.profile.fixed_fields.set(side, name, raw)
        return self._recompute()

    # -- line items -----------------------------------------------------------

    def add_line_item(self, category_id: Union[CategoryId, str], **values: Any) -> LineItem:
        """Add a freshly built line item; no draft object is shared between calls."""
        store: LineItemStore = self.profile.categories
        category = store.resolve_category(category_id)
        item = store.add(category, new_line_item(category, **values))
        self._recompute()
        return item

    def update_line_item(
        self, category_id: Union[CategoryId, str], item_id: str, **patch: Any
    ) -> Optional[LineItem]:
        item = self.profile.categories.update(category_id, item_id, patch)
        self._recompute()
        return item

    def remove_line_item(self, category_id: Union[CategoryId, str], item_id: str) -> bool:
        removed = self.profile.categories.remove(category_id, item_id)
        self._recompute()
        return removed

    def load_costing(self, record: Mapping[str, Any]) -> Totals:
        """
        Replace rate, discount, fixed fields and line items from a costing
        record. The package type stays as loaded.
        """
        if not isinstance(record, Mapping):
            return self.totals
        incoming = profile_from_record(record)
        self.profile.fixed_fields = incoming.fixed_fields
        self.profile.categories = incoming.categories
        self.set_discount(record.get("discount"))
        return self.set_exchange_rate(record.get("sarToBdtRate"))

    # -- validation / save ----------------------------------------------------

    def _metadata_errors(self) -> List[str]:
        return []

    def validate(self) -> List[str]:
        errors = self._metadata_errors()
        errors.extend(self._input_errors.values())
        if self.totals.subtotal <= 0:
            errors.append(ERR_NO_COST)
        elif self.totals.discount > 0 and self.totals.grand_total <= 0:
            errors.append(ERR_GRAND_TOTAL)
        if self.totals.grand_total > MAX_STORABLE_TOTAL:
            errors.append(ERR_TOTAL_TOO_LARGE)
        return errors

    def _metadata(self) -> Dict[str, Any]:
        return {}

    def build_save_payload(self) -> Dict[str, Any]:
        """Return ``{"package", "profile", "totals"}`` for persistence, or raise PackageValidationError."""
        errors = self.validate()
        if errors:
            logger.warning(f"Package save rejected: {errors}")
            raise PackageValidationError(errors)
        # Recompute from the exact profile being saved
        totals = self._recompute()
        return {
            "package": self._metadata(),
            "profile": profile_to_record(self.profile),
            "totals": totals.to_dict(),
        }


class PackageCreationFlow(PackageCostingSession):
    """New package: starts from an empty profile plus package metadata."""

    def __init__(
        self,
        package_name: str = "",
        package_year: Any = None,
        agent_id: Optional[str] = None,
        package_type: str = "",
        notes: str = "",
        policy: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(PackageCostProfile(), policy)
        self.package_name = str(package_name or "").strip()
        self.package_year = str(package_year or "").strip()
        self.agent_id = str(agent_id or "").strip()
        self.notes = notes or ""
        self.set_package_type(package_type)

    def _metadata_errors(self) -> List[str]:
        errors: List[str] = []
        if not self.package_name:
            errors.append(ERR_NAME)
        if not self.package_year:
            errors.append(ERR_YEAR)
        if not self.agent_id:
            errors.append(ERR_AGENT)
        return errors

    def _metadata(self) -> Dict[str, Any]:
        return {
            "packageName": self.package_name,
            "packageYear": self.package_year,
            "agentId": self.agent_id,
            "customPackageType": self.profile.package_type,
            "notes": self.notes,
        }


class PackageCostingFlow(PackageCostingSession):
    """Existing package: starts from its persisted record."""

    def __init__(
        self,
        record: Optional[Mapping[str, Any]] = None,
        policy: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(profile_from_record(record or {}), policy)
        self.package_id = str((record or {}).get("id") or "")

    def _metadata(self) -> Dict[str, Any]:
        return {"id": self.package_id, "customPackageType": self.profile.package_type}
