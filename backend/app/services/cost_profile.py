"""
Package cost profile - the data model shared by the costing engine and the
package creation / costing flows.

Covers:
  - Passenger types, cost sides, pricing shapes and the closed CategoryId set
  - Category → side / pricing-shape / display-label tables (enum keyed)
  - Frozen line-item value objects (standard, lodging, per-diem)
  - Bangladesh and Saudi fixed-fee records
  - PackageCostProfile, the aggregate root handed to the engine
"""
import copy
import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from app.services.numeric import normalize, safe_sum


class UnknownFixedFieldError(ValueError):
    """Raised when a fixed-fee name does not exist on the requested side."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PassengerType(str, Enum):
    ADULT = "Adult"
    CHILD = "Child"
    INFANT = "Infant"

    @classmethod
    def coerce(cls, raw: Any) -> "PassengerType":
        """Map free input onto a passenger type; anything unknown reads as Adult."""
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().lower()
        for member in cls:
            if member.value.lower() == text or member.name.lower() == text:
                return member
        return cls.ADULT


class CostSide(str, Enum):
    BANGLADESH = "bangladesh"   # home currency (BDT)
    SAUDI = "saudi"             # foreign currency (SAR)


class PricingShape(str, Enum):
    STANDARD = "standard"       # quantity × unit price
    LODGING = "lodging"         # rooms × nightly rate × nights
    PER_DIEM = "per_diem"       # quantity × days × per-day rate


class PackageTypeFlag(str, Enum):
    CUSTOM = "custom"
    FIXED = "fixed"

    @classmethod
    def coerce(cls, raw: Any) -> "PackageTypeFlag":
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().lower()
        return cls.CUSTOM if text == cls.CUSTOM.value else cls.FIXED


class CategoryId(str, Enum):
    # Bangladesh side
    BD_VISA = "bdVisa"
    BD_AIRFARE = "bdAirfare"
    BD_BUS = "bdBus"
    BD_TRAINING_OTHER = "bdTrainingOther"
    # Saudi side
    SA_VISA = "saVisa"
    SA_MAKKAH_HOTEL = "saMakkahHotel"
    SA_MADINA_HOTEL = "saMadinaHotel"
    SA_MAKKAH_FOOD = "saMakkahFood"
    SA_MADINA_FOOD = "saMadinaFood"
    SA_MAKKAH_ZIYARA = "saMakkahZiyara"
    SA_MADINA_ZIYARA = "saMadinaZiyara"
    SA_TRANSPORT = "saTransport"
    SA_CAMP_FEE = "saCampFee"
    SA_AL_MASHAYER = "saAlMashayer"
    SA_OTHERS = "saOthers"


# ---------------------------------------------------------------------------
# Category tables - every CategoryId must appear in each of these
# ---------------------------------------------------------------------------

CATEGORY_SIDE: Dict[CategoryId, CostSide] = {
    CategoryId.BD_VISA: CostSide.BANGLADESH,
    CategoryId.BD_AIRFARE: CostSide.BANGLADESH,
    CategoryId.BD_BUS: CostSide.BANGLADESH,
    CategoryId.BD_TRAINING_OTHER: CostSide.BANGLADESH,
    CategoryId.SA_VISA: CostSide.SAUDI,
    CategoryId.SA_MAKKAH_HOTEL: CostSide.SAUDI,
    CategoryId.SA_MADINA_HOTEL: CostSide.SAUDI,
    CategoryId.SA_MAKKAH_FOOD: CostSide.SAUDI,
    CategoryId.SA_MADINA_FOOD: CostSide.SAUDI,
    CategoryId.SA_MAKKAH_ZIYARA: CostSide.SAUDI,
    CategoryId.SA_MADINA_ZIYARA: CostSide.SAUDI,
    CategoryId.SA_TRANSPORT: CostSide.SAUDI,
    CategoryId.SA_CAMP_FEE: CostSide.SAUDI,
    CategoryId.SA_AL_MASHAYER: CostSide.SAUDI,
    CategoryId.SA_OTHERS: CostSide.SAUDI,
}

CATEGORY_SHAPE: Dict[CategoryId, PricingShape] = {
    CategoryId.BD_VISA: PricingShape.STANDARD,
    CategoryId.BD_AIRFARE: PricingShape.STANDARD,
    CategoryId.BD_BUS: PricingShape.STANDARD,
    CategoryId.BD_TRAINING_OTHER: PricingShape.STANDARD,
    CategoryId.SA_VISA: PricingShape.STANDARD,
    CategoryId.SA_MAKKAH_HOTEL: PricingShape.LODGING,
    CategoryId.SA_MADINA_HOTEL: PricingShape.LODGING,
    CategoryId.SA_MAKKAH_FOOD: PricingShape.PER_DIEM,
    CategoryId.SA_MADINA_FOOD: PricingShape.PER_DIEM,
    CategoryId.SA_MAKKAH_ZIYARA: PricingShape.STANDARD,
    CategoryId.SA_MADINA_ZIYARA: PricingShape.STANDARD,
    CategoryId.SA_TRANSPORT: PricingShape.STANDARD,
    CategoryId.SA_CAMP_FEE: PricingShape.STANDARD,
    CategoryId.SA_AL_MASHAYER: PricingShape.STANDARD,
    CategoryId.SA_OTHERS: PricingShape.STANDARD,
}

CATEGORY_LABELS: Dict[CategoryId, str] = {
    CategoryId.BD_VISA: "Bangladesh Visa",
    CategoryId.BD_AIRFARE: "Airfare",
    CategoryId.BD_BUS: "Bus Service",
    CategoryId.BD_TRAINING_OTHER: "Training / Other",
    CategoryId.SA_VISA: "Saudi Visa",
    CategoryId.SA_MAKKAH_HOTEL: "Makkah Hotel",
    CategoryId.SA_MADINA_HOTEL: "Madina Hotel",
    CategoryId.SA_MAKKAH_FOOD: "Makkah Food",
    CategoryId.SA_MADINA_FOOD: "Madina Food",
    CategoryId.SA_MAKKAH_ZIYARA: "Makkah Ziyara",
    CategoryId.SA_MADINA_ZIYARA: "Madina Ziyara",
    CategoryId.SA_TRANSPORT: "Transport",
    CategoryId.SA_CAMP_FEE: "Camp Fee",
    CategoryId.SA_AL_MASHAYER: "Al-Mashayer",
    CategoryId.SA_OTHERS: "Others",
}

BANGLADESH_CATEGORIES: Tuple[CategoryId, ...] = tuple(
    c for c in CategoryId if CATEGORY_SIDE[c] is CostSide.BANGLADESH
)
SAUDI_CATEGORIES: Tuple[CategoryId, ...] = tuple(
    c for c in CategoryId if CATEGORY_SIDE[c] is CostSide.SAUDI
)


def coerce_category(raw: Any) -> Optional[CategoryId]:
    """Return the CategoryId for ``raw`` (member, value or member name), else None."""
    if isinstance(raw, CategoryId):
        return raw
    text = str(raw or "").strip()
    for member in CategoryId:
        if text == member.value or text == member.name:
            return member
    return None


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StandardLineItem:
    id: str
    passenger_type: PassengerType = PassengerType.ADULT
    quantity: float = 0.0
    unit_price: float = 0.0


@dataclass(frozen=True)
class LodgingLineItem:
    id: str
    passenger_type: PassengerType = PassengerType.ADULT
    hotel_name: str = ""
    room_count: float = 0.0
    nightly_rate: float = 0.0
    nights: float = 0.0
    person_count: float = 0.0    # informational, not part of the price


@dataclass(frozen=True)
class PerDiemLineItem:
    id: str
    passenger_type: PassengerType = PassengerType.ADULT
    quantity: float = 0.0
    days: float = 0.0
    per_day_rate: float = 0.0


LineItem = Union[StandardLineItem, LodgingLineItem, PerDiemLineItem]

LINE_ITEM_TYPES: Dict[PricingShape, type] = {
    PricingShape.STANDARD: StandardLineItem,
    PricingShape.LODGING: LodgingLineItem,
    PricingShape.PER_DIEM: PerDiemLineItem,
}

NUMERIC_FIELDS: Dict[PricingShape, Tuple[str, ...]] = {
    PricingShape.STANDARD: ("quantity", "unit_price"),
    PricingShape.LODGING: ("room_count", "nightly_rate", "nights", "person_count"),
    PricingShape.PER_DIEM: ("quantity", "days", "per_day_rate"),
}


def generate_item_id() -> str:
    return uuid.uuid4().hex[:12]


def coerce_item_fields(shape: PricingShape, values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep only the fields that exist on ``shape``'s line-item type and
    normalize them: numbers through ``normalize``, passenger type through
    ``PassengerType.coerce``, hotel name to a stripped string. ``id`` is dropped.
    """
    allowed = {f.name for f in fields(LINE_ITEM_TYPES[shape])} - {"id"}
    numeric = NUMERIC_FIELDS[shape]
    clean: Dict[str, Any] = {}
    for name, value in values.items():
        if name not in allowed:
            continue
        if name in numeric:
            clean[name] = normalize(value)
        elif name == "passenger_type":
            clean[name] = PassengerType.coerce(value)
        else:
            clean[name] = "" if value is None else str(value).strip()
    return clean


def new_line_item(category_id: CategoryId, item_id: Optional[str] = None, **values: Any) -> LineItem:
    """
    Build a fresh, normalized line item of the shape ``category_id`` prices with.

    Each "add line item" interaction gets its own value; unknown keyword
    arguments are ignored.
    """
    shape = CATEGORY_SHAPE[category_id]
    item_cls = LINE_ITEM_TYPES[shape]
    return item_cls(id=str(item_id or generate_item_id()), **coerce_item_fields(shape, values))


# ---------------------------------------------------------------------------
# Fixed-fee records
# ---------------------------------------------------------------------------

def _sum_fields(record: Any) -> float:
    return safe_sum(normalize(getattr(record, f.name, 0.0)) for f in fields(record))


@dataclass
class BangladeshFixedFields:
    """Flat Bangladesh-side fees, home currency."""
    id_card_fee: float = 0.0
    welfare_fee: float = 0.0          # hajj kollan
    guide_fee: float = 0.0
    govt_service_charge: float = 0.0
    license_fee: float = 0.0
    transport_fee: float = 0.0
    other_bd_costs: float = 0.0

    def total(self) -> float:
        return _sum_fields(self)


SAUDI_HOTEL_FIELDS: Tuple[str, ...] = (
    "makkah_hotel_1", "makkah_hotel_2", "makkah_hotel_3",
    "madina_hotel_1", "madina_hotel_2",
)
SAUDI_SERVICE_FIELDS: Tuple[str, ...] = ("ground_service_fee",)
SAUDI_FEE_FIELDS: Tuple[str, ...] = (
    "visa_fee", "insurance_fee", "electronics_fee", "service_charge",
)


@dataclass
class SaudiFixedFields:
    """Flat Saudi-side fees, foreign currency."""
    makkah_hotel_1: float = 0.0
    makkah_hotel_2: float = 0.0
    makkah_hotel_3: float = 0.0
    madina_hotel_1: float = 0.0
    madina_hotel_2: float = 0.0
    zamzam_water: float = 0.0
    maktab: float = 0.0
    visa_fee: float = 0.0
    insurance_fee: float = 0.0
    electronics_fee: float = 0.0
    ground_service_fee: float = 0.0
    makkah_route: float = 0.0
    baggage: float = 0.0
    service_charge: float = 0.0
    monazzem: float = 0.0
    food: float = 0.0
    ziyara_fee: float = 0.0

    def total(self) -> float:
        return _sum_fields(self)

    def group_total(self, names: Tuple[str, ...]) -> float:
        return safe_sum(normalize(getattr(self, n, 0.0)) for n in names)


@dataclass
class FixedCostFields:
    bangladesh: BangladeshFixedFields = field(default_factory=BangladeshFixedFields)
    saudi: SaudiFixedFields = field(default_factory=SaudiFixedFields)

    def set(self, side: Union[CostSide, str], name: str, raw: Any) -> float:
        """Normalize ``raw`` and store it on the named fixed fee. Returns the stored value."""
        side = CostSide(side)
        record = self.bangladesh if side is CostSide.BANGLADESH else self.saudi
        if name not in {f.name for f in fields(record)}:
            raise UnknownFixedFieldError(f"Unknown {side.value} fixed field: {name}")
        value = normalize(raw)
        setattr(record, name, value)
        return value


# ---------------------------------------------------------------------------
# Aggregate root
# ---------------------------------------------------------------------------

def _empty_store():
    from app.services.line_item_store import LineItemStore
    return LineItemStore()


@dataclass
class PackageCostProfile:
    """
    Everything the engine needs to price one package.

    ``categories`` holds a list for every CategoryId even when the active
    package type does not read it; switching type only changes what is read.
    """
    package_type_flag: PackageTypeFlag = PackageTypeFlag.FIXED
    package_type: str = ""
    exchange_rate: float = 1.0
    discount: float = 0.0
    fixed_fields: FixedCostFields = field(default_factory=FixedCostFields)
    categories: Any = field(default_factory=_empty_store)

    def __post_init__(self) -> None:
        self.package_type_flag = PackageTypeFlag.coerce(self.package_type_flag)

    def copy(self) -> "PackageCostProfile":
        return copy.deepcopy(self)
