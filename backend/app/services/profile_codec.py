"""
Profile codec - maps PackageCostProfile to and from the persisted package
record the front end sends and reads back:

    {
      "customPackageType": "Custom Umrah",
      "sarToBdtRate": 30, "discount": 5000,
      "costs": {"idCard": 500, "makkahHotel1": 1200, ...},
      "bangladeshVisaPassengers": [{"id": "...", "type": "Adult", "count": 2, "price": 500}],
      "saudiMakkahHotelPassengers": [{"type": "Adult", "hotelName": "...", "roomNumber": 2,
                                      "perNight": 300, "totalNights": 3, "hajiCount": 4}],
      "saudiMakkahFoodPassengers": [{"type": "Adult", "count": 3, "days": 5, "perDayPrice": 40}],
      ...
    }

Decoding never raises: malformed sections are skipped, items without an id
get a fresh one, numbers go through the normalizer on the way into the store.
"""
import logging
from typing import Any, Dict, Mapping, Tuple

from app.services.cost_profile import (
    CATEGORY_SHAPE,
    CategoryId,
    CostSide,
    FixedCostFields,
    PackageCostProfile,
    PackageTypeFlag,
    PricingShape,
    generate_item_id,
)
from app.services.currency import effective_rate
from app.services.line_item_store import LineItemStore
from app.services.numeric import normalize
from app.services.package_type_selector import flag_for_package_type

logger = logging.getLogger("hajj-costing.codec")

CATEGORY_RECORD_KEYS: Dict[CategoryId, str] = {
    CategoryId.BD_VISA: "bangladeshVisaPassengers",
    CategoryId.BD_AIRFARE: "bangladeshAirfarePassengers",
    CategoryId.BD_BUS: "bangladeshBusPassengers",
    CategoryId.BD_TRAINING_OTHER: "bangladeshTrainingOtherPassengers",
    CategoryId.SA_VISA: "saudiVisaPassengers",
    CategoryId.SA_MAKKAH_HOTEL: "saudiMakkahHotelPassengers",
    CategoryId.SA_MADINA_HOTEL: "saudiMadinaHotelPassengers",
    CategoryId.SA_MAKKAH_FOOD: "saudiMakkahFoodPassengers",
    CategoryId.SA_MADINA_FOOD: "saudiMadinaFoodPassengers",
    CategoryId.SA_MAKKAH_ZIYARA: "saudiMakkahZiyaraPassengers",
    CategoryId.SA_MADINA_ZIYARA: "saudiMadinaZiyaraPassengers",
    CategoryId.SA_TRANSPORT: "saudiTransportPassengers",
    CategoryId.SA_CAMP_FEE: "saudiCampFeePassengers",
    CategoryId.SA_AL_MASHAYER: "saudiAlMashayerPassengers",
    CategoryId.SA_OTHERS: "saudiOthersPassengers",
}

# (record key, line-item field) per pricing shape
ITEM_FIELD_KEYS: Dict[PricingShape, Tuple[Tuple[str, str], ...]] = {
    PricingShape.STANDARD: (
        ("type", "passenger_type"),
        ("count", "quantity"),
        ("price", "unit_price"),
    ),
    PricingShape.LODGING: (
        ("type", "passenger_type"),
        ("hotelName", "hotel_name"),
        ("roomNumber", "room_count"),
        ("perNight", "nightly_rate"),
        ("totalNights", "nights"),
        ("hajiCount", "person_count"),
    ),
    PricingShape.PER_DIEM: (
        ("type", "passenger_type"),
        ("count", "quantity"),
        ("days", "days"),
        ("perDayPrice", "per_day_rate"),
    ),
}

FIXED_FIELD_KEYS: Dict[CostSide, Tuple[Tuple[str, str], ...]] = {
    CostSide.BANGLADESH: (
        ("idCard", "id_card_fee"),
        ("hajjKollan", "welfare_fee"),
        ("hajjGuide", "guide_fee"),
        ("govtServiceCharge", "govt_service_charge"),
        ("licenseFee", "license_fee"),
        ("transportFee", "transport_fee"),
        ("otherBdCosts", "other_bd_costs"),
    ),
    CostSide.SAUDI: (
        ("makkahHotel1", "makkah_hotel_1"),
        ("makkahHotel2", "makkah_hotel_2"),
        ("makkahHotel3", "makkah_hotel_3"),
        ("madinaHotel1", "madina_hotel_1"),
        ("madinaHotel2", "madina_hotel_2"),
        ("zamzamWater", "zamzam_water"),
        ("maktab", "maktab"),
        ("visaFee", "visa_fee"),
        ("insuranceFee", "insurance_fee"),
        ("electronicsFee", "electronics_fee"),
        ("groundServiceFee", "ground_service_fee"),
        ("makkahRoute", "makkah_route"),
        ("baggage", "baggage"),
        ("serviceCharge", "service_charge"),
        ("monazzem", "monazzem"),
        ("food", "food"),
        ("ziyaraFee", "ziyara_fee"),
    ),
}


def _decode_item(category: CategoryId, raw: Mapping[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for record_key, field_name in ITEM_FIELD_KEYS[CATEGORY_SHAPE[category]]:
        if record_key in raw:
            values[field_name] = raw[record_key]
        elif field_name in raw:
            values[field_name] = raw[field_name]
    values["id"] = str(raw.get("id") or raw.get("_id") or generate_item_id())
    return values


def decode_categories(record: Mapping[str, Any]) -> LineItemStore:
    store = LineItemStore()
    for category, key in CATEGORY_RECORD_KEYS.items():
        raw_items = record.get(key)
        if raw_items is None:
            continue
        if not isinstance(raw_items, (list, tuple)):
            logger.warning(f"Ignoring malformed {key}: expected a list, got {type(raw_items).__name__}")
            continue
        for raw in raw_items:
            if isinstance(raw, Mapping):
                store.add(category, _decode_item(category, raw))
    return store


def decode_fixed_fields(costs: Any) -> FixedCostFields:
    fixed = FixedCostFields()
    if not isinstance(costs, Mapping):
        return fixed
    for side, pairs in FIXED_FIELD_KEYS.items():
        for record_key, field_name in pairs:
            if record_key in costs:
                fixed.set(side, field_name, costs[record_key])
    return fixed


def profile_from_record(record: Any) -> PackageCostProfile:
    """Build a PackageCostProfile from a persisted (or posted) package record."""
    if not isinstance(record, Mapping):
        return PackageCostProfile()
    package_type = str(record.get("customPackageType") or "").strip()
    raw_flag = record.get("packageTypeFlag")
    flag = PackageTypeFlag.coerce(raw_flag) if raw_flag else flag_for_package_type(package_type)
    return PackageCostProfile(
        package_type_flag=flag,
        package_type=package_type,
        exchange_rate=effective_rate(record.get("sarToBdtRate")),
        discount=normalize(record.get("discount")),
        fixed_fields=decode_fixed_fields(record.get("costs")),
        categories=decode_categories(record),
    )


def _encode_item(category: CategoryId, item: Any) -> Dict[str, Any]:
    encoded: Dict[str, Any] = {"id": item.id}
    for record_key, field_name in ITEM_FIELD_KEYS[CATEGORY_SHAPE[category]]:
        value = getattr(item, field_name)
        encoded[record_key] = value.value if field_name == "passenger_type" else value
    return encoded


def profile_to_record(profile: PackageCostProfile) -> Dict[str, Any]:
    """Inverse of ``profile_from_record``; every category key is always present."""
    fixed = profile.fixed_fields
    costs: Dict[str, float] = {}
    for side, pairs in FIXED_FIELD_KEYS.items():
        source = fixed.bangladesh if side is CostSide.BANGLADESH else fixed.saudi
        for record_key, field_name in pairs:
            costs[record_key] = getattr(source, field_name)

    record: Dict[str, Any] = {
        "customPackageType": profile.package_type,
        "packageTypeFlag": profile.package_type_flag.value,
        "sarToBdtRate": profile.exchange_rate,
        "discount": profile.discount,
        "costs": costs,
    }
    for category, key in CATEGORY_RECORD_KEYS.items():
        record[key] = [_encode_item(category, item) for item in profile.categories.list(category)]
    return record


