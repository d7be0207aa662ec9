"""
test_profile_codec.py - persisted package record <-> PackageCostProfile.

The record shape is the one the package screens send: camelCase cost keys,
a flat ``costs`` dict and fifteen ``*Passengers`` arrays.
"""

from app.services.cost_profile import (
    CategoryId,
    LodgingLineItem,
    PackageCostProfile,
    PackageTypeFlag,
    PassengerType,
)
from app.services.costing_engine import compute_totals
from app.services.profile_codec import (
    CATEGORY_RECORD_KEYS,
    FIXED_FIELD_KEYS,
    profile_from_record,
    profile_to_record,
)


class TestDecode:

    def test_decodes_package_record(self, package_record):
        profile = profile_from_record(package_record)
        assert profile.package_type == "Custom Umrah"
        assert profile.package_type_flag is PackageTypeFlag.CUSTOM
        assert profile.exchange_rate == 30.0
        assert profile.fixed_fields.bangladesh.id_card_fee == 300.0
        assert profile.fixed_fields.saudi.visa_fee == 150.0

        visa = profile.categories.list(CategoryId.BD_VISA)
        assert len(visa) == 1
        assert visa[0].id == "v1"
        assert visa[0].passenger_type is PassengerType.ADULT
        assert visa[0].quantity == 2.0 and visa[0].unit_price == 500.0

        food = profile.categories.list(CategoryId.SA_MAKKAH_FOOD)[0]
        assert (food.quantity, food.days, food.per_day_rate) == (3.0, 5.0, 40.0)

    def test_decoded_record_prices(self, package_record):
        """
        bdVisa 1000 + idCard 300 = 1300 BDT
        Makkah food 600 SAR × 30 = 18000 BDT (custom: visaFee flat fee inactive)
        """
        totals = compute_totals(profile_from_record(package_record), {"bd_fixed_fields": "always"})
        assert totals.bangladesh_total == 1300.0
        assert totals.saudi_total_home == 18000.0
        assert totals.grand_total == 19300.0

    def test_hotel_keys(self):
        record = {
            "saudiMakkahHotelPassengers": [
                {"type": "Adult", "hotelName": "Elaf Kinda", "roomNumber": 2,
                 "perNight": 300, "totalNights": 3, "hajiCount": 4},
            ],
        }
        item = profile_from_record(record).categories.list(CategoryId.SA_MAKKAH_HOTEL)[0]
        assert isinstance(item, LodgingLineItem)
        assert item.hotel_name == "Elaf Kinda"
        assert (item.room_count, item.nightly_rate, item.nights, item.person_count) == (2.0, 300.0, 3.0, 4.0)

    def test_items_without_id_get_one(self):
        record = {"bangladeshBusPassengers": [{"count": 1, "price": 900}, {"count": 2, "price": 900}]}
        items = profile_from_record(record).categories.list(CategoryId.BD_BUS)
        assert len(items) == 2
        assert all(i.id for i in items)
        assert items[0].id != items[1].id

    def test_mongo_style_id_is_kept(self):
        record = {"bangladeshBusPassengers": [{"_id": "abc123", "count": 1, "price": 900}]}
        assert profile_from_record(record).categories.list(CategoryId.BD_BUS)[0].id == "abc123"

    def test_flag_derived_from_package_type(self):
        assert profile_from_record({"customPackageType": "Custom Hajj"}).package_type_flag is PackageTypeFlag.CUSTOM
        assert profile_from_record({"customPackageType": "Regular"}).package_type_flag is PackageTypeFlag.FIXED

    def test_explicit_flag_wins(self):
        record = {"customPackageType": "Regular", "packageTypeFlag": "custom"}
        assert profile_from_record(record).package_type_flag is PackageTypeFlag.CUSTOM

    def test_never_raises_on_malformed_record(self):
        record = {
            "sarToBdtRate": "abc",
            "discount": -10,
            "costs": ["not", "a", "dict"],
            "bangladeshVisaPassengers": "oops",
            "saudiVisaPassengers": [None, 7, {"count": "x", "price": 5}],
        }
        profile = profile_from_record(record)
        assert profile.exchange_rate == 1.0
        assert profile.discount == 0.0
        assert profile.categories.list(CategoryId.BD_VISA) == []
        assert len(profile.categories.list(CategoryId.SA_VISA)) == 1

    def test_non_mapping_gives_empty_profile(self):
        assert profile_from_record(None) == PackageCostProfile()
        assert profile_from_record([1, 2]) == PackageCostProfile()


class TestEncode:

    def test_every_key_present(self):
        record = profile_to_record(PackageCostProfile())
        for key in CATEGORY_RECORD_KEYS.values():
            assert record[key] == []
        for pairs in FIXED_FIELD_KEYS.values():
            for record_key, _ in pairs:
                assert record["costs"][record_key] == 0.0

    def test_round_trip_preserves_profile(self, package_record):
        profile = profile_from_record(package_record)
        again = profile_from_record(profile_to_record(profile))
        assert again.categories == profile.categories
        assert again.fixed_fields == profile.fixed_fields
        assert again.package_type == profile.package_type
        assert again.package_type_flag is profile.package_type_flag
        assert again.exchange_rate == profile.exchange_rate

    def test_item_encoding_uses_record_keys(self, package_record):
        record = profile_to_record(profile_from_record(package_record))
        assert record["bangladeshVisaPassengers"] == [{"id": "v1", "type": "Adult", "count": 2.0, "price": 500.0}]
        assert record["saudiMakkahFoodPassengers"][0]["perDayPrice"] == 40.0
