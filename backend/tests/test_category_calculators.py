"""
test_category_calculators.py - Unit tests for the per-shape category calculators.

    standard : Σ quantity × unit_price
    lodging  : Σ room_count × nightly_rate × nights   (person_count never priced)
    per_diem : Σ quantity × days × per_day_rate
"""

import random

import pytest

from app.services.category_calculators import (
    CALCULATORS,
    lodging_subtotal,
    per_diem_subtotal,
    standard_subtotal,
    subtotal_for,
)
from app.services.cost_profile import (
    CATEGORY_LABELS,
    CATEGORY_SHAPE,
    CATEGORY_SIDE,
    CategoryId,
    CostSide,
    PricingShape,
    new_line_item,
)
from app.services.numeric import AMOUNT_CEILING


class TestCategoryTables:

    def test_tables_cover_every_category(self):
        """Adding a CategoryId without wiring it into every table must fail here."""
        for category in CategoryId:
            assert category in CATEGORY_SIDE
            assert category in CATEGORY_SHAPE
            assert category in CATEGORY_LABELS
            assert CATEGORY_SHAPE[category] in CALCULATORS

    def test_side_split(self):
        bd = [c for c in CategoryId if CATEGORY_SIDE[c] is CostSide.BANGLADESH]
        sa = [c for c in CategoryId if CATEGORY_SIDE[c] is CostSide.SAUDI]
        assert len(bd) == 4
        assert len(sa) == 11

    def test_bangladesh_side_is_all_standard(self):
        for category in CategoryId:
            if CATEGORY_SIDE[category] is CostSide.BANGLADESH:
                assert CATEGORY_SHAPE[category] is PricingShape.STANDARD

    def test_saudi_shapes(self):
        assert CATEGORY_SHAPE[CategoryId.SA_MAKKAH_HOTEL] is PricingShape.LODGING
        assert CATEGORY_SHAPE[CategoryId.SA_MADINA_HOTEL] is PricingShape.LODGING
        assert CATEGORY_SHAPE[CategoryId.SA_MAKKAH_FOOD] is PricingShape.PER_DIEM
        assert CATEGORY_SHAPE[CategoryId.SA_MADINA_FOOD] is PricingShape.PER_DIEM
        for category in (
            CategoryId.SA_VISA, CategoryId.SA_MAKKAH_ZIYARA, CategoryId.SA_MADINA_ZIYARA,
            CategoryId.SA_TRANSPORT, CategoryId.SA_CAMP_FEE, CategoryId.SA_AL_MASHAYER,
            CategoryId.SA_OTHERS,
        ):
            assert CATEGORY_SHAPE[category] is PricingShape.STANDARD


class TestStandardSubtotal:

    def test_single_item(self):
        """2 × 500 = 1000"""
        items = [new_line_item(CategoryId.BD_VISA, quantity=2, unit_price=500)]
        assert standard_subtotal(items) == 1000.0

    def test_multiple_items(self):
        """2 × 500 + 1 × 250 + 3 × 100 = 1550"""
        items = [
            new_line_item(CategoryId.BD_VISA, quantity=2, unit_price=500),
            new_line_item(CategoryId.BD_VISA, passenger_type="Child", quantity=1, unit_price=250),
            new_line_item(CategoryId.BD_VISA, passenger_type="Infant", quantity=3, unit_price=100),
        ]
        assert standard_subtotal(items) == 1550.0

    def test_empty_and_none(self):
        assert standard_subtotal([]) == 0.0
        assert standard_subtotal(None) == 0.0


class TestLodgingSubtotal:

    def test_rooms_times_rate_times_nights(self):
        """2 rooms × 300 × 3 nights = 1800; person_count 4 is informational."""
        items = [new_line_item(
            CategoryId.SA_MAKKAH_HOTEL, room_count=2, nightly_rate=300, nights=3, person_count=4,
        )]
        assert lodging_subtotal(items) == 1800.0

    def test_zero_nights_prices_nothing(self):
        items = [new_line_item(CategoryId.SA_MAKKAH_HOTEL, room_count=2, nightly_rate=300)]
        assert lodging_subtotal(items) == 0.0


class TestPerDiemSubtotal:

    def test_quantity_days_rate(self):
        """3 × 5 days × 40 = 600"""
        items = [new_line_item(CategoryId.SA_MAKKAH_FOOD, quantity=3, days=5, per_day_rate=40)]
        assert per_diem_subtotal(items) == 600.0


class TestMalformedItems:

    def test_raw_mappings_are_priced(self):
        assert standard_subtotal([{"quantity": "2", "unit_price": 500}]) == 1000.0

    def test_missing_fields_count_as_zero(self):
        assert standard_subtotal([{"quantity": 2}]) == 0.0
        assert lodging_subtotal([{"room_count": 1, "nightly_rate": 100}]) == 0.0
        assert per_diem_subtotal([{}]) == 0.0

    def test_garbage_values_count_as_zero(self):
        items = [
            {"quantity": "abc", "unit_price": 10},
            {"quantity": -4, "unit_price": 10},
            {"quantity": 1, "unit_price": float("nan")},
            {"quantity": 1, "unit_price": 10},
        ]
        assert standard_subtotal(items) == 10.0

    def test_non_mapping_objects_do_not_raise(self):
        assert standard_subtotal([object(), 42, "x"]) == 0.0


class TestCommutativity:

    @pytest.mark.parametrize("category", list(CategoryId))
    def test_order_does_not_change_subtotal(self, category):
        rng = random.Random(7)
        items = [
            new_line_item(
                category,
                quantity=rng.randint(0, 9),
                unit_price=rng.uniform(0, 2000),
                room_count=rng.randint(0, 4),
                nightly_rate=rng.uniform(0, 900),
                nights=rng.randint(0, 14),
                days=rng.randint(0, 20),
                per_day_rate=rng.uniform(0, 80),
            )
            for _ in range(25)
        ]
        expected = subtotal_for(category, items)
        for _ in range(5):
            shuffled = list(items)
            rng.shuffle(shuffled)
            assert subtotal_for(category, shuffled) == expected


class TestHugeValues:
    """Finite inputs whose products or sums exceed the float range stay finite."""

    def test_sum_past_float_max(self):
        items = [{"quantity": 1, "unit_price": 1e308}, {"quantity": 1, "unit_price": 1e308}]
        assert standard_subtotal(items) == AMOUNT_CEILING

    def test_product_past_float_max(self):
        assert standard_subtotal([{"quantity": 1e200, "unit_price": 1e200}]) == AMOUNT_CEILING

    def test_huge_rate_with_zero_nights(self):
        items = [{"room_count": 1e200, "nightly_rate": 1e200, "nights": 0}]
        assert lodging_subtotal(items) == 0.0

    def test_huge_per_diem(self):
        items = [{"quantity": 1e150, "days": 1e150, "per_day_rate": 1e150}]
        assert per_diem_subtotal(items) == AMOUNT_CEILING
