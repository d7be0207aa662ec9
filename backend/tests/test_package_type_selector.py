"""test_package_type_selector.py - where each cost side reads its subtotal from."""

import pytest

from app.services.cost_profile import PackageCostProfile, PackageTypeFlag
from app.services.package_type_selector import (
    SourceKind,
    flag_for_package_type,
    select_bangladesh_source,
    select_saudi_source,
)


class TestFlagForPackageType:

    @pytest.mark.parametrize("name", ["Custom Umrah", "Custom Hajj", "  Custom Umrah  "])
    def test_custom_types(self, name):
        assert flag_for_package_type(name) is PackageTypeFlag.CUSTOM

    @pytest.mark.parametrize("name", ["", None, "Regular", "Custom Haj", "custom umrah"])
    def test_everything_else_is_fixed(self, name):
        assert flag_for_package_type(name) is PackageTypeFlag.FIXED


class TestSelectors:

    def test_bangladesh_reads_categories_by_default(self):
        assert select_bangladesh_source(PackageCostProfile()) is SourceKind.CATEGORIES
        assert select_bangladesh_source(PackageCostProfile(package_type="Custom Umrah")) is SourceKind.CATEGORIES

    def test_bangladesh_legacy_type_reads_fixed(self):
        assert select_bangladesh_source(PackageCostProfile(package_type="Custom Haj")) is SourceKind.FIXED

    def test_saudi_follows_flag(self):
        assert select_saudi_source(PackageCostProfile(package_type_flag="custom")) is SourceKind.CATEGORIES
        assert select_saudi_source(PackageCostProfile(package_type_flag="fixed")) is SourceKind.FIXED

    def test_unknown_flag_reads_fixed(self):
        assert select_saudi_source({"package_type_flag": "bespoke"}) is SourceKind.FIXED

    def test_accepts_mappings_and_garbage(self):
        assert select_saudi_source({"package_type_flag": "custom"}) is SourceKind.CATEGORIES
        assert select_bangladesh_source({"package_type": "Custom Haj"}) is SourceKind.FIXED
        assert select_saudi_source(None) is SourceKind.FIXED
        assert select_bangladesh_source(None) is SourceKind.CATEGORIES
