"""
Package type selector - decides where each side reads its subtotal from.

Current policy:
  - Bangladesh side reads per-passenger categories for every package type
    except the legacy "Custom Haj" type, which uses the flat Bangladesh form.
  - Saudi side reads per-passenger categories when the package-type flag is
    custom, otherwise the Saudi fixed fields.

Both functions only read the profile. Categories and fixed fields are left
untouched so that toggling the flag back and forth is lossless.
"""
from enum import Enum
from typing import Any, Mapping

from app.services.cost_profile import PackageTypeFlag

LEGACY_FIXED_BANGLADESH_TYPE: str = "Custom Haj"
CUSTOM_PACKAGE_TYPES = frozenset({"Custom Umrah", "Custom Hajj"})


class SourceKind(str, Enum):
    CATEGORIES = "categories"
    FIXED = "fixed"


def _read(profile: Any, name: str) -> Any:
    if isinstance(profile, Mapping):
        return profile.get(name)
    return getattr(profile, name, None)


def flag_for_package_type(package_type: Any) -> PackageTypeFlag:
    """Custom Umrah / Custom Hajj price the Saudi side per passenger; everything else is fixed."""
    name = str(package_type or "").strip()
    return PackageTypeFlag.CUSTOM if name in CUSTOM_PACKAGE_TYPES else PackageTypeFlag.FIXED


def select_bangladesh_source(profile: Any) -> SourceKind:
    package_type = str(_read(profile, "package_type") or "").strip()
    if package_type == LEGACY_FIXED_BANGLADESH_TYPE:
        return SourceKind.FIXED
    return SourceKind.CATEGORIES


def select_saudi_source(profile: Any) -> SourceKind:
    flag = PackageTypeFlag.coerce(_read(profile, "package_type_flag"))
    if flag is PackageTypeFlag.CUSTOM:
        return SourceKind.CATEGORIES
    return SourceKind.FIXED
