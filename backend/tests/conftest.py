"""
conftest.py - Shared pytest fixtures for the Hajj/Umrah package backend test suite.

No database or external service fixtures are defined here. Engine, flow and
codec tests are pure unit tests; the API tests build their own app with
dependency overrides (see test_package_routes.py).

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``app.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any app imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# PackageCostingEngine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def costing_engine():
    """Engine with the default Bangladesh fixed-fee policy ("always")."""
    from app.services.costing_engine import PackageCostingEngine
    return PackageCostingEngine({"bd_fixed_fields": "always"})


@pytest.fixture(scope="session")
def when_selected_engine():
    """Engine that only adds Bangladesh flat fees for the legacy Custom Haj type."""
    from app.services.costing_engine import PackageCostingEngine
    return PackageCostingEngine({"bd_fixed_fields": "when_selected"})


# ---------------------------------------------------------------------------
# Sample profiles
# ---------------------------------------------------------------------------

@pytest.fixture
def empty_profile():
    from app.services.cost_profile import PackageCostProfile
    return PackageCostProfile()


@pytest.fixture
def bd_visa_profile():
    """
    One Bangladesh visa line: 2 Adults × 500 BDT = 1000 BDT.
    Fixed package type, rate 1, no discount.
    """
    from app.services.cost_profile import CategoryId, PackageCostProfile
    profile = PackageCostProfile()
    profile.categories.add(
        CategoryId.BD_VISA,
        {"id": "visa-1", "passenger_type": "Adult", "quantity": 2, "unit_price": 500},
    )
    return profile


@pytest.fixture
def custom_umrah_profile(bd_visa_profile):
    """
    Custom Umrah package, SAR → BDT rate 30:
      bdVisa         2 × 500                = 1000 BDT
      saMakkahHotel  2 rooms × 300 × 3 nts  = 1800 SAR → 54000 BDT
    """
    from app.services.cost_profile import CategoryId, PackageTypeFlag
    profile = bd_visa_profile
    profile.package_type = "Custom Umrah"
    profile.package_type_flag = PackageTypeFlag.CUSTOM
    profile.exchange_rate = 30.0
    profile.categories.add(
        CategoryId.SA_MAKKAH_HOTEL,
        {
            "id": "hotel-1",
            "hotel_name": "Hilton Makkah",
            "room_count": 2,
            "nightly_rate": 300,
            "nights": 3,
            "person_count": 4,
        },
    )
    return profile


@pytest.fixture
def package_record():
    """
    Persisted package record in the front-end shape (camelCase keys).
      bangladeshVisaPassengers   2 × 500         = 1000 BDT
      saudiMakkahFoodPassengers  3 × 5 days × 40 =  600 SAR
      costs.idCard                                =  300 BDT (flat)
      costs.visaFee                               =  150 SAR (flat, inactive for custom)
    """
    return {
        "id": "pkg-0001",
        "customPackageType": "Custom Umrah",
        "sarToBdtRate": 30,
        "discount": 0,
        "costs": {"idCard": 300, "visaFee": 150},
        "bangladeshVisaPassengers": [
            {"id": "v1", "type": "Adult", "count": 2, "price": 500},
        ],
        "saudiMakkahFoodPassengers": [
            {"id": "f1", "type": "Adult", "count": 3, "days": 5, "perDayPrice": 40},
        ],
    }
