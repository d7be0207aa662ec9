"""Request / response schemas for the agent package API."""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PackageCostingPayload(BaseModel):
    """
    Costing record as sent by the package screens.

    The fifteen passenger arrays (``bangladeshVisaPassengers`` …
    ``saudiOthersPassengers``) are carried as extra fields and decoded by the
    profile codec. Numbers stay loosely typed so that blank or negative raw
    input reaches the save-time checks untouched.
    """
    model_config = ConfigDict(extra="allow")

    customPackageType: Optional[str] = None
    packageTypeFlag: Optional[str] = None
    sarToBdtRate: Any = None
    discount: Any = None
    costs: Optional[Dict[str, Any]] = None


class PackageCreateRequest(PackageCostingPayload):
    packageName: str = ""
    packageYear: Union[str, int, None] = None
    agentId: Optional[str] = None
    notes: str = ""


class QuoteResponse(BaseModel):
    totals: Dict[str, Any]
    breakdown: List[Dict[str, Any]] = Field(default_factory=list)


class PackageResponse(BaseModel):
    id: str
    packageName: str
    packageYear: str
    agentId: str
    customPackageType: Optional[str] = None
    notes: Optional[str] = None
    status: str = "Draft"
    grandTotal: float = 0.0
    costing: Dict[str, Any] = Field(default_factory=dict)
    totals: Dict[str, Any] = Field(default_factory=dict)
