"""
Agent package routes - Hajj/Umrah package pricing

POST /api/haj-umrah/agent-packages/quote                     - stateless price quote
POST /api/haj-umrah/agent-packages                           - create a package
GET  /api/haj-umrah/agent-packages/{id}                      - package with costing and totals
PUT  /api/haj-umrah/agent-packages/{id}/costing              - replace the costing of a package
GET  /api/haj-umrah/agent-packages/{id}/quotation.pdf        - quotation PDF
"""
import logging
from decimal import Decimal
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_tenant_id
from app.db import get_db
from app.models.orm_models import AgentPackage, Tenant, User
from app.models.package_schema import (
    PackageCostingPayload,
    PackageCreateRequest,
    PackageResponse,
    QuoteResponse,
)
from app.services.costing_engine import compute_totals
from app.services.package_flows import (
    PackageCostingFlow,
    PackageCreationFlow,
    PackageValidationError,
)
from app.services.profile_codec import profile_from_record
from app.services.quotation_report import QuotationReport

router = APIRouter(prefix="/api/haj-umrah/agent-packages", tags=["Agent Packages"])
logger = logging.getLogger("hajj-api.packages")


def _validation_error(exc: PackageValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail={"errors": exc.errors})


def _to_response(pkg: AgentPackage) -> PackageResponse:
    return PackageResponse(
        id=str(pkg.id),
        packageName=pkg.package_name,
        packageYear=pkg.package_year,
        agentId=pkg.agent_id,
        customPackageType=pkg.package_type,
        notes=pkg.notes,
        status=pkg.status or "Draft",
        grandTotal=float(pkg.grand_total or 0),
        costing=pkg.cost_profile or {},
        totals=pkg.totals or {},
    )


async def _get_package(package_id: str, tenant_id: str, db: AsyncSession) -> AgentPackage:
    result = await db.execute(
        select(AgentPackage).where(
            AgentPackage.id == package_id,
            AgentPackage.tenant_id == tenant_id,
        )
    )
    pkg = result.scalar_one_or_none()
    if not pkg:
        raise HTTPException(status_code=404, detail=f"Package {package_id} not found")
    return pkg


# ── Quote ────────────────────────────────────────────────────────────────────

@router.post("/quote", response_model=QuoteResponse)
async def quote_package(
    body: PackageCostingPayload,
    user: User = Depends(get_current_user),
):
    """Price a costing record without saving anything."""
    totals = compute_totals(profile_from_record(body.model_dump()))
    return QuoteResponse(totals=totals.to_dict(), breakdown=totals.breakdown_rows())


# ── Create ───────────────────────────────────────────────────────────────────

@router.post("", response_model=PackageResponse, status_code=201)
async def create_package(
    body: PackageCreateRequest,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    flow = PackageCreationFlow(
        package_name=body.packageName,
        package_year=body.packageYear,
        agent_id=body.agentId,
        package_type=body.customPackageType or "",
        notes=body.notes,
    )
    if body.packageTypeFlag:
        flow.set_package_type(body.customPackageType or "", body.packageTypeFlag)
    flow.load_costing(body.model_dump())

    try:
        payload = flow.build_save_payload()
    except PackageValidationError as exc:
        raise _validation_error(exc)

    meta = payload["package"]
    pkg = AgentPackage(
        tenant_id=tenant_id,
        agent_id=meta["agentId"],
        package_name=meta["packageName"],
        package_year=meta["packageYear"],
        package_type=meta["customPackageType"] or None,
        notes=meta["notes"] or None,
        cost_profile=payload["profile"],
        totals=payload["totals"],
        grand_total=Decimal(str(round(payload["totals"]["grand_total"], 2))),
        created_by=str(user.id),
    )
    db.add(pkg)
    await db.commit()
    await db.refresh(pkg)
    logger.info(
        "package created",
        extra={"package_id": str(pkg.id), "tenant_id": tenant_id},
    )
    return _to_response(pkg)


# ── Read ─────────────────────────────────────────────────────────────────────

@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(
    package_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    pkg = await _get_package(package_id, tenant_id, db)
    return _to_response(pkg)


# ── Costing ──────────────────────────────────────────────────────────────────

@router.put("/{package_id}/costing", response_model=PackageResponse)
async def update_package_costing(
    package_id: str,
    body: PackageCostingPayload,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Replace rate, discount, fixed fees and line items; the package type changes only when sent."""
    pkg = await _get_package(package_id, tenant_id, db)
    stored: Dict[str, Any] = dict(pkg.cost_profile or {})
    stored["id"] = str(pkg.id)
    stored.setdefault("customPackageType", pkg.package_type or "")

    flow = PackageCostingFlow(stored)
    if body.customPackageType is not None or body.packageTypeFlag:
        package_type = body.customPackageType
        if package_type is None:
            package_type = flow.profile.package_type
        flow.set_package_type(package_type, body.packageTypeFlag)
    flow.load_costing(body.model_dump())

    try:
        payload = flow.build_save_payload()
    except PackageValidationError as exc:
        raise _validation_error(exc)

    pkg.package_type = flow.profile.package_type or None
    pkg.cost_profile = payload["profile"]
    pkg.totals = payload["totals"]
    pkg.grand_total = Decimal(str(round(payload["totals"]["grand_total"], 2)))
    await db.commit()
    await db.refresh(pkg)
    logger.info(
        "package costing saved",
        extra={"package_id": str(pkg.id), "tenant_id": tenant_id},
    )
    return _to_response(pkg)


# ── Quotation PDF ────────────────────────────────────────────────────────────

@router.get("/{package_id}/quotation.pdf")
async def package_quotation_pdf(
    package_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    pkg = await _get_package(package_id, tenant_id, db)
    totals = compute_totals(profile_from_record(pkg.cost_profile or {}))

    tenant_settings: Dict[str, Any] = {}
    tenant_result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
    tenant = tenant_result.scalar_one_or_none()
    if tenant:
        tenant_settings["company_name"] = tenant.name
        if tenant.primary_color:
            tenant_settings["theme_color_hex"] = tenant.primary_color

    package_meta = {
        "id": str(pkg.id),
        "packageName": pkg.package_name,
        "packageYear": pkg.package_year,
        "customPackageType": pkg.package_type,
    }
    try:
        pdf_bytes = QuotationReport(tenant_settings).render(package_meta, totals)
    except Exception as e:
        logger.error(f"Quotation PDF generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Quotation PDF generation failed: {str(e)[:200]}")

    filename = f"quotation_{str(pkg.id)[:8]}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
