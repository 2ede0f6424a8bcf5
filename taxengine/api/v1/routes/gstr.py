# taxengine/api/v1/routes/gstr.py
"""
GSTR-1 / GSTR-3B generation and filing snapshots.

``/gstr/{type}/{period}/export`` returns the live aggregation as filing
JSON without touching stored snapshots.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response

from taxengine.api.v1.deps import get_filing_service, get_return_service, get_tenant_id
from taxengine.api.v1.envelope import ok
from taxengine.api.v1.schemas.gstr import FilingDetailOut, FilingOut, MarkFiledRequest
from taxengine.domain.services import gst_export
from taxengine.domain.services.gst_return_service import FilingService, GstReturnService

logger = logging.getLogger("api.v1.gstr")

router = APIRouter(prefix="/gstr", tags=["GST Returns"])


@router.get("/filings", summary="List filing snapshots")
async def list_filings(
    financial_year: str | None = Query(None, description="e.g. 2024-25"),
    return_type: str | None = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    service: FilingService = Depends(get_filing_service),
):
    filings = await service.list_filings(tenant_id, fy=financial_year, return_type=return_type)
    return ok(data=[FilingOut.model_validate(f) for f in filings])


@router.get("/filings/{return_type}/{period}", summary="Get a filing snapshot")
async def get_filing(
    return_type: str,
    period: str,
    tenant_id: str = Depends(get_tenant_id),
    service: FilingService = Depends(get_filing_service),
):
    snapshot = await service.get_filing(tenant_id, return_type, period)
    return ok(data=FilingDetailOut.from_snapshot(snapshot))


@router.post("/filings/{return_type}/{period}", summary="Generate and store a return")
async def generate_filing(
    return_type: str,
    period: str,
    gstin: str = Query(..., min_length=15, max_length=15),
    tenant_id: str = Depends(get_tenant_id),
    service: FilingService = Depends(get_filing_service),
):
    snapshot = await service.generate_filing(tenant_id, gstin, return_type, period)
    return ok(data=FilingDetailOut.from_snapshot(snapshot), message=f"{snapshot.return_type} generated")


@router.post("/filings/{return_type}/{period}/file", summary="Mark a return as filed")
async def mark_filed(
    return_type: str,
    period: str,
    body: MarkFiledRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: FilingService = Depends(get_filing_service),
):
    snapshot = await service.mark_filed(tenant_id, return_type, period, body.arn)
    logger.info("%s %s filed tenant=%s arn=%s", snapshot.return_type, period, tenant_id, snapshot.arn)
    return ok(data=FilingOut.model_validate(snapshot), message="Return marked as filed")


@router.get("/{return_type}/{period}/export", summary="Filing JSON for a period")
async def export_return(
    return_type: str,
    period: str,
    gstin: str = Query(..., min_length=15, max_length=15),
    tenant_id: str = Depends(get_tenant_id),
    service: GstReturnService = Depends(get_return_service),
):
    data = await service.generate(tenant_id, gstin, return_type, period)
    return Response(content=gst_export.dumps(data), media_type="application/json")
