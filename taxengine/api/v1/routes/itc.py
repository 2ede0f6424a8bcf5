# taxengine/api/v1/routes/itc.py
"""Input tax credit ledger endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status

from taxengine.api.v1.deps import get_itc_service, get_tenant_id
from taxengine.api.v1.envelope import ok
from taxengine.api.v1.schemas.itc import (
    ITCClaimRequest,
    ITCOut,
    ITCReverseRequest,
    ITCSummaryOut,
)
from taxengine.domain.models.itc import ITCRecordRequest
from taxengine.domain.services.itc_service import ITCService

logger = logging.getLogger("api.v1.itc")

router = APIRouter(prefix="/itc", tags=["ITC"])


@router.post("", status_code=status.HTTP_201_CREATED, summary="Record input tax credit")
async def record_itc(
    body: ITCRecordRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: ITCService = Depends(get_itc_service),
):
    body.tenant_id = tenant_id
    record = await service.record_itc(body)
    return ok(data=ITCOut.model_validate(record), message="ITC recorded")


@router.get("", summary="List ITC records")
async def list_itc(
    period: str | None = Query(None, description="MMYYYY"),
    status_filter: str | None = Query(None, alias="status"),
    tenant_id: str = Depends(get_tenant_id),
    service: ITCService = Depends(get_itc_service),
):
    records = await service.list_itc(tenant_id, period=period, status=status_filter)
    return ok(data=[ITCOut.model_validate(r) for r in records])


# Declared before /{itc_id} routes so "summary" is never read as an id
@router.get("/summary", summary="ITC summary for a return period")
async def itc_summary(
    period: str = Query(..., description="MMYYYY"),
    tenant_id: str = Depends(get_tenant_id),
    service: ITCService = Depends(get_itc_service),
):
    summary = await service.get_itc_summary(tenant_id, period)
    return ok(data=ITCSummaryOut.from_summary(summary))


@router.post("/{itc_id}/claim", summary="Claim available ITC")
async def claim_itc(
    itc_id: str,
    body: ITCClaimRequest | None = None,
    tenant_id: str = Depends(get_tenant_id),
    service: ITCService = Depends(get_itc_service),
):
    period = body.period if body else None
    record = await service.claim_itc(tenant_id, itc_id, period)
    return ok(data=ITCOut.model_validate(record), message="ITC claimed")


@router.post("/{itc_id}/reverse", summary="Reverse ITC")
async def reverse_itc(
    itc_id: str,
    body: ITCReverseRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: ITCService = Depends(get_itc_service),
):
    record = await service.reverse_itc(tenant_id, itc_id, body.reason)
    return ok(data=ITCOut.model_validate(record), message="ITC reversed")
