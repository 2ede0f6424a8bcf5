# taxengine/api/v1/routes/tcs.py
"""TCS calculation, collection records and rate table."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status

from taxengine.api.v1.deps import get_tenant_id, get_withholding_service
from taxengine.api.v1.envelope import ok
from taxengine.api.v1.schemas.withholding import (
    TCSCollectionCreate,
    TCSCollectionOut,
    WithholdingRateOut,
)
from taxengine.domain.models.withholding import TCSCalculationRequest
from taxengine.domain.services.withholding_service import WithholdingService

logger = logging.getLogger("api.v1.tcs")

router = APIRouter(prefix="/tcs", tags=["TCS"])


@router.post("/calculate", summary="Calculate TCS on a sale")
async def calculate_tcs(
    body: TCSCalculationRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: WithholdingService = Depends(get_withholding_service),
):
    body.tenant_id = tenant_id
    return ok(data=await service.calculate_tcs(body))


@router.post("/collections", status_code=status.HTTP_201_CREATED, summary="Record a TCS collection")
async def create_collection(
    body: TCSCollectionCreate,
    tenant_id: str = Depends(get_tenant_id),
    service: WithholdingService = Depends(get_withholding_service),
):
    record = await service.create_tcs_collection(tenant_id, **body.model_dump())
    logger.info("TCS collection recorded tenant=%s section=%s amount=%s",
                tenant_id, record.section, record.tcs_amount)
    return ok(data=TCSCollectionOut.model_validate(record), message="TCS collection recorded")


@router.get("/collections", summary="List TCS collections")
async def list_collections(
    financial_year: str | None = Query(None),
    quarter: str | None = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    service: WithholdingService = Depends(get_withholding_service),
):
    records = await service.list_tcs_collections(tenant_id, financial_year, quarter)
    return ok(data=[TCSCollectionOut.model_validate(r) for r in records])


@router.get("/rates", summary="Effective TCS rates")
async def list_rates(
    tenant_id: str = Depends(get_tenant_id),
    service: WithholdingService = Depends(get_withholding_service),
):
    rates = await service.list_tcs_rates(tenant_id)
    return ok(data=[WithholdingRateOut.model_validate(r) for r in rates])
