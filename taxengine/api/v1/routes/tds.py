# taxengine/api/v1/routes/tds.py
"""TDS calculation, deduction records and rate table."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status

from taxengine.api.v1.deps import get_tenant_id, get_withholding_service
from taxengine.api.v1.envelope import ok
from taxengine.api.v1.schemas.withholding import (
    TDSDeductionCreate,
    TDSDeductionOut,
    WithholdingRateOut,
)
from taxengine.domain.models.withholding import TDSCalculationRequest
from taxengine.domain.services.withholding_service import WithholdingService

logger = logging.getLogger("api.v1.tds")

router = APIRouter(prefix="/tds", tags=["TDS"])


@router.post("/calculate", summary="Calculate TDS on a payment")
async def calculate_tds(
    body: TDSCalculationRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: WithholdingService = Depends(get_withholding_service),
):
    body.tenant_id = tenant_id
    return ok(data=await service.calculate_tds(body))


@router.post("/deductions", status_code=status.HTTP_201_CREATED, summary="Record a TDS deduction")
async def create_deduction(
    body: TDSDeductionCreate,
    tenant_id: str = Depends(get_tenant_id),
    service: WithholdingService = Depends(get_withholding_service),
):
    record = await service.create_tds_deduction(tenant_id, **body.model_dump())
    logger.info("TDS deduction recorded tenant=%s section=%s amount=%s",
                tenant_id, record.section, record.tds_amount)
    return ok(data=TDSDeductionOut.model_validate(record), message="TDS deduction recorded")


@router.get("/deductions", summary="List TDS deductions")
async def list_deductions(
    financial_year: str | None = Query(None, description="e.g. 2024-25"),
    quarter: str | None = Query(None, description="Q1..Q4"),
    tenant_id: str = Depends(get_tenant_id),
    service: WithholdingService = Depends(get_withholding_service),
):
    records = await service.list_tds_deductions(tenant_id, financial_year, quarter)
    return ok(data=[TDSDeductionOut.model_validate(r) for r in records])


@router.get("/rates", summary="Effective TDS rates")
async def list_rates(
    tenant_id: str = Depends(get_tenant_id),
    service: WithholdingService = Depends(get_withholding_service),
):
    rates = await service.list_tds_rates(tenant_id)
    return ok(data=[WithholdingRateOut.model_validate(r) for r in rates])
