# taxengine/api/v1/routes/tax.py
"""GST calculation for a cart or draft invoice."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from taxengine.api.v1.deps import get_tax_calculator, get_tenant_id
from taxengine.api.v1.envelope import ok
from taxengine.domain.models.tax import TaxCalculationRequest
from taxengine.domain.services.tax_calculator import TaxCalculator

logger = logging.getLogger("api.v1.tax")

router = APIRouter(prefix="/tax", tags=["Tax"])


@router.post("/calculate", summary="Calculate GST for a set of line items")
async def calculate_tax(
    body: TaxCalculationRequest,
    tenant_id: str = Depends(get_tenant_id),
    calculator: TaxCalculator = Depends(get_tax_calculator),
):
    body.tenant_id = tenant_id
    result = await calculator.calculate_tax(body)
    return ok(data=result)
