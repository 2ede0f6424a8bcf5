# taxengine/api/v1/schemas/gstr.py

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taxengine.domain.models.gstr import FilingSnapshot
from taxengine.domain.services.gst_return_service import filing_payload


class MarkFiledRequest(BaseModel):
    arn: str = Field(min_length=1, max_length=50)


class FilingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    gstin: str
    return_type: str
    period: str
    financial_year: str
    status: str
    total_outward: Decimal
    total_tax: Decimal
    total_itc: Decimal
    tax_payable_igst: Decimal
    tax_payable_cgst: Decimal
    tax_payable_sgst: Decimal
    tax_payable_cess: Decimal
    arn: str | None = None
    generated_at: datetime | None = None
    filed_at: datetime | None = None


class FilingDetailOut(FilingOut):
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_snapshot(cls, snapshot: FilingSnapshot) -> "FilingDetailOut":
        out = cls.model_validate(snapshot)
        out.payload = filing_payload(snapshot)
        return out
