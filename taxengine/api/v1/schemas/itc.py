# taxengine/api/v1/schemas/itc.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from taxengine.domain.models.itc import ITCSummary, TaxHeads


class ITCOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    supplier_id: str | None = None
    supplier_gstin: str
    supplier_name: str = ""
    purchase_invoice_id: str | None = None
    invoice_number: str
    invoice_date: date
    itc_type: str
    hsn_code: str | None = None
    taxable_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    cess_amount: Decimal
    total_itc: Decimal
    eligible_itc: Decimal
    is_reverse_charge: bool
    status: str
    claim_period: str
    claimed_in_period: str | None = None
    reversal_reason: str | None = None
    reversal_amount: Decimal
    created_at: datetime | None = None


class ITCClaimRequest(BaseModel):
    period: str | None = Field(default=None, description="MMYYYY; defaults to the record's claim period")


class ITCReverseRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=255)


class TaxHeadsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    taxable: Decimal
    igst: Decimal
    cgst: Decimal
    sgst: Decimal
    cess: Decimal


class ITCSummaryOut(BaseModel):
    period: str
    record_count: int
    total_itc: Decimal
    eligible_itc: Decimal
    reversed_itc: Decimal
    by_type: dict[str, Decimal]
    by_status: dict[str, int]
    available: TaxHeadsOut
    reversed: TaxHeadsOut
    net: TaxHeadsOut
    reverse_charge: TaxHeadsOut

    @classmethod
    def from_summary(cls, summary: ITCSummary) -> "ITCSummaryOut":
        def heads(h: TaxHeads) -> TaxHeadsOut:
            return TaxHeadsOut.model_validate(h)

        return cls(
            period=summary.period,
            record_count=summary.record_count,
            total_itc=summary.total_itc,
            eligible_itc=summary.eligible_itc,
            reversed_itc=summary.reversed_itc,
            by_type=summary.by_type,
            by_status=summary.by_status,
            available=heads(summary.available),
            reversed=heads(summary.reversed),
            net=heads(summary.net),
            reverse_charge=heads(summary.reverse_charge),
        )
