# taxengine/domain/models/withholding.py
"""TDS (deduction at source) and TCS (collection at source) models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from taxengine.domain.money import ZERO

GLOBAL_TENANT_ID = "global"
STATUS_PENDING = "PENDING"


class TDSSection(str, Enum):
    SALARY = "192"
    INTEREST = "194A"
    CONTRACTOR = "194C"
    COMMISSION = "194H"
    RENT = "194I"
    PROFESSIONAL = "194J"
    PURCHASE_OF_GOODS = "194Q"
    NON_RESIDENT = "195"


class TCSSection(str, Enum):
    SCRAP_AND_GOODS = "206C(1)"
    SALE_OF_GOODS = "206C(1H)"
    FOREST_PRODUCE = "206C(1G)"


@dataclass
class WithholdingRate:
    section: str
    rate_with_pan: Decimal
    rate_without_pan: Decimal
    threshold_amount: Decimal = ZERO
    threshold_per_annum: bool = False
    description: str = ""
    tenant_id: str = GLOBAL_TENANT_ID
    effective_from: date | None = None
    effective_to: date | None = None

    def rate_for(self, has_pan: bool) -> Decimal:
        return self.rate_with_pan if has_pan else self.rate_without_pan


# ---------- Calculation requests / responses ----------


class TDSCalculationRequest(BaseModel):
    tenant_id: str = ""
    deductee_id: str
    deductee_name: str = ""
    pan: str | None = None
    section: str
    gross_amount: Decimal = Field(ge=0)
    transaction_date: str


class TDSCalculationResponse(BaseModel):
    section: str
    gross_amount: Decimal
    tds_rate: Decimal
    tds_amount: Decimal
    net_amount: Decimal
    is_pan_available: bool
    threshold_amount: Decimal = ZERO
    threshold_applied: bool = False
    cumulative_amount: Decimal = ZERO
    financial_year: str
    quarter: str


class TCSCalculationRequest(BaseModel):
    tenant_id: str = ""
    customer_id: str
    customer_name: str = ""
    pan: str | None = None
    section: str
    sale_amount: Decimal = Field(ge=0)
    transaction_date: str


class TCSCalculationResponse(BaseModel):
    section: str
    sale_amount: Decimal
    taxable_amount: Decimal
    tcs_rate: Decimal
    tcs_amount: Decimal
    total_amount: Decimal
    is_pan_available: bool
    threshold_amount: Decimal = ZERO
    threshold_applied: bool = False
    cumulative_amount: Decimal = ZERO
    financial_year: str
    quarter: str


# ---------- Posted records ----------


@dataclass
class TDSDeductionRecord:
    tenant_id: str
    deductee_id: str
    deductee_name: str
    section: str
    gross_amount: Decimal
    tds_rate: Decimal
    tds_amount: Decimal
    net_amount: Decimal
    deduction_date: date
    financial_year: str
    quarter: str
    deductee_pan: str | None = None
    invoice_id: str | None = None
    payment_id: str | None = None
    status: str = STATUS_PENDING
    id: str | None = None
    created_at: datetime | None = None


@dataclass
class TCSCollectionRecord:
    tenant_id: str
    customer_id: str
    customer_name: str
    section: str
    sale_amount: Decimal
    tcs_rate: Decimal
    tcs_amount: Decimal
    total_amount: Decimal
    collection_date: date
    financial_year: str
    quarter: str
    customer_pan: str | None = None
    invoice_id: str | None = None
    status: str = STATUS_PENDING
    id: str | None = None
    created_at: datetime | None = None
