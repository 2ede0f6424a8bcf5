# taxengine/api/v1/schemas/withholding.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class TDSDeductionCreate(BaseModel):
    deductee_id: str
    deductee_name: str
    deductee_pan: str | None = None
    section: str
    gross_amount: Decimal = Field(gt=0)
    tds_rate: Decimal = Field(ge=0, le=100)
    tds_amount: Decimal = Field(ge=0)
    deduction_date: str = Field(description="YYYY-MM-DD")
    invoice_id: str | None = None
    payment_id: str | None = None


class TCSCollectionCreate(BaseModel):
    customer_id: str
    customer_name: str
    customer_pan: str | None = None
    section: str
    sale_amount: Decimal = Field(gt=0)
    tcs_rate: Decimal = Field(ge=0, le=100)
    tcs_amount: Decimal = Field(ge=0)
    collection_date: str = Field(description="YYYY-MM-DD")
    invoice_id: str | None = None


class TDSDeductionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    deductee_id: str
    deductee_name: str
    deductee_pan: str | None = None
    section: str
    gross_amount: Decimal
    tds_rate: Decimal
    tds_amount: Decimal
    net_amount: Decimal
    deduction_date: date
    financial_year: str
    quarter: str
    invoice_id: str | None = None
    payment_id: str | None = None
    status: str
    created_at: datetime | None = None


class TCSCollectionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    customer_id: str
    customer_name: str
    customer_pan: str | None = None
    section: str
    sale_amount: Decimal
    tcs_rate: Decimal
    tcs_amount: Decimal
    total_amount: Decimal
    collection_date: date
    financial_year: str
    quarter: str
    invoice_id: str | None = None
    status: str
    created_at: datetime | None = None


class WithholdingRateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    section: str
    description: str = ""
    rate_with_pan: Decimal
    rate_without_pan: Decimal
    threshold_amount: Decimal
    threshold_per_annum: bool
    effective_from: date | None = None
    effective_to: date | None = None
