# taxengine/domain/models/tax.py
"""GST calculation request/response models."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pydantic import BaseModel, Field

from taxengine.domain.money import ZERO

TAX_CGST = "CGST"
TAX_SGST = "SGST"
TAX_IGST = "IGST"


class Address(BaseModel):
    country: str = ""
    country_code: str = ""
    state: str = ""
    state_code: str = ""
    city: str = ""
    zip_code: str = ""


class TaxLineItem(BaseModel):
    item_id: str = ""
    name: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = ZERO
    subtotal: Decimal = Field(ge=0)
    category_id: str | None = None
    hsn_code: str | None = None
    sac_code: str | None = None


class TaxCalculationRequest(BaseModel):
    tenant_id: str = ""
    items: list[TaxLineItem] = Field(default_factory=list)
    shipping_amount: Decimal = Field(default=ZERO, ge=0)
    shipping_address: Address = Field(default_factory=Address)
    origin_address: Address | None = None
    customer_id: str | None = None
    customer_gstin: str | None = None

    @property
    def country_code(self) -> str:
        addr = self.shipping_address
        return (addr.country_code or addr.country or "").strip().upper()


class TaxBreakdownRow(BaseModel):
    jurisdiction: str
    tax_type: str
    rate: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    hsn_code: str | None = None
    sac_code: str | None = None
    item_name: str = ""


class GSTSummary(BaseModel):
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    cess: Decimal = ZERO
    total_gst: Decimal = ZERO
    is_interstate: bool = False


class TaxCalculationResponse(BaseModel):
    subtotal: Decimal
    shipping_amount: Decimal = ZERO
    total_tax: Decimal = ZERO
    total: Decimal
    breakdown: list[TaxBreakdownRow] = Field(default_factory=list)
    is_exempt: bool = False
    gst_summary: GSTSummary | None = None


@dataclass
class TaxCategory:
    """Product tax category resolved from HSN, SAC or internal id."""

    id: str
    name: str = ""
    hsn_code: str | None = None
    sac_code: str | None = None
    gst_rate: Decimal = Decimal("18")
    is_tax_exempt: bool = False
    is_nil_rated: bool = False
    is_zero_rated: bool = False

    @property
    def effective_rate(self) -> Decimal:
        if self.is_tax_exempt or self.is_nil_rated:
            return Decimal("0")
        return self.gst_rate
