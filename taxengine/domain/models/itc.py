# taxengine/domain/models/itc.py
"""Input tax credit records and period summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from taxengine.domain.money import ZERO


class ITCType(str, Enum):
    INPUTS = "INPUTS"
    INPUT_SERVICE = "INPUT_SERVICE"
    CAPITAL_GOODS = "CAPITAL_GOODS"


class ITCStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    CLAIMED = "CLAIMED"
    REVERSED = "REVERSED"


class ITCRecordRequest(BaseModel):
    tenant_id: str = ""
    supplier_id: str | None = None
    supplier_gstin: str = Field(min_length=1, max_length=15)
    supplier_name: str = ""
    purchase_invoice_id: str | None = None
    invoice_number: str = Field(min_length=1)
    invoice_date: str
    itc_type: ITCType = ITCType.INPUTS
    hsn_code: str | None = None
    taxable_amount: Decimal = Field(default=ZERO, ge=0)
    cgst_amount: Decimal = Field(default=ZERO, ge=0)
    sgst_amount: Decimal = Field(default=ZERO, ge=0)
    igst_amount: Decimal = Field(default=ZERO, ge=0)
    cess_amount: Decimal = Field(default=ZERO, ge=0)
    is_reverse_charge: bool = False


@dataclass
class ITCRecord:
    tenant_id: str
    supplier_gstin: str
    invoice_number: str
    invoice_date: date
    itc_type: str
    taxable_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    cess_amount: Decimal
    total_itc: Decimal
    eligible_itc: Decimal
    claim_period: str
    status: str = ITCStatus.AVAILABLE.value
    supplier_id: str | None = None
    supplier_name: str = ""
    purchase_invoice_id: str | None = None
    hsn_code: str | None = None
    is_reverse_charge: bool = False
    reversal_reason: str | None = None
    reversal_amount: Decimal = ZERO
    claimed_in_period: str | None = None
    id: str | None = None
    created_at: datetime | None = None


@dataclass
class TaxHeads:
    """IGST / CGST / SGST / cess amounts plus taxable value."""

    taxable: Decimal = ZERO
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    cess: Decimal = ZERO

    @property
    def total_tax(self) -> Decimal:
        return self.igst + self.cgst + self.sgst + self.cess

    def add(self, taxable=ZERO, igst=ZERO, cgst=ZERO, sgst=ZERO, cess=ZERO, sign: int = 1) -> None:
        self.taxable += taxable * sign
        self.igst += igst * sign
        self.cgst += cgst * sign
        self.sgst += sgst * sign
        self.cess += cess * sign

    def minus(self, other: "TaxHeads") -> "TaxHeads":
        return TaxHeads(
            taxable=self.taxable - other.taxable,
            igst=self.igst - other.igst,
            cgst=self.cgst - other.cgst,
            sgst=self.sgst - other.sgst,
            cess=self.cess - other.cess,
        )


@dataclass
class ITCSummary:
    period: str
    record_count: int = 0
    total_itc: Decimal = ZERO
    eligible_itc: Decimal = ZERO
    reversed_itc: Decimal = ZERO
    by_type: dict[str, Decimal] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)
    available: TaxHeads = field(default_factory=TaxHeads)
    reversed: TaxHeads = field(default_factory=TaxHeads)
    reverse_charge: TaxHeads = field(default_factory=TaxHeads)

    @property
    def net(self) -> TaxHeads:
        return self.available.minus(self.reversed)
