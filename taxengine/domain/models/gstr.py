# taxengine/domain/models/gstr.py
"""
GSTR-1 / GSTR-3B return structures.

Field names are the GSTN wire codes (rt, txval, iamt, camt, samt, csamt, ...)
so the exporter can dump these models as-is. ``from`` is a Python keyword and
is carried as ``from_`` with an alias.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from taxengine.domain.money import ZERO


class GSTRType(str, Enum):
    GSTR1 = "GSTR1"
    GSTR2A = "GSTR2A"
    GSTR2B = "GSTR2B"
    GSTR3B = "GSTR3B"
    GSTR4 = "GSTR4"
    GSTR9 = "GSTR9"
    GSTR9C = "GSTR9C"


class GSTRStatus(str, Enum):
    DRAFT = "DRAFT"
    GENERATED = "GENERATED"
    VALIDATED = "VALIDATED"
    FILED = "FILED"
    ERROR = "ERROR"


# Document types and supply types of consumed invoices
DOC_INVOICE = "INVOICE"
DOC_CREDIT_NOTE = "CREDIT_NOTE"
DOC_DEBIT_NOTE = "DEBIT_NOTE"

SUPPLY_TAXABLE = "TAXABLE"
SUPPLY_NIL_RATED = "NIL_RATED"
SUPPLY_EXEMPT = "EXEMPT"
SUPPLY_NON_GST = "NON_GST"

EXPORT_WITH_PAYMENT = "WPAY"
EXPORT_WITHOUT_PAYMENT = "WOPAY"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------- GSTR-1 ----------


class ItemDetail(_WireModel):
    rt: Decimal = ZERO
    txval: Decimal = ZERO
    iamt: Decimal = ZERO
    camt: Decimal = ZERO
    samt: Decimal = ZERO
    csamt: Decimal = ZERO


class InvoiceItem(_WireModel):
    num: int
    itm_det: ItemDetail


class B2BInvoice(_WireModel):
    inum: str
    idt: str
    val: Decimal
    pos: str
    rchrg: str = "N"
    inv_typ: str = "R"
    itms: list[InvoiceItem] = Field(default_factory=list)


class B2BEntry(_WireModel):
    ctin: str
    inv: list[B2BInvoice] = Field(default_factory=list)


class B2CLInvoice(_WireModel):
    inum: str
    idt: str
    val: Decimal
    etin: str = ""
    itms: list[InvoiceItem] = Field(default_factory=list)


class B2CLEntry(_WireModel):
    pos: str
    inv: list[B2CLInvoice] = Field(default_factory=list)


class B2CSEntry(_WireModel):
    typ: str = "OE"
    pos: str
    rt: Decimal = ZERO
    txval: Decimal = ZERO
    iamt: Decimal = ZERO
    camt: Decimal = ZERO
    samt: Decimal = ZERO
    csamt: Decimal = ZERO


class CreditDebitNote(_WireModel):
    ntnum: str
    ntty: str
    nt_dt: str
    val: Decimal
    pos: str
    itms: list[InvoiceItem] = Field(default_factory=list)


class CDNREntry(_WireModel):
    ctin: str
    nt: list[CreditDebitNote] = Field(default_factory=list)


class ExportInvoice(_WireModel):
    inum: str
    idt: str
    val: Decimal
    sbnum: str = ""
    sbdt: str = ""
    sbpcode: str = ""
    itms: list[InvoiceItem] = Field(default_factory=list)


class ExportEntry(_WireModel):
    exp_typ: str
    inv: list[ExportInvoice] = Field(default_factory=list)


class AdvanceEntry(_WireModel):
    pos: str
    rt: Decimal = ZERO
    ad_amt: Decimal = ZERO
    iamt: Decimal = ZERO
    camt: Decimal = ZERO
    samt: Decimal = ZERO
    csamt: Decimal = ZERO


class NilSupplies(_WireModel):
    nil_inter: Decimal = ZERO
    nil_intra: Decimal = ZERO
    expt_inter: Decimal = ZERO
    expt_intra: Decimal = ZERO
    ngsup_inter: Decimal = ZERO
    ngsup_intra: Decimal = ZERO


class HSNEntry(_WireModel):
    hsn_sc: str
    desc: str = ""
    uqc: str = "OTH"
    qty: Decimal = ZERO
    val: Decimal = ZERO
    txval: Decimal = ZERO
    iamt: Decimal = ZERO
    camt: Decimal = ZERO
    samt: Decimal = ZERO
    csamt: Decimal = ZERO


class DocIssueEntry(_WireModel):
    doc_num: int
    docs: str = ""
    from_: str = Field(default="", alias="from")
    to: str = ""
    totnum: int = 0
    cancel: int = 0
    net_issue: int = 0


class GSTR1Data(_WireModel):
    gstin: str
    ret_period: str
    b2b: list[B2BEntry] = Field(default_factory=list)
    b2cl: list[B2CLEntry] = Field(default_factory=list)
    b2cs: list[B2CSEntry] = Field(default_factory=list)
    cdnr: list[CDNREntry] = Field(default_factory=list)
    cdnur: list[CreditDebitNote] = Field(default_factory=list)
    exp: list[ExportEntry] = Field(default_factory=list)
    at: list[AdvanceEntry] = Field(default_factory=list)
    nil: NilSupplies = Field(default_factory=NilSupplies)
    hsn: list[HSNEntry] = Field(default_factory=list)
    doc_issue: list[DocIssueEntry] = Field(default_factory=list)


# ---------- GSTR-3B ----------


class SupplyDetail(_WireModel):
    txval: Decimal = ZERO
    iamt: Decimal = ZERO
    camt: Decimal = ZERO
    samt: Decimal = ZERO
    csamt: Decimal = ZERO


class SupplyDetails(_WireModel):
    osup_det: SupplyDetail = Field(default_factory=SupplyDetail)
    osup_zero: SupplyDetail = Field(default_factory=SupplyDetail)
    osup_nil_exmp: SupplyDetail = Field(default_factory=SupplyDetail)
    isup_rev: SupplyDetail = Field(default_factory=SupplyDetail)
    osup_nongst: SupplyDetail = Field(default_factory=SupplyDetail)


class InterStateSupplies(_WireModel):
    """Table 3.2: interstate supplies to unregistered / composition / UIN holders."""

    unreg_details: Decimal = ZERO
    comp_details: Decimal = ZERO
    uin_details: Decimal = ZERO


class ITCRow(_WireModel):
    iamt: Decimal = ZERO
    camt: Decimal = ZERO
    samt: Decimal = ZERO
    csamt: Decimal = ZERO


class ITCDetails(_WireModel):
    """Table 4: eligible ITC."""

    itc_avl: ITCRow = Field(default_factory=ITCRow)
    itc_rev: ITCRow = Field(default_factory=ITCRow)
    itc_rev_other: ITCRow = Field(default_factory=ITCRow)
    itc_net: ITCRow = Field(default_factory=ITCRow)
    itc_inelg_1: ITCRow = Field(default_factory=ITCRow)
    itc_inelg_2: ITCRow = Field(default_factory=ITCRow)


class InterestLateFee(_WireModel):
    intr_amt: Decimal = ZERO
    ltfee_amt: Decimal = ZERO


class GSTR3BData(_WireModel):
    gstin: str
    ret_period: str
    sup_details: SupplyDetails = Field(default_factory=SupplyDetails)
    itc_elg: InterStateSupplies = Field(default_factory=InterStateSupplies)
    inward_sup: ITCDetails = Field(default_factory=ITCDetails)
    intr_ltfee: InterestLateFee = Field(default_factory=InterestLateFee)


# ---------- Consumed invoices ----------


@dataclass
class InvoiceItemForGSTR:
    taxable_amount: Decimal
    gst_rate: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_amount: Decimal = ZERO
    cess_amount: Decimal = ZERO
    line_total: Decimal = ZERO
    description: str = ""
    hsn_code: str = ""
    sac_code: str = ""
    quantity: Decimal = ZERO
    uom: str = ""
    supply_type: str = SUPPLY_TAXABLE

    @property
    def code(self) -> str:
        return (self.hsn_code or self.sac_code or "").strip()

    @property
    def value(self) -> Decimal:
        if self.line_total:
            return self.line_total
        return (
            self.taxable_amount + self.cgst_amount + self.sgst_amount
            + self.igst_amount + self.cess_amount
        )


@dataclass
class InvoiceForGSTR:
    invoice_number: str
    invoice_date: date
    total_amount: Decimal
    document_type: str = DOC_INVOICE
    invoice_id: str | None = None
    original_invoice_number: str = ""
    customer_gstin: str = ""
    place_of_supply: str = ""
    is_interstate: bool = False
    reverse_charge: bool = False
    export_type: str = ""
    shipping_bill_number: str = ""
    shipping_bill_date: date | None = None
    shipping_port_code: str = ""
    is_cancelled: bool = False
    subtotal: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_amount: Decimal = ZERO
    cess_amount: Decimal = ZERO
    gst_rate: Decimal = ZERO
    items: list[InvoiceItemForGSTR] = field(default_factory=list)

    @property
    def is_note(self) -> bool:
        return self.document_type in (DOC_CREDIT_NOTE, DOC_DEBIT_NOTE)

    @property
    def is_export(self) -> bool:
        return bool(self.export_type) and not self.is_note

    @property
    def sign(self) -> int:
        """Credit notes reduce outward liability."""
        return -1 if self.document_type == DOC_CREDIT_NOTE else 1

    def effective_items(self) -> list[InvoiceItemForGSTR]:
        """Line items, or one synthetic line built from invoice-level amounts."""
        if self.items:
            return self.items
        return [
            InvoiceItemForGSTR(
                taxable_amount=self.subtotal,
                gst_rate=self.gst_rate,
                cgst_amount=self.cgst_amount,
                sgst_amount=self.sgst_amount,
                igst_amount=self.igst_amount,
                cess_amount=self.cess_amount,
                line_total=self.total_amount,
            )
        ]


# ---------- Filing snapshots ----------


@dataclass
class FilingSnapshot:
    tenant_id: str
    gstin: str
    return_type: str
    period: str
    financial_year: str
    status: str = GSTRStatus.DRAFT.value
    total_outward: Decimal = ZERO
    total_tax: Decimal = ZERO
    total_itc: Decimal = ZERO
    tax_payable_igst: Decimal = ZERO
    tax_payable_cgst: Decimal = ZERO
    tax_payable_sgst: Decimal = ZERO
    tax_payable_cess: Decimal = ZERO
    payload_json: str = ""
    arn: str | None = None
    generated_at: datetime | None = None
    filed_at: datetime | None = None
    id: str | None = None

    @property
    def is_filed(self) -> bool:
        return self.status == GSTRStatus.FILED.value
