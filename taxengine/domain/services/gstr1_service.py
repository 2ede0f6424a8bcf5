# taxengine/domain/services/gstr1_service.py
"""
GSTR-1 aggregation.

Posted documents for one return period are routed into keyed accumulators
(one map per section) and flattened into ``GSTR1Data`` once, at the end.

Routing, per non-cancelled document:
- export invoice                    -> exp     (by export type)
- credit / debit note with GSTIN    -> cdnr    (by customer GSTIN)
- credit / debit note without GSTIN -> cdnur
- invoice with customer GSTIN       -> b2b     (by customer GSTIN)
- interstate invoice above B2CL cap -> b2cl    (by place of supply)
- anything else                     -> b2cs    (by place of supply + rate)
Every line with an HSN/SAC code also feeds the HSN summary, nil-rated /
exempt / non-GST lines feed the nil table, and every document (cancelled or
not) is counted in the document-issued summary.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal

from taxengine.core.config import settings
from taxengine.domain.models.gstr import (
    DOC_CREDIT_NOTE,
    DOC_DEBIT_NOTE,
    SUPPLY_EXEMPT,
    SUPPLY_NIL_RATED,
    SUPPLY_NON_GST,
    SUPPLY_TAXABLE,
    B2BEntry,
    B2BInvoice,
    B2CLEntry,
    B2CLInvoice,
    B2CSEntry,
    CDNREntry,
    CreditDebitNote,
    DocIssueEntry,
    ExportEntry,
    ExportInvoice,
    GSTR1Data,
    HSNEntry,
    InvoiceForGSTR,
    InvoiceItem,
    InvoiceItemForGSTR,
    ItemDetail,
    NilSupplies,
)
from taxengine.domain.models.itc import TaxHeads
from taxengine.domain.money import ZERO
from taxengine.domain.services.financial_period import format_gstn_date

logger = logging.getLogger("gstr1_service")

DOC_SERIES_NAMES = {
    1: "Invoices for outward supply",
    4: "Debit Note",
    5: "Credit Note",
}


def _taxable_lines(inv: InvoiceForGSTR) -> list[InvoiceItemForGSTR]:
    return [i for i in inv.effective_items() if i.supply_type == SUPPLY_TAXABLE]


def _add_line(heads: TaxHeads, item: InvoiceItemForGSTR, sign: int = 1) -> None:
    heads.add(
        taxable=item.taxable_amount,
        igst=item.igst_amount,
        cgst=item.cgst_amount,
        sgst=item.sgst_amount,
        cess=item.cess_amount,
        sign=sign,
    )


# ---------- Accumulators ----------


class ItemsByRate:
    """Sums a document's taxable lines per GST rate."""

    def __init__(self) -> None:
        self._by_rate: dict[Decimal, TaxHeads] = {}

    def add(self, item: InvoiceItemForGSTR) -> None:
        _add_line(self._by_rate.setdefault(item.gst_rate, TaxHeads()), item)

    def to_items(self) -> list[InvoiceItem]:
        items = []
        for num, rate in enumerate(sorted(self._by_rate), start=1):
            heads = self._by_rate[rate]
            items.append(
                InvoiceItem(
                    num=num,
                    itm_det=ItemDetail(
                        rt=rate,
                        txval=heads.taxable,
                        iamt=heads.igst,
                        camt=heads.cgst,
                        samt=heads.sgst,
                        csamt=heads.cess,
                    ),
                )
            )
        return items


def _items_for(inv: InvoiceForGSTR) -> list[InvoiceItem]:
    grouped = ItemsByRate()
    for item in _taxable_lines(inv):
        grouped.add(item)
    return grouped.to_items()


@dataclass
class HSNAccumulator:
    code: str
    desc: str = ""
    uqc: str = ""
    qty: Decimal = ZERO
    val: Decimal = ZERO
    heads: TaxHeads = field(default_factory=TaxHeads)

    def add(self, item: InvoiceItemForGSTR, sign: int = 1) -> None:
        if not self.desc and item.description:
            self.desc = item.description
        if not self.uqc and item.uom:
            self.uqc = item.uom.strip().upper()
        self.qty += item.quantity * sign
        self.val += item.value * sign
        _add_line(self.heads, item, sign)

    def to_entry(self) -> HSNEntry:
        return HSNEntry(
            hsn_sc=self.code,
            desc=self.desc,
            uqc=self.uqc or "OTH",
            qty=self.qty,
            val=self.val,
            txval=self.heads.taxable,
            iamt=self.heads.igst,
            camt=self.heads.cgst,
            samt=self.heads.sgst,
            csamt=self.heads.cess,
        )


@dataclass
class NilAccumulator:
    nil_inter: Decimal = ZERO
    nil_intra: Decimal = ZERO
    expt_inter: Decimal = ZERO
    expt_intra: Decimal = ZERO
    ngsup_inter: Decimal = ZERO
    ngsup_intra: Decimal = ZERO

    def add(self, item: InvoiceItemForGSTR, interstate: bool, sign: int = 1) -> None:
        amount = item.taxable_amount * sign
        if item.supply_type == SUPPLY_NIL_RATED:
            if interstate:
                self.nil_inter += amount
            else:
                self.nil_intra += amount
        elif item.supply_type == SUPPLY_EXEMPT:
            if interstate:
                self.expt_inter += amount
            else:
                self.expt_intra += amount
        elif item.supply_type == SUPPLY_NON_GST:
            if interstate:
                self.ngsup_inter += amount
            else:
                self.ngsup_intra += amount

    def to_model(self) -> NilSupplies:
        return NilSupplies(
            nil_inter=self.nil_inter,
            nil_intra=self.nil_intra,
            expt_inter=self.expt_inter,
            expt_intra=self.expt_intra,
            ngsup_inter=self.ngsup_inter,
            ngsup_intra=self.ngsup_intra,
        )


_DIGITS_RE = re.compile(r"(\d+)")


def serial_sort_key(number: str) -> tuple:
    """Order document numbers so that INV-2 sorts before INV-10."""
    parts = _DIGITS_RE.split(number)
    return tuple(int(p) if i % 2 else p for i, p in enumerate(parts))


@dataclass
class DocSeriesAccumulator:
    doc_num: int
    numbers: list[str] = field(default_factory=list)
    cancelled: int = 0

    def add(self, number: str, cancelled: bool) -> None:
        self.numbers.append(number)
        if cancelled:
            self.cancelled += 1

    def to_entry(self) -> DocIssueEntry:
        ordered = sorted(self.numbers, key=serial_sort_key)
        total = len(self.numbers)
        return DocIssueEntry(
            doc_num=self.doc_num,
            docs=DOC_SERIES_NAMES.get(self.doc_num, ""),
            from_=ordered[0] if ordered else "",
            to=ordered[-1] if ordered else "",
            totnum=total,
            cancel=self.cancelled,
            net_issue=total - self.cancelled,
        )


@dataclass
class Gstr1Aggregation:
    data: GSTR1Data
    counts: dict[str, int]

    @property
    def regular_invoice_count(self) -> int:
        return self.counts.get("invoices", 0)


class Gstr1Builder:
    def __init__(self, gstin: str, period: str) -> None:
        self.gstin = gstin
        self.period = period
        self.b2cl_threshold = Decimal(settings.B2CL_INVOICE_THRESHOLD)

        self._b2b: dict[str, list[B2BInvoice]] = {}
        self._b2cl: dict[str, list[B2CLInvoice]] = {}
        self._b2cs: dict[tuple[str, Decimal], TaxHeads] = {}
        self._cdnr: dict[str, list[CreditDebitNote]] = {}
        self._cdnur: list[CreditDebitNote] = []
        self._exp: dict[str, list[ExportInvoice]] = {}
        self._hsn: dict[str, HSNAccumulator] = {}
        self._nil = NilAccumulator()
        self._docs: dict[int, DocSeriesAccumulator] = {}
        self.counts: dict[str, int] = {
            "b2b": 0, "b2cl": 0, "b2cs": 0, "cdnr": 0, "cdnur": 0,
            "exp": 0, "invoices": 0, "cancelled": 0,
        }

    # ---- add_* ----

    def add_document_issued(self, inv: InvoiceForGSTR) -> None:
        if inv.document_type == DOC_CREDIT_NOTE:
            doc_num = 5
        elif inv.document_type == DOC_DEBIT_NOTE:
            doc_num = 4
        else:
            doc_num = 1
        series = self._docs.setdefault(doc_num, DocSeriesAccumulator(doc_num=doc_num))
        series.add(inv.invoice_number, inv.is_cancelled)

    def add_hsn(self, inv: InvoiceForGSTR) -> None:
        for item in inv.effective_items():
            code = item.code
            if not code:
                continue
            acc = self._hsn.setdefault(code, HSNAccumulator(code=code))
            acc.add(item, inv.sign)

    def add_nil(self, inv: InvoiceForGSTR) -> None:
        if inv.is_export:
            return
        for item in inv.effective_items():
            if item.supply_type != SUPPLY_TAXABLE:
                self._nil.add(item, inv.is_interstate, inv.sign)

    def add_export(self, inv: InvoiceForGSTR) -> None:
        self.counts["exp"] += 1
        self._exp.setdefault(inv.export_type, []).append(
            ExportInvoice(
                inum=inv.invoice_number,
                idt=format_gstn_date(inv.invoice_date),
                val=inv.total_amount,
                sbnum=inv.shipping_bill_number or "",
                sbdt=format_gstn_date(inv.shipping_bill_date) if inv.shipping_bill_date else "",
                sbpcode=inv.shipping_port_code or "",
                itms=_items_for(inv),
            )
        )

    def add_note(self, inv: InvoiceForGSTR) -> None:
        note = CreditDebitNote(
            ntnum=inv.invoice_number,
            ntty="C" if inv.document_type == DOC_CREDIT_NOTE else "D",
            nt_dt=format_gstn_date(inv.invoice_date),
            val=inv.total_amount,
            pos=inv.place_of_supply,
            itms=_items_for(inv),
        )
        ctin = (inv.customer_gstin or "").strip().upper()
        if ctin:
            self.counts["cdnr"] += 1
            self._cdnr.setdefault(ctin, []).append(note)
        else:
            self.counts["cdnur"] += 1
            self._cdnur.append(note)

    def add_b2b(self, inv: InvoiceForGSTR) -> None:
        self.counts["b2b"] += 1
        ctin = inv.customer_gstin.strip().upper()
        self._b2b.setdefault(ctin, []).append(
            B2BInvoice(
                inum=inv.invoice_number,
                idt=format_gstn_date(inv.invoice_date),
                val=inv.total_amount,
                pos=inv.place_of_supply,
                rchrg="Y" if inv.reverse_charge else "N",
                inv_typ="R",
                itms=_items_for(inv),
            )
        )

    def add_b2cl(self, inv: InvoiceForGSTR) -> None:
        self.counts["b2cl"] += 1
        self._b2cl.setdefault(inv.place_of_supply, []).append(
            B2CLInvoice(
                inum=inv.invoice_number,
                idt=format_gstn_date(inv.invoice_date),
                val=inv.total_amount,
                itms=_items_for(inv),
            )
        )

    def add_b2cs(self, inv: InvoiceForGSTR) -> None:
        self.counts["b2cs"] += 1
        for item in _taxable_lines(inv):
            key = (inv.place_of_supply, item.gst_rate)
            _add_line(self._b2cs.setdefault(key, TaxHeads()), item)

    def add_invoice(self, inv: InvoiceForGSTR) -> None:
        """Route one posted document into its sections."""
        self.add_document_issued(inv)
        if inv.is_cancelled:
            self.counts["cancelled"] += 1
            return

        self.add_hsn(inv)
        self.add_nil(inv)

        if inv.is_export:
            self.add_export(inv)
        elif inv.is_note:
            self.add_note(inv)
        else:
            self.counts["invoices"] += 1
            if (inv.customer_gstin or "").strip():
                self.add_b2b(inv)
            elif inv.is_interstate and inv.total_amount > self.b2cl_threshold:
                self.add_b2cl(inv)
            else:
                self.add_b2cs(inv)

    # ---- flatten ----

    def build(self) -> Gstr1Aggregation:
        data = GSTR1Data(
            gstin=self.gstin,
            ret_period=self.period,
            b2b=[
                B2BEntry(ctin=ctin, inv=invoices)
                for ctin, invoices in sorted(self._b2b.items())
            ],
            b2cl=[
                B2CLEntry(pos=pos, inv=invoices)
                for pos, invoices in sorted(self._b2cl.items())
            ],
            b2cs=[
                B2CSEntry(
                    typ="OE",
                    pos=pos,
                    rt=rate,
                    txval=heads.taxable,
                    iamt=heads.igst,
                    camt=heads.cgst,
                    samt=heads.sgst,
                    csamt=heads.cess,
                )
                for (pos, rate), heads in sorted(self._b2cs.items())
            ],
            cdnr=[
                CDNREntry(ctin=ctin, nt=notes)
                for ctin, notes in sorted(self._cdnr.items())
            ],
            cdnur=list(self._cdnur),
            exp=[
                ExportEntry(exp_typ=exp_typ, inv=invoices)
                for exp_typ, invoices in sorted(self._exp.items())
            ],
            at=[],
            nil=self._nil.to_model(),
            hsn=[acc.to_entry() for _, acc in sorted(self._hsn.items())],
            doc_issue=[series.to_entry() for _, series in sorted(self._docs.items())],
        )
        return Gstr1Aggregation(data=data, counts=dict(self.counts))


def aggregate_gstr1(gstin: str, period: str, invoices: list[InvoiceForGSTR]) -> Gstr1Aggregation:
    builder = Gstr1Builder(gstin, period)
    for inv in invoices:
        builder.add_invoice(inv)
    result = builder.build()
    logger.info(
        "GSTR-1 %s %s aggregated: %s",
        gstin, period, ", ".join(f"{k}={v}" for k, v in result.counts.items()),
    )
    return result
