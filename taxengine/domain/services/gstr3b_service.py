# taxengine/domain/services/gstr3b_service.py
"""
GSTR-3B aggregation.

Table 3.1
  (a) osup_det      taxable outward supplies other than exports, net of credit notes
  (b) osup_zero     zero-rated supplies (exports)
  (c) osup_nil_exmp nil-rated and exempt supplies
  (d) isup_rev      inward supplies liable to reverse charge (from ITC records)
  (e) osup_nongst   non-GST outward supplies
Table 3.2 (``itc_elg`` on the wire) interstate supplies to unregistered persons.
Table 4 (``inward_sup`` on the wire) ITC available / reversed / net.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from taxengine.domain.models.gstr import (
    SUPPLY_EXEMPT,
    SUPPLY_NIL_RATED,
    SUPPLY_NON_GST,
    SUPPLY_TAXABLE,
    GSTR3BData,
    InterestLateFee,
    InterStateSupplies,
    InvoiceForGSTR,
    ITCDetails,
    ITCRow,
    SupplyDetail,
    SupplyDetails,
)
from taxengine.domain.models.itc import ITCSummary, TaxHeads
from taxengine.domain.money import ZERO


def _supply(heads: TaxHeads) -> SupplyDetail:
    return SupplyDetail(
        txval=heads.taxable,
        iamt=heads.igst,
        camt=heads.cgst,
        samt=heads.sgst,
        csamt=heads.cess,
    )


def _itc_row(heads: TaxHeads) -> ITCRow:
    return ITCRow(iamt=heads.igst, camt=heads.cgst, samt=heads.sgst, csamt=heads.cess)


def aggregate_gstr3b(
    gstin: str,
    period: str,
    invoices: list[InvoiceForGSTR],
    itc_summary: ITCSummary | None = None,
) -> GSTR3BData:
    outward = TaxHeads()
    zero_rated = TaxHeads()
    nil_exempt = TaxHeads()
    non_gst = TaxHeads()
    unregistered_interstate = ZERO

    for inv in invoices:
        if inv.is_cancelled:
            continue
        sign = inv.sign
        unregistered = not (inv.customer_gstin or "").strip()
        for item in inv.effective_items():
            if item.supply_type == SUPPLY_TAXABLE:
                target = zero_rated if inv.is_export else outward
                target.add(
                    taxable=item.taxable_amount,
                    igst=item.igst_amount,
                    cgst=item.cgst_amount,
                    sgst=item.sgst_amount,
                    cess=item.cess_amount,
                    sign=sign,
                )
                if unregistered and inv.is_interstate and not inv.is_export:
                    unregistered_interstate += item.taxable_amount * sign
            elif item.supply_type in (SUPPLY_NIL_RATED, SUPPLY_EXEMPT):
                nil_exempt.add(taxable=item.taxable_amount, sign=sign)
            elif item.supply_type == SUPPLY_NON_GST:
                non_gst.add(taxable=item.taxable_amount, sign=sign)

    itc = ITCDetails()
    reverse_charge = TaxHeads()
    if itc_summary is not None:
        reverse_charge = itc_summary.reverse_charge
        itc = ITCDetails(
            itc_avl=_itc_row(itc_summary.available),
            itc_rev=_itc_row(itc_summary.reversed),
            itc_net=_itc_row(itc_summary.net),
        )

    return GSTR3BData(
        gstin=gstin,
        ret_period=period,
        sup_details=SupplyDetails(
            osup_det=_supply(outward),
            osup_zero=_supply(zero_rated),
            osup_nil_exmp=_supply(nil_exempt),
            isup_rev=_supply(reverse_charge),
            osup_nongst=_supply(non_gst),
        ),
        itc_elg=InterStateSupplies(unreg_details=unregistered_interstate),
        inward_sup=itc,
        intr_ltfee=InterestLateFee(),
    )


@dataclass
class TaxPayable:
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    cess: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst + self.cess


def compute_tax_payable(data: GSTR3BData) -> TaxPayable:
    """
    Cash liability per head: outward tax (3.1 a, b, d) less net ITC, floored
    at zero. No cross-head utilisation of IGST credit.
    """
    sup = data.sup_details
    net = data.inward_sup.itc_net

    def head(attr: str) -> Decimal:
        liability = sum(
            (getattr(s, attr) for s in (sup.osup_det, sup.osup_zero, sup.isup_rev)),
            ZERO,
        )
        return max(liability - getattr(net, attr), ZERO)

    return TaxPayable(
        igst=head("iamt"),
        cgst=head("camt"),
        sgst=head("samt"),
        cess=head("csamt"),
    )
