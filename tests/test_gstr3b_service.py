"""Tests for GSTR-3B tables and the return service's ITC degradation."""

from decimal import Decimal
from unittest.mock import AsyncMock

from conftest import GSTIN_BUYER, GSTIN_SELF, FakeInvoiceRepository, make_invoice, make_item

from taxengine.domain.errors import RepositoryUnavailable
from taxengine.domain.models.gstr import (
    DOC_CREDIT_NOTE,
    EXPORT_WITH_PAYMENT,
    SUPPLY_EXEMPT,
    SUPPLY_NON_GST,
)
from taxengine.domain.models.itc import ITCSummary, TaxHeads
from taxengine.domain.services.gst_return_service import GstReturnService
from taxengine.domain.services.gstr3b_service import aggregate_gstr3b, compute_tax_payable


def _invoices():
    return [
        make_invoice("INV-1", [make_item("10000")], customer_gstin=GSTIN_BUYER, place_of_supply="27"),
        make_invoice(
            "INV-2", [make_item("5000", interstate=True)], place_of_supply="29", is_interstate=True,
        ),
        make_invoice(
            "INV-3",
            [make_item("700", supply_type=SUPPLY_EXEMPT), make_item("300", supply_type=SUPPLY_NON_GST)],
            place_of_supply="27",
        ),
        make_invoice(
            "EXP-1", [make_item("2000", interstate=True)], export_type=EXPORT_WITH_PAYMENT,
        ),
        make_invoice("CN-1", [make_item("1000")], document_type=DOC_CREDIT_NOTE, place_of_supply="27"),
        make_invoice("INV-X", [make_item("99999")], place_of_supply="27", is_cancelled=True),
    ]


def _itc_summary():
    summary = ITCSummary(period="012025")
    summary.available = TaxHeads(igst=Decimal("600"), cgst=Decimal("500"), sgst=Decimal("500"))
    summary.reversed = TaxHeads(cgst=Decimal("100"), sgst=Decimal("100"))
    summary.reverse_charge = TaxHeads(taxable=Decimal("1000"), igst=Decimal("180"))
    return summary


def test_outward_tables():
    data = aggregate_gstr3b(GSTIN_SELF, "012025", _invoices())
    sup = data.sup_details
    # INV-1 + INV-2 less CN-1
    assert sup.osup_det.txval == Decimal("14000")
    assert sup.osup_det.camt == Decimal("810.00")
    assert sup.osup_det.iamt == Decimal("900.00")
    assert sup.osup_zero.txval == Decimal("2000")
    assert sup.osup_zero.iamt == Decimal("360.00")
    assert sup.osup_nil_exmp.txval == Decimal("700")
    assert sup.osup_nongst.txval == Decimal("300")
    assert data.itc_elg.unreg_details == Decimal("5000")


def test_without_itc_summary_table4_is_zero():
    data = aggregate_gstr3b(GSTIN_SELF, "012025", _invoices())
    assert data.inward_sup.itc_net.iamt == 0
    assert data.sup_details.isup_rev.txval == 0


def test_itc_and_reverse_charge():
    data = aggregate_gstr3b(GSTIN_SELF, "012025", _invoices(), _itc_summary())
    assert data.inward_sup.itc_avl.camt == Decimal("500")
    assert data.inward_sup.itc_rev.camt == Decimal("100")
    assert data.inward_sup.itc_net.camt == Decimal("400")
    assert data.sup_details.isup_rev.iamt == Decimal("180")


def test_tax_payable_per_head_floor():
    data = aggregate_gstr3b(GSTIN_SELF, "012025", _invoices(), _itc_summary())
    payable = compute_tax_payable(data)
    # IGST 900 + 360 + 180 - 600
    assert payable.igst == Decimal("840.00")
    # CGST 810 - 400
    assert payable.cgst == Decimal("410.00")
    assert payable.cess == 0
    assert payable.total == payable.igst + payable.cgst + payable.sgst

    rich_itc = _itc_summary()
    rich_itc.available = TaxHeads(cgst=Decimal("5000"), sgst=Decimal("5000"))
    payable = compute_tax_payable(aggregate_gstr3b(GSTIN_SELF, "012025", _invoices(), rich_itc))
    assert payable.cgst == 0


def test_return_service_degrades_when_itc_unavailable(event_loop):
    invoices = FakeInvoiceRepository(_invoices())
    itc = AsyncMock()
    itc.get_itc_summary.side_effect = RepositoryUnavailable("ITC store down")
    service = GstReturnService(invoices, itc)

    data = event_loop.run_until_complete(service.generate_gstr3b("t1", GSTIN_SELF.lower(), "012025"))
    assert data.gstin == GSTIN_SELF
    assert data.sup_details.osup_det.txval == Decimal("14000")
    assert data.inward_sup.itc_net.iamt == 0
    tenant, start, end = invoices.calls[0]
    assert (tenant, start.day, end.day) == ("t1", 1, 31)
