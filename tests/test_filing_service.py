"""Tests for return generation and filing snapshots."""

from decimal import Decimal

import pytest
from conftest import GSTIN_BUYER, GSTIN_SELF, FakeInvoiceRepository, make_invoice, make_item

from taxengine.domain.errors import FilingLocked, InvalidInput, NotFound
from taxengine.domain.models.itc import ITCRecordRequest
from taxengine.domain.services.gst_return_service import (
    FilingService,
    GstReturnService,
    filing_payload,
    normalize_return_type,
    validate_gstin,
)
from taxengine.domain.services.itc_service import ITCService


@pytest.fixture
def services(itc_repo, filing_repo):
    invoices = FakeInvoiceRepository([
        make_invoice("INV-1", [make_item("10000")], customer_gstin=GSTIN_BUYER, place_of_supply="27"),
        make_invoice("INV-2", [make_item("2000", interstate=True)], place_of_supply="29", is_interstate=True),
    ])
    itc = ITCService(itc_repo)
    returns = GstReturnService(invoices, itc)
    return itc, returns, FilingService(filing_repo, returns)


def test_validate_gstin_and_type():
    assert validate_gstin(" 27aapfu0939f1zv ") == GSTIN_SELF
    with pytest.raises(InvalidInput):
        validate_gstin("27AAPFU0939F1Z")
    assert normalize_return_type("gstr-3b") == "GSTR3B"
    with pytest.raises(InvalidInput):
        normalize_return_type("GSTR5")


def test_generate_gstr1_snapshot(event_loop, services):
    _, _, filings = services
    snap = event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "GSTR1", "012025"))
    assert snap.status == "GENERATED"
    assert snap.financial_year == "2024-25"
    assert snap.total_outward == Decimal("12000")
    assert snap.total_tax == Decimal("2160.00")
    assert snap.generated_at is not None
    payload = filing_payload(snap)
    assert payload["b2b"][0]["ctin"] == GSTIN_BUYER


def test_generate_gstr3b_snapshot_with_itc(event_loop, services):
    itc, _, filings = services
    event_loop.run_until_complete(
        itc.record_itc(
            ITCRecordRequest(
                tenant_id="t1", supplier_gstin=GSTIN_BUYER, invoice_number="P-1",
                invoice_date="2025-01-05", taxable_amount=Decimal("1000"),
                cgst_amount=Decimal("90"), sgst_amount=Decimal("90"),
            )
        )
    )
    snap = event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "gstr3b", "012025"))
    assert snap.return_type == "GSTR3B"
    assert snap.total_itc == Decimal("180")
    assert snap.tax_payable_cgst == Decimal("810.00")
    assert snap.tax_payable_igst == Decimal("360.00")
    itc_camt = filing_payload(snap)["inward_sup"]["itc_net"]["camt"]
    assert isinstance(itc_camt, Decimal)
    assert itc_camt == Decimal("90.00")


def test_filed_snapshot_is_locked(event_loop, services):
    _, _, filings = services
    event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "GSTR1", "012025"))
    filed = event_loop.run_until_complete(filings.mark_filed("t1", "GSTR1", "012025", " AA270125000001 "))
    assert filed.status == "FILED"
    assert filed.arn == "AA270125000001"

    with pytest.raises(FilingLocked):
        event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "GSTR1", "012025"))
    with pytest.raises(FilingLocked):
        event_loop.run_until_complete(filings.mark_filed("t1", "GSTR1", "012025", "AA2"))


def test_regenerate_before_filing_updates_same_snapshot(event_loop, services, filing_repo):
    _, _, filings = services
    first = event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "GSTR1", "012025"))
    second = event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "GSTR1", "012025"))
    assert first.id == second.id
    assert len(filing_repo.snapshots) == 1


def test_missing_filing(event_loop, services):
    _, _, filings = services
    with pytest.raises(NotFound):
        event_loop.run_until_complete(filings.get_filing("t1", "GSTR1", "022025"))
    with pytest.raises(NotFound):
        event_loop.run_until_complete(filings.mark_filed("t1", "GSTR1", "022025", "ARN"))


def test_unsupported_generation(event_loop, services):
    _, returns, filings = services
    with pytest.raises(InvalidInput):
        event_loop.run_until_complete(returns.generate("t1", GSTIN_SELF, "GSTR9", "012025"))
    with pytest.raises(InvalidInput):
        event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "GSTR1", "2025-01"))


def test_list_filings(event_loop, services):
    _, _, filings = services
    event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "GSTR1", "012025"))
    event_loop.run_until_complete(filings.generate_filing("t1", GSTIN_SELF, "GSTR3B", "012025"))
    assert len(event_loop.run_until_complete(filings.list_filings("t1", fy="2024-25"))) == 2
    assert len(event_loop.run_until_complete(filings.list_filings("t1", return_type="gstr1"))) == 1
    assert event_loop.run_until_complete(filings.list_filings("t1", fy="2023-24")) == []
