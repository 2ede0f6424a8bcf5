"""Shared fixtures and in-memory repositories for the tax engine test suite."""

import asyncio
import uuid
from datetime import date
from decimal import Decimal

import pytest

from taxengine.domain.models.gstr import (
    SUPPLY_TAXABLE,
    InvoiceForGSTR,
    InvoiceItemForGSTR,
)
from taxengine.domain.models.tax import TaxCategory
from taxengine.domain.models.withholding import WithholdingRate

GSTIN_SELF = "27AAPFU0939F1ZV"
GSTIN_BUYER = "29AABCU9603R1ZM"


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


class FakeTaxRepository:
    """Category, jurisdiction, rate and withholding store backed by dicts."""

    def __init__(self, origin_state: str = "MH") -> None:
        self.origin_state = origin_state
        self.by_hsn: dict[str, TaxCategory] = {}
        self.by_sac: dict[str, TaxCategory] = {}
        self.by_id: dict[str, TaxCategory] = {}
        self.tds_rates: dict[str, WithholdingRate] = {}
        self.tcs_rates: dict[str, WithholdingRate] = {}
        self.cumulative_tds: dict[tuple[str, str], Decimal] = {}
        self.cumulative_tcs: dict[tuple[str, str], Decimal] = {}
        self.tds_records = []
        self.tcs_records = []
        self.lookups: list[str] = []

    async def get_category_by_hsn(self, tenant_id, hsn_code):
        self.lookups.append(f"hsn:{hsn_code}")
        return self.by_hsn.get(hsn_code)

    async def get_category_by_sac(self, tenant_id, sac_code):
        self.lookups.append(f"sac:{sac_code}")
        return self.by_sac.get(sac_code)

    async def get_category_by_id(self, tenant_id, category_id):
        self.lookups.append(f"id:{category_id}")
        return self.by_id.get(category_id)

    async def get_origin_state(self, tenant_id):
        return self.origin_state

    async def get_tds_rate(self, tenant_id, section, on_date=None):
        return self.tds_rates.get(section)

    async def get_tcs_rate(self, tenant_id, section, on_date=None):
        return self.tcs_rates.get(section)

    async def list_tds_rates(self, tenant_id):
        return list(self.tds_rates.values())

    async def list_tcs_rates(self, tenant_id):
        return list(self.tcs_rates.values())

    async def get_cumulative_tds(self, tenant_id, deductee_id, financial_year):
        posted = sum(
            (r.gross_amount for r in self.tds_records
             if r.tenant_id == tenant_id and r.deductee_id == deductee_id
             and r.financial_year == financial_year),
            Decimal("0.00"),
        )
        return self.cumulative_tds.get((deductee_id, financial_year), Decimal("0.00")) + posted

    async def get_cumulative_tcs(self, tenant_id, customer_id, financial_year):
        posted = sum(
            (r.sale_amount for r in self.tcs_records
             if r.tenant_id == tenant_id and r.customer_id == customer_id
             and r.financial_year == financial_year),
            Decimal("0.00"),
        )
        return self.cumulative_tcs.get((customer_id, financial_year), Decimal("0.00")) + posted

    async def create_tds_deduction(self, record):
        record.id = str(uuid.uuid4())
        self.tds_records.append(record)
        return record

    async def create_tcs_collection(self, record):
        record.id = str(uuid.uuid4())
        self.tcs_records.append(record)
        return record

    async def list_tds_deductions(self, tenant_id, financial_year=None, quarter=None):
        return [
            r for r in self.tds_records
            if r.tenant_id == tenant_id
            and (not financial_year or r.financial_year == financial_year)
            and (not quarter or r.quarter == quarter)
        ]

    async def list_tcs_collections(self, tenant_id, financial_year=None, quarter=None):
        return [
            r for r in self.tcs_records
            if r.tenant_id == tenant_id
            and (not financial_year or r.financial_year == financial_year)
            and (not quarter or r.quarter == quarter)
        ]


class FakeITCRepository:
    def __init__(self) -> None:
        self.records = {}

    async def create_itc(self, record):
        record.id = str(uuid.uuid4())
        self.records[record.id] = record
        return record

    async def list_itc(self, tenant_id, period=None, status=None):
        return [
            r for r in self.records.values()
            if r.tenant_id == tenant_id
            and (not period or r.claim_period == period)
            and (not status or r.status == status)
        ]

    async def get_itc(self, tenant_id, itc_id):
        record = self.records.get(itc_id)
        if record is None or record.tenant_id != tenant_id:
            return None
        return record

    async def update_itc(self, record):
        self.records[record.id] = record
        return record


class FakeFilingRepository:
    def __init__(self) -> None:
        self.snapshots = {}

    async def get(self, tenant_id, return_type, period):
        return self.snapshots.get((tenant_id, return_type, period))

    async def list(self, tenant_id, fy=None, return_type=None):
        return [
            s for (t, _, _), s in sorted(self.snapshots.items())
            if t == tenant_id
            and (not fy or s.financial_year == fy)
            and (not return_type or s.return_type == return_type)
        ]

    async def save(self, snapshot):
        if snapshot.id is None:
            snapshot.id = str(uuid.uuid4())
        self.snapshots[(snapshot.tenant_id, snapshot.return_type, snapshot.period)] = snapshot
        return snapshot


class FakeInvoiceRepository:
    def __init__(self, invoices=None) -> None:
        self.invoices = list(invoices or [])
        self.calls = []

    async def list_for_gstr(self, tenant_id, start, end):
        self.calls.append((tenant_id, start, end))
        return [i for i in self.invoices if start <= i.invoice_date <= end]


def make_item(
    taxable,
    rate="18",
    *,
    interstate=False,
    hsn="8471",
    supply_type=SUPPLY_TAXABLE,
    quantity="1",
    uom="NOS",
    description="",
) -> InvoiceItemForGSTR:
    """Line with tax heads computed from the rate."""
    taxable = Decimal(str(taxable))
    rate = Decimal(rate)
    tax = (taxable * rate / 100).quantize(Decimal("0.01"))
    if supply_type != SUPPLY_TAXABLE:
        rate, tax = Decimal("0"), Decimal("0.00")
    half = (tax / 2).quantize(Decimal("0.01"))
    return InvoiceItemForGSTR(
        taxable_amount=taxable,
        gst_rate=rate,
        igst_amount=tax if interstate else Decimal("0.00"),
        cgst_amount=Decimal("0.00") if interstate else half,
        sgst_amount=Decimal("0.00") if interstate else half,
        hsn_code=hsn,
        quantity=Decimal(quantity),
        uom=uom,
        description=description,
        supply_type=supply_type,
    )


def make_invoice(number, items, *, day=10, month=1, year=2025, **kwargs) -> InvoiceForGSTR:
    total = sum(
        (i.taxable_amount + i.igst_amount + i.cgst_amount + i.sgst_amount for i in items),
        Decimal("0.00"),
    )
    kwargs.setdefault("total_amount", total)
    return InvoiceForGSTR(
        invoice_number=number,
        invoice_date=date(year, month, day),
        items=items,
        **kwargs,
    )


@pytest.fixture
def tax_repo() -> FakeTaxRepository:
    return FakeTaxRepository()


@pytest.fixture
def itc_repo() -> FakeITCRepository:
    return FakeITCRepository()


@pytest.fixture
def filing_repo() -> FakeFilingRepository:
    return FakeFilingRepository()
