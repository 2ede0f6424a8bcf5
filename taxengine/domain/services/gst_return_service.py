# taxengine/domain/services/gst_return_service.py
"""
Period-close return generation: fetch posted invoices, aggregate, and
optionally snapshot the result.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from taxengine.domain.errors import FilingLocked, InvalidInput, NotFound, TaxEngineError
from taxengine.domain.models.gstr import (
    FilingSnapshot,
    GSTR1Data,
    GSTR3BData,
    GSTRStatus,
    GSTRType,
)
from taxengine.domain.models.itc import TaxHeads
from taxengine.domain.money import ZERO
from taxengine.domain.services import gst_export
from taxengine.domain.services.financial_period import period_bounds, period_financial_year
from taxengine.domain.services.gstr1_service import Gstr1Aggregation, aggregate_gstr1
from taxengine.domain.services.gstr3b_service import aggregate_gstr3b, compute_tax_payable

logger = logging.getLogger("gst_return_service")

_GSTIN_RE = re.compile(r"^\d{2}[A-Z]{5}\d{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")

GENERATED_RETURN_TYPES = (GSTRType.GSTR1.value, GSTRType.GSTR3B.value)


def validate_gstin(gstin: str) -> str:
    gstin = (gstin or "").strip().upper()
    if not _GSTIN_RE.match(gstin):
        raise InvalidInput(f"Invalid GSTIN '{gstin}'")
    return gstin


def normalize_return_type(return_type: str) -> str:
    rt = (return_type or "").strip().upper().replace("-", "")
    if rt not in {t.value for t in GSTRType}:
        raise InvalidInput(f"Unknown return type '{return_type}'")
    return rt


class GstReturnService:
    def __init__(self, invoice_repo, itc_service) -> None:
        self.invoice_repo = invoice_repo
        self.itc_service = itc_service

    async def _invoices(self, tenant_id: str, period: str):
        start, end = period_bounds(period)
        return await self.invoice_repo.list_for_gstr(tenant_id, start, end)

    async def aggregate_gstr1(self, tenant_id: str, gstin: str, period: str) -> Gstr1Aggregation:
        gstin = validate_gstin(gstin)
        invoices = await self._invoices(tenant_id, period)
        return aggregate_gstr1(gstin, period, invoices)

    async def generate_gstr1(self, tenant_id: str, gstin: str, period: str) -> GSTR1Data:
        return (await self.aggregate_gstr1(tenant_id, gstin, period)).data

    async def generate_gstr3b(self, tenant_id: str, gstin: str, period: str) -> GSTR3BData:
        gstin = validate_gstin(gstin)
        invoices = await self._invoices(tenant_id, period)

        itc_summary = None
        try:
            itc_summary = await self.itc_service.get_itc_summary(tenant_id, period)
        except TaxEngineError as exc:
            # Table 4 falls back to zeros; outward tables are still valid
            logger.warning("ITC summary unavailable for %s %s: %s", tenant_id, period, exc)

        return aggregate_gstr3b(gstin, period, invoices, itc_summary)

    async def generate(self, tenant_id: str, gstin: str, return_type: str, period: str):
        return_type = normalize_return_type(return_type)
        if return_type not in GENERATED_RETURN_TYPES:
            raise InvalidInput(f"Generation of {return_type} is not supported")
        if return_type == GSTRType.GSTR1.value:
            return await self.generate_gstr1(tenant_id, gstin, period)
        return await self.generate_gstr3b(tenant_id, gstin, period)


class FilingService:
    """Stored return snapshots. A FILED snapshot is immutable."""

    def __init__(self, filing_repo, return_service: GstReturnService) -> None:
        self.filing_repo = filing_repo
        self.return_service = return_service

    async def get_filing(self, tenant_id: str, return_type: str, period: str) -> FilingSnapshot:
        return_type = normalize_return_type(return_type)
        snapshot = await self.filing_repo.get(tenant_id, return_type, period)
        if snapshot is None:
            raise NotFound(f"No {return_type} filing for period {period}")
        return snapshot

    async def list_filings(
        self, tenant_id: str, fy: str | None = None, return_type: str | None = None
    ) -> list[FilingSnapshot]:
        if return_type:
            return_type = normalize_return_type(return_type)
        return await self.filing_repo.list(tenant_id, fy=fy, return_type=return_type)

    async def generate_filing(
        self, tenant_id: str, gstin: str, return_type: str, period: str
    ) -> FilingSnapshot:
        return_type = normalize_return_type(return_type)
        existing = await self.filing_repo.get(tenant_id, return_type, period)
        if existing is not None and existing.is_filed:
            raise FilingLocked(
                f"{return_type} for {period} was filed (ARN {existing.arn}) and cannot be regenerated"
            )

        data = await self.return_service.generate(tenant_id, gstin, return_type, period)
        snapshot = existing or FilingSnapshot(
            tenant_id=tenant_id,
            gstin=data.gstin,
            return_type=return_type,
            period=period,
            financial_year=period_financial_year(period),
        )
        snapshot.gstin = data.gstin
        snapshot.status = GSTRStatus.GENERATED.value
        snapshot.payload_json = gst_export.dumps(data)
        snapshot.generated_at = datetime.now(timezone.utc)
        _apply_totals(snapshot, data)

        saved = await self.filing_repo.save(snapshot)
        logger.info(
            "%s snapshot generated tenant=%s period=%s tax=%s",
            return_type, tenant_id, period, saved.total_tax,
        )
        return saved

    async def mark_filed(
        self, tenant_id: str, return_type: str, period: str, arn: str
    ) -> FilingSnapshot:
        snapshot = await self.get_filing(tenant_id, return_type, period)
        if snapshot.is_filed:
            raise FilingLocked(f"{snapshot.return_type} for {period} is already filed")
        if not (arn or "").strip():
            raise InvalidInput("ARN is required to mark a return as filed")
        snapshot.status = GSTRStatus.FILED.value
        snapshot.arn = arn.strip()
        snapshot.filed_at = datetime.now(timezone.utc)
        return await self.filing_repo.save(snapshot)


def _gstr1_totals(data: GSTR1Data) -> TaxHeads:
    totals = TaxHeads()

    def add_items(items, sign=1):
        for it in items:
            d = it.itm_det
            totals.add(taxable=d.txval, igst=d.iamt, cgst=d.camt, sgst=d.samt, cess=d.csamt, sign=sign)

    for entry in data.b2b:
        for inv in entry.inv:
            add_items(inv.itms)
    for entry in data.b2cl:
        for inv in entry.inv:
            add_items(inv.itms)
    for entry in data.exp:
        for inv in entry.inv:
            add_items(inv.itms)
    for row in data.b2cs:
        totals.add(taxable=row.txval, igst=row.iamt, cgst=row.camt, sgst=row.samt, cess=row.csamt)
    notes = [n for entry in data.cdnr for n in entry.nt] + list(data.cdnur)
    for note in notes:
        add_items(note.itms, sign=-1 if note.ntty == "C" else 1)
    return totals


def _apply_totals(snapshot: FilingSnapshot, data) -> None:
    if isinstance(data, GSTR3BData):
        sup = data.sup_details
        payable = compute_tax_payable(data)
        net = data.inward_sup.itc_net
        snapshot.total_outward = sup.osup_det.txval + sup.osup_zero.txval
        snapshot.total_tax = sum(
            (s.iamt + s.camt + s.samt + s.csamt for s in (sup.osup_det, sup.osup_zero, sup.isup_rev)),
            ZERO,
        )
        snapshot.total_itc = net.iamt + net.camt + net.samt + net.csamt
        snapshot.tax_payable_igst = payable.igst
        snapshot.tax_payable_cgst = payable.cgst
        snapshot.tax_payable_sgst = payable.sgst
        snapshot.tax_payable_cess = payable.cess
        return

    totals = _gstr1_totals(data)
    snapshot.total_outward = totals.taxable
    snapshot.total_tax = totals.total_tax


def filing_payload(snapshot: FilingSnapshot) -> dict:
    return gst_export.loads(snapshot.payload_json) if snapshot.payload_json else {}
