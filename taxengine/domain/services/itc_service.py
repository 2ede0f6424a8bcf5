# taxengine/domain/services/itc_service.py
"""
Input tax credit recorder.

Eligible ITC equals total ITC: apportionment under Rules 42/43 (common
credit used for exempt supplies) is not computed here.
"""

from __future__ import annotations

import logging

from taxengine.domain.errors import FilingLocked, NotFound
from taxengine.domain.models.itc import ITCRecord, ITCRecordRequest, ITCStatus, ITCSummary
from taxengine.domain.money import ZERO
from taxengine.domain.services.financial_period import (
    claim_period,
    parse_return_period,
    parse_transaction_date,
)

logger = logging.getLogger("itc_service")


def summarize_itc(period: str, records: list[ITCRecord]) -> ITCSummary:
    """Fold a period's ITC records into totals per type, status and tax head."""
    summary = ITCSummary(period=period)
    for rec in records:
        summary.record_count += 1
        summary.total_itc += rec.total_itc
        summary.by_type[rec.itc_type] = summary.by_type.get(rec.itc_type, ZERO) + rec.total_itc
        summary.by_status[rec.status] = summary.by_status.get(rec.status, 0) + 1

        summary.available.add(
            taxable=rec.taxable_amount,
            igst=rec.igst_amount,
            cgst=rec.cgst_amount,
            sgst=rec.sgst_amount,
            cess=rec.cess_amount,
        )
        if rec.status == ITCStatus.REVERSED.value:
            summary.reversed_itc += rec.reversal_amount
            summary.reversed.add(
                taxable=rec.taxable_amount,
                igst=rec.igst_amount,
                cgst=rec.cgst_amount,
                sgst=rec.sgst_amount,
                cess=rec.cess_amount,
            )
        else:
            summary.eligible_itc += rec.eligible_itc

        if rec.is_reverse_charge:
            summary.reverse_charge.add(
                taxable=rec.taxable_amount,
                igst=rec.igst_amount,
                cgst=rec.cgst_amount,
                sgst=rec.sgst_amount,
                cess=rec.cess_amount,
            )
    return summary


class ITCService:
    def __init__(self, repo) -> None:
        self.repo = repo

    async def record_itc(self, request: ITCRecordRequest) -> ITCRecord:
        invoice_date = parse_transaction_date(request.invoice_date, "invoice_date")
        total = (
            request.cgst_amount + request.sgst_amount
            + request.igst_amount + request.cess_amount
        )
        record = ITCRecord(
            tenant_id=request.tenant_id,
            supplier_id=request.supplier_id,
            supplier_gstin=request.supplier_gstin.strip().upper(),
            supplier_name=request.supplier_name,
            purchase_invoice_id=request.purchase_invoice_id,
            invoice_number=request.invoice_number,
            invoice_date=invoice_date,
            itc_type=request.itc_type.value,
            hsn_code=request.hsn_code,
            taxable_amount=request.taxable_amount,
            cgst_amount=request.cgst_amount,
            sgst_amount=request.sgst_amount,
            igst_amount=request.igst_amount,
            cess_amount=request.cess_amount,
            total_itc=total,
            eligible_itc=total,
            claim_period=claim_period(invoice_date),
            status=ITCStatus.AVAILABLE.value,
            is_reverse_charge=request.is_reverse_charge,
        )
        saved = await self.repo.create_itc(record)
        logger.info(
            "ITC recorded tenant=%s supplier=%s invoice=%s total=%s period=%s",
            saved.tenant_id, saved.supplier_gstin, saved.invoice_number,
            saved.total_itc, saved.claim_period,
        )
        return saved

    async def list_itc(
        self, tenant_id: str, period: str | None = None, status: str | None = None
    ) -> list[ITCRecord]:
        if period:
            parse_return_period(period)
        return await self.repo.list_itc(tenant_id, period=period, status=status)

    async def get_itc_summary(self, tenant_id: str, period: str) -> ITCSummary:
        parse_return_period(period)
        records = await self.repo.list_itc(tenant_id, period=period)
        return summarize_itc(period, records)

    async def _get(self, tenant_id: str, itc_id: str) -> ITCRecord:
        record = await self.repo.get_itc(tenant_id, itc_id)
        if record is None:
            raise NotFound(f"ITC record {itc_id} not found")
        return record

    async def claim_itc(self, tenant_id: str, itc_id: str, period: str | None = None) -> ITCRecord:
        """AVAILABLE -> CLAIMED."""
        record = await self._get(tenant_id, itc_id)
        if record.status != ITCStatus.AVAILABLE.value:
            raise FilingLocked(f"ITC record {itc_id} is {record.status}, only AVAILABLE credit can be claimed")
        if period:
            parse_return_period(period)
        record.status = ITCStatus.CLAIMED.value
        record.claimed_in_period = period or record.claim_period
        return await self.repo.update_itc(record)

    async def reverse_itc(self, tenant_id: str, itc_id: str, reason: str) -> ITCRecord:
        """AVAILABLE or CLAIMED -> REVERSED; eligible credit drops to zero."""
        record = await self._get(tenant_id, itc_id)
        if record.status == ITCStatus.REVERSED.value:
            raise FilingLocked(f"ITC record {itc_id} is already reversed")
        record.reversal_amount = record.eligible_itc
        record.reversal_reason = reason
        record.eligible_itc = ZERO
        record.status = ITCStatus.REVERSED.value
        logger.info("ITC %s reversed (%s): %s", itc_id, reason, record.reversal_amount)
        return await self.repo.update_itc(record)
