# taxengine/domain/services/withholding_service.py
"""
TDS and TCS calculation and posting.

Cumulative totals are always re-read from posted records, so annual
thresholds reset with the financial year on 1 April.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from taxengine.core.config import settings
from taxengine.domain.errors import InvalidInput, RateNotFound
from taxengine.domain.models.withholding import (
    TCSCalculationRequest,
    TCSCalculationResponse,
    TCSCollectionRecord,
    TCSSection,
    TDSCalculationRequest,
    TDSCalculationResponse,
    TDSDeductionRecord,
    TDSSection,
    WithholdingRate,
)
from taxengine.domain.money import ZERO, percent_of, round_money
from taxengine.domain.services.financial_period import (
    financial_year,
    parse_transaction_date,
    quarter,
)

logger = logging.getLogger("withholding_service")

_TDS_SECTIONS = {s.value for s in TDSSection}
_TCS_SECTIONS = {s.value for s in TCSSection}


def _has_pan(pan: str | None) -> bool:
    return bool(pan and pan.strip())


def _check_section(section: str, allowed: set[str], kind: str) -> str:
    section = (section or "").strip().upper()
    if section not in allowed:
        raise InvalidInput(f"Unknown {kind} section '{section}'")
    return section


class WithholdingService:
    def __init__(self, repo) -> None:
        self.repo = repo

    # ---- rate lookups ----

    async def _tds_rate(self, tenant_id: str, section: str, on_date) -> WithholdingRate:
        rate = await self.repo.get_tds_rate(tenant_id, section, on_date)
        if rate is None:
            raise RateNotFound(f"TDS rate not found for section {section}")
        return rate

    async def _tcs_rate(self, tenant_id: str, section: str, on_date) -> WithholdingRate:
        rate = await self.repo.get_tcs_rate(tenant_id, section, on_date)
        if rate is None:
            raise RateNotFound(f"TCS rate not found for section {section}")
        return rate

    async def list_tds_rates(self, tenant_id: str) -> list[WithholdingRate]:
        return await self.repo.list_tds_rates(tenant_id)

    async def list_tcs_rates(self, tenant_id: str) -> list[WithholdingRate]:
        return await self.repo.list_tcs_rates(tenant_id)

    # ---- TDS ----

    async def calculate_tds(self, request: TDSCalculationRequest) -> TDSCalculationResponse:
        section = _check_section(request.section, _TDS_SECTIONS, "TDS")
        txn_date = parse_transaction_date(request.transaction_date, "transaction_date")
        fy = financial_year(txn_date)
        qtr = quarter(txn_date)

        rate = await self._tds_rate(request.tenant_id, section, txn_date)
        cumulative = await self.repo.get_cumulative_tds(
            request.tenant_id, request.deductee_id, fy
        )
        gross = request.gross_amount
        has_pan = _has_pan(request.pan)

        if rate.threshold_per_annum and cumulative + gross < rate.threshold_amount:
            logger.info(
                "TDS %s below annual threshold for %s (%s + %s < %s)",
                section, request.deductee_id, cumulative, gross, rate.threshold_amount,
            )
            return TDSCalculationResponse(
                section=section,
                gross_amount=gross,
                tds_rate=ZERO,
                tds_amount=ZERO,
                net_amount=gross,
                is_pan_available=has_pan,
                threshold_amount=rate.threshold_amount,
                threshold_applied=True,
                cumulative_amount=cumulative,
                financial_year=fy,
                quarter=qtr,
            )

        tds_rate = rate.rate_for(has_pan)
        tds = percent_of(gross, tds_rate)
        return TDSCalculationResponse(
            section=section,
            gross_amount=gross,
            tds_rate=tds_rate,
            tds_amount=tds,
            net_amount=gross - tds,
            is_pan_available=has_pan,
            threshold_amount=rate.threshold_amount,
            threshold_applied=False,
            cumulative_amount=cumulative,
            financial_year=fy,
            quarter=qtr,
        )

    async def create_tds_deduction(
        self,
        tenant_id: str,
        *,
        deductee_id: str,
        deductee_name: str,
        section: str,
        gross_amount: Decimal,
        tds_rate: Decimal,
        tds_amount: Decimal,
        deduction_date: str,
        deductee_pan: str | None = None,
        invoice_id: str | None = None,
        payment_id: str | None = None,
    ) -> TDSDeductionRecord:
        section = _check_section(section, _TDS_SECTIONS, "TDS")
        d = parse_transaction_date(deduction_date, "deduction_date")
        tds_amount = round_money(tds_amount)
        if tds_amount > gross_amount:
            raise InvalidInput("TDS amount cannot exceed gross amount")

        record = TDSDeductionRecord(
            tenant_id=tenant_id,
            deductee_id=deductee_id,
            deductee_name=deductee_name,
            deductee_pan=deductee_pan,
            section=section,
            gross_amount=gross_amount,
            tds_rate=tds_rate,
            tds_amount=tds_amount,
            net_amount=gross_amount - tds_amount,
            deduction_date=d,
            financial_year=financial_year(d),
            quarter=quarter(d),
            invoice_id=invoice_id,
            payment_id=payment_id,
        )
        return await self.repo.create_tds_deduction(record)

    async def list_tds_deductions(
        self, tenant_id: str, fy: str | None = None, qtr: str | None = None
    ) -> list[TDSDeductionRecord]:
        return await self.repo.list_tds_deductions(tenant_id, fy, qtr)

    # ---- TCS ----

    async def calculate_tcs(self, request: TCSCalculationRequest) -> TCSCalculationResponse:
        section = _check_section(request.section, _TCS_SECTIONS, "TCS")
        txn_date = parse_transaction_date(request.transaction_date, "transaction_date")
        fy = financial_year(txn_date)
        qtr = quarter(txn_date)

        rate = await self._tcs_rate(request.tenant_id, section, txn_date)
        has_pan = _has_pan(request.pan)
        tcs_rate = rate.rate_for(has_pan)
        sale = request.sale_amount
        cumulative = ZERO
        threshold = rate.threshold_amount

        if section == TCSSection.SALE_OF_GOODS.value:
            threshold = rate.threshold_amount or Decimal(settings.TCS_1H_THRESHOLD)
            cumulative = await self.repo.get_cumulative_tcs(
                request.tenant_id, request.customer_id, fy
            )
            if cumulative + sale <= threshold:
                logger.info(
                    "TCS 206C(1H) not triggered for %s (%s + %s <= %s)",
                    request.customer_id, cumulative, sale, threshold,
                )
                return TCSCalculationResponse(
                    section=section,
                    sale_amount=sale,
                    taxable_amount=ZERO,
                    tcs_rate=ZERO,
                    tcs_amount=ZERO,
                    total_amount=sale,
                    is_pan_available=has_pan,
                    threshold_amount=threshold,
                    threshold_applied=True,
                    cumulative_amount=cumulative,
                    financial_year=fy,
                    quarter=qtr,
                )
            # Only the part of this sale above the threshold is taxed
            taxable = min(sale, cumulative + sale - threshold)
        else:
            taxable = sale

        tcs = percent_of(taxable, tcs_rate)
        return TCSCalculationResponse(
            section=section,
            sale_amount=sale,
            taxable_amount=taxable,
            tcs_rate=tcs_rate,
            tcs_amount=tcs,
            total_amount=sale + tcs,
            is_pan_available=has_pan,
            threshold_amount=threshold,
            threshold_applied=False,
            cumulative_amount=cumulative,
            financial_year=fy,
            quarter=qtr,
        )

    async def create_tcs_collection(
        self,
        tenant_id: str,
        *,
        customer_id: str,
        customer_name: str,
        section: str,
        sale_amount: Decimal,
        tcs_rate: Decimal,
        tcs_amount: Decimal,
        collection_date: str,
        customer_pan: str | None = None,
        invoice_id: str | None = None,
    ) -> TCSCollectionRecord:
        section = _check_section(section, _TCS_SECTIONS, "TCS")
        d = parse_transaction_date(collection_date, "collection_date")
        tcs_amount = round_money(tcs_amount)

        record = TCSCollectionRecord(
            tenant_id=tenant_id,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_pan=customer_pan,
            section=section,
            sale_amount=sale_amount,
            tcs_rate=tcs_rate,
            tcs_amount=tcs_amount,
            total_amount=sale_amount + tcs_amount,
            collection_date=d,
            financial_year=financial_year(d),
            quarter=quarter(d),
            invoice_id=invoice_id,
        )
        return await self.repo.create_tcs_collection(record)

    async def list_tcs_collections(
        self, tenant_id: str, fy: str | None = None, qtr: str | None = None
    ) -> list[TCSCollectionRecord]:
        return await self.repo.list_tcs_collections(tenant_id, fy, qtr)
