# taxengine/infrastructure/db/repositories/tax_repository.py

from __future__ import annotations

import hashlib
import logging
import uuid
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

from sqlalchemy import and_, case, func, or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taxengine.domain.errors import RepositoryUnavailable
from taxengine.domain.models.tax import TaxCategory
from taxengine.domain.models.withholding import (
    GLOBAL_TENANT_ID,
    TCSCollectionRecord,
    TDSDeductionRecord,
    WithholdingRate,
)
from taxengine.domain.money import to_decimal
from taxengine.infrastructure.db.models import (
    ProductTaxCategory,
    TaxJurisdiction,
    TCSCollection,
    TCSRate,
    TDSDeduction,
    TDSRate,
)

logger = logging.getLogger("tax_repository")


@contextmanager
def unavailable_on_db_error(what: str):
    """Re-raise driver/ORM failures as RepositoryUnavailable."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("%s failed: %s", what, exc)
        raise RepositoryUnavailable(f"{what} failed") from exc


def party_lock_key(tenant_id: str, party_id: str, financial_year: str) -> int:
    """Signed 64-bit key for pg_advisory_xact_lock."""
    digest = hashlib.blake2b(
        f"{tenant_id}:{party_id}:{financial_year}".encode("utf-8"), digest_size=8
    ).digest()
    return int.from_bytes(digest, "big", signed=True)


def _tenant_first(model, tenant_id: str):
    """Tenant rows override the global defaults."""
    return case((model.tenant_id == tenant_id, 0), else_=1)


def _to_category(row: ProductTaxCategory) -> TaxCategory:
    return TaxCategory(
        id=str(row.id),
        name=row.name or "",
        hsn_code=row.hsn_code,
        sac_code=row.sac_code,
        gst_rate=to_decimal(row.gst_rate, "18"),
        is_tax_exempt=bool(row.is_tax_exempt),
        is_nil_rated=bool(row.is_nil_rated),
        is_zero_rated=bool(row.is_zero_rated),
    )


def _to_rate(row, per_annum: bool) -> WithholdingRate:
    return WithholdingRate(
        section=row.section,
        rate_with_pan=to_decimal(row.rate_with_pan),
        rate_without_pan=to_decimal(row.rate_without_pan),
        threshold_amount=to_decimal(row.threshold_amount),
        threshold_per_annum=per_annum,
        description=row.description or "",
        tenant_id=row.tenant_id,
        effective_from=row.effective_from,
        effective_to=row.effective_to,
    )


def _to_tds_record(row: TDSDeduction) -> TDSDeductionRecord:
    return TDSDeductionRecord(
        id=str(row.id),
        tenant_id=row.tenant_id,
        deductee_id=row.deductee_id,
        deductee_name=row.deductee_name,
        deductee_pan=row.deductee_pan,
        section=row.section,
        gross_amount=to_decimal(row.gross_amount),
        tds_rate=to_decimal(row.tds_rate),
        tds_amount=to_decimal(row.tds_amount),
        net_amount=to_decimal(row.net_amount),
        deduction_date=row.deduction_date,
        financial_year=row.financial_year,
        quarter=row.quarter,
        invoice_id=row.invoice_id,
        payment_id=row.payment_id,
        status=row.status,
        created_at=row.created_at,
    )


def _to_tcs_record(row: TCSCollection) -> TCSCollectionRecord:
    return TCSCollectionRecord(
        id=str(row.id),
        tenant_id=row.tenant_id,
        customer_id=row.customer_id,
        customer_name=row.customer_name,
        customer_pan=row.customer_pan,
        section=row.section,
        sale_amount=to_decimal(row.sale_amount),
        tcs_rate=to_decimal(row.tcs_rate),
        tcs_amount=to_decimal(row.tcs_amount),
        total_amount=to_decimal(row.total_amount),
        collection_date=row.collection_date,
        financial_year=row.financial_year,
        quarter=row.quarter,
        invoice_id=row.invoice_id,
        status=row.status,
        created_at=row.created_at,
    )


class TaxRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------- categories & jurisdiction ----------

    async def _category_where(self, tenant_id: str, *conditions) -> TaxCategory | None:
        stmt = (
            select(ProductTaxCategory)
            .where(
                and_(
                    ProductTaxCategory.tenant_id.in_([tenant_id, GLOBAL_TENANT_ID]),
                    ProductTaxCategory.is_active.is_(True),
                    *conditions,
                )
            )
            .order_by(_tenant_first(ProductTaxCategory, tenant_id))
            .limit(1)
        )
        with unavailable_on_db_error("Tax category lookup"):
            result = await self.db.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_category(row) if row else None

    async def get_category_by_hsn(self, tenant_id: str, hsn_code: str) -> TaxCategory | None:
        return await self._category_where(tenant_id, ProductTaxCategory.hsn_code == hsn_code.strip())

    async def get_category_by_sac(self, tenant_id: str, sac_code: str) -> TaxCategory | None:
        return await self._category_where(tenant_id, ProductTaxCategory.sac_code == sac_code.strip())

    async def get_category_by_id(self, tenant_id: str, category_id: str) -> TaxCategory | None:
        try:
            cid = uuid.UUID(str(category_id))
        except ValueError:
            return None
        return await self._category_where(tenant_id, ProductTaxCategory.id == cid)

    async def get_origin_state(self, tenant_id: str) -> str:
        """State code of the tenant's active nexus jurisdiction, or ''."""
        stmt = (
            select(TaxJurisdiction.state_code)
            .where(
                and_(
                    TaxJurisdiction.tenant_id == tenant_id,
                    TaxJurisdiction.country_code == "IN",
                    TaxJurisdiction.is_active.is_(True),
                    TaxJurisdiction.state_code.is_not(None),
                )
            )
            .order_by(TaxJurisdiction.created_at)
            .limit(1)
        )
        with unavailable_on_db_error("Tenant jurisdiction lookup"):
            result = await self.db.execute(stmt)
        return result.scalar_one_or_none() or ""

    # ---------- rates ----------

    async def _rate(self, model, tenant_id: str, section: str, on_date: date | None):
        conditions = [
            model.tenant_id.in_([tenant_id, GLOBAL_TENANT_ID]),
            model.section == section,
            model.is_active.is_(True),
        ]
        if on_date is not None:
            conditions.append(or_(model.effective_from.is_(None), model.effective_from <= on_date))
            conditions.append(or_(model.effective_to.is_(None), model.effective_to >= on_date))
        stmt = (
            select(model)
            .where(and_(*conditions))
            .order_by(_tenant_first(model, tenant_id), model.effective_from.desc().nulls_last())
            .limit(1)
        )
        with unavailable_on_db_error(f"{model.__tablename__} lookup"):
            result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_tds_rate(
        self, tenant_id: str, section: str, on_date: date | None = None
    ) -> WithholdingRate | None:
        row = await self._rate(TDSRate, tenant_id, section, on_date)
        return _to_rate(row, per_annum=bool(row.threshold_per_annum)) if row else None

    async def get_tcs_rate(
        self, tenant_id: str, section: str, on_date: date | None = None
    ) -> WithholdingRate | None:
        row = await self._rate(TCSRate, tenant_id, section, on_date)
        return _to_rate(row, per_annum=True) if row else None

    async def _list_rates(self, model, tenant_id: str) -> list:
        stmt = (
            select(model)
            .where(
                and_(
                    model.tenant_id.in_([tenant_id, GLOBAL_TENANT_ID]),
                    model.is_active.is_(True),
                )
            )
            .order_by(model.section, _tenant_first(model, tenant_id))
        )
        with unavailable_on_db_error(f"{model.__tablename__} listing"):
            result = await self.db.execute(stmt)
        # First row per section wins (tenant override before global)
        seen: dict[str, object] = {}
        for row in result.scalars().all():
            seen.setdefault(row.section, row)
        return list(seen.values())

    async def list_tds_rates(self, tenant_id: str) -> list[WithholdingRate]:
        rows = await self._list_rates(TDSRate, tenant_id)
        return [_to_rate(r, per_annum=bool(r.threshold_per_annum)) for r in rows]

    async def list_tcs_rates(self, tenant_id: str) -> list[WithholdingRate]:
        rows = await self._list_rates(TCSRate, tenant_id)
        return [_to_rate(r, per_annum=True) for r in rows]

    # ---------- cumulative totals ----------

    async def get_cumulative_tds(self, tenant_id: str, deductee_id: str, financial_year: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(TDSDeduction.gross_amount), 0)).where(
            and_(
                TDSDeduction.tenant_id == tenant_id,
                TDSDeduction.deductee_id == deductee_id,
                TDSDeduction.financial_year == financial_year,
            )
        )
        with unavailable_on_db_error("Cumulative TDS lookup"):
            result = await self.db.execute(stmt)
        return to_decimal(result.scalar_one())

    async def get_cumulative_tcs(self, tenant_id: str, customer_id: str, financial_year: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(TCSCollection.sale_amount), 0)).where(
            and_(
                TCSCollection.tenant_id == tenant_id,
                TCSCollection.customer_id == customer_id,
                TCSCollection.financial_year == financial_year,
            )
        )
        with unavailable_on_db_error("Cumulative TCS lookup"):
            result = await self.db.execute(stmt)
        return to_decimal(result.scalar_one())

    # ---------- posting ----------

    async def _lock_party(self, tenant_id: str, party_id: str, financial_year: str) -> None:
        """Serialise inserts for one (tenant, party, FY) until commit."""
        if self.db.get_bind().dialect.name != "postgresql":
            return
        await self.db.execute(
            text("SELECT pg_advisory_xact_lock(:key)"),
            {"key": party_lock_key(tenant_id, party_id, financial_year)},
        )

    async def create_tds_deduction(self, record: TDSDeductionRecord) -> TDSDeductionRecord:
        row = TDSDeduction(
            id=uuid.uuid4(),
            tenant_id=record.tenant_id,
            deductee_id=record.deductee_id,
            deductee_name=record.deductee_name,
            deductee_pan=record.deductee_pan,
            section=record.section,
            gross_amount=record.gross_amount,
            tds_rate=record.tds_rate,
            tds_amount=record.tds_amount,
            net_amount=record.net_amount,
            deduction_date=record.deduction_date,
            financial_year=record.financial_year,
            quarter=record.quarter,
            invoice_id=record.invoice_id,
            payment_id=record.payment_id,
            status=record.status,
        )
        with unavailable_on_db_error("TDS deduction insert"):
            await self._lock_party(record.tenant_id, record.deductee_id, record.financial_year)
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
        return _to_tds_record(row)

    async def list_tds_deductions(
        self, tenant_id: str, financial_year: str | None = None, quarter: str | None = None
    ) -> list[TDSDeductionRecord]:
        conditions = [TDSDeduction.tenant_id == tenant_id]
        if financial_year:
            conditions.append(TDSDeduction.financial_year == financial_year)
        if quarter:
            conditions.append(TDSDeduction.quarter == quarter)
        stmt = (
            select(TDSDeduction)
            .where(and_(*conditions))
            .order_by(TDSDeduction.deduction_date.desc())
        )
        with unavailable_on_db_error("TDS deduction listing"):
            result = await self.db.execute(stmt)
        return [_to_tds_record(r) for r in result.scalars().all()]

    async def create_tcs_collection(self, record: TCSCollectionRecord) -> TCSCollectionRecord:
        row = TCSCollection(
            id=uuid.uuid4(),
            tenant_id=record.tenant_id,
            customer_id=record.customer_id,
            customer_name=record.customer_name,
            customer_pan=record.customer_pan,
            section=record.section,
            sale_amount=record.sale_amount,
            tcs_rate=record.tcs_rate,
            tcs_amount=record.tcs_amount,
            total_amount=record.total_amount,
            collection_date=record.collection_date,
            financial_year=record.financial_year,
            quarter=record.quarter,
            invoice_id=record.invoice_id,
            status=record.status,
        )
        with unavailable_on_db_error("TCS collection insert"):
            await self._lock_party(record.tenant_id, record.customer_id, record.financial_year)
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
        return _to_tcs_record(row)

    async def list_tcs_collections(
        self, tenant_id: str, financial_year: str | None = None, quarter: str | None = None
    ) -> list[TCSCollectionRecord]:
        conditions = [TCSCollection.tenant_id == tenant_id]
        if financial_year:
            conditions.append(TCSCollection.financial_year == financial_year)
        if quarter:
            conditions.append(TCSCollection.quarter == quarter)
        stmt = (
            select(TCSCollection)
            .where(and_(*conditions))
            .order_by(TCSCollection.collection_date.desc())
        )
        with unavailable_on_db_error("TCS collection listing"):
            result = await self.db.execute(stmt)
        return [_to_tcs_record(r) for r in result.scalars().all()]
