# taxengine/infrastructure/db/repositories/filing_repository.py

from __future__ import annotations

import uuid

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taxengine.domain.models.gstr import FilingSnapshot
from taxengine.domain.money import to_decimal
from taxengine.infrastructure.db.models import GSTRFiling
from taxengine.infrastructure.db.repositories.tax_repository import unavailable_on_db_error

_COPIED_FIELDS = (
    "gstin", "financial_year", "status", "total_outward", "total_tax", "total_itc",
    "tax_payable_igst", "tax_payable_cgst", "tax_payable_sgst", "tax_payable_cess",
    "payload_json", "arn", "generated_at", "filed_at",
)


def _to_snapshot(row: GSTRFiling) -> FilingSnapshot:
    return FilingSnapshot(
        id=str(row.id),
        tenant_id=row.tenant_id,
        gstin=row.gstin,
        return_type=row.return_type,
        period=row.period,
        financial_year=row.financial_year,
        status=row.status,
        total_outward=to_decimal(row.total_outward),
        total_tax=to_decimal(row.total_tax),
        total_itc=to_decimal(row.total_itc),
        tax_payable_igst=to_decimal(row.tax_payable_igst),
        tax_payable_cgst=to_decimal(row.tax_payable_cgst),
        tax_payable_sgst=to_decimal(row.tax_payable_sgst),
        tax_payable_cess=to_decimal(row.tax_payable_cess),
        payload_json=row.payload_json or "",
        arn=row.arn,
        generated_at=row.generated_at,
        filed_at=row.filed_at,
    )


class FilingRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_row(self, tenant_id: str, return_type: str, period: str) -> GSTRFiling | None:
        stmt = select(GSTRFiling).where(
            and_(
                GSTRFiling.tenant_id == tenant_id,
                GSTRFiling.return_type == return_type,
                GSTRFiling.period == period,
            )
        )
        with unavailable_on_db_error("Filing lookup"):
            result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, tenant_id: str, return_type: str, period: str) -> FilingSnapshot | None:
        row = await self._get_row(tenant_id, return_type, period)
        return _to_snapshot(row) if row else None

    async def list(
        self, tenant_id: str, fy: str | None = None, return_type: str | None = None
    ) -> list[FilingSnapshot]:
        conditions = [GSTRFiling.tenant_id == tenant_id]
        if fy:
            conditions.append(GSTRFiling.financial_year == fy)
        if return_type:
            conditions.append(GSTRFiling.return_type == return_type)
        stmt = (
            select(GSTRFiling)
            .where(and_(*conditions))
            .order_by(GSTRFiling.period.desc(), GSTRFiling.return_type)
        )
        with unavailable_on_db_error("Filing listing"):
            result = await self.db.execute(stmt)
        return [_to_snapshot(r) for r in result.scalars().all()]

    async def save(self, snapshot: FilingSnapshot) -> FilingSnapshot:
        """Insert or update the (tenant, return type, period) snapshot."""
        row = await self._get_row(snapshot.tenant_id, snapshot.return_type, snapshot.period)
        if row is None:
            row = GSTRFiling(
                id=uuid.uuid4(),
                tenant_id=snapshot.tenant_id,
                return_type=snapshot.return_type,
                period=snapshot.period,
            )
            self.db.add(row)
        for name in _COPIED_FIELDS:
            setattr(row, name, getattr(snapshot, name))
        with unavailable_on_db_error("Filing save"):
            await self.db.commit()
            await self.db.refresh(row)
        return _to_snapshot(row)
