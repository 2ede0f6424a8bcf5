# taxengine/domain/services/tax_regimes.py
"""
Country tax regimes.

A regime turns a validated request into a TaxCalculationResponse. Regimes are
looked up by ISO country code; anything unregistered falls through to the
explicit zero-tax regime.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from taxengine.core.config import settings
from taxengine.domain.errors import InvalidJurisdiction
from taxengine.domain.models.tax import (
    TAX_CGST,
    TAX_IGST,
    TAX_SGST,
    GSTSummary,
    TaxBreakdownRow,
    TaxCalculationRequest,
    TaxCalculationResponse,
)
from taxengine.domain.money import TWO, ZERO, percent_of

logger = logging.getLogger("tax_regimes")

JURISDICTION_INDIA = "India"
JURISDICTION_INDIA_CENTRAL = "India - Central"


class TaxRegime:
    country_codes: tuple[str, ...] = ()
    name = "base"

    async def calculate(
        self, request: TaxCalculationRequest, subtotal: Decimal, repo
    ) -> TaxCalculationResponse:
        raise NotImplementedError


class ZeroTaxRegime(TaxRegime):
    """Passthrough for countries with no configured regime."""

    name = "zero_tax"

    async def calculate(self, request, subtotal, repo):
        shipping = request.shipping_amount
        return TaxCalculationResponse(
            subtotal=subtotal,
            shipping_amount=shipping,
            total_tax=ZERO,
            total=subtotal + shipping,
            breakdown=[],
            is_exempt=False,
        )


def _normalize_state(code: str | None) -> str:
    return (code or "").strip().upper()


class IndiaGSTRegime(TaxRegime):
    """
    Indian GST.

    Intrastate supplies split the slab equally into CGST and SGST; interstate
    supplies carry the full slab as IGST. Each component is rounded on its own
    and totals are sums of rounded components.
    """

    country_codes = ("IN",)
    name = "india_gst"

    async def _origin_state(self, request: TaxCalculationRequest, repo) -> str:
        if request.origin_address and request.origin_address.state_code:
            return _normalize_state(request.origin_address.state_code)
        return _normalize_state(await repo.get_origin_state(request.tenant_id))

    async def resolve_slab(self, tenant_id: str, item, repo) -> Decimal:
        """HSN -> SAC -> category id -> default slab."""
        category = None
        if item.hsn_code:
            category = await repo.get_category_by_hsn(tenant_id, item.hsn_code)
        if category is None and item.sac_code:
            category = await repo.get_category_by_sac(tenant_id, item.sac_code)
        if category is None and item.category_id:
            category = await repo.get_category_by_id(tenant_id, item.category_id)
        if category is None:
            return Decimal(settings.DEFAULT_GST_SLAB)
        return category.effective_rate

    def _rows(
        self,
        *,
        taxable: Decimal,
        slab: Decimal,
        interstate: bool,
        state_label: str,
        item_name: str,
        hsn_code: str | None = None,
        sac_code: str | None = None,
    ) -> list[TaxBreakdownRow]:
        if interstate:
            return [
                TaxBreakdownRow(
                    jurisdiction=JURISDICTION_INDIA,
                    tax_type=TAX_IGST,
                    rate=slab,
                    taxable_amount=taxable,
                    tax_amount=percent_of(taxable, slab),
                    hsn_code=hsn_code,
                    sac_code=sac_code,
                    item_name=item_name,
                )
            ]

        half = slab / TWO
        return [
            TaxBreakdownRow(
                jurisdiction=JURISDICTION_INDIA_CENTRAL,
                tax_type=TAX_CGST,
                rate=half,
                taxable_amount=taxable,
                tax_amount=percent_of(taxable, half),
                hsn_code=hsn_code,
                sac_code=sac_code,
                item_name=item_name,
            ),
            TaxBreakdownRow(
                jurisdiction=state_label,
                tax_type=TAX_SGST,
                rate=half,
                taxable_amount=taxable,
                tax_amount=percent_of(taxable, half),
                hsn_code=hsn_code,
                sac_code=sac_code,
                item_name=item_name,
            ),
        ]

    async def calculate(self, request, subtotal, repo):
        origin = await self._origin_state(request, repo)
        destination = _normalize_state(request.shipping_address.state_code)
        if not origin and not destination:
            raise InvalidJurisdiction(
                "Cannot determine GST jurisdiction: origin and destination state are both unknown"
            )

        interstate = bool(origin and destination and origin != destination)
        state_label = request.shipping_address.state or destination or origin

        rows: list[TaxBreakdownRow] = []
        all_zero = True
        for item in request.items:
            slab = await self.resolve_slab(request.tenant_id, item, repo)
            if slab > 0:
                all_zero = False
            rows.extend(
                self._rows(
                    taxable=item.subtotal,
                    slab=slab,
                    interstate=interstate,
                    state_label=state_label,
                    item_name=item.name,
                    hsn_code=item.hsn_code,
                    sac_code=item.sac_code,
                )
            )

        shipping = request.shipping_amount
        if shipping > 0:
            rows.extend(
                self._rows(
                    taxable=shipping,
                    slab=Decimal(settings.SHIPPING_GST_SLAB),
                    interstate=interstate,
                    state_label=state_label,
                    item_name="Shipping",
                )
            )

        summary = GSTSummary(is_interstate=interstate)
        for row in rows:
            if row.tax_type == TAX_IGST:
                summary.igst += row.tax_amount
            elif row.tax_type == TAX_CGST:
                summary.cgst += row.tax_amount
            else:
                summary.sgst += row.tax_amount
        summary.total_gst = summary.cgst + summary.sgst + summary.igst + summary.cess

        total_tax = sum((row.tax_amount for row in rows), ZERO)
        logger.debug(
            "GST computed tenant=%s origin=%s dest=%s interstate=%s tax=%s",
            request.tenant_id, origin, destination, interstate, total_tax,
        )
        return TaxCalculationResponse(
            subtotal=subtotal,
            shipping_amount=shipping,
            total_tax=total_tax,
            total=subtotal + shipping + total_tax,
            breakdown=rows,
            is_exempt=all_zero and total_tax == 0,
            gst_summary=summary,
        )


class RegimeRegistry:
    def __init__(self, default: TaxRegime | None = None) -> None:
        self._by_country: dict[str, TaxRegime] = {}
        self.default = default or ZeroTaxRegime()

    def register(self, regime: TaxRegime) -> None:
        for code in regime.country_codes:
            self._by_country[code.upper()] = regime

    def resolve(self, country_code: str) -> TaxRegime:
        return self._by_country.get((country_code or "").upper(), self.default)


def default_registry() -> RegimeRegistry:
    registry = RegimeRegistry()
    registry.register(IndiaGSTRegime())
    return registry
