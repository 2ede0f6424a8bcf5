"""Tests for GST calculation, slab resolution and the calculation cache."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from taxengine.domain.errors import InvalidJurisdiction
from taxengine.domain.models.tax import (
    Address,
    TaxCalculationRequest,
    TaxCategory,
    TaxLineItem,
)
from taxengine.domain.services.tax_calculator import TaxCalculator, calculation_cache_key
from taxengine.domain.services.tax_regimes import (
    JURISDICTION_INDIA,
    JURISDICTION_INDIA_CENTRAL,
    RegimeRegistry,
    ZeroTaxRegime,
    default_registry,
)
from taxengine.infrastructure.cache.calculation_cache import InMemoryCalculationCache


def _request(state_code="MH", items=None, shipping="0", country_code="IN", **kwargs):
    return TaxCalculationRequest(
        tenant_id="t1",
        items=items or [TaxLineItem(name="Laptop", subtotal=Decimal("10000"), hsn_code="8471")],
        shipping_amount=Decimal(shipping),
        shipping_address=Address(country_code=country_code, state="Maharashtra", state_code=state_code),
        **kwargs,
    )


def _by_type(response):
    return {row.tax_type: row for row in response.breakdown}


class TestIndiaGST:

    def test_intrastate_splits_cgst_sgst(self, event_loop, tax_repo):
        tax_repo.by_hsn["8471"] = TaxCategory(id="c1", hsn_code="8471", gst_rate=Decimal("18"))
        calc = TaxCalculator(tax_repo)
        result = event_loop.run_until_complete(calc.calculate_tax(_request("MH")))

        rows = _by_type(result)
        assert set(rows) == {"CGST", "SGST"}
        assert rows["CGST"].tax_amount == Decimal("900.00")
        assert rows["SGST"].tax_amount == Decimal("900.00")
        assert rows["CGST"].rate == Decimal("9")
        assert rows["CGST"].jurisdiction == JURISDICTION_INDIA_CENTRAL
        assert rows["SGST"].jurisdiction == "Maharashtra"
        assert result.total_tax == Decimal("1800.00")
        assert result.total == Decimal("11800.00")
        assert result.gst_summary.igst == 0
        assert result.gst_summary.is_interstate is False

    def test_interstate_charges_igst(self, event_loop, tax_repo):
        tax_repo.by_hsn["8471"] = TaxCategory(id="c1", hsn_code="8471", gst_rate=Decimal("18"))
        calc = TaxCalculator(tax_repo)
        result = event_loop.run_until_complete(calc.calculate_tax(_request("KA")))

        assert len(result.breakdown) == 1
        row = result.breakdown[0]
        assert row.tax_type == "IGST"
        assert row.jurisdiction == JURISDICTION_INDIA
        assert row.tax_amount == Decimal("1800.00")
        assert result.gst_summary.cgst == 0
        assert result.gst_summary.sgst == 0
        assert result.gst_summary.is_interstate is True

    def test_origin_address_overrides_tenant_state(self, event_loop, tax_repo):
        calc = TaxCalculator(tax_repo)
        req = _request("KA", origin_address=Address(state_code="ka"))
        result = event_loop.run_until_complete(calc.calculate_tax(req))
        assert set(_by_type(result)) == {"CGST", "SGST"}

    def test_odd_paisa_rounds_each_component(self, event_loop, tax_repo):
        tax_repo.by_hsn["8471"] = TaxCategory(id="c1", gst_rate=Decimal("5"))
        items = [TaxLineItem(name="x", subtotal=Decimal("10.10"), hsn_code="8471")]
        result = event_loop.run_until_complete(TaxCalculator(tax_repo).calculate_tax(_request(items=items)))
        rows = _by_type(result)
        # 10.10 * 2.5% = 0.2525 -> 0.25 on each half
        assert rows["CGST"].tax_amount == Decimal("0.25")
        assert rows["SGST"].tax_amount == Decimal("0.25")
        assert result.total_tax == Decimal("0.50")

    def test_exempt_category_yields_zero_tax(self, event_loop, tax_repo):
        tax_repo.by_hsn["0401"] = TaxCategory(id="milk", gst_rate=Decimal("5"), is_tax_exempt=True)
        items = [TaxLineItem(name="Milk", subtotal=Decimal("500"), hsn_code="0401")]
        for state in ("MH", "KA"):
            result = event_loop.run_until_complete(
                TaxCalculator(tax_repo).calculate_tax(_request(state, items=items))
            )
            assert result.total_tax == 0
            assert result.is_exempt is True
            assert result.total == Decimal("500")

    def test_nil_rated_category_yields_zero_tax(self, event_loop, tax_repo):
        tax_repo.by_id["fresh"] = TaxCategory(id="fresh", gst_rate=Decimal("12"), is_nil_rated=True)
        items = [TaxLineItem(name="Veg", subtotal=Decimal("200"), category_id="fresh")]
        result = event_loop.run_until_complete(TaxCalculator(tax_repo).calculate_tax(_request(items=items)))
        assert result.total_tax == 0

    def test_slab_resolution_order(self, event_loop, tax_repo):
        tax_repo.by_sac["9983"] = TaxCategory(id="svc", gst_rate=Decimal("12"))
        tax_repo.by_id["cat"] = TaxCategory(id="cat", gst_rate=Decimal("28"))
        items = [
            TaxLineItem(name="svc", subtotal=Decimal("100"), hsn_code="9999", sac_code="9983", category_id="cat"),
        ]
        result = event_loop.run_until_complete(TaxCalculator(tax_repo).calculate_tax(_request("KA", items=items)))
        assert result.breakdown[0].rate == Decimal("12")
        assert tax_repo.lookups == ["hsn:9999", "sac:9983"]

    def test_unknown_item_uses_default_slab(self, event_loop, tax_repo):
        items = [TaxLineItem(name="misc", subtotal=Decimal("100"))]
        result = event_loop.run_until_complete(TaxCalculator(tax_repo).calculate_tax(_request("KA", items=items)))
        assert result.breakdown[0].rate == Decimal("18")
        assert result.total_tax == Decimal("18.00")

    def test_shipping_is_taxed(self, event_loop, tax_repo):
        result = event_loop.run_until_complete(
            TaxCalculator(tax_repo).calculate_tax(_request("KA", shipping="100"))
        )
        shipping_rows = [r for r in result.breakdown if r.item_name == "Shipping"]
        assert len(shipping_rows) == 1
        assert shipping_rows[0].tax_amount == Decimal("18.00")
        assert result.total_tax == Decimal("1818.00")
        assert result.total == Decimal("10000") + Decimal("100") + Decimal("1818.00")

    def test_both_states_missing_raises(self, event_loop, tax_repo):
        tax_repo.origin_state = ""
        with pytest.raises(InvalidJurisdiction):
            event_loop.run_until_complete(TaxCalculator(tax_repo).calculate_tax(_request("")))

    def test_missing_destination_is_intrastate(self, event_loop, tax_repo):
        result = event_loop.run_until_complete(TaxCalculator(tax_repo).calculate_tax(_request("")))
        assert set(_by_type(result)) == {"CGST", "SGST"}


class TestRegimes:

    def test_non_india_is_zero_tax(self, event_loop, tax_repo):
        result = event_loop.run_until_complete(
            TaxCalculator(tax_repo).calculate_tax(_request("CA", country_code="US", shipping="15"))
        )
        assert result.total_tax == 0
        assert result.breakdown == []
        assert result.total == Decimal("10015")
        assert result.gst_summary is None

    def test_country_name_falls_back(self):
        req = TaxCalculationRequest(shipping_address=Address(country="in"))
        assert req.country_code == "IN"

    def test_registry_default(self):
        registry = RegimeRegistry()
        assert isinstance(registry.resolve("IN"), ZeroTaxRegime)
        assert default_registry().resolve("in").name == "india_gst"


class TestCalculationCache:

    def test_second_call_served_from_cache(self, event_loop, tax_repo):
        cache = InMemoryCalculationCache()
        calc = TaxCalculator(tax_repo, cache=cache)
        first = event_loop.run_until_complete(calc.calculate_tax(_request("KA")))
        assert len(cache) == 1

        tax_repo.origin_state = "KA"  # would flip to intrastate if recomputed
        second = event_loop.run_until_complete(calc.calculate_tax(_request("KA")))
        assert second == first

    def test_expired_entry_is_recomputed(self, event_loop, tax_repo):
        now = [1000.0]
        cache = InMemoryCalculationCache(clock=lambda: now[0])
        calc = TaxCalculator(tax_repo, cache=cache, ttl_seconds=60)
        event_loop.run_until_complete(calc.calculate_tax(_request("KA")))

        now[0] += 61
        tax_repo.origin_state = "KA"
        result = event_loop.run_until_complete(calc.calculate_tax(_request("KA")))
        assert set(_by_type(result)) == {"CGST", "SGST"}

    def test_expired_entries_swept_on_write(self, event_loop):
        now = [1000.0]
        cache = InMemoryCalculationCache(clock=lambda: now[0])
        event_loop.run_until_complete(cache.set("a", "1", 60))
        event_loop.run_until_complete(cache.set("b", "2", 300))

        now[0] += 61
        event_loop.run_until_complete(cache.set("c", "3", 60))
        assert len(cache) == 2
        assert event_loop.run_until_complete(cache.get("b")) == "2"
        assert event_loop.run_until_complete(cache.get("a")) is None

    def test_cache_failure_falls_back_to_compute(self, event_loop, tax_repo):
        cache = AsyncMock()
        cache.get.side_effect = ConnectionError("redis down")
        cache.set.side_effect = ConnectionError("redis down")
        result = event_loop.run_until_complete(TaxCalculator(tax_repo, cache=cache).calculate_tax(_request("KA")))
        assert result.total_tax == Decimal("1800.00")

    def test_corrupt_entry_is_a_miss(self, event_loop, tax_repo):
        cache = AsyncMock()
        cache.get.return_value = '{"not": "a response"}'
        result = event_loop.run_until_complete(TaxCalculator(tax_repo, cache=cache).calculate_tax(_request("KA")))
        assert result.total_tax == Decimal("1800.00")
        cache.set.assert_awaited_once()

    def test_key_covers_line_codes_and_tenant(self):
        base = _request("KA")
        other_hsn = _request("KA", items=[TaxLineItem(name="Laptop", subtotal=Decimal("10000"), hsn_code="8472")])
        other_tenant = base.model_copy(update={"tenant_id": "t2"})
        keys = {calculation_cache_key(r) for r in (base, other_hsn, other_tenant)}
        assert len(keys) == 3
        assert calculation_cache_key(base) == calculation_cache_key(_request("KA"))
