"""Tests for TDS / TCS calculation and posting."""

from datetime import date
from decimal import Decimal

import pytest

from taxengine.domain.errors import InvalidInput, RateNotFound
from taxengine.domain.models.withholding import (
    TCSCalculationRequest,
    TDSCalculationRequest,
    WithholdingRate,
)
from taxengine.domain.services.withholding_service import WithholdingService


@pytest.fixture
def service(tax_repo):
    tax_repo.tds_rates["194C"] = WithholdingRate(
        section="194C",
        rate_with_pan=Decimal("1"),
        rate_without_pan=Decimal("20"),
        threshold_amount=Decimal("30000"),
        threshold_per_annum=True,
    )
    tax_repo.tds_rates["194J"] = WithholdingRate(
        section="194J", rate_with_pan=Decimal("10"), rate_without_pan=Decimal("20"),
    )
    tax_repo.tcs_rates["206C(1H)"] = WithholdingRate(
        section="206C(1H)",
        rate_with_pan=Decimal("0.1"),
        rate_without_pan=Decimal("1"),
        threshold_amount=Decimal("5000000"),
    )
    tax_repo.tcs_rates["206C(1)"] = WithholdingRate(
        section="206C(1)", rate_with_pan=Decimal("1"), rate_without_pan=Decimal("5"),
    )
    return WithholdingService(tax_repo)


def _tds(section="194C", gross="25000", pan="ABCDE1234F", when="2024-06-15"):
    return TDSCalculationRequest(
        tenant_id="t1", deductee_id="v1", section=section,
        gross_amount=Decimal(gross), pan=pan, transaction_date=when,
    )


def _tcs(section="206C(1H)", sale="1000000", pan="ABCDE1234F", when="2024-11-02"):
    return TCSCalculationRequest(
        tenant_id="t1", customer_id="c1", section=section,
        sale_amount=Decimal(sale), pan=pan, transaction_date=when,
    )


class TestTDS:

    def test_below_annual_threshold_is_zero(self, event_loop, service):
        result = event_loop.run_until_complete(service.calculate_tds(_tds(gross="25000")))
        assert result.tds_amount == 0
        assert result.tds_rate == 0
        assert result.net_amount == Decimal("25000")
        assert result.threshold_applied is True

    def test_crossing_threshold_taxes_full_payment(self, event_loop, service, tax_repo):
        tax_repo.cumulative_tds[("v1", "2024-25")] = Decimal("20000")
        result = event_loop.run_until_complete(service.calculate_tds(_tds(gross="25000")))
        assert result.threshold_applied is False
        assert result.tds_rate == Decimal("1")
        assert result.tds_amount == Decimal("250.00")
        assert result.net_amount == Decimal("24750.00")
        assert result.cumulative_amount == Decimal("20000")

    def test_without_pan_uses_higher_rate(self, event_loop, service):
        with_pan = event_loop.run_until_complete(service.calculate_tds(_tds("194J", "50000")))
        no_pan = event_loop.run_until_complete(service.calculate_tds(_tds("194J", "50000", pan="  ")))
        assert with_pan.tds_amount == Decimal("5000.00")
        assert no_pan.tds_amount == Decimal("10000.00")
        assert no_pan.is_pan_available is False

    def test_financial_year_and_quarter(self, event_loop, service):
        result = event_loop.run_until_complete(service.calculate_tds(_tds("194J", "1000", when="2025-02-01")))
        assert result.financial_year == "2024-25"
        assert result.quarter == "Q4"

    def test_unknown_section_rejected(self, event_loop, service):
        with pytest.raises(InvalidInput):
            event_loop.run_until_complete(service.calculate_tds(_tds("999X")))

    def test_missing_rate(self, event_loop, service):
        with pytest.raises(RateNotFound, match="194H"):
            event_loop.run_until_complete(service.calculate_tds(_tds("194H")))

    def test_bad_date(self, event_loop, service):
        with pytest.raises(InvalidInput):
            event_loop.run_until_complete(service.calculate_tds(_tds("194J", when="15/06/2024")))

    def test_create_deduction(self, event_loop, service, tax_repo):
        record = event_loop.run_until_complete(
            service.create_tds_deduction(
                "t1",
                deductee_id="v1",
                deductee_name="Vendor",
                section="194j",
                gross_amount=Decimal("50000"),
                tds_rate=Decimal("10"),
                tds_amount=Decimal("5000"),
                deduction_date="2024-07-01",
            )
        )
        assert record.id
        assert record.section == "194J"
        assert record.net_amount == Decimal("45000.00")
        assert (record.financial_year, record.quarter) == ("2024-25", "Q2")
        assert record.deduction_date == date(2024, 7, 1)

        listed = event_loop.run_until_complete(service.list_tds_deductions("t1", "2024-25", "Q2"))
        assert listed == [record]
        assert event_loop.run_until_complete(service.list_tds_deductions("t1", "2024-25", "Q3")) == []

    def test_deduction_cannot_exceed_gross(self, event_loop, service):
        with pytest.raises(InvalidInput):
            event_loop.run_until_complete(
                service.create_tds_deduction(
                    "t1", deductee_id="v1", deductee_name="V", section="194J",
                    gross_amount=Decimal("100"), tds_rate=Decimal("10"),
                    tds_amount=Decimal("150"), deduction_date="2024-07-01",
                )
            )

    def test_cumulative_resets_on_first_of_april(self, event_loop, service):
        event_loop.run_until_complete(
            service.create_tds_deduction(
                "t1", deductee_id="v1", deductee_name="Vendor", section="194C",
                gross_amount=Decimal("25000"), tds_rate=Decimal("0"),
                tds_amount=Decimal("0"), deduction_date="2025-03-31",
            )
        )
        march = event_loop.run_until_complete(service.calculate_tds(_tds(gross="10000", when="2025-03-31")))
        assert march.cumulative_amount == Decimal("25000")
        assert march.threshold_applied is False
        assert march.tds_amount == Decimal("100.00")

        april = event_loop.run_until_complete(service.calculate_tds(_tds(gross="10000", when="2025-04-01")))
        assert april.financial_year == "2025-26"
        assert april.quarter == "Q1"
        assert april.cumulative_amount == 0
        assert april.threshold_applied is True
        assert april.tds_amount == 0


class TestTCS:

    def test_sale_of_goods_below_threshold(self, event_loop, service):
        result = event_loop.run_until_complete(service.calculate_tcs(_tcs(sale="1000000")))
        assert result.tcs_amount == 0
        assert result.threshold_applied is True
        assert result.total_amount == Decimal("1000000")

    def test_sale_of_goods_taxes_only_excess(self, event_loop, service, tax_repo):
        tax_repo.cumulative_tcs[("c1", "2024-25")] = Decimal("4800000")
        result = event_loop.run_until_complete(service.calculate_tcs(_tcs(sale="500000")))
        assert result.taxable_amount == Decimal("300000")
        assert result.tcs_amount == Decimal("300.00")
        assert result.total_amount == Decimal("500300.00")

    def test_sale_of_goods_already_over_threshold(self, event_loop, service, tax_repo):
        tax_repo.cumulative_tcs[("c1", "2024-25")] = Decimal("6000000")
        result = event_loop.run_until_complete(service.calculate_tcs(_tcs(sale="200000", pan=None)))
        assert result.taxable_amount == Decimal("200000")
        assert result.tcs_rate == Decimal("1")
        assert result.tcs_amount == Decimal("2000.00")

    def test_exactly_at_threshold_is_not_taxed(self, event_loop, service, tax_repo):
        tax_repo.cumulative_tcs[("c1", "2024-25")] = Decimal("4000000")
        result = event_loop.run_until_complete(service.calculate_tcs(_tcs(sale="1000000")))
        assert result.tcs_amount == 0

    def test_other_section_is_flat(self, event_loop, service):
        result = event_loop.run_until_complete(service.calculate_tcs(_tcs("206C(1)", sale="10000")))
        assert result.taxable_amount == Decimal("10000")
        assert result.tcs_amount == Decimal("100.00")
        assert (result.financial_year, result.quarter) == ("2024-25", "Q3")

    def test_create_collection(self, event_loop, service):
        record = event_loop.run_until_complete(
            service.create_tcs_collection(
                "t1",
                customer_id="c1",
                customer_name="Buyer",
                section="206C(1H)",
                sale_amount=Decimal("100000"),
                tcs_rate=Decimal("0.1"),
                tcs_amount=Decimal("100"),
                collection_date="2024-04-01",
            )
        )
        assert record.total_amount == Decimal("100100.00")
        assert record.quarter == "Q1"
        rates = event_loop.run_until_complete(service.list_tcs_rates("t1"))
        assert {r.section for r in rates} == {"206C(1H)", "206C(1)"}

    def test_cumulative_resets_on_first_of_april(self, event_loop, service):
        event_loop.run_until_complete(
            service.create_tcs_collection(
                "t1", customer_id="c1", customer_name="Buyer", section="206C(1H)",
                sale_amount=Decimal("4900000"), tcs_rate=Decimal("0"),
                tcs_amount=Decimal("0"), collection_date="2025-03-31",
            )
        )
        march = event_loop.run_until_complete(service.calculate_tcs(_tcs(sale="300000", when="2025-03-31")))
        assert march.taxable_amount == Decimal("200000")

        april = event_loop.run_until_complete(service.calculate_tcs(_tcs(sale="300000", when="2025-04-01")))
        assert april.cumulative_amount == 0
        assert april.threshold_applied is True
        assert april.tcs_amount == 0
