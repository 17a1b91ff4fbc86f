"""Tests for the withdrawal tax efficiency analysis."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from calc.tax_efficiency_calculator import TaxEfficiencyCalculator
from model.ProjectionData import YearlyFinancialSnapshot


def snap(age, tax, ltc=False):
    return YearlyFinancialSnapshot(age=age, year_index=age - 60, has_ltc_event=ltc,
                                   withdrawal=tax / 0.3, tax_on_withdrawal=tax)


@pytest.fixture
def with_policy():
    # Pre-retirement LTC year at 64 counts in both the pre-retirement and LTC buckets
    return [snap(63, 100), snap(64, 200, ltc=True), snap(70, 300), snap(80, 400, ltc=True)]


@pytest.fixture
def without_policy():
    return [snap(63, 100), snap(64, 500, ltc=True), snap(70, 300), snap(80, 900, ltc=True)]


@pytest.fixture
def calculator():
    return TaxEfficiencyCalculator()


class TestTaxByPhase:

    def test_buckets(self, calculator, with_policy):
        phases = calculator.tax_by_phase(with_policy, retirement_age=65)
        assert phases.pre_retirement == 300
        assert phases.retirement == 300
        assert phases.ltc_event == 600

    def test_efficiency_ratio(self, calculator, with_policy):
        efficiency = calculator.efficiency(with_policy)
        assert efficiency.total_tax == 1000
        assert efficiency.efficiency_ratio == pytest.approx(0.3)

    def test_no_withdrawals(self, calculator):
        efficiency = calculator.efficiency([YearlyFinancialSnapshot(age=60, year_index=0)])
        assert efficiency.efficiency_ratio == 0.0


class TestReport:

    def test_savings_against_uninsured(self, calculator, with_policy, without_policy):
        report = calculator.calculate(with_policy, without_policy, retirement_age=65)
        assert report.tax_savings == 800
        assert report.tax_by_phase_without_insurance.ltc_event == 1400

    def test_strategy_percentages_are_literal(self, calculator, with_policy, without_policy):
        report = calculator.calculate(with_policy, without_policy, retirement_age=65)
        savings = {s.name: s.potential_savings for s in report.strategies}
        assert savings["Strategic Roth Conversions"] == pytest.approx(300 * 0.30)
        assert savings["Tax-Free LTC Benefits"] == pytest.approx(600 * 0.80)
        assert savings["Asset Location Optimization"] == pytest.approx(1000 * 0.15)
        assert savings["Tax Bracket Management"] == pytest.approx(1000 * 0.10)
        assert savings["Strategic Charitable Giving"] == pytest.approx(1000 * 0.08)
        assert report.total_strategy_savings == pytest.approx(90 + 480 + 150 + 100 + 80)

    def test_high_tax_years(self, calculator, with_policy, without_policy):
        report = calculator.calculate(with_policy, without_policy, retirement_age=65)
        assert [y["age"] for y in report.high_tax_years] == [80, 70, 64, 63]
        assert report.high_tax_years[0]["has_ltc_event"] is True
        assert report.high_tax_years[0]["is_retired"] is True
        assert report.high_tax_years[2]["is_retired"] is False

    def test_high_tax_years_limited(self, calculator):
        snapshots = [snap(60 + i, i) for i in range(10)]
        assert len(calculator.high_tax_years(snapshots, 65)) == 5


class TestStrategyConfiguration:

    def test_custom_strategies(self, with_policy):
        calculator = TaxEfficiencyCalculator([{"name": "Only", "basis": "pre_retirement", "percentage": 0.5}])
        report = calculator.calculate(with_policy, with_policy, retirement_age=65)
        assert len(report.strategies) == 1
        assert report.strategies[0].potential_savings == pytest.approx(150)
        assert report.strategies[0].description == ""

    def test_unknown_basis(self):
        with pytest.raises(ValueError, match="Unknown tax strategy basis"):
            TaxEfficiencyCalculator([{"name": "Bad", "basis": "lifetime", "percentage": 0.1}])

    def test_empty_strategies(self):
        with pytest.raises(ValueError, match="taxStrategies"):
            TaxEfficiencyCalculator([])
