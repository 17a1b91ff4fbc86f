"""Tests for illustrated growth rate extraction."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from model.PolicyIllustration import PolicyIllustrationRecord
from policy.GrowthRateExtractor import GrowthRates, extract_growth_rates


def row(year, cash, death_benefit):
    return PolicyIllustrationRecord(policy_year=year, insured_age=60 + year,
                                    accumulation_value=cash, surrender_value=cash,
                                    death_benefit=death_benefit)


class TestExtractGrowthRates:

    def test_rates_keyed_by_later_year(self):
        rates = extract_growth_rates([row(1, 1000, 100000), row(2, 1100, 105000)])
        assert rates.cash_value_rate(2) == pytest.approx(0.10)
        assert rates.death_benefit_rate(2) == pytest.approx(0.05)
        assert 1 not in rates.cash_value_growth

    def test_unsorted_rows(self):
        rates = extract_growth_rates([row(3, 1210, 100000), row(1, 1000, 100000), row(2, 1100, 100000)])
        assert rates.cash_value_rate(2) == pytest.approx(0.10)
        assert rates.cash_value_rate(3) == pytest.approx(0.10)
        assert rates.death_benefit_rate(3) == 0.0

    def test_zero_previous_value_gives_zero_rate(self):
        rates = extract_growth_rates([row(1, 0, 0), row(2, 500, 100000)])
        assert rates.cash_value_rate(2) == 0.0
        assert rates.death_benefit_rate(2) == 0.0

    def test_declining_values(self):
        rates = extract_growth_rates([row(1, 1000, 100000), row(2, 900, 100000)])
        assert rates.cash_value_rate(2) == pytest.approx(-0.10)

    def test_single_row_has_no_rates(self):
        rates = extract_growth_rates([row(1, 1000, 100000)])
        assert rates.cash_value_growth == {}

    def test_unknown_year_defaults_to_zero(self):
        assert GrowthRates().cash_value_rate(7) == 0.0
        assert GrowthRates().death_benefit_rate(7) == 0.0
