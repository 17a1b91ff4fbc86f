"""Year-over-year growth rates implied by an illustration.

Once benefit payments or loans pull a policy off its illustrated path, the
projector can no longer read values straight from the illustration. It
instead applies these illustrated growth rates to the adjusted values.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from model.PolicyIllustration import PolicyIllustrationRecord


@dataclass
class GrowthRates:
    """Growth rate keyed by the policy year it applies to."""
    cash_value_growth: Dict[int, float] = field(default_factory=dict)
    death_benefit_growth: Dict[int, float] = field(default_factory=dict)

    def cash_value_rate(self, policy_year: int) -> float:
        return self.cash_value_growth.get(policy_year, 0.0)

    def death_benefit_rate(self, policy_year: int) -> float:
        return self.death_benefit_growth.get(policy_year, 0.0)


def extract_growth_rates(illustration: List[PolicyIllustrationRecord]) -> GrowthRates:
    """Compute current / previous - 1 for each illustrated row after the first.

    A zero previous value yields a rate of 0.
    """
    rates = GrowthRates()
    rows = sorted(illustration, key=lambda r: r.policy_year)

    for previous, current in zip(rows, rows[1:]):
        rates.cash_value_growth[current.policy_year] = _growth(previous.cash_value, current.cash_value)
        rates.death_benefit_growth[current.policy_year] = _growth(previous.death_benefit, current.death_benefit)

    return rates


def _growth(previous: float, current: float) -> float:
    if previous == 0:
        return 0.0
    return current / previous - 1
