"""Policy valuation strategies used by the projection calculator.

The projector asks a strategy for premiums, illustrated values and LTC
benefit limits instead of branching on the policy mode at every step.
NoPolicyStrategy covers a disabled policy, SimplifiedPolicyStrategy covers
the flat premium/benefit inputs on the Person, IllustratedPolicyStrategy
reads carrier illustration data, and HybridPolicyStrategy reads a hybrid
illustration whose LTC benefits come from a separate pool.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from model.Person import Person
from model.PolicyIllustration import PolicyIllustration
from policy.GrowthRateExtractor import extract_growth_rates
from policy.PolicyDataResolver import resolve

logger = logging.getLogger(__name__)


# Simplified cash value builds at this fraction of premium, for at most this many years
SIMPLIFIED_CASH_VALUE_FRACTION = 0.8
SIMPLIFIED_CASH_VALUE_YEARS = 15


class PolicyValuationStrategy(ABC):
    """How a policy's premiums, values and LTC benefits evolve year to year."""

    # LTC benefits are drawn from cash value and death benefit
    benefits_reduce_policy_values = True

    def __init__(self, person: Person):
        self.person = person

    @abstractmethod
    def policy_year(self, age: int) -> int:
        """1-based policy year for an age (0 when there is no policy)."""

    @abstractmethod
    def initial_premium(self) -> float:
        """Premium paid at issue, before the first projected year."""

    @abstractmethod
    def premium(self, age: int, year_index: int) -> float:
        """Annual premium due in the given year."""

    @abstractmethod
    def illustrated_values(self, age: int, year_index: int) -> Tuple[float, float]:
        """(cash value, death benefit) on the undisturbed illustrated path."""

    @abstractmethod
    def grow_values(self, cash_value: float, death_benefit: float,
                    age: int, year_index: int) -> Tuple[float, float]:
        """Advance adjusted prior-year values once the policy has left its illustrated path."""

    @abstractmethod
    def benefit_limit(self, age: int, ltc_expenses: float) -> float:
        """Largest LTC benefit payable this year, before any cumulative cap."""

    def benefit_cap(self, age: int, death_benefit: float) -> Optional[float]:
        """Maximum cumulative LTC benefit, fixed at the first LTC year."""
        return None


class NoPolicyStrategy(PolicyValuationStrategy):
    """No policy in force."""

    def policy_year(self, age: int) -> int:
        return 0

    def initial_premium(self) -> float:
        return 0.0

    def premium(self, age: int, year_index: int) -> float:
        return 0.0

    def illustrated_values(self, age: int, year_index: int) -> Tuple[float, float]:
        return 0.0, 0.0

    def grow_values(self, cash_value: float, death_benefit: float,
                    age: int, year_index: int) -> Tuple[float, float]:
        return 0.0, 0.0

    def benefit_limit(self, age: int, ltc_expenses: float) -> float:
        return 0.0


class SimplifiedPolicyStrategy(PolicyValuationStrategy):
    """Flat premium and benefit taken from the Person's policy inputs.

    Death benefit is the full benefit pool (benefit per year times benefit
    duration). Cash value builds at 80% of premium for the first 15 years.
    No premium is charged at issue or in the death-age year.
    """

    def policy_year(self, age: int) -> int:
        return age - self.person.current_age + 1

    def initial_premium(self) -> float:
        return self.person.policy_annual_premium

    def premium(self, age: int, year_index: int) -> float:
        if year_index == 0 or age >= self.person.death_age:
            return 0.0
        return self.person.policy_annual_premium

    def _cash_value(self, year_index: int) -> float:
        return (self.person.policy_annual_premium
                * min(year_index, SIMPLIFIED_CASH_VALUE_YEARS)
                * SIMPLIFIED_CASH_VALUE_FRACTION)

    def illustrated_values(self, age: int, year_index: int) -> Tuple[float, float]:
        death_benefit = self.person.policy_benefit_per_year * self.person.policy_benefit_duration
        return self._cash_value(year_index), death_benefit

    def grow_values(self, cash_value: float, death_benefit: float,
                    age: int, year_index: int) -> Tuple[float, float]:
        increment = self._cash_value(year_index) - self._cash_value(year_index - 1) if year_index > 0 else 0.0
        return cash_value + increment, death_benefit

    def benefit_limit(self, age: int, ltc_expenses: float) -> float:
        if age >= self.person.ltc_event_age + self.person.policy_benefit_duration:
            return 0.0
        return min(self.person.policy_benefit_per_year, ltc_expenses)


class IllustratedPolicyStrategy(PolicyValuationStrategy):
    """Values read from a carrier illustration through the PolicyDataResolver."""

    def __init__(self, person: Person, illustration: PolicyIllustration, shift_policy_year: bool = False):
        """Initialize with the person's illustration.

        Args:
            person: The insured
            illustration: Carrier illustration with at least one annual row
            shift_policy_year: Look up illustrated data one policy year earlier
        """
        super().__init__(person)
        if not illustration.annual_policy_data:
            raise ValueError(f"{person.name}: illustration has no annual policy data")
        self.illustration = illustration
        self.shift_policy_year = shift_policy_year
        self.issue_age = illustration.issue_age if illustration.issue_age is not None else person.current_age
        self.growth_rates = extract_growth_rates(illustration.annual_policy_data)
        self.acceleration_percentage = illustration.acceleration_percentage

    def policy_year(self, age: int) -> int:
        year = age - self.issue_age
        return year if self.shift_policy_year else year + 1

    def _record(self, age: int):
        return resolve(self.illustration.annual_policy_data, self.policy_year(age))

    def initial_premium(self) -> float:
        return self.illustration.initial_premium

    def premium(self, age: int, year_index: int) -> float:
        if year_index == 0:
            return 0.0
        return self._record(age).annual_premium

    def illustrated_values(self, age: int, year_index: int) -> Tuple[float, float]:
        record = self._record(age)
        return record.cash_value, record.death_benefit

    def grow_values(self, cash_value: float, death_benefit: float,
                    age: int, year_index: int) -> Tuple[float, float]:
        year = self.policy_year(age)
        return (cash_value * (1 + self.growth_rates.cash_value_rate(year)),
                death_benefit * (1 + self.growth_rates.death_benefit_rate(year)))

    def benefit_limit(self, age: int, ltc_expenses: float) -> float:
        return min(self._record(age).monthly_benefit_limit * 12, ltc_expenses)

    def benefit_cap(self, age: int, death_benefit: float) -> Optional[float]:
        if self.acceleration_percentage is None:
            return None
        return death_benefit * self.acceleration_percentage


class HybridPolicyStrategy(IllustratedPolicyStrategy):
    """Hybrid illustration with a dedicated LTC benefit pool.

    The yearly benefit is the row's annual LTC benefit and the cumulative cap
    is the row's total LTC benefit. Paying benefits leaves cash value and death
    benefit on their illustrated path.
    """

    benefits_reduce_policy_values = False

    def benefit_limit(self, age: int, ltc_expenses: float) -> float:
        annual = self._record(age).annual_ltc_benefit
        if not annual:
            return 0.0
        return min(annual, ltc_expenses)

    def benefit_cap(self, age: int, death_benefit: float) -> Optional[float]:
        return self._record(age).total_ltc_benefit


def make_strategy(person: Person, illustration: Optional[PolicyIllustration] = None,
                  use_actual_policy_data: bool = False,
                  shift_policy_year: bool = False) -> PolicyValuationStrategy:
    """Pick the valuation strategy for a person.

    Illustrated data is used only when requested and available, read as a
    hybrid policy when the illustration says so; otherwise an enabled policy
    falls back to the simplified inputs.
    """
    if not person.policy_enabled:
        return NoPolicyStrategy(person)
    if use_actual_policy_data and illustration is not None and illustration.annual_policy_data:
        if illustration.policy_level_information.policy_type == "hybrid":
            return HybridPolicyStrategy(person, illustration, shift_policy_year)
        return IllustratedPolicyStrategy(person, illustration, shift_policy_year)
    if use_actual_policy_data:
        logger.warning("%s: no illustration available, using simplified policy values", person.name)
    return SimplifiedPolicyStrategy(person)
