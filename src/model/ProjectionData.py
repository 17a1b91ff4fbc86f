"""Data model for single-person projection results.

This module contains the per-year snapshot produced by the projector and
the ProjectionData container that holds one person's full series together
with the matching no-policy baseline run.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from model.Person import Person


# Balance fields that are zeroed once a projection is bankrupt
BALANCE_FIELDS = (
    'retirement_assets',
    'policy_cash_value',
    'death_benefit',
    'policy_loan_balance',
    'total_assets',
    'net_worth',
)


@dataclass
class YearlyFinancialSnapshot:
    """All projected values for one year of one person's life.

    Balances are end-of-year, after benefits, loans, withdrawals and growth.
    """
    age: int
    year_index: int  # 0-based from simulation start
    policy_year: int = 0  # 1-based from issue, 0 without a policy

    # Phase flags
    is_retired: bool = False
    is_alive: bool = True
    has_ltc_event: bool = False
    bankrupt: bool = False

    # Income
    work_income: float = 0.0
    social_security_income: float = 0.0
    other_retirement_income: float = 0.0
    total_income: float = 0.0

    # Expenses
    basic_expenses: float = 0.0
    ltc_expenses: float = 0.0
    premium_expenses: float = 0.0
    total_expenses: float = 0.0

    # LTC
    ltc_benefits: float = 0.0
    cumulative_ltc_benefits: float = 0.0
    ltc_out_of_pocket: float = 0.0  # LTC expenses not covered by benefits

    # Cash flow
    net_cash_flow: float = 0.0  # income + LTC benefits - expenses
    withdrawal: float = 0.0  # Gross withdrawal from retirement assets
    tax_on_withdrawal: float = 0.0
    premium_paid_from_assets: float = 0.0

    # Policy
    policy_cash_value: float = 0.0
    death_benefit: float = 0.0
    policy_loan_balance: float = 0.0
    policy_loan_interest: float = 0.0  # Accrued this year
    policy_loan_taken: float = 0.0  # New principal this year
    illustrated_cash_value: float = 0.0  # Value before this year's benefit/loan adjustments
    illustrated_death_benefit: float = 0.0

    # Balances
    retirement_assets: float = 0.0
    total_assets: float = 0.0  # retirement assets + policy cash value
    net_worth: float = 0.0
    net_worth_no_policy: float = 0.0  # Same person projected without the policy


@dataclass
class ProjectionData:
    """One person's projection plus the matching no-policy baseline."""
    person: Person
    snapshots: List[YearlyFinancialSnapshot] = field(default_factory=list)
    baseline: List[YearlyFinancialSnapshot] = field(default_factory=list)

    @property
    def first_age(self) -> int:
        return self.snapshots[0].age if self.snapshots else self.person.current_age

    @property
    def last_age(self) -> int:
        return self.snapshots[-1].age if self.snapshots else self.person.death_age

    def get_age(self, age: int) -> Optional[YearlyFinancialSnapshot]:
        """Get the snapshot for a specific age."""
        for snapshot in self.snapshots:
            if snapshot.age == age:
                return snapshot
        return None

    def retirement_years(self) -> List[YearlyFinancialSnapshot]:
        return [s for s in self.snapshots if s.is_retired]

    def ltc_years(self) -> List[YearlyFinancialSnapshot]:
        return [s for s in self.snapshots if s.has_ltc_event]

    @property
    def bankrupt(self) -> bool:
        return any(s.bankrupt for s in self.snapshots)

    @property
    def bankruptcy_age(self) -> Optional[int]:
        """First age flagged bankrupt, or None."""
        for snapshot in self.snapshots:
            if snapshot.bankrupt:
                return snapshot.age
        return None

    @property
    def legacy_amount(self) -> float:
        """Final retirement assets plus final death benefit."""
        if not self.snapshots:
            return 0.0
        final = self.snapshots[-1]
        return final.retirement_assets + final.death_benefit

    @property
    def total_ltc_costs(self) -> float:
        return sum(s.ltc_expenses for s in self.snapshots)

    @property
    def total_ltc_benefits(self) -> float:
        return sum(s.ltc_benefits for s in self.snapshots)

    @property
    def total_premiums(self) -> float:
        return sum(s.premium_expenses for s in self.snapshots)

    @property
    def total_withdrawal_tax(self) -> float:
        return sum(s.tax_on_withdrawal for s in self.snapshots)
