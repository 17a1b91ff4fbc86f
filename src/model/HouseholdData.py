"""Household view built from two per-person projections."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CombinedSnapshot:
    """Sum of both persons' values for one projection index."""
    year_index: int
    age: int  # Person 1's age (extended past person 1's last year), or person 2's when person 1 is absent
    person1_age: Optional[int] = None
    person2_age: Optional[int] = None

    # OR-ed flags
    is_retired: bool = False
    is_alive: bool = False
    has_ltc_event: bool = False
    person1_bankrupt: bool = False
    person2_bankrupt: bool = False
    bankrupt: bool = False  # Household assets exhausted

    # Summed values
    work_income: float = 0.0
    social_security_income: float = 0.0
    other_retirement_income: float = 0.0
    total_income: float = 0.0
    basic_expenses: float = 0.0
    ltc_expenses: float = 0.0
    premium_expenses: float = 0.0
    total_expenses: float = 0.0
    ltc_benefits: float = 0.0
    cumulative_ltc_benefits: float = 0.0
    ltc_out_of_pocket: float = 0.0
    net_cash_flow: float = 0.0
    withdrawal: float = 0.0
    tax_on_withdrawal: float = 0.0
    premium_paid_from_assets: float = 0.0
    policy_cash_value: float = 0.0
    death_benefit: float = 0.0
    policy_loan_balance: float = 0.0
    policy_loan_interest: float = 0.0
    policy_loan_taken: float = 0.0
    illustrated_cash_value: float = 0.0
    illustrated_death_benefit: float = 0.0
    retirement_assets: float = 0.0
    total_assets: float = 0.0
    net_worth: float = 0.0
    net_worth_no_policy: float = 0.0


@dataclass
class HouseholdData:
    """Combined series and household bankruptcy age."""
    snapshots: List[CombinedSnapshot] = field(default_factory=list)
    bankruptcy_age: Optional[int] = None

    def get_index(self, index: int) -> Optional[CombinedSnapshot]:
        if 0 <= index < len(self.snapshots):
            return self.snapshots[index]
        return None

    def get_age(self, age: int) -> Optional[CombinedSnapshot]:
        """Get the combined snapshot where the primary age matches."""
        for snapshot in self.snapshots:
            if snapshot.age == age:
                return snapshot
        return None

    @property
    def bankrupt(self) -> bool:
        return self.bankruptcy_age is not None
