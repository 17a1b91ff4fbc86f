"""Year-by-year projection of one person's finances.

The calculator walks from the person's current age to death age inclusive.
Each year it works out income, expenses, LTC benefits and premiums, funds
any shortfall from retirement assets and then policy loans, adjusts the
policy's cash value and death benefit, and grows the remaining assets.

All state that carries from one year to the next lives in ProjectionState,
so a single year can be stepped and tested in isolation.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from calc.policy_strategy import PolicyValuationStrategy, make_strategy
from model.Person import Person
from model.PolicyIllustration import PolicyIllustration
from model.ProjectionData import ProjectionData, YearlyFinancialSnapshot

logger = logging.getLogger(__name__)


# Fraction of work income still earned during a pre-retirement LTC event
LTC_INCOME_FACTOR = 0.2

# Unfunded shortfall (dollars) tolerated before declaring bankruptcy
SHORTFALL_TOLERANCE = 0.01


@dataclass
class ProjectionState:
    """Values carried from one projected year into the next."""
    retirement_assets: float
    policy_cash_value: float = 0.0
    death_benefit: float = 0.0
    policy_loan_balance: float = 0.0
    cumulative_ltc_benefits: float = 0.0
    has_deviated: bool = False  # Policy values no longer follow the illustrated path
    benefit_cap: Optional[float] = None  # Fixed in the first LTC year
    benefit_cap_fixed: bool = False
    bankrupt: bool = False
    bankruptcy_age: Optional[int] = None


class ProjectionCalculator:
    """Projects a Person's finances with an optional policy illustration per person."""

    def __init__(self, illustrations: Optional[Sequence[Optional[PolicyIllustration]]] = None):
        """Initialize with the household's illustrations.

        Args:
            illustrations: Illustration for each person index (None where a
                           person has no imported illustration)
        """
        self.illustrations = list(illustrations or [])

    def illustration_for(self, person_index: int) -> Optional[PolicyIllustration]:
        if 0 <= person_index < len(self.illustrations):
            return self.illustrations[person_index]
        return None

    def strategy_for(self, person: Person, person_index: int = 0,
                     use_actual_policy_data: bool = False,
                     shift_policy_year: bool = False) -> PolicyValuationStrategy:
        return make_strategy(person, self.illustration_for(person_index),
                             use_actual_policy_data, shift_policy_year)

    def project(self, person: Person, person_index: int = 0,
                use_actual_policy_data: bool = False,
                shift_policy_year: bool = False) -> List[YearlyFinancialSnapshot]:
        """Project one snapshot per age from current age to death age.

        Args:
            person: The person to project
            person_index: Position in the household (selects the illustration)
            use_actual_policy_data: Read policy values from the illustration
            shift_policy_year: Look up illustrated data one policy year earlier

        Returns:
            Snapshots ordered by age, with net_worth_no_policy taken from a
            parallel run of the same person without the policy

        Raises:
            ValueError: If the person's configuration is invalid
        """
        snapshots, _ = self._project_with_baseline(person, person_index,
                                                   use_actual_policy_data, shift_policy_year)
        return snapshots

    def calculate(self, person: Person, person_index: int = 0,
                  use_actual_policy_data: bool = False,
                  shift_policy_year: bool = False) -> ProjectionData:
        """Project a person and keep the no-policy baseline alongside."""
        snapshots, baseline = self._project_with_baseline(person, person_index,
                                                          use_actual_policy_data, shift_policy_year)
        return ProjectionData(person=person, snapshots=snapshots, baseline=baseline)

    def _project_with_baseline(self, person: Person, person_index: int,
                               use_actual_policy_data: bool, shift_policy_year: bool):
        person.validate()

        strategy = self.strategy_for(person, person_index, use_actual_policy_data, shift_policy_year)
        snapshots = self.run(person, strategy)

        if person.policy_enabled:
            no_policy = replace(person, policy_enabled=False)
            baseline = self.run(no_policy, self.strategy_for(no_policy, person_index))
        else:
            baseline = self.run(person, strategy)

        for base in baseline:
            base.net_worth_no_policy = base.total_assets
        for snapshot, base in zip(snapshots, baseline):
            snapshot.net_worth_no_policy = base.total_assets

        return snapshots, baseline

    def initial_state(self, person: Person, strategy: PolicyValuationStrategy) -> ProjectionState:
        """Seed the loop state from the person's savings and the policy at issue."""
        assets = person.retirement_savings
        if person.policy_enabled and person.initial_premium_from_assets:
            # Initial premium is withdrawn pre-tax from retirement assets
            gross = strategy.initial_premium() / (1 - person.retirement_assets_tax_rate)
            assets = max(0.0, assets - gross)

        cash_value, death_benefit = strategy.illustrated_values(person.current_age, 0)
        return ProjectionState(
            retirement_assets=assets,
            policy_cash_value=cash_value,
            death_benefit=death_benefit,
        )

    def run(self, person: Person, strategy: PolicyValuationStrategy) -> List[YearlyFinancialSnapshot]:
        """Run the year loop with an explicit strategy."""
        state = self.initial_state(person, strategy)
        return [self.step(state, person, strategy, age)
                for age in range(person.current_age, person.death_age + 1)]

    def step(self, state: ProjectionState, person: Person,
             strategy: PolicyValuationStrategy, age: int) -> YearlyFinancialSnapshot:
        """Advance state by one year and return that year's snapshot."""
        year_index = age - person.current_age
        is_retired = age >= person.retirement_age
        has_ltc_event = person.has_ltc_event_at(age)

        s = YearlyFinancialSnapshot(
            age=age,
            year_index=year_index,
            policy_year=strategy.policy_year(age),
            is_retired=is_retired,
            has_ltc_event=has_ltc_event,
        )

        # ============================================================
        # Income
        # ============================================================
        inflation_factor = (1 + person.general_inflation) ** year_index
        if is_retired:
            s.social_security_income = person.social_security_income * inflation_factor
            s.other_retirement_income = person.other_retirement_income * inflation_factor
        else:
            reduction = LTC_INCOME_FACTOR if has_ltc_event else 1.0
            s.work_income = person.income * (1 + person.annual_pay_increase) ** year_index * reduction
        s.total_income = s.work_income + s.social_security_income + s.other_retirement_income

        # ============================================================
        # Living and LTC expenses
        # ============================================================
        if is_retired or has_ltc_event:
            s.basic_expenses = person.income * person.income_replacement_ratio * inflation_factor
        if has_ltc_event:
            # Costs are in today's dollars, so inflation runs from the start age
            s.ltc_expenses = person.ltc_cost_per_year * (1 + person.ltc_inflation) ** (age - person.current_age)

        if state.bankrupt:
            return self._bankrupt_year(s, state)

        # ============================================================
        # Policy: premium, values on the illustrated path, LTC benefits
        # ============================================================
        s.premium_expenses = strategy.premium(age, year_index)

        if state.has_deviated:
            cash_value, death_benefit = strategy.grow_values(
                state.policy_cash_value, state.death_benefit, age, year_index)
        else:
            cash_value, death_benefit = strategy.illustrated_values(age, year_index)
        s.illustrated_cash_value = cash_value
        s.illustrated_death_benefit = death_benefit

        if has_ltc_event:
            if not state.benefit_cap_fixed:
                state.benefit_cap = strategy.benefit_cap(age, death_benefit)
                state.benefit_cap_fixed = True
            benefit = strategy.benefit_limit(age, s.ltc_expenses)
            if state.benefit_cap is not None:
                benefit = max(0.0, min(benefit, state.benefit_cap - state.cumulative_ltc_benefits))
            s.ltc_benefits = benefit
            state.cumulative_ltc_benefits += benefit
        s.cumulative_ltc_benefits = state.cumulative_ltc_benefits
        s.ltc_out_of_pocket = max(0.0, s.ltc_expenses - s.ltc_benefits)

        s.total_expenses = s.basic_expenses + s.ltc_expenses + s.premium_expenses
        s.net_cash_flow = s.total_income + s.ltc_benefits - s.total_expenses

        # ============================================================
        # Shortfall: retirement assets first, then policy loans
        # ============================================================
        tax_rate = person.retirement_assets_tax_rate
        premium_from_assets = 0.0
        if not is_retired and person.premiums_from_assets_pre_retirement:
            premium_from_assets = s.premium_expenses

        shortfall = max(0.0, -s.net_cash_flow)
        income_surplus = 0.0
        if premium_from_assets > 0:
            # Premium is paid from assets even when income would cover it
            shortfall = max(premium_from_assets, -s.net_cash_flow)
            income_surplus = max(0.0, s.net_cash_flow + premium_from_assets)

        covered = 0.0
        if shortfall > 0:
            s.withdrawal, s.tax_on_withdrawal, covered = self._withdraw(
                state.retirement_assets, shortfall, tax_rate)
        s.premium_paid_from_assets = min(premium_from_assets, covered)

        remaining = shortfall - covered
        if premium_from_assets > 0:
            # Income picks up whatever premium the assets could not
            remaining = max(0.0, remaining - income_surplus)

        # Benefits paid from a separate pool leave the policy values alone
        value_draw = s.ltc_benefits if strategy.benefits_reduce_policy_values else 0.0

        s.policy_loan_interest = state.policy_loan_balance * person.policy_loan_rate
        loan_balance = state.policy_loan_balance + s.policy_loan_interest

        if remaining > SHORTFALL_TOLERANCE and is_retired and person.policy_loan_enabled:
            available_cash = max(0.0, cash_value - value_draw - s.policy_loan_interest)
            if available_cash > 0:
                capacity = max(0.0, person.policy_max_loan_to_value_ratio * available_cash - loan_balance)
                s.policy_loan_taken = min(remaining, capacity)
                remaining -= s.policy_loan_taken
                loan_balance += s.policy_loan_taken
                if s.policy_loan_taken > 0:
                    logger.debug("%s age %d: policy loan of %.2f", person.name, age, s.policy_loan_taken)

        # ============================================================
        # Policy values: benefits, loans and interest reduce dollar for dollar
        # ============================================================
        reduction = value_draw + s.policy_loan_taken + s.policy_loan_interest
        if reduction > 0:
            state.has_deviated = True
        cash_value = max(0.0, cash_value - reduction)
        death_benefit = max(0.0, death_benefit - reduction)

        # ============================================================
        # Asset growth
        # ============================================================
        if is_retired:
            assets = (state.retirement_assets - s.withdrawal) * (1 + person.asset_returns)
        else:
            savings = 0.0 if has_ltc_event else person.annual_savings
            assets = (state.retirement_assets + savings - s.withdrawal) * (1 + person.pre_retirement_asset_returns)
        assets = max(0.0, assets)

        if remaining > SHORTFALL_TOLERANCE:
            logger.debug("%s: unfunded shortfall of %.2f at age %d, bankrupt", person.name, remaining, age)
            state.bankrupt = True
            state.bankruptcy_age = age
            state.retirement_assets = 0.0
            state.policy_cash_value = 0.0
            state.death_benefit = 0.0
            state.policy_loan_balance = 0.0
            s.bankrupt = True
            return s

        state.retirement_assets = assets
        state.policy_cash_value = cash_value
        state.death_benefit = death_benefit
        state.policy_loan_balance = loan_balance

        s.retirement_assets = assets
        s.policy_cash_value = cash_value
        s.death_benefit = death_benefit
        s.policy_loan_balance = loan_balance
        s.total_assets = assets + cash_value
        s.net_worth = s.total_assets
        return s

    def _withdraw(self, balance: float, shortfall: float, tax_rate: float):
        """Gross up a shortfall for tax and withdraw it, capped at the balance.

        Returns:
            Tuple of (gross withdrawal, tax on withdrawal, after-tax amount covered)
        """
        gross = shortfall / (1 - tax_rate)
        if gross > balance:
            gross = max(0.0, balance)
            tax = gross * tax_rate
            return gross, tax, gross - tax
        return gross, gross * tax_rate, shortfall

    def _bankrupt_year(self, s: YearlyFinancialSnapshot, state: ProjectionState) -> YearlyFinancialSnapshot:
        """Snapshot for a year after bankruptcy: flows reported, balances zero, policy lapsed."""
        s.bankrupt = True
        s.cumulative_ltc_benefits = state.cumulative_ltc_benefits
        s.ltc_out_of_pocket = s.ltc_expenses
        s.total_expenses = s.basic_expenses + s.ltc_expenses
        s.net_cash_flow = s.total_income - s.total_expenses
        return s
