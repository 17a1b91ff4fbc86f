"""Person configuration for a single projection run.

A Person is read from the client's spec.json (camelCase keys) and is never
mutated by the calculators. Everything derived from a run lives in
ProjectionData instead.
"""

from dataclasses import dataclass, fields
from typing import Optional


# Mapping of dataclass field name to the camelCase key used in spec.json
SPEC_KEYS = {
    'name': 'name',
    'current_age': 'age',
    'sex': 'sex',
    'retirement_age': 'retirementAge',
    'death_age': 'deathAge',
    'income': 'income',
    'annual_pay_increase': 'annualPayIncrease',
    'income_replacement_ratio': 'incomeReplacementRatio',
    'social_security_income': 'socialSecurityIncome',
    'other_retirement_income': 'otherRetirementIncome',
    'retirement_savings': 'retirementSavings',
    'annual_savings': 'annualSavings',
    'pre_retirement_asset_returns': 'preRetirementAssetReturns',
    'asset_returns': 'assetReturns',
    'retirement_assets_tax_rate': 'retirementAssetsTaxRate',
    'general_inflation': 'generalInflation',
    'ltc_inflation': 'ltcInflation',
    'ltc_event_enabled': 'ltcEventEnabled',
    'ltc_event_age': 'ltcEventAge',
    'ltc_duration': 'ltcDuration',
    'ltc_cost_per_year': 'ltcCostPerYear',
    'policy_enabled': 'policyEnabled',
    'policy_annual_premium': 'policyAnnualPremium',
    'policy_benefit_per_year': 'policyBenefitPerYear',
    'policy_benefit_duration': 'policyBenefitDuration',
    'initial_premium_from_assets': 'initialPremiumFromAssets',
    'premiums_from_assets_pre_retirement': 'premiumsFromAssetsPreRetirement',
    'policy_loan_enabled': 'policyLoanEnabled',
    'policy_loan_rate': 'policyLoanRate',
    'policy_max_loan_to_value_ratio': 'policyMaxLoanToValueRatio',
}


@dataclass(frozen=True)
class Person:
    """Demographics, income, savings, LTC event and policy settings for one insured."""
    # Demographics
    name: str = "Person 1"
    current_age: int = 55
    sex: str = "male"
    retirement_age: int = 67
    death_age: int = 90  # Terminal age, inclusive

    # Income
    income: float = 100000.0
    annual_pay_increase: float = 0.03
    income_replacement_ratio: float = 0.65  # Fraction of income needed for basic expenses in retirement
    social_security_income: float = 24000.0  # Today's dollars, paid once retired
    other_retirement_income: float = 0.0  # Pension/other, today's dollars

    # Savings and returns
    retirement_savings: float = 500000.0
    annual_savings: float = 12000.0
    pre_retirement_asset_returns: float = 0.07
    asset_returns: float = 0.05
    retirement_assets_tax_rate: float = 0.30  # Flat rate on withdrawals

    # Inflation
    general_inflation: float = 0.025
    ltc_inflation: float = 0.05

    # LTC event
    ltc_event_enabled: bool = False
    ltc_event_age: int = 75
    ltc_duration: int = 4
    ltc_cost_per_year: float = 100000.0  # Today's dollars

    # Policy (simplified mode values are used when no illustration is applied)
    policy_enabled: bool = False
    policy_annual_premium: float = 3000.0
    policy_benefit_per_year: float = 80000.0
    policy_benefit_duration: int = 3
    initial_premium_from_assets: bool = False
    premiums_from_assets_pre_retirement: bool = True
    policy_loan_enabled: bool = True
    policy_loan_rate: float = 0.01
    policy_max_loan_to_value_ratio: float = 0.95

    @classmethod
    def from_spec(cls, data: dict, defaults: Optional[dict] = None) -> 'Person':
        """Build a Person from a spec.json person block.

        Args:
            data: Person dictionary using camelCase keys
            defaults: Optional fallback dictionary (same keys) applied beneath data

        Returns:
            A Person with missing keys taken from defaults, then dataclass defaults
        """
        merged = dict(defaults or {})
        merged.update(data or {})

        kwargs = {}
        for f in fields(cls):
            key = SPEC_KEYS[f.name]
            if key in merged and merged[key] is not None:
                kwargs[f.name] = merged[key]
        return cls(**kwargs)

    def to_spec(self) -> dict:
        """Return the camelCase dictionary form used in spec.json."""
        return {SPEC_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}

    @property
    def ltc_event_end_age(self) -> int:
        """Last age (inclusive) of the LTC event."""
        return self.ltc_event_age + self.ltc_duration - 1

    def has_ltc_event_at(self, age: int) -> bool:
        return self.ltc_event_enabled and self.ltc_event_age <= age <= self.ltc_event_end_age

    def validate(self) -> None:
        """Raise ValueError if the configuration cannot be projected."""
        if self.death_age < self.current_age:
            raise ValueError(
                f"{self.name}: death age ({self.death_age}) is before current age ({self.current_age})"
            )
        if self.ltc_event_enabled and not (self.current_age <= self.ltc_event_age <= self.death_age):
            raise ValueError(
                f"{self.name}: LTC event age ({self.ltc_event_age}) must be between "
                f"current age ({self.current_age}) and death age ({self.death_age})"
            )
        if not 0 <= self.retirement_assets_tax_rate < 1:
            raise ValueError(
                f"{self.name}: retirement assets tax rate must be in [0, 1), got {self.retirement_assets_tax_rate}"
            )
        if self.ltc_duration < 0:
            raise ValueError(f"{self.name}: LTC duration cannot be negative")
        if self.policy_benefit_duration < 0:
            raise ValueError(f"{self.name}: policy benefit duration cannot be negative")
