"""Data classes for carrier policy illustrations.

An illustration is the carrier's year-by-year projection of a specific
policy: premiums, cash values, death benefits and LTC benefit limits.
"""

from dataclasses import dataclass, field
from typing import List, Optional


# Fraction of death benefit available each month for LTC when the carrier omits it
DEFAULT_MONTHLY_PAYOUT_PERCENTAGE = 0.04


@dataclass
class PolicyIllustrationRecord:
    """One illustrated policy year."""
    policy_year: int
    insured_age: int
    annual_premium: float = 0.0
    accumulation_value: float = 0.0
    surrender_value: float = 0.0
    death_benefit: float = 0.0
    acceleration_percentage: Optional[float] = None  # Fraction of death benefit that may be accelerated
    monthly_payout_percentage: float = DEFAULT_MONTHLY_PAYOUT_PERCENTAGE
    monthly_benefit_limit: float = 0.0
    annual_ltc_benefit: Optional[float] = None  # Hybrid policies only
    total_ltc_benefit: Optional[float] = None  # Hybrid policies only

    @property
    def cash_value(self) -> float:
        """Surrender value when illustrated, otherwise accumulation value."""
        return self.surrender_value if self.surrender_value else self.accumulation_value

    @classmethod
    def from_dict(cls, data: dict) -> 'PolicyIllustrationRecord':
        """Build a record from a carrier/extraction row (snake_case keys).

        Percentages given as whole numbers (e.g. 100, 4) are converted to fractions.
        """
        death_benefit = float(data.get('death_benefit') or 0)
        monthly_pct = _as_fraction(data.get('monthly_payout_percentage'), DEFAULT_MONTHLY_PAYOUT_PERCENTAGE)
        monthly_limit = data.get('monthly_benefit_limit')
        if not monthly_limit:
            monthly_limit = death_benefit * monthly_pct / 12

        return cls(
            policy_year=int(data['policy_year']),
            insured_age=int(data.get('insured_age') or 0),
            annual_premium=float(data.get('annual_premium') or 0),
            accumulation_value=float(data.get('accumulation_value') or 0),
            surrender_value=float(data.get('surrender_value') or 0),
            death_benefit=death_benefit,
            acceleration_percentage=_as_fraction(data.get('acceleration_percentage'), None),
            monthly_payout_percentage=monthly_pct,
            monthly_benefit_limit=float(monthly_limit),
            annual_ltc_benefit=_optional_float(data.get('annual_ltc_benefit')),
            total_ltc_benefit=_optional_float(data.get('total_ltc_benefit')),
        )


@dataclass
class PolicyLevelInformation:
    """Policy-wide details printed on the illustration cover page."""
    insured_person_name: str = ""
    insured_person_age: Optional[int] = None  # Issue age
    insured_person_gender: str = ""
    product_name: str = ""
    initial_premium: float = 0.0
    initial_death_benefit: float = 0.0
    policy_type: str = "traditional"  # "traditional" or "hybrid"
    riders_and_features: List[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'PolicyLevelInformation':
        age = data.get('insured_person_age')
        return cls(
            insured_person_name=data.get('insured_person_name', ''),
            insured_person_age=int(age) if age is not None else None,
            insured_person_gender=data.get('insured_person_gender', ''),
            product_name=data.get('product_name', ''),
            initial_premium=float(data.get('initial_premium') or 0),
            initial_death_benefit=float(data.get('initial_death_benefit') or 0),
            policy_type=data.get('policy_type') or 'traditional',
            riders_and_features=list(data.get('riders_and_features') or []),
        )


@dataclass
class PolicyIllustration:
    """A complete illustration: policy-level details plus annual rows sorted by policy year."""
    policy_level_information: PolicyLevelInformation
    annual_policy_data: List[PolicyIllustrationRecord] = field(default_factory=list)

    def __post_init__(self):
        self.annual_policy_data = sorted(self.annual_policy_data, key=lambda r: r.policy_year)

    @property
    def issue_age(self) -> Optional[int]:
        """Insured's age in policy year 1."""
        if self.policy_level_information.insured_person_age is not None:
            return self.policy_level_information.insured_person_age
        if self.annual_policy_data:
            first = self.annual_policy_data[0]
            if first.insured_age:
                return first.insured_age - first.policy_year + 1
        return None

    @property
    def initial_premium(self) -> float:
        if self.policy_level_information.initial_premium:
            return self.policy_level_information.initial_premium
        if self.annual_policy_data:
            return self.annual_policy_data[0].annual_premium
        return 0.0

    @property
    def acceleration_percentage(self) -> Optional[float]:
        """Elected acceleration as a fraction of death benefit.

        The chronic illness rider's election wins; otherwise the first annual
        row that carries an acceleration percentage. Returns None when the
        illustration declares neither, meaning no cumulative benefit cap applies.
        """
        for rider in self.policy_level_information.riders_and_features:
            if not isinstance(rider, dict):
                continue
            name = str(rider.get('rider') or rider.get('name') or '').lower()
            elected = rider.get('acceleration_percentage_elected')
            if elected is not None and ('chronic' in name or not name):
                return _as_fraction(elected, 1.0)
        for record in self.annual_policy_data:
            if record.acceleration_percentage is not None:
                return record.acceleration_percentage
        return None

    @classmethod
    def from_dict(cls, data: dict) -> 'PolicyIllustration':
        return cls(
            policy_level_information=PolicyLevelInformation.from_dict(data.get('policy_level_information') or {}),
            annual_policy_data=[PolicyIllustrationRecord.from_dict(row) for row in data.get('annual_policy_data') or []],
        )


def _as_fraction(value, default: Optional[float]) -> Optional[float]:
    if value is None or value == '':
        return default
    value = float(value)
    return value / 100 if value > 1 else value


def _optional_float(value) -> Optional[float]:
    return float(value) if value is not None else None
