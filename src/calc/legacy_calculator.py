"""Legacy values and with/without insurance comparison.

Pure post-processing over completed projections: nothing here runs the
year loop again.
"""

from dataclasses import dataclass
from typing import Optional, Sequence


# First-year withdrawal rate thresholds, measured against the 4% rule
HIGH_WITHDRAWAL_RATE = 0.05
MODERATE_WITHDRAWAL_RATE = 0.04


@dataclass
class LegacyComparison:
    """End-of-life values for the insured and uninsured scenarios."""
    legacy_with_insurance: float = 0.0  # Final retirement assets + final death benefit
    legacy_without_insurance: float = 0.0  # Final total assets without the policy
    legacy_difference: float = 0.0
    depletion_age_with_insurance: Optional[int] = None
    depletion_age_without_insurance: Optional[int] = None
    final_age: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "legacy_with_insurance": round(self.legacy_with_insurance, 2),
            "legacy_without_insurance": round(self.legacy_without_insurance, 2),
            "legacy_difference": round(self.legacy_difference, 2),
            "depletion_age_with_insurance": self.depletion_age_with_insurance,
            "depletion_age_without_insurance": self.depletion_age_without_insurance,
            "final_age": self.final_age,
        }


class LegacyCalculator:
    """Compares a with-policy projection against its no-policy counterpart.

    Works on per-person snapshots or combined household snapshots since
    both expose the same balance fields.
    """

    def calculate(self, with_policy: Sequence, without_policy: Sequence) -> LegacyComparison:
        """Compute legacy figures and asset depletion ages.

        Args:
            with_policy: Snapshots from the run with the policy in force
            without_policy: Snapshots from the same person(s) with the policy disabled

        Returns:
            LegacyComparison for the final projected year
        """
        result = LegacyComparison()
        if with_policy:
            final = with_policy[-1]
            result.legacy_with_insurance = final.retirement_assets + final.death_benefit
            result.final_age = final.age
        if without_policy:
            result.legacy_without_insurance = without_policy[-1].total_assets
        result.legacy_difference = result.legacy_with_insurance - result.legacy_without_insurance
        result.depletion_age_with_insurance = depletion_age(with_policy)
        result.depletion_age_without_insurance = depletion_age(without_policy)
        return result


def depletion_age(snapshots: Sequence) -> Optional[int]:
    """First age whose total assets are exhausted, or None if never."""
    for snapshot in snapshots:
        if snapshot.total_assets <= 0:
            return snapshot.age
    return None


def ltc_coverage_ratio(snapshots: Sequence) -> float:
    """Share of lifetime LTC costs paid by policy benefits (0 when there are no costs)."""
    total_costs = sum(s.ltc_expenses for s in snapshots)
    if total_costs <= 0:
        return 0.0
    return sum(s.ltc_benefits for s in snapshots) / total_costs


def first_year_withdrawal_rate(snapshots: Sequence) -> float:
    """Withdrawal in the first retired year divided by assets entering that year."""
    previous_assets = None
    for snapshot in snapshots:
        if snapshot.is_retired:
            if previous_assets is None:
                # Already retired at the start; no prior balance to measure against
                return 0.0
            return snapshot.withdrawal / previous_assets if previous_assets > 0 else 0.0
        previous_assets = snapshot.retirement_assets
    return 0.0


def withdrawal_rate_assessment(rate: float) -> str:
    """Classify a withdrawal rate against the 4% rule."""
    if rate > HIGH_WITHDRAWAL_RATE:
        return "high"
    if rate > MODERATE_WITHDRAWAL_RATE:
        return "moderate"
    return "sustainable"
