"""Resolve the illustrated policy values that apply to a given policy year.

Carrier illustrations are often sparse (years 1-10, then every fifth year).
Missing years are linearly interpolated between the bracketing rows; years
past the end of the illustration reuse the last row.
"""

import logging
from dataclasses import fields
from typing import List

from model.PolicyIllustration import PolicyIllustrationRecord

logger = logging.getLogger(__name__)


# Fields carried over from the lower row instead of interpolated
_IDENTITY_FIELDS = ('policy_year', 'insured_age')


def resolve(illustration: List[PolicyIllustrationRecord], policy_year: int) -> PolicyIllustrationRecord:
    """Return the illustration row for policy_year.

    Args:
        illustration: Illustrated rows, in any order
        policy_year: 1-based policy year to look up

    Returns:
        The exact row when illustrated, the first row for years before 1,
        the last row past the end, otherwise a new interpolated row

    Raises:
        ValueError: If the illustration is empty
    """
    if not illustration:
        raise ValueError("Cannot resolve policy data from an empty illustration")

    rows = sorted(illustration, key=lambda r: r.policy_year)

    if policy_year < 1:
        return rows[0]

    for row in rows:
        if row.policy_year == policy_year:
            return row

    if policy_year > rows[-1].policy_year:
        return rows[-1]

    if policy_year < rows[0].policy_year:
        # Illustration starts after year 1; nothing below to interpolate from
        return rows[0]

    low = max((r for r in rows if r.policy_year < policy_year), key=lambda r: r.policy_year)
    high = min((r for r in rows if r.policy_year > policy_year), key=lambda r: r.policy_year)
    logger.debug("Interpolating policy year %d between %d and %d", policy_year, low.policy_year, high.policy_year)
    return _interpolate(low, high, policy_year)


def _interpolate(low: PolicyIllustrationRecord, high: PolicyIllustrationRecord,
                 policy_year: int) -> PolicyIllustrationRecord:
    fraction = (policy_year - low.policy_year) / (high.policy_year - low.policy_year)

    values = {}
    for f in fields(PolicyIllustrationRecord):
        if f.name in _IDENTITY_FIELDS:
            continue
        low_value = getattr(low, f.name)
        high_value = getattr(high, f.name)
        if low_value is None or high_value is None:
            # Optional hybrid fields only interpolate when both rows carry them
            values[f.name] = low_value
        else:
            values[f.name] = low_value + (high_value - low_value) * fraction

    insured_age = round(low.insured_age + (high.insured_age - low.insured_age) * fraction)
    return PolicyIllustrationRecord(policy_year=policy_year, insured_age=insured_age, **values)
