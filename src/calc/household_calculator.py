"""Combine two per-person projections into a household view."""

import logging
from dataclasses import fields
from typing import List, Optional

from model.HouseholdData import CombinedSnapshot, HouseholdData
from model.ProjectionData import YearlyFinancialSnapshot

logger = logging.getLogger(__name__)


# Numeric fields summed across both persons
SUMMED_FIELDS = [
    f.name for f in fields(CombinedSnapshot)
    if f.type in (float, 'float')
]


class HouseholdCalculator:
    """Aligns two projections by index and sums them.

    Projections are not pooled: each person's run is independent and the
    household series is a straight sum. A missing person, or the shorter
    series past its end, contributes zeros.
    """

    def combine(self, person1: Optional[List[YearlyFinancialSnapshot]],
                person2: Optional[List[YearlyFinancialSnapshot]]) -> HouseholdData:
        """Build the combined series.

        Args:
            person1: First person's snapshots, or None/empty if disabled
            person2: Second person's snapshots, or None/empty if disabled

        Returns:
            HouseholdData whose bankruptcy age is the first index where the
            combined total assets reach zero
        """
        person1 = person1 or []
        person2 = person2 or []
        length = max(len(person1), len(person2))

        household = HouseholdData()
        for index in range(length):
            s1 = person1[index] if index < len(person1) else None
            s2 = person2[index] if index < len(person2) else None
            # Primary age keeps counting past person 1's last year
            age = person1[0].age + index if person1 else s2.age
            household.snapshots.append(self._combine_year(index, age, s1, s2))

        for combined in household.snapshots:
            if combined.total_assets <= 0 and household.bankruptcy_age is None:
                household.bankruptcy_age = combined.age
                logger.debug("Household assets exhausted at age %d", combined.age)
            combined.bankrupt = household.bankruptcy_age is not None

        return household

    def _combine_year(self, index: int, age: int, s1: Optional[YearlyFinancialSnapshot],
                      s2: Optional[YearlyFinancialSnapshot]) -> CombinedSnapshot:
        combined = CombinedSnapshot(
            year_index=index,
            age=age,
            person1_age=s1.age if s1 is not None else None,
            person2_age=s2.age if s2 is not None else None,
        )

        present = [s for s in (s1, s2) if s is not None]
        for name in SUMMED_FIELDS:
            setattr(combined, name, sum(getattr(s, name) for s in present))

        combined.is_retired = any(s.is_retired for s in present)
        combined.is_alive = any(s.is_alive for s in present)
        combined.has_ltc_event = any(s.has_ltc_event for s in present)
        combined.person1_bankrupt = s1.bankrupt if s1 is not None else False
        combined.person2_bankrupt = s2.bankrupt if s2 is not None else False
        return combined
