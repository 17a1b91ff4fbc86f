"""Global economic assumptions layered over per-person rates."""

import json
import os
from dataclasses import dataclass, replace
from typing import Optional

from model.Person import Person


REFERENCE_PATH = os.path.normpath(
    os.path.join(os.path.dirname(__file__), '../../reference', 'economic-assumptions.json')
)


@dataclass
class GlobalAssumptions:
    """Household-wide overrides. None leaves the person's own value in place."""
    general_inflation: Optional[float] = None
    ltc_inflation: Optional[float] = None
    asset_returns: Optional[float] = None
    pre_retirement_asset_returns: Optional[float] = None

    @classmethod
    def from_spec(cls, data: Optional[dict]) -> 'GlobalAssumptions':
        data = data or {}
        return cls(
            general_inflation=data.get('generalInflation'),
            ltc_inflation=data.get('ltcInflation'),
            asset_returns=data.get('assetReturns'),
            pre_retirement_asset_returns=data.get('preRetirementAssetReturns'),
        )

    def apply_to(self, person: Person) -> Person:
        """Return a copy of person with every set override applied."""
        overrides = {
            name: value for name, value in (
                ('general_inflation', self.general_inflation),
                ('ltc_inflation', self.ltc_inflation),
                ('asset_returns', self.asset_returns),
                ('pre_retirement_asset_returns', self.pre_retirement_asset_returns),
            ) if value is not None
        }
        return replace(person, **overrides) if overrides else person


def load_reference_defaults(path: str = REFERENCE_PATH) -> dict:
    """Load reference/economic-assumptions.json.

    Returns:
        The parsed reference dictionary, or an empty dict if the file is absent
    """
    if not os.path.exists(path):
        return {}
    with open(path, 'r') as f:
        return json.load(f)
