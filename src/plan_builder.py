"""Load a client's spec.json and run every calculator over it.

A client folder lives under input-parameters/<client>/ and holds spec.json
plus any policy illustration files it references. The resulting ClientPlan
is shared by the CLI, the interactive shell and the MCP server.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from calc.household_calculator import HouseholdCalculator
from calc.legacy_calculator import LegacyCalculator, LegacyComparison
from calc.projection_calculator import ProjectionCalculator
from calc.tax_efficiency_calculator import TaxEfficiencyCalculator, TaxEfficiencyReport
from model.Assumptions import GlobalAssumptions, load_reference_defaults
from model.HouseholdData import HouseholdData
from model.Person import Person
from model.PolicyIllustration import PolicyIllustration
from model.ProjectionData import ProjectionData
from policy.illustration_loader import load_illustration, load_sample_illustrations

logger = logging.getLogger(__name__)


# Repository root (parent of src/)
DEFAULT_BASE_PATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '..'))

MAX_PERSONS = 2


@dataclass
class ClientPlan:
    """Every projection and analysis for one client household."""
    client_name: str
    spec: dict
    projections: List[Optional[ProjectionData]]  # Indexed by person, None when disabled
    household: HouseholdData
    household_without_insurance: HouseholdData
    legacy: LegacyComparison
    tax_efficiency: TaxEfficiencyReport
    use_actual_policy_data: bool = False
    shift_policy_year: bool = False
    illustrations: List[Optional[PolicyIllustration]] = field(default_factory=list)

    @property
    def persons(self) -> List[Person]:
        return [p.person for p in self.projections if p is not None]

    @property
    def primary(self) -> ProjectionData:
        """First enabled person's projection."""
        return next(p for p in self.projections if p is not None)

    @property
    def first_age(self) -> int:
        return self.primary.first_age

    @property
    def last_age(self) -> int:
        return self.primary.last_age

    def get_projection(self, person_index: int) -> ProjectionData:
        """Return a person's projection.

        Raises:
            ValueError: If the index is out of range or the person is disabled
        """
        if not 0 <= person_index < len(self.projections) or self.projections[person_index] is None:
            enabled = [i + 1 for i, p in enumerate(self.projections) if p is not None]
            raise ValueError(f"Person {person_index + 1} is not part of this plan. Enabled persons: {enabled}")
        return self.projections[person_index]


def load_spec(client_name: str, base_path: str = DEFAULT_BASE_PATH) -> dict:
    """Read input-parameters/<client>/spec.json.

    Raises:
        FileNotFoundError: If the client has no spec file
    """
    spec_path = os.path.join(base_path, 'input-parameters', client_name, 'spec.json')
    if not os.path.exists(spec_path):
        raise FileNotFoundError(f"Spec file not found: {spec_path}")
    with open(spec_path, 'r') as f:
        return json.load(f)


def load_illustrations(spec: dict, client_dir: Optional[str]) -> List[Optional[PolicyIllustration]]:
    """Load the illustration referenced by each person block.

    A value of "sample" selects the bundled sample for that person's index;
    any other value is a file name relative to the client folder.
    """
    illustrations: List[Optional[PolicyIllustration]] = []
    samples = None
    for index, person_spec in enumerate(spec.get('persons', [])[:MAX_PERSONS]):
        source = person_spec.get('policyIllustration')
        if not source:
            illustrations.append(None)
        elif source == 'sample':
            if samples is None:
                samples = load_sample_illustrations()
            illustrations.append(samples[index] if index < len(samples) else None)
        else:
            if client_dir is None:
                raise ValueError(f"Illustration '{source}' given without a client folder to read it from")
            illustrations.append(load_illustration(os.path.join(client_dir, source), index))
    return illustrations


def build_client_plan(spec: dict, client_name: str = "client", client_dir: Optional[str] = None,
                      base_path: str = DEFAULT_BASE_PATH) -> ClientPlan:
    """Run projections, household aggregation, legacy and tax analysis for a spec.

    Args:
        spec: Parsed spec.json
        client_name: Name shown in output
        client_dir: Folder holding illustration files referenced by the spec
        base_path: Repository root containing reference/

    Returns:
        The calculated ClientPlan

    Raises:
        ValueError: If the spec has no enabled person or a person is invalid
    """
    reference = load_reference_defaults(os.path.join(base_path, 'reference', 'economic-assumptions.json'))
    assumptions = GlobalAssumptions.from_spec(spec.get('assumptions'))
    use_actual = spec.get('useActualPolicyData', False)
    shift = spec.get('shiftPolicyYear', False)

    person_specs = spec.get('persons', [])[:MAX_PERSONS]
    if not any(p.get('enabled', True) for p in person_specs):
        raise ValueError("Spec must contain at least one enabled person")

    illustrations = load_illustrations(spec, client_dir)
    calculator = ProjectionCalculator(illustrations)

    projections: List[Optional[ProjectionData]] = []
    for index, person_spec in enumerate(person_specs):
        if not person_spec.get('enabled', True):
            projections.append(None)
            continue
        person = assumptions.apply_to(Person.from_spec(person_spec, reference.get('defaultPerson')))
        logger.debug("Projecting %s (%d-%d)", person.name, person.current_age, person.death_age)
        projections.append(calculator.calculate(person, index, use_actual, shift))

    def snapshots(i: int, baseline: bool = False):
        if i >= len(projections) or projections[i] is None:
            return None
        return projections[i].baseline if baseline else projections[i].snapshots

    household_calculator = HouseholdCalculator()
    household = household_calculator.combine(snapshots(0), snapshots(1))
    household_without = household_calculator.combine(snapshots(0, True), snapshots(1, True))

    primary = next(p for p in projections if p is not None)
    tax_calculator = TaxEfficiencyCalculator(reference.get('taxStrategies'))

    return ClientPlan(
        client_name=spec.get('clientName', client_name),
        spec=spec,
        projections=projections,
        household=household,
        household_without_insurance=household_without,
        legacy=LegacyCalculator().calculate(household.snapshots, household_without.snapshots),
        tax_efficiency=tax_calculator.calculate(household.snapshots, household_without.snapshots,
                                                primary.person.retirement_age),
        use_actual_policy_data=use_actual,
        shift_policy_year=shift,
        illustrations=illustrations,
    )


def load_client_plan(client_name: str, base_path: str = DEFAULT_BASE_PATH,
                     shift_policy_year: Optional[bool] = None) -> ClientPlan:
    """Load input-parameters/<client>/spec.json and build its plan.

    shift_policy_year, when given, overrides the spec's shiftPolicyYear.
    """
    spec = load_spec(client_name, base_path)
    if shift_policy_year is not None:
        spec['shiftPolicyYear'] = shift_policy_year
    client_dir = os.path.join(base_path, 'input-parameters', client_name)
    return build_client_plan(spec, client_name, client_dir, base_path)


def list_clients(base_path: str = DEFAULT_BASE_PATH) -> List[str]:
    """Client folder names under input-parameters that contain a spec.json."""
    input_dir = os.path.join(base_path, 'input-parameters')
    if not os.path.exists(input_dir):
        return []
    return sorted(
        name for name in os.listdir(input_dir)
        if os.path.exists(os.path.join(input_dir, name, 'spec.json'))
    )
