"""Interactive spec.json generator for LTC planning.

This module provides an interactive command-line interface to generate
a client spec.json by prompting for each person's demographics, income,
savings, LTC event and policy parameters.
"""

import os
import json
from typing import Any, Optional

from model.Person import Person


def prompt_int(prompt: str, default: Optional[int] = None, min_val: Optional[int] = None, max_val: Optional[int] = None) -> int:
    """Prompt for an integer value with optional default and validation."""
    while True:
        default_str = f" [{default}]" if default is not None else ""
        try:
            value = input(f"{prompt}{default_str}: ").strip()
            if value == "" and default is not None:
                return default
            result = int(value)
            if min_val is not None and result < min_val:
                print(f"  Value must be at least {min_val}")
                continue
            if max_val is not None and result > max_val:
                print(f"  Value must be at most {max_val}")
                continue
            return result
        except ValueError:
            print("  Please enter a valid integer")


def prompt_percent(prompt: str, default: Optional[float] = None, max_val: float = 100.0) -> float:
    """Prompt for a percentage and return as a fraction (0-1)."""
    while True:
        default_display = f" [{default * 100:.1f}%]" if default is not None else ""
        try:
            value = input(f"{prompt} (%){default_display}: ").strip().rstrip('%')
            if value == "" and default is not None:
                return default
            result = float(value)
            if result < 0:
                print("  Percentage cannot be negative")
                continue
            if result > max_val:
                print(f"  Percentage cannot exceed {max_val}%")
                continue
            return result / 100.0
        except ValueError:
            print("  Please enter a valid percentage (e.g., 5 for 5%)")


def prompt_currency(prompt: str, default: Optional[float] = None, min_val: float = 0) -> float:
    """Prompt for a currency value."""
    while True:
        default_str = f" [${default:,.2f}]" if default is not None else ""
        try:
            value = input(f"{prompt} ($){default_str}: ").strip().lstrip('$').replace(',', '')
            if value == "" and default is not None:
                return default
            result = float(value)
            if result < min_val:
                print(f"  Value must be at least ${min_val:,.2f}")
                continue
            return result
        except ValueError:
            print("  Please enter a valid dollar amount (e.g., 50000 or 50,000)")


def prompt_yes_no(prompt: str, default: bool = False) -> bool:
    """Prompt for a yes/no answer."""
    default_str = "Y/n" if default else "y/N"
    while True:
        value = input(f"{prompt} [{default_str}]: ").strip().lower()
        if value == "":
            return default
        if value in ('y', 'yes'):
            return True
        if value in ('n', 'no'):
            return False
        print("  Please enter 'y' or 'n'")


def prompt_string(prompt: str, default: Optional[str] = None) -> str:
    """Prompt for a string value."""
    default_str = f" [{default}]" if default else ""
    value = input(f"{prompt}{default_str}: ").strip()
    if value == "" and default:
        return default
    return value


def prompt_choice(prompt: str, choices: list[str], default: Optional[str] = None) -> str:
    """Prompt for a choice from a list of options."""
    choices_str = "/".join(choices)
    default_str = f" [{default}]" if default else ""
    while True:
        value = input(f"{prompt} ({choices_str}){default_str}: ").strip()
        if value == "" and default:
            return default
        for choice in choices:
            if value.lower() == choice.lower():
                return choice
        print(f"  Please enter one of: {choices_str}")


def print_section(title: str) -> None:
    """Print a section header."""
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print()


def load_existing_spec(client_name: str, base_path: str) -> Optional[dict]:
    """Load an existing spec.json if it exists.

    Args:
        client_name: Name of the client folder
        base_path: Repository root containing input-parameters/

    Returns:
        The spec dictionary if it exists, None otherwise
    """
    spec_path = os.path.join(base_path, 'input-parameters', client_name, 'spec.json')
    if os.path.exists(spec_path):
        try:
            with open(spec_path, 'r') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            return None
    return None


def generate_person(index: int, existing: Optional[dict] = None) -> dict:
    """Prompt for one person block.

    Args:
        index: 0-based person index (used for the default name)
        existing: Optional existing person block to use for default values

    Returns:
        Person dictionary using spec.json camelCase keys
    """
    defaults = Person(name=f"Person {index + 1}").to_spec()
    defaults.update(existing or {})
    person: dict[str, Any] = {}

    # =========================================================================
    # DEMOGRAPHICS
    # =========================================================================
    print_section(f"Person {index + 1}: Demographics")

    person['name'] = prompt_string("Name", default=defaults['name'])
    person['age'] = prompt_int("Current age", default=defaults['age'], min_val=18, max_val=110)
    person['sex'] = prompt_choice("Sex", ['male', 'female'], default=defaults['sex'])
    person['retirementAge'] = prompt_int(
        "Retirement age",
        default=max(defaults['retirementAge'], person['age']),
        min_val=person['age'],
    )
    person['deathAge'] = prompt_int(
        "Projection end age",
        default=max(defaults['deathAge'], person['retirementAge']),
        min_val=person['age'],
        max_val=120,
    )

    # =========================================================================
    # INCOME AND SAVINGS
    # =========================================================================
    print_section(f"Person {index + 1}: Income and Savings")

    person['income'] = prompt_currency("Annual income", default=defaults['income'])
    person['annualPayIncrease'] = prompt_percent("Expected annual pay increase",
                                                 default=defaults['annualPayIncrease'])
    person['incomeReplacementRatio'] = prompt_percent(
        "Retirement expenses as percentage of income",
        default=defaults['incomeReplacementRatio'],
        max_val=200.0,
    )
    person['socialSecurityIncome'] = prompt_currency("Annual Social Security (today's dollars)",
                                                     default=defaults['socialSecurityIncome'])
    person['otherRetirementIncome'] = prompt_currency("Other annual retirement income",
                                                      default=defaults['otherRetirementIncome'])
    person['retirementSavings'] = prompt_currency("Current retirement savings",
                                                  default=defaults['retirementSavings'])
    person['annualSavings'] = prompt_currency("Annual savings until retirement",
                                              default=defaults['annualSavings'])
    person['retirementAssetsTaxRate'] = prompt_percent("Tax rate on retirement withdrawals",
                                                       default=defaults['retirementAssetsTaxRate'],
                                                       max_val=99.0)

    # =========================================================================
    # LTC EVENT
    # =========================================================================
    print_section(f"Person {index + 1}: Long-Term Care Event")

    person['ltcEventEnabled'] = prompt_yes_no("Model a long-term care event?",
                                              default=defaults['ltcEventEnabled'])
    if person['ltcEventEnabled']:
        person['ltcEventAge'] = prompt_int(
            "Age when care begins",
            default=min(max(defaults['ltcEventAge'], person['age']), person['deathAge']),
            min_val=person['age'],
            max_val=person['deathAge'],
        )
        person['ltcDuration'] = prompt_int("Years of care", default=defaults['ltcDuration'], min_val=0)
        person['ltcCostPerYear'] = prompt_currency("Annual cost of care (today's dollars)",
                                                   default=defaults['ltcCostPerYear'])

    # =========================================================================
    # POLICY
    # =========================================================================
    print_section(f"Person {index + 1}: Policy")

    person['policyEnabled'] = prompt_yes_no("Include an LTC / hybrid life policy?",
                                            default=defaults['policyEnabled'])
    if person['policyEnabled']:
        person['policyAnnualPremium'] = prompt_currency("Annual premium",
                                                        default=defaults['policyAnnualPremium'])
        person['policyBenefitPerYear'] = prompt_currency("Annual LTC benefit",
                                                         default=defaults['policyBenefitPerYear'])
        person['policyBenefitDuration'] = prompt_int("Benefit duration (years)",
                                                     default=defaults['policyBenefitDuration'], min_val=0)
        person['initialPremiumFromAssets'] = prompt_yes_no(
            "Pay the initial premium from retirement assets?",
            default=defaults['initialPremiumFromAssets'],
        )
        person['premiumsFromAssetsPreRetirement'] = prompt_yes_no(
            "Pay premiums from assets before retirement?",
            default=defaults['premiumsFromAssetsPreRetirement'],
        )
        person['policyLoanEnabled'] = prompt_yes_no("Allow policy loans?",
                                                    default=defaults['policyLoanEnabled'])
        illustration = prompt_string(
            "Illustration file in the client folder ('sample' for the bundled sample, blank for none)",
            default=defaults.get('policyIllustration'),
        )
        if illustration:
            person['policyIllustration'] = illustration

    return person


def generate_spec(existing_spec: Optional[dict] = None) -> dict:
    """Interactive wizard to generate a spec.json configuration.

    Args:
        existing_spec: Optional existing spec to use for default values
    """
    ex = existing_spec or {}
    ex_persons = ex.get('persons', [])
    spec: dict[str, Any] = {}

    print_section("Client")
    spec['clientName'] = prompt_string("Client display name", default=ex.get('clientName', 'Client'))
    spec['useActualPolicyData'] = prompt_yes_no(
        "Use imported policy illustrations when available?",
        default=ex.get('useActualPolicyData', False),
    )

    persons = [generate_person(0, ex_persons[0] if ex_persons else None)]

    has_second = len(ex_persons) > 1 and ex_persons[1].get('enabled', True)
    if prompt_yes_no("Add a second person (spouse/partner)?", default=has_second):
        persons.append(generate_person(1, ex_persons[1] if len(ex_persons) > 1 else None))

    spec['persons'] = persons
    if 'assumptions' in ex:
        spec['assumptions'] = ex['assumptions']
    if 'shiftPolicyYear' in ex:
        spec['shiftPolicyYear'] = ex['shiftPolicyYear']
    return spec


def save_spec(spec: dict, client_name: str, base_path: str) -> str:
    """Save the spec to a JSON file.

    Args:
        spec: The specification dictionary
        client_name: Name for the client folder
        base_path: Repository root containing input-parameters/

    Returns:
        Path to the saved file
    """
    client_dir = os.path.join(base_path, 'input-parameters', client_name)
    os.makedirs(client_dir, exist_ok=True)

    spec_path = os.path.join(client_dir, 'spec.json')
    with open(spec_path, 'w') as f:
        json.dump(spec, f, indent=4)

    return spec_path


def list_existing_clients(base_path: str) -> list[str]:
    """List all client folders in input-parameters that contain a spec.json."""
    input_params_path = os.path.join(base_path, 'input-parameters')
    if not os.path.exists(input_params_path):
        return []

    clients = []
    for name in os.listdir(input_params_path):
        client_dir = os.path.join(input_params_path, name)
        if os.path.isdir(client_dir) and os.path.exists(os.path.join(client_dir, 'spec.json')):
            clients.append(name)

    return sorted(clients)


def run_generator(base_path: Optional[str] = None) -> Optional[str]:
    """Run the interactive generator and return the client name if successful."""
    try:
        if base_path is None:
            base_path = os.path.normpath(os.path.join(os.path.dirname(__file__), '..'))

        print()
        print("╔════════════════════════════════════════════════════════════╗")
        print("║          LTC Planner - Configuration Generator             ║")
        print("╚════════════════════════════════════════════════════════════╝")
        print()

        existing_clients = list_existing_clients(base_path)
        if existing_clients:
            print("Existing clients:")
            for client in existing_clients:
                print(f"  - {client}")
            print()
            print("Enter an existing client name to update it, or a new name to create.")
        else:
            print("No existing clients found. Enter a name for your new client.")
        print()

        client_name = prompt_string("Client folder name", default="myclient")
        client_name = "".join(c if c.isalnum() or c in '-_' else '_' for c in client_name)

        existing_spec = load_existing_spec(client_name, base_path)
        print()
        if existing_spec:
            print(f"Found existing client '{client_name}'. Values will be used as defaults.")
        else:
            print(f"Creating new client '{client_name}'.")

        spec = generate_spec(existing_spec)
        spec_path = save_spec(spec, client_name, base_path)

        print()
        print("╔════════════════════════════════════════════════════════════╗")
        print("║                    Configuration Saved!                    ║")
        print("╚════════════════════════════════════════════════════════════╝")
        print()
        print(f"  Saved to: {spec_path}")
        print()
        print("  To run the projection:")
        print(f"    python src/Program.py {client_name}")
        print(f"    python src/Program.py {client_name} --mode Projection")
        print(f"    python src/Program.py {client_name} --mode Legacy")
        print()

        return client_name

    except KeyboardInterrupt:
        print("\n\nCancelled. No changes made.")
        return None


if __name__ == "__main__":
    run_generator()
