#!/usr/bin/env python3
"""Interactive command shell for querying LTC projection data.

This module provides an interactive shell that loads a client plan at
startup and allows querying any field(s) from the yearly snapshots across
a specified age range.

Usage:
    python src/shell.py [client_name]

Commands:
    get <fields> [age_or_range]   - Query fields from yearly snapshots
    fields                        - List all available fields
    ages                          - Show projected age ranges
    person <n>                    - Switch the active person
    summary                       - Show lifetime totals
    render <mode> [age_or_range]  - Render a report
    compare <fields> [range]      - Compare with and without the policy
    load <client_name>            - Load a client plan
    generate                      - Create or update a client spec
    help                          - Show help message
    exit/quit                     - Exit the shell

Examples:
    > get retirement_assets
    > get ltc_expenses, ltc_benefits 75-80
    > get total_assets 70-
    > person 2
    > compare net_worth 65-90
"""

import sys
import os
import cmd
import readline
from dataclasses import fields as dataclass_fields

# Configure readline for tab completion
try:
    if 'libedit' in readline.__doc__:
        readline.parse_and_bind("bind ^I rl_complete")
    else:
        readline.parse_and_bind("tab: complete")
except (AttributeError, TypeError):
    pass  # readline might not be fully available

# Add src directory to path for imports
sys.path.insert(0, os.path.dirname(__file__))

from calc.legacy_calculator import ltc_coverage_ratio
from model.ProjectionData import YearlyFinancialSnapshot
from model.field_metadata import FIELD_METADATA, get_short_name, get_description
from plan_builder import ClientPlan, DEFAULT_BASE_PATH, list_clients, load_client_plan
from render.renderers import RENDERER_REGISTRY
from spec_generator import run_generator


# Fields that are balances or flags and have no meaningful total
NON_SUMMABLE_FIELDS = {
    'age', 'year_index', 'policy_year', 'cumulative_ltc_benefits',
    'policy_cash_value', 'death_benefit', 'policy_loan_balance',
    'illustrated_cash_value', 'illustrated_death_benefit',
    'retirement_assets', 'total_assets', 'net_worth', 'net_worth_no_policy',
}


def load_plan(client_name: str, base_path: str = DEFAULT_BASE_PATH) -> ClientPlan:
    """Load and calculate the plan for the given client.

    Args:
        client_name: Name of the client folder in input-parameters
        base_path: Repository root holding input-parameters/ and reference/

    Returns:
        Calculated ClientPlan
    """
    return load_client_plan(client_name, base_path)


def get_snapshot_fields() -> list:
    """Get list of all field names from the YearlyFinancialSnapshot dataclass."""
    return [f.name for f in dataclass_fields(YearlyFinancialSnapshot)]


def format_value(value) -> str:
    """Format a value for display."""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    elif isinstance(value, float):
        return f"${value:,.2f}"
    return str(value)


def parse_fields_and_range(arg: str):
    """Split 'field1, field2 [age_or_range]' into field names and an optional range.

    Returns:
        Tuple of (field_names, (start_age, end_age) or None). Either end of the
        range may be None when omitted ('70-' or '-80').
    """
    parts = arg.strip().split()
    age_range = None
    field_parts = parts

    if parts:
        candidate = parts[-1]
        if '-' in candidate:
            range_parts = candidate.split('-')
            if len(range_parts) == 2:
                try:
                    start = int(range_parts[0]) if range_parts[0] else None
                    end = int(range_parts[1]) if range_parts[1] else None
                    age_range = (start, end)
                    field_parts = parts[:-1]
                except ValueError:
                    pass  # Not a range, treat as a field name
        elif candidate.isdigit():
            age_range = (int(candidate), int(candidate))
            field_parts = parts[:-1]

    field_names = [f.strip() for f in ' '.join(field_parts).split(',') if f.strip()]
    return field_names, age_range


class ClientPlanShell(cmd.Cmd):
    """Interactive shell for querying a client's LTC projections."""

    intro = """
LTC Planner Interactive Shell
=============================
Type 'help' for available commands.
Type 'fields' to see available data fields.
Type 'exit' or 'quit' to exit.
"""
    prompt = '> '

    def __init__(self, plan: ClientPlan = None, client_name: str = None,
                 base_path: str = DEFAULT_BASE_PATH):
        super().__init__()
        self.plan = plan
        self.client_name = client_name
        self.base_path = base_path
        self.person_index = plan.projections.index(plan.primary) if plan else 0
        self.available_fields = get_snapshot_fields()
        self._update_intro()

    def preloop(self):
        """Set up readline before entering the command loop."""
        try:
            readline.set_completer_delims(' \t\n,')
            if 'libedit' in (readline.__doc__ or ''):
                readline.parse_and_bind("bind ^I rl_complete")
            else:
                readline.parse_and_bind("tab: complete")
        except (AttributeError, TypeError):
            pass  # readline might not be fully available

    def _get_available_clients(self) -> list:
        """Get list of client names from the input-parameters directory."""
        return list_clients(self.base_path)

    def _update_intro(self):
        """Update the intro message based on current state."""
        if self.plan and self.client_name:
            people = ', '.join(f"{p.name} ({p.current_age}-{p.death_age})" for p in self.plan.persons)
            self.intro = f"""
LTC Planner Interactive Shell
=============================
Client: {self.plan.client_name}
Persons: {people}

Type 'help' for available commands.
Type 'fields' to see available data fields.
Type 'exit' or 'quit' to exit.
"""
        else:
            self.intro = """
LTC Planner Interactive Shell
=============================
No plan loaded. Use 'load <client_name>' or 'generate' to get started.

Type 'help' for available commands.
Type 'exit' or 'quit' to exit.
"""

    def _require_plan(self) -> bool:
        """Check if a plan is loaded. Returns True if loaded, False otherwise."""
        if self.plan is None:
            print("No plan loaded. Use 'load <client_name>' or 'generate' first.")
            return False
        return True

    @property
    def projection(self):
        return self.plan.get_projection(self.person_index)

    def _resolve_range(self, age_range):
        data = self.projection
        if age_range is None:
            return data.first_age, data.last_age
        start, end = age_range
        return (start if start is not None else data.first_age,
                end if end is not None else data.last_age)

    def _parse_query(self, arg: str, usage: str):
        """Parse and validate fields plus range. Returns None after printing an error."""
        if not arg.strip():
            print("Error: Please specify at least one field to query.")
            print(f"Usage: {usage}")
            return None

        field_names, age_range = parse_fields_and_range(arg)
        if not field_names:
            print("Error: No valid field names provided.")
            return None

        invalid_fields = [f for f in field_names if f not in self.available_fields]
        if invalid_fields:
            print(f"Error: Unknown field(s): {', '.join(invalid_fields)}")
            print("Use 'fields' command to see available field names.")
            return None

        start_age, end_age = self._resolve_range(age_range)
        if start_age > end_age:
            print(f"Error: First age ({start_age}) cannot be greater than last age ({end_age})")
            return None

        data = self.projection
        if start_age < data.first_age or end_age > data.last_age:
            print(f"Warning: Requested range extends beyond projection ({data.first_age}-{data.last_age})")
        return field_names, start_age, end_age

    @staticmethod
    def _print_table(header: list, rows: list, total_row: list = None):
        col_widths = [max(len(h), 6) for h in header]
        for row in rows + ([total_row] if total_row else []):
            for i, cell in enumerate(row):
                col_widths[i] = max(col_widths[i], len(cell))

        header_line = "  ".join(h.rjust(col_widths[i]) for i, h in enumerate(header))
        print()
        print(header_line)
        print("-" * len(header_line))
        for row in rows:
            print("  ".join(cell.rjust(col_widths[i]) for i, cell in enumerate(row)))
        if total_row:
            print("-" * len(header_line))
            print("  ".join(cell.rjust(col_widths[i]) for i, cell in enumerate(total_row)))
        print()

    def do_get(self, arg: str):
        """Query field(s) from the active person's yearly snapshots.

        Usage: get <fields> [age_or_range]

        Arguments:
            fields       - Comma-separated list of field names
            age_or_range - Optional: single age (70) or range (65-75).
                           Either end may be omitted (70- or -80).

        Examples:
            get retirement_assets
            get ltc_expenses, ltc_benefits 75-80
            get total_assets 70-
        """
        if not self._require_plan():
            return
        query = self._parse_query(arg, "get <fields> [age_or_range]")
        if query is None:
            return
        field_names, start_age, end_age = query

        data = self.projection
        header = ["Age"] + [get_short_name(f) for f in field_names]
        snapshots = [s for s in data.snapshots if start_age <= s.age <= end_age]
        if not snapshots:
            print(f"No data available for ages {start_age}-{end_age}")
            return

        rows = [[str(s.age)] + [format_value(getattr(s, f)) for f in field_names] for s in snapshots]

        total_row = None
        if len(rows) > 1:
            total_row = ["Total"]
            for f in field_names:
                values = [getattr(s, f) for s in snapshots]
                if f in NON_SUMMABLE_FIELDS or any(isinstance(v, bool) for v in values):
                    total_row.append("-")
                else:
                    total_row.append(format_value(float(sum(values))))

        self._print_table(header, rows, total_row)

    def do_fields(self, arg: str):
        """List all available fields that can be queried.

        Usage: fields [field_name]
        """
        if arg.strip():
            field_name = arg.strip()
            if field_name not in self.available_fields:
                print(f"Error: Unknown field '{field_name}'")
                print("Use 'fields' without arguments to see all available fields.")
                return

            info = FIELD_METADATA.get(field_name)
            print(f"\n{field_name}:")
            if info:
                print(f"  Short name: {info.short_name}")
                print(f"  Description: {info.description}")
            else:
                print("  No metadata available")
            print()
            return

        print("\nAvailable fields in YearlyFinancialSnapshot:")
        print("=" * 70)

        categories = {
            "Year Info": ["age", "year_index", "policy_year", "is_retired", "is_alive",
                          "has_ltc_event", "bankrupt"],
            "Income": ["work_income", "social_security_income", "other_retirement_income", "total_income"],
            "Expenses": ["basic_expenses", "ltc_expenses", "premium_expenses", "total_expenses"],
            "LTC": ["ltc_benefits", "cumulative_ltc_benefits", "ltc_out_of_pocket"],
            "Cash Flow": ["net_cash_flow", "withdrawal", "tax_on_withdrawal", "premium_paid_from_assets"],
            "Policy": ["policy_cash_value", "death_benefit", "policy_loan_balance", "policy_loan_interest",
                       "policy_loan_taken", "illustrated_cash_value", "illustrated_death_benefit"],
            "Balances": ["retirement_assets", "total_assets", "net_worth", "net_worth_no_policy"],
        }

        for category, names in categories.items():
            print(f"\n{category}:")
            for name in names:
                if name in self.available_fields:
                    print(f"  {name:<28} [{get_short_name(name):<20}] {get_description(name)}")
        print()

    def complete_fields(self, text, line, begidx, endidx):
        """Tab completion for the fields command."""
        return self._match_fields(text)

    def do_ages(self, arg: str):
        """Show the projected age range and phases for each person."""
        if not self._require_plan():
            return

        for index, data in enumerate(self.plan.projections):
            if data is None:
                continue
            person = data.person
            active = " (active)" if index == self.person_index else ""
            print(f"\nPerson {index + 1}: {person.name}{active}")
            print(f"  Ages: {data.first_age} - {data.last_age}")
            retired = data.retirement_years()
            if retired:
                print(f"  Retirement: {retired[0].age} - {retired[-1].age} ({len(retired)} years)")
            ltc = data.ltc_years()
            if ltc:
                print(f"  LTC event: {ltc[0].age} - {ltc[-1].age} ({len(ltc)} years)")
            else:
                print("  LTC event: None")
            if data.bankrupt:
                print(f"  Bankrupt from age {data.bankruptcy_age}")
        print()

    def do_person(self, arg: str):
        """Switch the active person used by get, summary, render and compare.

        Usage: person <1|2>
        """
        if not self._require_plan():
            return
        if not arg.strip():
            active = self.projection.person
            print(f"Active person: {self.person_index + 1} ({active.name})")
            return
        try:
            index = int(arg.strip()) - 1
        except ValueError:
            print("Error: Person must be 1 or 2")
            return
        try:
            self.plan.get_projection(index)
        except ValueError as e:
            print(f"Error: {e}")
            return
        self.person_index = index
        print(f"Active person: {index + 1} ({self.projection.person.name})")

    def do_summary(self, arg: str):
        """Show lifetime totals for the active person."""
        if not self._require_plan():
            return

        data = self.projection
        print(f"\nLifetime Summary for {data.person.name} ('{self.plan.client_name}'):")
        print("=" * 50)
        print(f"Total LTC Costs:        {format_value(data.total_ltc_costs)}")
        print(f"Total LTC Benefits:     {format_value(data.total_ltc_benefits)}")
        print(f"LTC Coverage Ratio:     {ltc_coverage_ratio(data.snapshots):.1%}")
        print(f"Total Premiums:         {format_value(data.total_premiums)}")
        print(f"Total Withdrawal Tax:   {format_value(data.total_withdrawal_tax)}")
        print()
        print("Final Values:")
        if data.snapshots:
            final = data.snapshots[-1]
            print(f"  Retirement Assets:    {format_value(final.retirement_assets)}")
            print(f"  Policy Cash Value:    {format_value(final.policy_cash_value)}")
            print(f"  Death Benefit:        {format_value(final.death_benefit)}")
        print(f"  Legacy:               {format_value(data.legacy_amount)}")
        print(f"  Bankrupt:             {'Age ' + str(data.bankruptcy_age) if data.bankrupt else 'No'}")
        print()

    def do_render(self, arg: str):
        """Render a report.

        Usage: render [mode] [age_or_range]

        If no mode is specified, shows available render modes.
        Per-person modes use the active person (see 'person').

        Examples:
            render
            render Projection
            render CashFlow 65-75
            render Household 70-
        """
        if not self._require_plan():
            return

        parts = arg.strip().split()
        if not parts:
            print("\nAvailable render modes:")
            for mode in RENDERER_REGISTRY:
                print(f"  - {mode}")
            print("\nUsage: render <mode> [age_or_range]")
            print()
            return

        mode = parts[0]
        if mode not in RENDERER_REGISTRY:
            print(f"Error: Unknown render mode '{mode}'")
            print(f"Available modes: {', '.join(RENDERER_REGISTRY.keys())}")
            return

        start_age = end_age = None
        if len(parts) > 1:
            _, age_range = parse_fields_and_range(f"x {parts[1]}")
            if age_range is None:
                print(f"Error: Invalid age range '{parts[1]}'")
                return
            start_age, end_age = age_range

        RENDERER_REGISTRY[mode](start_age, end_age, self.person_index).render(self.plan)

    def complete_render(self, text, line, begidx, endidx):
        """Tab completion for the render command."""
        mode_names = list(RENDERER_REGISTRY.keys())
        if not text:
            return mode_names
        return [m for m in mode_names if text.lower() in m.lower()]

    def do_compare(self, arg: str):
        """Compare fields with the policy against the same person without it.

        Usage: compare <fields> [age_or_range]

        Examples:
            compare net_worth
            compare retirement_assets, withdrawal 75-85
        """
        if not self._require_plan():
            return
        query = self._parse_query(arg, "compare <fields> [age_or_range]")
        if query is None:
            return
        field_names, start_age, end_age = query

        data = self.projection
        header = ["Age"]
        for f in field_names:
            header += [f"{get_short_name(f)} (policy)", f"{get_short_name(f)} (none)"]

        rows = []
        for with_policy, without in zip(data.snapshots, data.baseline):
            if not start_age <= with_policy.age <= end_age:
                continue
            row = [str(with_policy.age)]
            for f in field_names:
                row += [format_value(getattr(with_policy, f)), format_value(getattr(without, f))]
            rows.append(row)

        if not rows:
            print(f"No data available for ages {start_age}-{end_age}")
            return
        self._print_table(header, rows)

    def complete_compare(self, text, line, begidx, endidx):
        """Tab completion for the compare command."""
        return self._match_fields(text)

    def do_generate(self, arg: str):
        """Launch the interactive wizard to create or update a client spec.

        Usage: generate
        """
        print()
        client_name = run_generator(self.base_path)
        if client_name:
            print()
            reload_choice = input(f"Would you like to load '{client_name}' now? [Y/n]: ").strip().lower()
            if reload_choice in ('', 'y', 'yes'):
                self.do_load(client_name)

    def do_load(self, arg: str):
        """Load a client plan.

        Usage: load <client_name>

        If no client name is given and a plan is already loaded, reloads it.
        """
        client_name = arg.strip() if arg.strip() else self.client_name

        if not client_name:
            print("Please specify a client name.")
            print("Available clients:")
            for name in self._get_available_clients():
                print(f"  - {name}")
            return

        try:
            print(f"Loading client plan '{client_name}'...")
            self.plan = load_plan(client_name, self.base_path)
            self.client_name = client_name
            self.person_index = self.plan.projections.index(self.plan.primary)
            print("Plan loaded successfully!")
            for person in self.plan.persons:
                print(f"  {person.name}: ages {person.current_age} - {person.death_age}")
        except FileNotFoundError as e:
            print(f"Error: {e}")
        except ValueError as e:
            print(f"Error loading plan: {e}")

    def do_help(self, arg: str):
        """Show help for available commands."""
        if arg:
            super().do_help(arg)
        else:
            print("""
Available Commands:
==================

  get <fields> [age_or_range]
      Query one or more fields for the active person.
      Fields should be comma-separated.
      Age specifier is optional:
        - Single age: 70
        - Range: 65-75 (inclusive)
        - Open-ended: 70- (from 70 to the end of the projection)

      Examples:
        get retirement_assets
        get ltc_expenses, ltc_benefits 75-80

  fields [field_name]
      List all available field names that can be queried.

  ages
      Show each person's projected ages, retirement and LTC years.

  person <n>
      Switch the active person (1 or 2).

  summary
      Show lifetime totals for the active person.

  render [mode] [age_or_range]
      Render a report. Modes: Summary, Projection, CashFlow, Policy,
      LTC, Household, Legacy, TaxEfficiency, plus custom renderers.

  compare <fields> [age_or_range]
      Show each field with the policy next to the same person without it.

  generate
      Launch the interactive wizard to create or update a client spec.

  load [client_name]
      Load a client plan. Shows available clients if none specified.

  help [command]
      Show this help message or help for a specific command.

  exit, quit
      Exit the shell.
""")

    def do_exit(self, arg: str):
        """Exit the shell."""
        print("Goodbye!")
        return True

    def do_quit(self, arg: str):
        """Exit the shell."""
        return self.do_exit(arg)

    def do_EOF(self, arg: str):
        """Handle Ctrl+D to exit."""
        print()
        return self.do_exit(arg)

    def emptyline(self):
        """Do nothing on empty line."""
        pass

    def default(self, line: str):
        """Handle unknown commands."""
        print(f"Unknown command: {line}")
        print("Type 'help' for available commands.")

    def _match_fields(self, text: str) -> list:
        # Case-insensitive substring match
        if not text:
            return self.available_fields
        text_lower = text.lower()
        return [f for f in self.available_fields if text_lower in f.lower()]

    def complete_get(self, text, line, begidx, endidx):
        """Tab completion for the get command."""
        return self._match_fields(text)

    def complete_load(self, text, line, begidx, endidx):
        """Tab completion for the load command."""
        return [c for c in self._get_available_clients() if c.startswith(text)]

    def complete_help(self, text, line, begidx, endidx):
        """Tab completion for the help command."""
        commands = ['get', 'fields', 'ages', 'person', 'summary', 'render', 'compare',
                    'generate', 'load', 'exit', 'quit']
        return [c for c in commands if c.startswith(text)]


def main():
    client_name = sys.argv[1] if len(sys.argv) > 1 else None

    if client_name:
        try:
            print(f"Loading client plan '{client_name}'...")
            plan = load_plan(client_name)
            print("Plan loaded successfully!")
        except FileNotFoundError as e:
            print(f"Error: {e}")
            sys.exit(1)
        except ValueError as e:
            print(f"Error loading plan: {e}")
            sys.exit(1)
        ClientPlanShell(plan, client_name).cmdloop()
    else:
        ClientPlanShell().cmdloop()


if __name__ == "__main__":
    main()
