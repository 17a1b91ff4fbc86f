"""Renderer classes for displaying LTC projection results.

This module contains renderer classes that handle the presentation logic
for the different views of a client plan. Each renderer takes the ClientPlan
built by plan_builder and extracts the projection or analysis it needs.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from calc.legacy_calculator import (
    first_year_withdrawal_rate,
    ltc_coverage_ratio,
    withdrawal_rate_assessment,
)
from model.ProjectionData import ProjectionData
from model.field_metadata import get_short_name, wrap_header

logger = logging.getLogger(__name__)


# Path to built-in custom renderer configuration file (in source)
CUSTOM_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'config', 'custom.json')


def format_multiline_headers(columns: List[tuple], age_width: int = 5, label: str = 'Age') -> tuple[List[str], str]:
    """Format column headers with multi-line wrapping support.

    Args:
        columns: List of (header_text, width) tuples for each column
        age_width: Width of the leading column (default 5)
        label: Leading column header

    Returns:
        Tuple of (list of header lines, separator line)
    """
    wrapped_headers = [(wrap_header(header, width), width) for header, width in columns]
    max_lines = max(len(lines) for lines, _ in wrapped_headers) if wrapped_headers else 1

    # Pad at top so the last line of each header lines up
    for lines, _ in wrapped_headers:
        while len(lines) < max_lines:
            lines.insert(0, "")

    header_lines = []
    for line_idx in range(max_lines):
        text = label if line_idx == max_lines - 1 else ''
        header_line = f"  {text:<{age_width}}"
        for lines, width in wrapped_headers:
            header_line += f" {lines[line_idx]:>{width}}"
        header_lines.append(header_line)

    sep_line = f"  {'-' * age_width}"
    for _, width in wrapped_headers:
        sep_line += f" {'-' * width}"

    return header_lines, sep_line


def parse_age_range(age_range: str, data: ProjectionData) -> tuple:
    """Parse an age range string into start and end ages.

    Args:
        age_range: String in format 'startAge-endAge', 'startAge-', '-endAge' or a single age
        data: ProjectionData to get default ages from

    Returns:
        Tuple of (start_age, end_age)
    """
    if '-' not in age_range:
        age = int(age_range)
        return (age, age)

    parts = age_range.split('-')
    start_age = int(parts[0]) if parts[0] else data.first_age
    end_age = int(parts[1]) if parts[1] else data.last_age
    return (start_age, end_age)


def _money(value: float, width: int) -> str:
    return f"${value:>{width - 1},.0f}"


class BaseRenderer(ABC):
    """Abstract base class for all renderers."""

    def __init__(self, start_age: int = None, end_age: int = None, person_index: int = 0):
        """Initialize with optional age range and person selection.

        Args:
            start_age: First age to display (defaults to the projection's first age)
            end_age: Last age to display (defaults to the projection's last age)
            person_index: 0-based index of the person to display
        """
        self.start_age = start_age
        self.end_age = end_age
        self.person_index = person_index

    def _in_range(self, age: int, data: ProjectionData) -> bool:
        start = self.start_age if self.start_age is not None else data.first_age
        end = self.end_age if self.end_age is not None else data.last_age
        return start <= age <= end

    def _rows(self, data: ProjectionData) -> list:
        return [s for s in data.snapshots if self._in_range(s.age, data)]

    @abstractmethod
    def render(self, plan) -> None:
        """Render the plan to output.

        Args:
            plan: The ClientPlan containing all projections and analyses
        """
        pass


class SummaryRenderer(BaseRenderer):
    """Renderer for the one-page client overview."""

    def render(self, plan) -> None:
        print()
        print("=" * 70)
        print(f"{'LTC PLAN SUMMARY: ' + plan.client_name.upper():^70}")
        print("=" * 70)

        for data in plan.projections:
            if data is None:
                continue
            person = data.person
            print()
            print("-" * 70)
            print(f"{person.name.upper()} ({person.sex}, age {person.current_age})")
            print("-" * 70)
            print(f"  {'Retirement Age:':<40} {person.retirement_age:>16}")
            print(f"  {'Projection Ends At Age:':<40} {person.death_age:>16}")
            print(f"  {'Retirement Savings:':<40} ${person.retirement_savings:>15,.2f}")
            if person.policy_enabled:
                print(f"  {'Annual Premium:':<40} ${person.policy_annual_premium:>15,.2f}")
                print(f"  {'Benefit Per Year:':<40} ${person.policy_benefit_per_year:>15,.2f}")
            else:
                print(f"  {'Policy:':<40} {'None':>16}")
            if person.ltc_event_enabled:
                print(f"  {'LTC Event:':<40} {f'age {person.ltc_event_age}, {person.ltc_duration} yrs':>16}")
            print(f"  {'Total LTC Costs:':<40} ${data.total_ltc_costs:>15,.2f}")
            print(f"  {'Total LTC Benefits:':<40} ${data.total_ltc_benefits:>15,.2f}")
            print(f"  {'Total Premiums:':<40} ${data.total_premiums:>15,.2f}")
            print(f"  {'Legacy Amount:':<40} ${data.legacy_amount:>15,.2f}")
            bankruptcy = data.bankruptcy_age if data.bankrupt else 'Never'
            print(f"  {'Assets Exhausted At Age:':<40} {bankruptcy:>16}")

        legacy = plan.legacy
        print()
        print("=" * 70)
        print("HOUSEHOLD")
        print("=" * 70)
        print(f"  {'Legacy With Insurance:':<40} ${legacy.legacy_with_insurance:>15,.2f}")
        print(f"  {'Legacy Without Insurance:':<40} ${legacy.legacy_without_insurance:>15,.2f}")
        print(f"  {'Difference:':<40} ${legacy.legacy_difference:>15,.2f}")
        household_bankruptcy = plan.household.bankruptcy_age if plan.household.bankrupt else 'Never'
        print(f"  {'Household Assets Exhausted At Age:':<40} {household_bankruptcy:>16}")
        print("=" * 70)
        print()


class ProjectionRenderer(BaseRenderer):
    """Renderer for the year-by-year projection of one person."""

    COLUMNS = [
        ('total_income', 14),
        ('total_expenses', 14),
        ('ltc_benefits', 14),
        ('withdrawal', 14),
        ('retirement_assets', 16),
        ('policy_cash_value', 14),
        ('death_benefit', 14),
        ('total_assets', 16),
    ]

    def render(self, plan) -> None:
        data = plan.get_projection(self.person_index)
        print()
        print("=" * 130)
        print(f"{'PROJECTION: ' + data.person.name.upper():^130}")
        print("=" * 130)
        print()

        header_lines, sep_line = format_multiline_headers(
            [(get_short_name(name), width) for name, width in self.COLUMNS])
        for line in header_lines:
            print(line)
        print(sep_line)

        for s in self._rows(data):
            marker = '*' if s.has_ltc_event else ' '
            row = f"  {s.age:<4}{marker}"
            for name, width in self.COLUMNS:
                row += f" {_money(getattr(s, name), width)}"
            if s.bankrupt:
                row += "  BANKRUPT"
            print(row)

        print()
        print("  * LTC event year")
        print("=" * 130)
        print()


class CashFlowRenderer(BaseRenderer):
    """Renderer for income, expenses and withdrawals."""

    COLUMNS = [
        ('work_income', 14),
        ('social_security_income', 14),
        ('other_retirement_income', 14),
        ('basic_expenses', 14),
        ('ltc_expenses', 14),
        ('premium_expenses', 12),
        ('net_cash_flow', 14),
        ('withdrawal', 14),
        ('tax_on_withdrawal', 14),
    ]

    def render(self, plan) -> None:
        data = plan.get_projection(self.person_index)
        print()
        print("=" * 145)
        print(f"{'CASH FLOW: ' + data.person.name.upper():^145}")
        print("=" * 145)
        print()

        header_lines, sep_line = format_multiline_headers(
            [(get_short_name(name), width) for name, width in self.COLUMNS])
        for line in header_lines:
            print(line)
        print(sep_line)

        totals = {name: 0.0 for name, _ in self.COLUMNS}
        for s in self._rows(data):
            row = f"  {s.age:<5}"
            for name, width in self.COLUMNS:
                value = getattr(s, name)
                totals[name] += value
                row += f" {_money(value, width)}"
            print(row)

        print(sep_line)
        total_row = f"  {'TOTAL':<5}"
        for name, width in self.COLUMNS:
            total_row += f" {_money(totals[name], width)}"
        print(total_row)
        print("=" * 145)
        print()


class PolicyRenderer(BaseRenderer):
    """Renderer for policy premiums, values and loans."""

    COLUMNS = [
        ('premium_expenses', 12),
        ('illustrated_cash_value', 14),
        ('illustrated_death_benefit', 14),
        ('policy_cash_value', 14),
        ('death_benefit', 14),
        ('policy_loan_taken', 12),
        ('policy_loan_interest', 12),
        ('policy_loan_balance', 14),
    ]

    def render(self, plan) -> None:
        data = plan.get_projection(self.person_index)
        person = data.person
        print()
        print("=" * 125)
        print(f"{'POLICY VALUES: ' + person.name.upper():^125}")
        print("=" * 125)
        if not person.policy_enabled:
            print()
            print(f"  {person.name} has no policy in force.")
            print()
            return

        source = 'illustration' if plan.use_actual_policy_data else 'simplified model'
        print(f"  Values from {source}")
        print()

        columns = [('Policy Year', 7)] + [(get_short_name(name), width) for name, width in self.COLUMNS]
        header_lines, sep_line = format_multiline_headers(columns)
        for line in header_lines:
            print(line)
        print(sep_line)

        for s in self._rows(data):
            row = f"  {s.age:<5} {s.policy_year:>7}"
            for name, width in self.COLUMNS:
                row += f" {_money(getattr(s, name), width)}"
            print(row)

        print()
        print(f"  {'Total Premiums:':<40} ${data.total_premiums:>15,.2f}")
        print("=" * 125)
        print()


class LTCRenderer(BaseRenderer):
    """Renderer for the long-term care event years."""

    def render(self, plan) -> None:
        data = plan.get_projection(self.person_index)
        person = data.person
        print()
        print("=" * 90)
        print(f"{'LONG-TERM CARE: ' + person.name.upper():^90}")
        print("=" * 90)

        ltc_years = [s for s in data.ltc_years() if self._in_range(s.age, data)]
        if not ltc_years:
            print()
            print("  No LTC event in the selected ages.")
            print()
            return

        print(f"  Event starts at age {person.ltc_event_age} for {person.ltc_duration} years")
        print()
        columns = [
            (get_short_name('ltc_expenses'), 14),
            (get_short_name('ltc_benefits'), 14),
            (get_short_name('cumulative_ltc_benefits'), 14),
            (get_short_name('ltc_out_of_pocket'), 14),
            (get_short_name('withdrawal'), 14),
        ]
        header_lines, sep_line = format_multiline_headers(columns)
        for line in header_lines:
            print(line)
        print(sep_line)
        for s in ltc_years:
            print(f"  {s.age:<5} {_money(s.ltc_expenses, 14)} {_money(s.ltc_benefits, 14)} "
                  f"{_money(s.cumulative_ltc_benefits, 14)} {_money(s.ltc_out_of_pocket, 14)} "
                  f"{_money(s.withdrawal, 14)}")

        print()
        print(f"  {'Total LTC Costs:':<40} ${data.total_ltc_costs:>15,.2f}")
        print(f"  {'Total LTC Benefits:':<40} ${data.total_ltc_benefits:>15,.2f}")
        print(f"  {'Coverage Ratio:':<40} {ltc_coverage_ratio(data.snapshots):>16.1%}")
        print("=" * 90)
        print()


class HouseholdRenderer(BaseRenderer):
    """Renderer for the combined household series."""

    COLUMNS = [
        ('total_income', 14),
        ('total_expenses', 14),
        ('ltc_benefits', 14),
        ('retirement_assets', 16),
        ('policy_cash_value', 14),
        ('death_benefit', 14),
        ('total_assets', 16),
    ]

    def render(self, plan) -> None:
        household = plan.household
        print()
        print("=" * 125)
        print(f"{'HOUSEHOLD PROJECTION: ' + plan.client_name.upper():^125}")
        print("=" * 125)
        print()

        columns = [('P1 Age', 6), ('P2 Age', 6)] + [(get_short_name(n), w) for n, w in self.COLUMNS]
        header_lines, sep_line = format_multiline_headers(columns, age_width=4, label='Yr')
        for line in header_lines:
            print(line)
        print(sep_line)

        for s in household.snapshots:
            if self.start_age is not None and s.age < self.start_age:
                continue
            if self.end_age is not None and s.age > self.end_age:
                continue
            p1 = s.person1_age if s.person1_age is not None else '-'
            p2 = s.person2_age if s.person2_age is not None else '-'
            row = f"  {s.year_index:<4} {p1:>6} {p2:>6}"
            for name, width in self.COLUMNS:
                row += f" {_money(getattr(s, name), width)}"
            if s.bankrupt:
                row += "  BANKRUPT"
            print(row)

        print()
        if household.bankrupt:
            print(f"  Household assets exhausted at age {household.bankruptcy_age}")
        print("=" * 125)
        print()


class LegacyRenderer(BaseRenderer):
    """Renderer comparing legacy values with and without the policy."""

    def render(self, plan) -> None:
        legacy = plan.legacy
        household = plan.household.snapshots
        print()
        print("=" * 70)
        print(f"{'LEGACY COMPARISON':^70}")
        print("=" * 70)
        print(f"  {'Legacy With Insurance:':<40} ${legacy.legacy_with_insurance:>15,.2f}")
        print(f"  {'Legacy Without Insurance:':<40} ${legacy.legacy_without_insurance:>15,.2f}")
        print(f"  {'-' * 56}")
        print(f"  {'Difference:':<40} ${legacy.legacy_difference:>15,.2f}")
        print()
        depleted_with = legacy.depletion_age_with_insurance or 'Never'
        depleted_without = legacy.depletion_age_without_insurance or 'Never'
        print(f"  {'Assets Depleted (With Insurance):':<40} {depleted_with:>16}")
        print(f"  {'Assets Depleted (Without Insurance):':<40} {depleted_without:>16}")

        rate = first_year_withdrawal_rate(household)
        print()
        print(f"  {'First-Year Withdrawal Rate:':<40} {rate:>16.2%}")
        print(f"  {'Assessment:':<40} {withdrawal_rate_assessment(rate):>16}")
        print(f"  {'LTC Coverage Ratio:':<40} {ltc_coverage_ratio(household):>16.1%}")
        print("=" * 70)
        print()


class TaxEfficiencyRenderer(BaseRenderer):
    """Renderer for the withdrawal tax analysis."""

    def render(self, plan) -> None:
        report = plan.tax_efficiency
        print()
        print("=" * 80)
        print(f"{'TAX EFFICIENCY':^80}")
        print("=" * 80)
        print(f"  {'':<30} {'With Policy':>20} {'Without Policy':>20}")
        print(f"  {'-' * 30} {'-' * 20} {'-' * 20}")
        with_phase, without_phase = report.tax_by_phase, report.tax_by_phase_without_insurance
        print(f"  {'Pre-Retirement Tax':<30} ${with_phase.pre_retirement:>19,.0f} ${without_phase.pre_retirement:>19,.0f}")
        print(f"  {'Retirement Tax':<30} ${with_phase.retirement:>19,.0f} ${without_phase.retirement:>19,.0f}")
        print(f"  {'LTC Event Tax':<30} ${with_phase.ltc_event:>19,.0f} ${without_phase.ltc_event:>19,.0f}")
        print(f"  {'Total Withdrawals':<30} ${report.efficiency.total_withdrawals:>19,.0f} "
              f"${report.efficiency_without_insurance.total_withdrawals:>19,.0f}")
        print(f"  {'Total Tax':<30} ${report.efficiency.total_tax:>19,.0f} "
              f"${report.efficiency_without_insurance.total_tax:>19,.0f}")
        print(f"  {'Tax / Withdrawals':<30} {report.efficiency.efficiency_ratio:>20.1%} "
              f"{report.efficiency_without_insurance.efficiency_ratio:>20.1%}")
        print()
        print(f"  {'Tax Saved By Policy:':<40} ${report.tax_savings:>15,.2f}")

        print()
        print("-" * 80)
        print("HIGHEST TAX YEARS (WITH POLICY)")
        print("-" * 80)
        for year in report.high_tax_years:
            flag = ' LTC' if year['has_ltc_event'] else ''
            print(f"  Age {year['age']:<5} ${year['tax']:>14,.0f} on ${year['withdrawal']:>14,.0f}{flag}")

        print()
        print("-" * 80)
        print("STRATEGIES")
        print("-" * 80)
        for strategy in report.strategies:
            print(f"  {strategy.name:<40} ${strategy.potential_savings:>15,.2f}")
            print(f"    {strategy.description}")
        print(f"  {'-' * 56}")
        print(f"  {'Total Potential Savings:':<40} ${report.total_strategy_savings:>15,.2f}")
        print("=" * 80)
        print()


class CustomRenderer(BaseRenderer):
    """Renderer for custom tables with user-specified fields.

    Allows displaying any combination of snapshot fields as columns,
    with the age as the first column.
    """

    MAX_HEADER_WIDTH = 14

    def __init__(self, title: str, fields: List[str], start_age: int = None, end_age: int = None,
                 show_totals: bool = True, person_index: int = 0):
        """Initialize with title, fields and optional age range.

        Args:
            title: The title to display at the top of the table
            fields: List of YearlyFinancialSnapshot field names to display as columns
            start_age: First age to display
            end_age: Last age to display
            show_totals: Whether to show a totals row at the bottom
            person_index: 0-based index of the person to display
        """
        super().__init__(start_age, end_age, person_index)
        self.title = title
        self.fields = fields
        self.show_totals = show_totals

    def _get_column_width(self, field: str) -> int:
        short_name = get_short_name(field)
        if len(short_name) > self.MAX_HEADER_WIDTH:
            wrapped = wrap_header(short_name, self.MAX_HEADER_WIDTH)
            return max(max(len(line) for line in wrapped), 12)
        return max(len(short_name) + 2, 12)

    @staticmethod
    def _is_summable(field: str, value: Any) -> bool:
        return (isinstance(value, float) and
                field not in ('cumulative_ltc_benefits',) and
                not field.endswith(('_balance', '_value', '_assets', 'net_worth', 'net_worth_no_policy', 'death_benefit')))

    def _format_value(self, value: Any, width: int) -> str:
        """Format a value for display based on its type."""
        if value is None:
            return f"{'N/A':>{width}}"
        elif isinstance(value, bool):
            return f"{'Yes' if value else 'No':>{width}}"
        elif isinstance(value, float):
            return f"${value:>{width - 1},.0f}"
        elif isinstance(value, int):
            return f"{value:>{width},}"
        return f"{str(value):>{width}}"

    def render(self, plan) -> None:
        data = plan.get_projection(self.person_index)
        columns = [(get_short_name(f), self._get_column_width(f)) for f in self.fields]
        total_width = max(7 + sum(w + 1 for _, w in columns), len(self.title) + 10)

        print()
        print("=" * total_width)
        print(f"{self.title.upper():^{total_width}}")
        print("=" * total_width)
        print()

        header_lines, sep_line = format_multiline_headers(columns)
        for line in header_lines:
            print(line)
        print(sep_line)

        totals = {field: 0.0 for field in self.fields}
        row_count = 0
        for s in self._rows(data):
            row = f"  {s.age:<5}"
            for field, (_, width) in zip(self.fields, columns):
                value = getattr(s, field, None)
                row += f" {self._format_value(value, width)}"
                if self._is_summable(field, value):
                    totals[field] += value
            print(row)
            row_count += 1

        if self.show_totals and row_count > 0:
            print(sep_line)
            total_row = f"  {'TOTAL':<5}"
            for field, (_, width) in zip(self.fields, columns):
                sample = getattr(data.snapshots[0], field, None)
                if self._is_summable(field, sample):
                    total_row += f" ${totals[field]:>{width - 1},.0f}"
                else:
                    total_row += f" {'':>{width}}"
            print(total_row)

        print()
        print("=" * total_width)
        print()


def create_custom_renderer(title: str, fields: List[str], start_age: int = None, end_age: int = None,
                           show_totals: bool = True, person_index: int = 0) -> CustomRenderer:
    """Factory function to create a CustomRenderer."""
    return CustomRenderer(title, fields, start_age, end_age, show_totals, person_index)


def load_custom_renderers(path: str = CUSTOM_CONFIG_PATH) -> Dict[str, dict]:
    """Load custom renderer configurations from the built-in config file.

    Returns:
        Dictionary mapping renderer names to their configurations
    """
    if not os.path.exists(path):
        return {}

    try:
        with open(path, 'r') as f:
            return json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning("Could not load custom renderers from %s: %s", path, e)
        return {}


def create_custom_renderer_from_config(name: str, config: dict, start_age: int = None, end_age: int = None,
                                       person_index: int = 0) -> CustomRenderer:
    """Create a CustomRenderer from a configuration dictionary.

    Args:
        name: The name of the renderer (used as fallback title)
        config: Configuration dict with 'title', 'fields', and optionally 'show_totals'
        start_age: First age to display
        end_age: Last age to display
        person_index: 0-based index of the person to display
    """
    return CustomRenderer(
        config.get('title', name),
        config.get('fields', []),
        start_age,
        end_age,
        config.get('show_totals', True),
        person_index,
    )


def get_custom_renderer_factory(name: str, config: dict):
    """Create a factory function for a custom renderer configuration.

    The factory takes the same arguments as the built-in renderer classes so
    both can be stored in RENDERER_REGISTRY.
    """
    def factory(start_age: int = None, end_age: int = None, person_index: int = 0) -> CustomRenderer:
        return create_custom_renderer_from_config(name, config, start_age, end_age, person_index)
    return factory


# Registry mapping mode names to renderer classes
RENDERER_REGISTRY = {
    'Summary': SummaryRenderer,
    'Projection': ProjectionRenderer,
    'CashFlow': CashFlowRenderer,
    'Policy': PolicyRenderer,
    'LTC': LTCRenderer,
    'Household': HouseholdRenderer,
    'Legacy': LegacyRenderer,
    'TaxEfficiency': TaxEfficiencyRenderer,
}

# Built-in names are never overridden by custom configurations
for _name, _config in load_custom_renderers().items():
    RENDERER_REGISTRY.setdefault(_name, get_custom_renderer_factory(_name, _config))
