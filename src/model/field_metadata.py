"""Field metadata for YearlyFinancialSnapshot fields.

This module provides descriptions and short names for all snapshot fields.
Short names are used as column headers in tables and the shell 'get' command.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class FieldInfo:
    """Metadata for a single field."""
    short_name: str  # Column header (unique, concise)
    description: str  # Full description of the field


# Field metadata dictionary mapping field names to their info
FIELD_METADATA: Dict[str, FieldInfo] = {
    # Year Info
    "age": FieldInfo("Age", "Person's age in this projection year"),
    "year_index": FieldInfo("Year #", "Years since the start of the projection (0-based)"),
    "policy_year": FieldInfo("Policy Year", "Policy year since issue (1-based, 0 without a policy)"),
    "is_retired": FieldInfo("Retired", "True once the retirement age is reached"),
    "is_alive": FieldInfo("Alive", "True for every projected year"),
    "has_ltc_event": FieldInfo("LTC Event", "True while a long-term care event is in progress"),
    "bankrupt": FieldInfo("Bankrupt", "True once a shortfall could not be covered"),

    # Income
    "work_income": FieldInfo("Work Income", "Employment income (reduced to 20% during a pre-retirement LTC event)"),
    "social_security_income": FieldInfo("Social Security", "Inflation-adjusted Social Security income (retired only)"),
    "other_retirement_income": FieldInfo("Other Income", "Inflation-adjusted pensions and other retirement income"),
    "total_income": FieldInfo("Total Income", "Work income plus retirement income"),

    # Expenses
    "basic_expenses": FieldInfo("Basic Expenses", "Living expenses as a ratio of pre-retirement income, inflated"),
    "ltc_expenses": FieldInfo("LTC Cost", "Long-term care cost, inflated at the LTC inflation rate"),
    "premium_expenses": FieldInfo("Premium", "Policy premium charged this year"),
    "total_expenses": FieldInfo("Total Expenses", "Basic expenses plus LTC cost plus premium"),

    # LTC
    "ltc_benefits": FieldInfo("LTC Benefits", "Policy benefits paid toward LTC costs"),
    "cumulative_ltc_benefits": FieldInfo("Cumulative Benefits", "Running total of LTC benefits paid"),
    "ltc_out_of_pocket": FieldInfo("LTC Out of Pocket", "LTC cost not covered by policy benefits"),

    # Cash Flow
    "net_cash_flow": FieldInfo("Net Cash Flow", "Income plus LTC benefits minus total expenses"),
    "withdrawal": FieldInfo("Withdrawal", "Gross withdrawal from retirement assets (includes tax)"),
    "tax_on_withdrawal": FieldInfo("Withdrawal Tax", "Tax paid on the gross withdrawal"),
    "premium_paid_from_assets": FieldInfo("Premium From Assets", "Premium covered by withdrawals instead of income"),

    # Policy
    "policy_cash_value": FieldInfo("Cash Value", "Policy cash value after benefits and loans"),
    "death_benefit": FieldInfo("Death Benefit", "Policy death benefit after benefits and loans"),
    "policy_loan_balance": FieldInfo("Loan Balance", "Outstanding policy loan principal plus interest"),
    "policy_loan_interest": FieldInfo("Loan Interest", "Interest accrued on the policy loan this year"),
    "policy_loan_taken": FieldInfo("New Loan", "New policy loan principal taken this year"),
    "illustrated_cash_value": FieldInfo("Illustrated CV", "Cash value before this year's benefit and loan adjustments"),
    "illustrated_death_benefit": FieldInfo("Illustrated DB", "Death benefit before this year's benefit and loan adjustments"),

    # Balances
    "retirement_assets": FieldInfo("Retirement Assets", "Retirement savings end-of-year balance"),
    "total_assets": FieldInfo("Total Assets", "Retirement assets plus policy cash value"),
    "net_worth": FieldInfo("Net Worth", "Net worth with the policy in force"),
    "net_worth_no_policy": FieldInfo("Net Worth (No Policy)", "Net worth of the same person projected without the policy"),
}


def get_short_name(field_name: str) -> str:
    """Get the short name for a field, or the field name if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.short_name if info else field_name


def get_description(field_name: str) -> str:
    """Get the description for a field, or empty string if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.description if info else ""


def get_field_info(field_name: str) -> FieldInfo | None:
    """Get the full FieldInfo for a field, or None if not found."""
    return FIELD_METADATA.get(field_name)


def find_field(name: str) -> str | None:
    """Resolve a field name or short name (case-insensitive) to a field name."""
    if name in FIELD_METADATA:
        return name
    lowered = name.lower()
    for field_name, info in FIELD_METADATA.items():
        if info.short_name.lower() == lowered or field_name.lower() == lowered:
            return field_name
    return None


def wrap_header(text: str, max_width: int) -> list[str]:
    """Wrap a header text into multiple lines to fit within max_width.

    Args:
        text: The header text to wrap
        max_width: Maximum width per line

    Returns:
        List of strings, each representing a line
    """
    if len(text) <= max_width:
        return [text]

    lines = []
    current_line = ""
    for word in text.split():
        if not current_line:
            current_line = word
        elif len(current_line) + 1 + len(word) <= max_width:
            current_line += " " + word
        else:
            lines.append(current_line)
            current_line = word

    if current_line:
        lines.append(current_line)

    return lines
