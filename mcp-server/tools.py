"""LTC Planner Tools for MCP Server.

This module provides the tool implementations that wrap the projection
engine and expose a client's plan through MCP.
"""

import logging
import os
import sys
from dataclasses import asdict
from typing import Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from calc.legacy_calculator import (
    first_year_withdrawal_rate,
    ltc_coverage_ratio,
    withdrawal_rate_assessment,
)
from plan_builder import ClientPlan, list_clients, load_client_plan

logger = logging.getLogger(__name__)


def _rounded(snapshot) -> dict:
    """Snapshot as a dict with floats rounded to cents."""
    return {key: round(value, 2) if isinstance(value, float) else value
            for key, value in asdict(snapshot).items()}


class LTCPlannerTools:
    """Tools that wrap one client's plan for MCP access."""

    def __init__(self, base_path: str, client_name: str):
        """Initialize with paths and calculate the client's plan.

        Args:
            base_path: Path to the repository root directory
            client_name: Name of the client folder in input-parameters
        """
        self.base_path = base_path
        self.client_name = client_name
        self.plan: ClientPlan = load_client_plan(client_name, base_path)

    def _projection(self, person: int):
        return self.plan.get_projection(person - 1)

    def get_client_overview(self) -> dict:
        """Get an overview of the persons, policies and headline results."""
        persons = []
        for index, data in enumerate(self.plan.projections):
            if data is None:
                continue
            p = data.person
            persons.append({
                "person": index + 1,
                "name": p.name,
                "sex": p.sex,
                "current_age": p.current_age,
                "retirement_age": p.retirement_age,
                "death_age": p.death_age,
                "retirement_savings": p.retirement_savings,
                "ltc_event": {
                    "enabled": p.ltc_event_enabled,
                    "start_age": p.ltc_event_age,
                    "duration": p.ltc_duration,
                    "annual_cost": p.ltc_cost_per_year,
                } if p.ltc_event_enabled else None,
                "policy": {
                    "enabled": p.policy_enabled,
                    "annual_premium": p.policy_annual_premium,
                    "benefit_per_year": p.policy_benefit_per_year,
                    "benefit_duration": p.policy_benefit_duration,
                    "illustrated": self.plan.use_actual_policy_data and index < len(self.plan.illustrations)
                                   and self.plan.illustrations[index] is not None,
                } if p.policy_enabled else None,
                "bankruptcy_age": data.bankruptcy_age,
                "legacy_amount": round(data.legacy_amount, 2),
            })

        return {
            "client_name": self.plan.client_name,
            "use_actual_policy_data": self.plan.use_actual_policy_data,
            "persons": persons,
            "household_bankruptcy_age": self.plan.household.bankruptcy_age,
            "legacy": self.plan.legacy.to_dict(),
        }

    def get_year_snapshot(self, age: int, person: int = 1) -> dict:
        """Get every projected value for one person at one age."""
        data = self._projection(person)
        snapshot = data.get_age(age)
        if snapshot is None:
            return {"error": f"Age {age} is not in the projection ({data.first_age}-{data.last_age})"}
        return {"person": person, "name": data.person.name, **_rounded(snapshot)}

    def get_ltc_summary(self, person: Optional[int] = None) -> dict:
        """Get LTC costs, benefits and coverage for one or all persons."""
        indexes = [person - 1] if person else [i for i, p in enumerate(self.plan.projections) if p is not None]
        summaries = []
        for index in indexes:
            data = self.plan.get_projection(index)
            ltc_years = data.ltc_years()
            summaries.append({
                "person": index + 1,
                "name": data.person.name,
                "ltc_event_enabled": data.person.ltc_event_enabled,
                "ltc_ages": [s.age for s in ltc_years],
                "total_ltc_costs": round(data.total_ltc_costs, 2),
                "total_ltc_benefits": round(data.total_ltc_benefits, 2),
                "out_of_pocket": round(sum(s.ltc_out_of_pocket for s in ltc_years), 2),
                "coverage_ratio": round(ltc_coverage_ratio(data.snapshots), 4),
                "years": [
                    {
                        "age": s.age,
                        "ltc_expenses": round(s.ltc_expenses, 2),
                        "ltc_benefits": round(s.ltc_benefits, 2),
                        "withdrawal": round(s.withdrawal, 2),
                        "retirement_assets": round(s.retirement_assets, 2),
                    }
                    for s in ltc_years
                ],
            })
        return {"ltc_summaries": summaries}

    def get_policy_values(self, age: Optional[int] = None, person: int = 1) -> dict:
        """Get premiums, cash value, death benefit and loans for one or all ages."""
        data = self._projection(person)
        if not data.person.policy_enabled:
            return {"person": person, "name": data.person.name, "message": "No policy in force"}

        def values(s) -> dict:
            return {
                "age": s.age,
                "policy_year": s.policy_year,
                "premium": round(s.premium_expenses, 2),
                "cash_value": round(s.policy_cash_value, 2),
                "death_benefit": round(s.death_benefit, 2),
                "illustrated_cash_value": round(s.illustrated_cash_value, 2),
                "illustrated_death_benefit": round(s.illustrated_death_benefit, 2),
                "loan_balance": round(s.policy_loan_balance, 2),
                "loan_interest": round(s.policy_loan_interest, 2),
                "ltc_benefits": round(s.ltc_benefits, 2),
            }

        if age is not None:
            snapshot = data.get_age(age)
            if snapshot is None:
                return {"error": f"Age {age} is not in the projection ({data.first_age}-{data.last_age})"}
            return {"person": person, "name": data.person.name, **values(snapshot)}

        return {
            "person": person,
            "name": data.person.name,
            "total_premiums": round(data.total_premiums, 2),
            "years": [values(s) for s in data.snapshots],
        }

    def get_household_projection(self, start_age: Optional[int] = None,
                                 end_age: Optional[int] = None) -> dict:
        """Get the combined household series, optionally limited to an age range."""
        household = self.plan.household
        years = []
        for s in household.snapshots:
            if start_age is not None and s.age < start_age:
                continue
            if end_age is not None and s.age > end_age:
                continue
            years.append({
                "year_index": s.year_index,
                "person1_age": s.person1_age,
                "person2_age": s.person2_age,
                "total_income": round(s.total_income, 2),
                "total_expenses": round(s.total_expenses, 2),
                "ltc_benefits": round(s.ltc_benefits, 2),
                "withdrawal": round(s.withdrawal, 2),
                "retirement_assets": round(s.retirement_assets, 2),
                "policy_cash_value": round(s.policy_cash_value, 2),
                "death_benefit": round(s.death_benefit, 2),
                "total_assets": round(s.total_assets, 2),
                "bankrupt": s.bankrupt,
            })
        return {"bankruptcy_age": household.bankruptcy_age, "years": years}

    def get_legacy_comparison(self) -> dict:
        """Get household legacy with and without insurance."""
        household = self.plan.household.snapshots
        rate = first_year_withdrawal_rate(household)
        result = self.plan.legacy.to_dict()
        result.update({
            "first_year_withdrawal_rate": round(rate, 4),
            "withdrawal_rate_assessment": withdrawal_rate_assessment(rate),
            "ltc_coverage_ratio": round(ltc_coverage_ratio(household), 4),
            "per_person": [
                {"person": i + 1, "name": p.person.name, "legacy_amount": round(p.legacy_amount, 2)}
                for i, p in enumerate(self.plan.projections) if p is not None
            ],
        })
        return result

    def get_tax_efficiency(self) -> dict:
        """Get the withdrawal tax analysis and strategy savings."""
        report = self.plan.tax_efficiency
        return {
            "tax_by_phase": {k: round(v, 2) for k, v in asdict(report.tax_by_phase).items()},
            "tax_by_phase_without_insurance": {
                k: round(v, 2) for k, v in asdict(report.tax_by_phase_without_insurance).items()
            },
            "efficiency": {k: round(v, 4) for k, v in asdict(report.efficiency).items()},
            "efficiency_without_insurance": {
                k: round(v, 4) for k, v in asdict(report.efficiency_without_insurance).items()
            },
            "tax_savings": round(report.tax_savings, 2),
            "high_tax_years": report.high_tax_years,
            "strategies": [
                {
                    "name": s.name,
                    "basis": s.basis,
                    "percentage": s.percentage,
                    "potential_savings": round(s.potential_savings, 2),
                    "description": s.description,
                    "implementation": s.implementation,
                    "impact": s.impact,
                }
                for s in report.strategies
            ],
            "total_strategy_savings": round(report.total_strategy_savings, 2),
        }

    def search_projection_data(self, query: str, age: Optional[int] = None, person: int = 1) -> dict:
        """Search for specific projection fields based on a query."""
        query_lower = query.lower()

        # Map common terms to snapshot field names
        term_mapping = {
            "income": ["work_income", "social_security_income", "other_retirement_income", "total_income"],
            "social security": ["social_security_income"],
            "expense": ["basic_expenses", "ltc_expenses", "premium_expenses", "total_expenses"],
            "ltc": ["ltc_expenses", "ltc_benefits", "cumulative_ltc_benefits", "ltc_out_of_pocket"],
            "care": ["ltc_expenses", "ltc_benefits"],
            "benefit": ["ltc_benefits", "cumulative_ltc_benefits", "death_benefit"],
            "premium": ["premium_expenses", "premium_paid_from_assets"],
            "withdrawal": ["withdrawal", "tax_on_withdrawal"],
            "tax": ["tax_on_withdrawal"],
            "cash value": ["policy_cash_value", "illustrated_cash_value"],
            "death benefit": ["death_benefit", "illustrated_death_benefit"],
            "loan": ["policy_loan_balance", "policy_loan_interest", "policy_loan_taken"],
            "asset": ["retirement_assets", "total_assets"],
            "savings": ["retirement_assets"],
            "net worth": ["net_worth", "net_worth_no_policy"],
            "bankrupt": ["bankrupt"],
            "cash flow": ["net_cash_flow"],
        }

        matched_keys: List[str] = []
        for term, keys in term_mapping.items():
            if term in query_lower:
                matched_keys.extend(k for k in keys if k not in matched_keys)

        if not matched_keys:
            return {
                "query": query,
                "message": "No matching projection fields found. Try terms like: income, expense, LTC, benefit, premium, withdrawal, tax, cash value, death benefit, loan, assets, net worth, bankrupt."
            }

        data = self._projection(person)
        if age is not None:
            snapshot = data.get_age(age)
            if snapshot is None:
                return {"error": f"Age {age} is not in the projection ({data.first_age}-{data.last_age})"}
            values = _rounded(snapshot)
            return {"age": age, "query": query, "results": {k: values[k] for k in matched_keys}}

        all_ages = {"query": query, "ages": {}}
        for snapshot in data.snapshots:
            values = _rounded(snapshot)
            all_ages["ages"][snapshot.age] = {k: values[k] for k in matched_keys}
        return all_ages


class MultiClientTools:
    """Manager for multiple client plans.

    Discovers all available clients and caches their calculations,
    allowing queries to specify which client to use.
    """

    def __init__(self, base_path: str, default_client: Optional[str] = None):
        """Initialize and discover all available clients.

        Args:
            base_path: Path to the repository root directory
            default_client: Default client to use when none specified
        """
        self.base_path = base_path
        self.clients: Dict[str, LTCPlannerTools] = {}
        self.default_client = default_client
        self._discover_clients()

    def _discover_clients(self):
        """Discover and load all available clients."""
        for name in list_clients(self.base_path):
            try:
                self.clients[name] = LTCPlannerTools(self.base_path, name)
            except (OSError, ValueError) as e:
                # One broken client must not hide the others
                logger.warning("Failed to load client '%s': %s", name, e)

        if self.default_client is None and self.clients:
            self.default_client = list(self.clients.keys())[0]

    def _get_client(self, client: Optional[str] = None, require_explicit: bool = False) -> LTCPlannerTools:
        """Get the specified client or default.

        Args:
            client: Client name to use, or None for default
            require_explicit: If True, raise error when client not specified and multiple exist
        """
        if client is None and len(self.clients) > 1 and require_explicit:
            available = list(self.clients.keys())
            raise ValueError(
                f"Multiple clients available: {available}. Please specify which client to query."
            )

        client_name = client or self.default_client
        if client_name not in self.clients:
            available = list(self.clients.keys())
            raise ValueError(
                f"Client '{client_name}' not found. Available clients: {available}"
            )

        return self.clients[client_name]

    def list_clients(self) -> dict:
        """List all available clients."""
        clients_info = {}
        for name, tools in self.clients.items():
            clients_info[name] = {
                "client_name": tools.plan.client_name,
                "persons": [p.name for p in tools.plan.persons],
                "household_bankruptcy_age": tools.plan.household.bankruptcy_age,
            }

        return {
            "available_clients": list(self.clients.keys()),
            "default_client": self.default_client,
            "clients_info": clients_info
        }

    def reload_clients(self) -> dict:
        """Reload all clients from disk, refreshing the cache."""
        old_clients = set(self.clients.keys())

        self.clients.clear()
        self.default_client = None
        self._discover_clients()

        new_clients = set(self.clients.keys())
        return {
            "status": "success",
            "message": f"Reloaded {len(self.clients)} clients",
            "clients_loaded": list(self.clients.keys()),
            "default_client": self.default_client,
            "changes": {
                "added": sorted(new_clients - old_clients),
                "removed": sorted(old_clients - new_clients),
                "reloaded": sorted(old_clients & new_clients)
            }
        }

    def _with_client(self, result: dict, client: Optional[str]) -> dict:
        result["client"] = client or self.default_client
        return result

    def get_client_overview(self, client: Optional[str] = None) -> dict:
        """Get an overview of the specified client."""
        return self._with_client(self._get_client(client, require_explicit=True).get_client_overview(), client)

    def get_year_snapshot(self, age: int, person: int = 1, client: Optional[str] = None) -> dict:
        """Get one person's snapshot at an age."""
        tools = self._get_client(client, require_explicit=True)
        return self._with_client(tools.get_year_snapshot(age, person), client)

    def get_ltc_summary(self, person: Optional[int] = None, client: Optional[str] = None) -> dict:
        """Get LTC costs and benefits."""
        tools = self._get_client(client, require_explicit=True)
        return self._with_client(tools.get_ltc_summary(person), client)

    def get_policy_values(self, age: Optional[int] = None, person: int = 1,
                          client: Optional[str] = None) -> dict:
        """Get policy values for one or all ages."""
        tools = self._get_client(client, require_explicit=True)
        return self._with_client(tools.get_policy_values(age, person), client)

    def get_household_projection(self, start_age: Optional[int] = None, end_age: Optional[int] = None,
                                 client: Optional[str] = None) -> dict:
        """Get the combined household series."""
        tools = self._get_client(client, require_explicit=True)
        return self._with_client(tools.get_household_projection(start_age, end_age), client)

    def get_legacy_comparison(self, client: Optional[str] = None) -> dict:
        """Get legacy with and without insurance."""
        return self._with_client(self._get_client(client, require_explicit=True).get_legacy_comparison(), client)

    def get_tax_efficiency(self, client: Optional[str] = None) -> dict:
        """Get the tax efficiency report."""
        return self._with_client(self._get_client(client, require_explicit=True).get_tax_efficiency(), client)

    def search_projection_data(self, query: str, age: Optional[int] = None, person: int = 1,
                               client: Optional[str] = None) -> dict:
        """Search projection fields by keyword."""
        tools = self._get_client(client, require_explicit=True)
        return self._with_client(tools.search_projection_data(query, age, person), client)
