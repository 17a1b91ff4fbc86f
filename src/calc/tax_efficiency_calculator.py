"""Tax efficiency analysis of completed projections.

Withdrawal taxes are bucketed by life phase and compared between the
insured and uninsured scenarios. The strategy savings are advisory
heuristics: each is a fixed percentage of a phase total, configured in
reference/economic-assumptions.json.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from model.Assumptions import load_reference_defaults


# Strategy basis keys map to the phase total the percentage applies to
STRATEGY_BASES = ('pre_retirement', 'retirement', 'ltc_event', 'total')

HIGH_TAX_YEAR_COUNT = 5


@dataclass
class TaxByPhase:
    pre_retirement: float = 0.0  # age < retirement age
    retirement: float = 0.0  # retired, no LTC event
    ltc_event: float = 0.0  # any LTC event year


@dataclass
class TaxEfficiency:
    total_withdrawals: float = 0.0
    total_tax: float = 0.0
    efficiency_ratio: float = 0.0  # tax / withdrawals


@dataclass
class TaxStrategy:
    name: str
    description: str
    implementation: str
    impact: str
    basis: str
    percentage: float
    potential_savings: float = 0.0


@dataclass
class TaxEfficiencyReport:
    tax_by_phase: TaxByPhase
    tax_by_phase_without_insurance: TaxByPhase
    efficiency: TaxEfficiency
    efficiency_without_insurance: TaxEfficiency
    tax_savings: float = 0.0  # Tax without insurance minus tax with insurance
    high_tax_years: List[dict] = field(default_factory=list)
    high_tax_years_without_insurance: List[dict] = field(default_factory=list)
    strategies: List[TaxStrategy] = field(default_factory=list)

    @property
    def total_strategy_savings(self) -> float:
        return sum(s.potential_savings for s in self.strategies)


class TaxEfficiencyCalculator:
    """Aggregates withdrawal taxes and applies the configured strategy percentages."""

    def __init__(self, strategies: Optional[List[dict]] = None):
        """Initialize with strategy definitions.

        Args:
            strategies: Strategy dictionaries (name, basis, percentage, description,
                        implementation, impact). Defaults to the reference file.

        Raises:
            ValueError: If no strategies are configured or a basis is unknown
        """
        if strategies is None:
            strategies = load_reference_defaults().get('taxStrategies', [])
        if not strategies:
            raise ValueError("economic-assumptions.json must contain a 'taxStrategies' array")
        for strategy in strategies:
            if strategy.get('basis') not in STRATEGY_BASES:
                raise ValueError(f"Unknown tax strategy basis '{strategy.get('basis')}' for {strategy.get('name')}")
        self.strategies = strategies

    def calculate(self, with_policy: Sequence, without_policy: Sequence,
                  retirement_age: int) -> TaxEfficiencyReport:
        """Build the tax efficiency report.

        Args:
            with_policy: Snapshots (person or household) with the policy in force
            without_policy: Matching snapshots without the policy
            retirement_age: Age separating pre-retirement from retirement years
        """
        by_phase = self.tax_by_phase(with_policy, retirement_age)
        efficiency = self.efficiency(with_policy)
        efficiency_without = self.efficiency(without_policy)

        report = TaxEfficiencyReport(
            tax_by_phase=by_phase,
            tax_by_phase_without_insurance=self.tax_by_phase(without_policy, retirement_age),
            efficiency=efficiency,
            efficiency_without_insurance=efficiency_without,
            tax_savings=efficiency_without.total_tax - efficiency.total_tax,
            high_tax_years=self.high_tax_years(with_policy, retirement_age),
            high_tax_years_without_insurance=self.high_tax_years(without_policy, retirement_age),
        )

        bases: Dict[str, float] = {
            'pre_retirement': by_phase.pre_retirement,
            'retirement': by_phase.retirement,
            'ltc_event': by_phase.ltc_event,
            'total': efficiency.total_tax,
        }
        for config in self.strategies:
            report.strategies.append(TaxStrategy(
                name=config['name'],
                description=config.get('description', ''),
                implementation=config.get('implementation', ''),
                impact=config.get('impact', ''),
                basis=config['basis'],
                percentage=config['percentage'],
                potential_savings=bases[config['basis']] * config['percentage'],
            ))
        return report

    @staticmethod
    def tax_by_phase(snapshots: Sequence, retirement_age: int) -> TaxByPhase:
        # Pre-retirement LTC years fall in both the pre-retirement and LTC buckets
        return TaxByPhase(
            pre_retirement=sum(s.tax_on_withdrawal for s in snapshots if s.age < retirement_age),
            retirement=sum(s.tax_on_withdrawal for s in snapshots
                           if s.age >= retirement_age and not s.has_ltc_event),
            ltc_event=sum(s.tax_on_withdrawal for s in snapshots if s.has_ltc_event),
        )

    @staticmethod
    def efficiency(snapshots: Sequence) -> TaxEfficiency:
        total_withdrawals = sum(s.withdrawal for s in snapshots)
        total_tax = sum(s.tax_on_withdrawal for s in snapshots)
        ratio = total_tax / total_withdrawals if total_withdrawals > 0 else 0.0
        return TaxEfficiency(total_withdrawals, total_tax, ratio)

    @staticmethod
    def high_tax_years(snapshots: Sequence, retirement_age: int, top: int = HIGH_TAX_YEAR_COUNT) -> List[dict]:
        ranked = sorted(snapshots, key=lambda s: s.tax_on_withdrawal, reverse=True)[:top]
        return [
            {
                "age": s.age,
                "tax": s.tax_on_withdrawal,
                "withdrawal": s.withdrawal,
                "has_ltc_event": s.has_ltc_event,
                "is_retired": s.age >= retirement_age,
            }
            for s in ranked
        ]
