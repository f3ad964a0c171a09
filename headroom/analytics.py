from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from headroom.engine import compute_for_ledger, compute_headroom
from headroom.models import (
    BracketTable,
    HeadroomResult,
    IncomeSummary,
    ScenarioInputs,
    ThresholdInsight,
    finite_or_zero,
)
from headroom.thresholds import insights_for_ledger


@dataclass(frozen=True)
class ScenarioComparison:
    """Baseline vs scenario results for one ledger."""
    adjustment: ScenarioInputs
    baseline: HeadroomResult
    scenario: HeadroomResult
    baseline_insights: List[ThresholdInsight]
    scenario_insights: List[ThresholdInsight]

    @property
    def delta_taxable(self) -> float:
        return self.scenario.taxable_income - self.baseline.taxable_income

    @property
    def delta_headroom(self) -> float:
        # Top bracket (None) counts as zero headroom
        return (self.scenario.dollars_to_next_bracket or 0.0) - (self.baseline.dollars_to_next_bracket or 0.0)

    @property
    def rate_changed(self) -> bool:
        return self.scenario.bracket_rate != self.baseline.bracket_rate


def compare_scenario(ledger, adjustment: ScenarioInputs, provider=None) -> ScenarioComparison:
    """
    Runs the same computation with and without the adjustment.
    Raises MissingProfile / TablesUnavailable like compute_for_ledger.
    """
    baseline = compute_for_ledger(ledger, ScenarioInputs.zero(), provider)
    scenario = compute_for_ledger(ledger, adjustment, provider)
    return ScenarioComparison(
        adjustment=adjustment,
        baseline=baseline,
        scenario=scenario,
        baseline_insights=insights_for_ledger(ledger),
        scenario_insights=insights_for_ledger(ledger, adjustment),
    )


def headroom_curve(income: IncomeSummary, table: BracketTable,
                   max_income: Optional[float] = None, points: int = 200) -> pd.DataFrame:
    """
    Sweeps total income from 0 to max_income and records bracket placement.

    max_income defaults to 1.5x the larger of the current income and the top
    bracket's lower bound plus the standard deduction.
    """
    deduction = finite_or_zero(income.standard_deduction)
    if max_income is None:
        top_lower = max(b.lower for b in table.brackets)
        max_income = 1.5 * max(finite_or_zero(income.total_income), top_lower + deduction)
    points = max(2, int(points))

    rows = []
    for total in np.linspace(0.0, float(max_income), points):
        point = IncomeSummary(
            year=income.year,
            filing_status=income.filing_status,
            standard_deduction=deduction,
            total_income=float(total),
        )
        result = compute_headroom(point, ScenarioInputs.zero(), table)
        rows.append({
            "total_income": float(total),
            "taxable_income": result.taxable_income,
            "bracket_rate": result.bracket_rate,
            "dollars_to_next_bracket": (np.nan if result.dollars_to_next_bracket is None
                                        else result.dollars_to_next_bracket),
        })
    return pd.DataFrame(rows)


def bracket_table_frame(table: BracketTable) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Rate": f"{b.rate:.0%}",
            "Lower": b.lower,
            "Upper": b.upper if b.upper is not None else np.nan,
        }
        for b in table.sorted_brackets()
    ])


def insights_frame(insights: Sequence[ThresholdInsight]) -> pd.DataFrame:
    if not insights:
        return pd.DataFrame(columns=["Threshold", "Limit", "Status", "Proximity"])
    return pd.DataFrame([
        {
            "Threshold": i.detail.label,
            "Limit": i.detail.limit,
            "Status": i.status.value,
            "Proximity": i.proximity,
        }
        for i in insights
    ])
