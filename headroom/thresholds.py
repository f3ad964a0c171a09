"""
Secondary threshold insights (IRMAA tiers, NIIT, QBI phase-in).

These thresholds key off gross income, so no standard deduction is applied
here. Use ThresholdDetail.taxable_equivalent to place a limit on a
taxable-income scale.
"""
from typing import List, Mapping, Optional, Sequence

from headroom import tax_rules
from headroom.models import (
    FilingStatus,
    IncomeSummary,
    InsightStatus,
    ScenarioInputs,
    TaxThresholds,
    ThresholdDetail,
    ThresholdInsight,
    finite_or_zero,
)

_STATUS_ORDER = {
    InsightStatus.EXCEEDED: 0,
    InsightStatus.APPROACHING: 1,
    InsightStatus.CLEAR: 2,
}


def thresholds_for(year: int, status, dataset: Optional[Mapping] = None) -> Optional[TaxThresholds]:
    """
    Looks up thresholds for a year/status. Falls back to the nearest lower
    year in the dataset, then the nearest higher year.
    """
    if dataset is None:
        dataset = tax_rules.THRESHOLD_DATASET
    status = FilingStatus.parse(status)

    match = dataset.get(year, {}).get(status)
    if match is not None:
        return match

    years = sorted(dataset.keys())
    lower = [y for y in years if y < year]
    if lower:
        match = dataset[lower[-1]].get(status)
        if match is not None:
            return match
    higher = [y for y in years if y > year]
    if higher:
        match = dataset[higher[0]].get(status)
        if match is not None:
            return match
    return None


def classify(proximity: float, limit: float) -> InsightStatus:
    if proximity <= 0:
        return InsightStatus.EXCEEDED
    warning_band = max(tax_rules.WARNING_BAND_FLOOR, limit * tax_rules.WARNING_BAND_FRACTION)
    if proximity <= warning_band:
        return InsightStatus.APPROACHING
    return InsightStatus.CLEAR


def next_tier(income: float, tiers: Sequence[ThresholdDetail]) -> Optional[ThresholdDetail]:
    """First tier above income; the highest tier once all are exceeded."""
    ordered = sorted(tiers, key=lambda t: t.limit)
    for tier in ordered:
        if income < tier.limit:
            return tier
    return ordered[-1] if ordered else None


def urgency_key(insight: ThresholdInsight):
    return (_STATUS_ORDER[insight.status], insight.proximity)


def rank_insights(insights: Sequence[ThresholdInsight]) -> List[ThresholdInsight]:
    """Exceeded first, then approaching, then clear; closest first within a status."""
    return sorted(insights, key=urgency_key)


def _insight(detail: ThresholdDetail, income: float) -> ThresholdInsight:
    proximity = detail.limit - income
    return ThresholdInsight(detail=detail, status=classify(proximity, detail.limit), proximity=proximity)


def evaluate_insights(income: IncomeSummary,
                      adjustment: Optional[ScenarioInputs] = None,
                      thresholds: Optional[TaxThresholds] = None) -> List[ThresholdInsight]:
    """
    Ranked proximity insights for the next IRMAA tier, NIIT and QBI.

    When thresholds is None they are looked up for the summary's year and
    filing status; if nothing is found an empty list is returned.
    """
    if thresholds is None:
        thresholds = thresholds_for(income.year, income.filing_status)
    if thresholds is None:
        return []
    adjustment = adjustment or ScenarioInputs.zero()

    total_income = finite_or_zero(income.total_income) + adjustment.total_adjustment
    results = []

    # Only the upcoming tier is actionable
    tier = next_tier(total_income, thresholds.means_tested_tiers)
    if tier is not None:
        results.append(_insight(tier, total_income))

    results.append(_insight(thresholds.surtax, total_income))
    results.append(_insight(thresholds.qbi_phase_in, total_income))

    return rank_insights(results)


def insights_for_ledger(ledger, adjustment: Optional[ScenarioInputs] = None) -> List[ThresholdInsight]:
    if ledger.profile is None:
        return []
    return evaluate_insights(ledger.to_summary(), adjustment)
