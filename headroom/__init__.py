"""
Bracket headroom planning.

Computes how much additional income fits before the next marginal tax
bracket, and how close a year's income sits to secondary thresholds
(IRMAA tiers, NIIT, QBI phase-in), with optional hypothetical adjustments.

Public classes and functions are re-exported here.
"""

from headroom.models import (
    FilingStatus,
    TaxBracket,
    BracketTable,
    IncomeSummary,
    ScenarioInputs,
    HeadroomResult,
    ThresholdKind,
    InsightStatus,
    ThresholdDetail,
    ThresholdInsight,
    TaxThresholds,
    finite_or_zero,
    taxable_equivalent,
)
from headroom.errors import HeadroomError, MissingProfile, TablesUnavailable
from headroom.tax_tables import BracketTableProvider, get_bracket_table
from headroom.engine import compute_headroom, compute_baseline, compute_for_ledger
from headroom.thresholds import evaluate_insights, insights_for_ledger, thresholds_for
from headroom.income import IncomeSourceType, IncomeEntry, FilingProfile, YearLedger, parse_income_source

__all__ = [
    # Models
    "FilingStatus",
    "TaxBracket",
    "BracketTable",
    "IncomeSummary",
    "ScenarioInputs",
    "HeadroomResult",
    "ThresholdKind",
    "InsightStatus",
    "ThresholdDetail",
    "ThresholdInsight",
    "TaxThresholds",
    "finite_or_zero",
    "taxable_equivalent",
    # Errors
    "HeadroomError",
    "MissingProfile",
    "TablesUnavailable",
    # Tables
    "BracketTableProvider",
    "get_bracket_table",
    # Calculators
    "compute_headroom",
    "compute_baseline",
    "compute_for_ledger",
    "evaluate_insights",
    "insights_for_ledger",
    "thresholds_for",
    # Ledger
    "IncomeSourceType",
    "IncomeEntry",
    "FilingProfile",
    "YearLedger",
    "parse_income_source",
]
