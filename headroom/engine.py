from typing import Optional

from headroom.errors import MissingProfile, TablesUnavailable
from headroom.models import (
    BracketTable,
    HeadroomResult,
    IncomeSummary,
    ScenarioInputs,
    finite_or_zero,
)
from headroom.tax_tables import default_provider


def compute_headroom(income: IncomeSummary,
                     adjustment: Optional[ScenarioInputs] = None,
                     table: Optional[BracketTable] = None) -> HeadroomResult:
    """
    Places a year's taxable income in its marginal bracket.

    Taxable income = max(0, total income + scenario adjustment - standard deduction).
    The active bracket is the last one (by lower bound) that the taxable income
    has reached; below the lowest bracket the lowest is used.

    Args:
        income: read-only summary of the year (total income, deduction).
        adjustment: hypothetical additive income; None means baseline.
        table: bracket table for the summary's year and filing status.

    Returns:
        HeadroomResult. dollars_to_next_bracket is None in the top bracket.
    """
    if table is None or not table.brackets:
        raise TablesUnavailable(income.year, income.filing_status)
    adjustment = adjustment or ScenarioInputs.zero()

    total_income = finite_or_zero(income.total_income)
    deduction = finite_or_zero(income.standard_deduction)
    adjusted_total = total_income + adjustment.total_adjustment
    taxable = max(0.0, adjusted_total - deduction)

    brackets = table.sorted_brackets()
    current = brackets[0]
    for bracket in brackets:
        if taxable >= bracket.lower:
            current = bracket

    to_next = None if current.upper is None else max(0.0, current.upper - taxable)
    return HeadroomResult(
        taxable_income=taxable,
        bracket_rate=current.rate,
        bracket_lower=current.lower,
        bracket_upper=current.upper,
        dollars_to_next_bracket=to_next,
    )


def compute_baseline(income: IncomeSummary, table: BracketTable) -> HeadroomResult:
    return compute_headroom(income, ScenarioInputs.zero(), table)


def compute_for_ledger(ledger, adjustment: Optional[ScenarioInputs] = None, provider=None) -> HeadroomResult:
    """
    Resolves the ledger's profile and bracket table, then computes headroom.

    Raises MissingProfile when the ledger has no filing profile and
    TablesUnavailable when the provider has no table for the year/status.
    """
    if ledger.profile is None:
        raise MissingProfile(ledger.year)
    if provider is None:
        provider = default_provider()

    summary = ledger.to_summary()
    table = provider.get_bracket_table(summary.year, summary.filing_status)
    return compute_headroom(summary, adjustment, table)
