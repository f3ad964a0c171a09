import math
from typing import Optional

from headroom.income import IncomeEntry, IncomeSourceType
from headroom.models import ScenarioInputs, finite_or_zero


def option_spread_per_share(fmv: float, strike: float) -> float:
    """Bargain element per share: FMV minus strike, never negative."""
    return max(0.0, finite_or_zero(fmv) - finite_or_zero(strike))


def option_exercise_income(shares: float, fmv: float, strike: float) -> float:
    """
    Ordinary-income estimate for exercising options (FMV - strike per share).
    AMT is not modeled.
    """
    shares = max(0.0, finite_or_zero(shares))
    return shares * option_spread_per_share(fmv, strike)


def rsu_vest_income(shares: float, fmv: float) -> float:
    return max(0.0, finite_or_zero(shares)) * max(0.0, finite_or_zero(fmv))


def max_shares_within_headroom(headroom_dollars: Optional[float],
                               spread_per_share: float,
                               shares_available: Optional[float] = None) -> Optional[float]:
    """
    Whole shares that can be exercised before the taxable add crosses into
    the next bracket.

    Returns None when there is no bracket ceiling (top bracket) or the spread
    is not positive.
    """
    spread = finite_or_zero(spread_per_share)
    if headroom_dollars is None or spread <= 0:
        return None
    max_by_headroom = math.floor(max(0.0, finite_or_zero(headroom_dollars)) / spread)
    if shares_available is not None:
        return float(max(0, min(max_by_headroom, math.floor(finite_or_zero(shares_available)))))
    return float(max(0, max_by_headroom))


def remaining_headroom_after(headroom_dollars: Optional[float], taxable_add: float) -> Optional[float]:
    if headroom_dollars is None:
        return None
    return max(0.0, finite_or_zero(headroom_dollars) - finite_or_zero(taxable_add))


def build_equity_entry(source_type: IncomeSourceType,
                       shares: float,
                       fmv: float,
                       strike_or_basis: Optional[float] = None,
                       display_name: str = "",
                       symbol: Optional[str] = None) -> IncomeEntry:
    """
    Creates a ledger entry whose amount is derived from the equity event.

    Options (ISO/NSO) record the spread; RSU and ESPP record shares x FMV.
    """
    if not source_type.is_equity:
        raise ValueError(f"{source_type.value} is not an equity income source")

    if source_type.is_stock_option:
        amount = option_exercise_income(shares, fmv, strike_or_basis or 0.0)
    else:
        amount = rsu_vest_income(shares, fmv)

    return IncomeEntry(
        source_type=source_type,
        display_name=display_name or source_type.value,
        amount=amount,
        symbol=symbol.upper() if symbol else None,
        shares=shares,
        fair_market_price=fmv,
        cost_basis_per_share=strike_or_basis,
    )


def exercise_as_scenario(shares: float, fmv: float, strike: float) -> ScenarioInputs:
    """An option exercise expressed as a hypothetical ordinary-income adjustment."""
    return ScenarioInputs(additional_ordinary_income=option_exercise_income(shares, fmv, strike))
