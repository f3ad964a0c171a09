import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


def finite_or_zero(value) -> float:
    """Returns value as a float, or 0.0 when it is None, NaN or infinite."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


class FilingStatus(str, Enum):
    SINGLE = "Single"
    MARRIED_JOINT = "Married Filing Jointly"
    MARRIED_SEPARATE = "Married Filing Separately"
    HEAD_OF_HOUSEHOLD = "Head of Household"

    @classmethod
    def parse(cls, value) -> "FilingStatus":
        """
        Accepts the display label, the member name, or a short alias
        ("mfj", "mfs", "hoh").
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for status in cls:
            if text == status.value or text.upper() == status.name:
                return status
        aliases = {
            "single": cls.SINGLE,
            "mfj": cls.MARRIED_JOINT,
            "married": cls.MARRIED_JOINT,
            "married_jointly": cls.MARRIED_JOINT,
            "mfs": cls.MARRIED_SEPARATE,
            "hoh": cls.HEAD_OF_HOUSEHOLD,
        }
        match = aliases.get(text.lower())
        if match is None:
            raise ValueError(f"Unknown filing status: {value}")
        return match


@dataclass(frozen=True)
class TaxBracket:
    lower: float
    upper: Optional[float]  # None means no upper bound (top bracket)
    rate: float             # e.g., 0.12 for 12%


@dataclass(frozen=True)
class BracketTable:
    year: int
    status: FilingStatus
    brackets: Tuple[TaxBracket, ...]

    def sorted_brackets(self) -> List[TaxBracket]:
        return sorted(self.brackets, key=lambda b: b.lower)


@dataclass(frozen=True)
class IncomeSummary:
    """Read-only view of one year of income, as the calculators consume it."""
    year: int
    filing_status: FilingStatus
    standard_deduction: float
    total_income: float


@dataclass(frozen=True)
class ScenarioInputs:
    """Hypothetical additive income adjustments layered on top of a ledger."""
    additional_ordinary_income: float = 0.0
    additional_long_term_capital_gains: float = 0.0

    @property
    def total_adjustment(self) -> float:
        return (finite_or_zero(self.additional_ordinary_income)
                + finite_or_zero(self.additional_long_term_capital_gains))

    @property
    def is_zero(self) -> bool:
        """True only for the baseline; offsetting adjustments still count as a scenario."""
        return self == ScenarioInputs.zero()

    @classmethod
    def zero(cls) -> "ScenarioInputs":
        return cls()


@dataclass(frozen=True)
class HeadroomResult:
    taxable_income: float
    bracket_rate: float
    bracket_lower: float
    bracket_upper: Optional[float]            # None = top bracket
    dollars_to_next_bracket: Optional[float]  # None if top bracket

    @property
    def is_top_bracket(self) -> bool:
        return self.bracket_upper is None


class ThresholdKind(str, Enum):
    MEANS_TESTED_TIER = "irmaa"
    SURTAX = "niit"
    QBI_PHASE_IN = "qbi"


class InsightStatus(str, Enum):
    CLEAR = "clear"
    APPROACHING = "approaching"
    EXCEEDED = "exceeded"


@dataclass(frozen=True)
class ThresholdDetail:
    key: str
    label: str
    limit: float
    kind: ThresholdKind

    def taxable_equivalent(self, standard_deduction: float) -> float:
        """Position of this gross-income limit on a taxable-income scale."""
        return max(0.0, self.limit - finite_or_zero(standard_deduction))


def taxable_equivalent(detail: ThresholdDetail, standard_deduction: float) -> float:
    return detail.taxable_equivalent(standard_deduction)


@dataclass(frozen=True)
class ThresholdInsight:
    detail: ThresholdDetail
    status: InsightStatus
    proximity: float  # limit - income; negative once exceeded

    @property
    def key(self) -> str:
        return self.detail.key


@dataclass(frozen=True)
class TaxThresholds:
    means_tested_tiers: Tuple[ThresholdDetail, ...]
    surtax: ThresholdDetail
    qbi_phase_in: ThresholdDetail
