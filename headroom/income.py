import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from headroom.errors import MissingProfile
from headroom.models import FilingStatus, IncomeSummary, finite_or_zero
from headroom.tax_rules import DEFAULT_STANDARD_DEDUCTION


class IncomeCategory(str, Enum):
    WAGES = "wages"
    BONUS = "bonus"
    CONTRACTOR_1099 = "contractor1099"
    EQUITY = "equity"
    INVESTMENT = "investment"
    RETIREMENT = "retirement"
    BENEFITS = "benefits"
    RENTAL = "rental"
    BUSINESS = "business"
    OTHER = "other"


SECTION_TITLES = {
    IncomeCategory.WAGES: "Wages",
    IncomeCategory.BONUS: "Bonuses",
    IncomeCategory.CONTRACTOR_1099: "Contractor (1099)",
    IncomeCategory.EQUITY: "Equity",
    IncomeCategory.INVESTMENT: "Investments",
    IncomeCategory.RETIREMENT: "Retirement",
    IncomeCategory.BENEFITS: "Benefits",
    IncomeCategory.RENTAL: "Rental",
    IncomeCategory.BUSINESS: "Business",
    IncomeCategory.OTHER: "Other",
}


class IncomeSourceType(str, Enum):
    """Income sources the ledger supports. Values are the user-facing labels."""
    W2 = "W-2 Wages"
    BONUS_W2 = "Bonus (W-2)"
    FORM_1099 = "1099 / Contractor"
    BONUS_1099 = "Bonus (1099)"
    SOCIAL_SECURITY = "Social Security"
    UNEMPLOYMENT = "Unemployment Compensation"
    PENSION = "Pension / Annuity"
    IRA_WITHDRAWAL = "IRA / 401k Withdrawal"
    CAPITAL_GAINS = "Capital Gains"
    DIVIDENDS = "Dividends"
    INTEREST = "Interest"
    RSU = "Restricted Stock Unit"
    ISO = "Incentive Stock Option"
    NSO = "Nonqualified Stock Option"
    ESPP = "Employee Stock Purchase Plan"
    RENTAL = "Rental Income"
    BUSINESS = "Business Income"
    OTHER = "Other"

    @property
    def category(self) -> IncomeCategory:
        return _CATEGORIES[self]

    @property
    def is_equity(self) -> bool:
        return self.category == IncomeCategory.EQUITY

    @property
    def is_stock_option(self) -> bool:
        return self in (IncomeSourceType.ISO, IncomeSourceType.NSO)

    @property
    def is_bonus(self) -> bool:
        return self in (IncomeSourceType.BONUS_W2, IncomeSourceType.BONUS_1099)

    @property
    def short_code(self) -> str:
        """Stable lowercase token for keys."""
        return _SHORT_CODES[self]

    @property
    def section_title(self) -> str:
        return SECTION_TITLES[self.category]

    @property
    def ui_sort_index(self) -> int:
        return _SORT_INDEX[self]

    @classmethod
    def sorted_for_ui(cls) -> List["IncomeSourceType"]:
        return sorted(cls, key=lambda s: s.ui_sort_index)


_CATEGORIES = {
    IncomeSourceType.W2: IncomeCategory.WAGES,
    IncomeSourceType.BONUS_W2: IncomeCategory.BONUS,
    IncomeSourceType.BONUS_1099: IncomeCategory.BONUS,
    IncomeSourceType.FORM_1099: IncomeCategory.CONTRACTOR_1099,
    IncomeSourceType.RSU: IncomeCategory.EQUITY,
    IncomeSourceType.ISO: IncomeCategory.EQUITY,
    IncomeSourceType.NSO: IncomeCategory.EQUITY,
    IncomeSourceType.ESPP: IncomeCategory.EQUITY,
    IncomeSourceType.CAPITAL_GAINS: IncomeCategory.INVESTMENT,
    IncomeSourceType.DIVIDENDS: IncomeCategory.INVESTMENT,
    IncomeSourceType.INTEREST: IncomeCategory.INVESTMENT,
    IncomeSourceType.PENSION: IncomeCategory.RETIREMENT,
    IncomeSourceType.IRA_WITHDRAWAL: IncomeCategory.RETIREMENT,
    IncomeSourceType.SOCIAL_SECURITY: IncomeCategory.BENEFITS,
    IncomeSourceType.UNEMPLOYMENT: IncomeCategory.BENEFITS,
    IncomeSourceType.RENTAL: IncomeCategory.RENTAL,
    IncomeSourceType.BUSINESS: IncomeCategory.BUSINESS,
    IncomeSourceType.OTHER: IncomeCategory.OTHER,
}

_SHORT_CODES = {
    IncomeSourceType.W2: "w2",
    IncomeSourceType.BONUS_W2: "bonus_w2",
    IncomeSourceType.FORM_1099: "1099",
    IncomeSourceType.BONUS_1099: "bonus_1099",
    IncomeSourceType.SOCIAL_SECURITY: "social_security",
    IncomeSourceType.UNEMPLOYMENT: "unemployment",
    IncomeSourceType.PENSION: "pension",
    IncomeSourceType.IRA_WITHDRAWAL: "ira_withdrawal",
    IncomeSourceType.CAPITAL_GAINS: "capital_gains",
    IncomeSourceType.DIVIDENDS: "dividends",
    IncomeSourceType.INTEREST: "interest",
    IncomeSourceType.RSU: "rsu",
    IncomeSourceType.ISO: "iso",
    IncomeSourceType.NSO: "nso",
    IncomeSourceType.ESPP: "espp",
    IncomeSourceType.RENTAL: "rental",
    IncomeSourceType.BUSINESS: "business",
    IncomeSourceType.OTHER: "other",
}

_SORT_INDEX = {
    IncomeSourceType.W2: 10,
    IncomeSourceType.BONUS_W2: 11,
    IncomeSourceType.FORM_1099: 20,
    IncomeSourceType.BONUS_1099: 21,
    IncomeSourceType.BUSINESS: 30,
    IncomeSourceType.RENTAL: 40,
    IncomeSourceType.RSU: 50,
    IncomeSourceType.ISO: 51,
    IncomeSourceType.NSO: 52,
    IncomeSourceType.ESPP: 53,
    IncomeSourceType.CAPITAL_GAINS: 60,
    IncomeSourceType.DIVIDENDS: 61,
    IncomeSourceType.INTEREST: 62,
    IncomeSourceType.SOCIAL_SECURITY: 70,
    IncomeSourceType.PENSION: 71,
    IncomeSourceType.IRA_WITHDRAWAL: 72,
    IncomeSourceType.UNEMPLOYMENT: 80,
    IncomeSourceType.OTHER: 99,
}

# Exact legacy spellings found in older saved data
_LEGACY_ALIASES = {
    "RSU": IncomeSourceType.RSU,
    "ISO": IncomeSourceType.ISO,
    "NSO": IncomeSourceType.NSO,
    "ESPP": IncomeSourceType.ESPP,
    "Unemployment": IncomeSourceType.UNEMPLOYMENT,
    "UI": IncomeSourceType.UNEMPLOYMENT,
}

# Looser, case-insensitive forms
_LENIENT_ALIASES = {
    "1099": IncomeSourceType.FORM_1099,
    "form 1099": IncomeSourceType.FORM_1099,
    "contractor": IncomeSourceType.FORM_1099,
    "w2": IncomeSourceType.W2,
    "w-2": IncomeSourceType.W2,
    "unemployment": IncomeSourceType.UNEMPLOYMENT,
    "unemployment compensation": IncomeSourceType.UNEMPLOYMENT,
    "ui": IncomeSourceType.UNEMPLOYMENT,
    "bonus w2": IncomeSourceType.BONUS_W2,
    "bonus (w2)": IncomeSourceType.BONUS_W2,
    "bonus 1099": IncomeSourceType.BONUS_1099,
    "bonus (1099)": IncomeSourceType.BONUS_1099,
}


def parse_income_source(value) -> IncomeSourceType:
    """
    Maps a stored label to an IncomeSourceType, accepting legacy abbreviations
    (RSU/ISO/NSO/ESPP) and looser text forms. Raises ValueError otherwise.
    """
    if isinstance(value, IncomeSourceType):
        return value
    text = str(value)
    if text in _LEGACY_ALIASES:
        return _LEGACY_ALIASES[text]
    try:
        return IncomeSourceType(text)
    except ValueError:
        pass
    match = _LENIENT_ALIASES.get(text.strip().lower())
    if match is None:
        raise ValueError(f"Unknown income source: {value}")
    return match


@dataclass
class IncomeEntry:
    source_type: IncomeSourceType
    display_name: str
    amount: float
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    symbol: Optional[str] = None
    # Optional equity metadata
    shares: Optional[float] = None
    fair_market_price: Optional[float] = None
    cost_basis_per_share: Optional[float] = None


@dataclass
class FilingProfile:
    year: int
    status: FilingStatus = FilingStatus.SINGLE
    standard_deduction: float = DEFAULT_STANDARD_DEDUCTION


@dataclass
class YearLedger:
    year: int
    profile: Optional[FilingProfile] = None
    entries: List[IncomeEntry] = field(default_factory=list)

    def add_entry(self, entry: IncomeEntry) -> None:
        self.entries.append(entry)

    def remove_entry(self, entry_id: str) -> bool:
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.id != entry_id]
        return len(self.entries) != before

    @property
    def total_income(self) -> float:
        total = sum(finite_or_zero(e.amount) for e in self.entries)
        return finite_or_zero(total)

    def totals_by_category(self) -> Dict[IncomeCategory, float]:
        totals: Dict[IncomeCategory, float] = {}
        for e in self.entries:
            category = e.source_type.category
            totals[category] = totals.get(category, 0.0) + finite_or_zero(e.amount)
        return totals

    def to_summary(self) -> IncomeSummary:
        if self.profile is None:
            raise MissingProfile(self.year)
        return IncomeSummary(
            year=self.year,
            filing_status=self.profile.status,
            standard_deduction=finite_or_zero(self.profile.standard_deduction),
            total_income=self.total_income,
        )
