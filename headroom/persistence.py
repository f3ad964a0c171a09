import json
import logging
import math
import os
import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from headroom.income import FilingProfile, IncomeEntry, IncomeSourceType, YearLedger, parse_income_source
from headroom.models import FilingStatus
from headroom.tax_rules import DEFAULT_STANDARD_DEDUCTION

logger = logging.getLogger(__name__)

DATA_FILE = "data/ledgers.json"

# Entries identical to one saved within this many seconds are treated as a double submit
RECENT_DUPLICATE_WINDOW_SECONDS = 1.0


@dataclass
class DataRepairReport:
    """Counts of fixes applied while loading and repairing the ledger store."""
    fixed_non_finite: int = 0
    filled_required: int = 0
    duplicate_ids_fixed: int = 0
    orphans_attached: int = 0
    recent_duplicates_removed: int = 0
    skipped_records: int = 0
    unreadable_store: bool = False
    backup_path: Optional[str] = None

    @property
    def is_clean(self) -> bool:
        return (self.fixed_non_finite == 0 and self.filled_required == 0 and self.duplicate_ids_fixed == 0
                and self.orphans_attached == 0 and self.recent_duplicates_removed == 0
                and self.skipped_records == 0 and not self.unreadable_store)

    @property
    def banner_messages(self) -> List[str]:
        def plural(n, one, many):
            return one if n == 1 else many

        msgs = []
        if self.duplicate_ids_fixed > 0:
            n = self.duplicate_ids_fixed
            msgs.append(f"Repaired {n} duplicate {plural(n, 'ID', 'IDs')}.")
        if self.fixed_non_finite > 0:
            n = self.fixed_non_finite
            msgs.append(f"Normalized {n} non-finite {plural(n, 'value', 'values')}.")
        if self.filled_required > 0:
            n = self.filled_required
            msgs.append(f"Filled {n} required {plural(n, 'field', 'fields')}.")
        if self.orphans_attached > 0:
            n = self.orphans_attached
            msgs.append(f"Attached {n} orphan {plural(n, 'entry', 'entries')} to year ledgers.")
        if self.recent_duplicates_removed > 0:
            n = self.recent_duplicates_removed
            msgs.append(f"Removed {n} recent {plural(n, 'duplicate', 'duplicates')}.")
        if self.unreadable_store:
            msgs.append("Saved data could not be read.")
        if self.skipped_records > 0:
            n = self.skipped_records
            msgs.append(f"Skipped {n} unreadable {plural(n, 'record', 'records')}.")
        if self.backup_path:
            msgs.append(f"The original file was copied to {self.backup_path}.")
        return msgs


# --- Serialization ---

def _number(value, default=None):
    """Floats pass through; unparseable values become NaN so repair can count them."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def entry_to_dict(entry: IncomeEntry) -> dict:
    return {
        "id": entry.id,
        "created_at": entry.created_at.isoformat(),
        "source_type": entry.source_type.value,
        "display_name": entry.display_name,
        "amount": entry.amount,
        "symbol": entry.symbol,
        "shares": entry.shares,
        "fair_market_price": entry.fair_market_price,
        "cost_basis_per_share": entry.cost_basis_per_share,
    }


def entry_from_dict(data: dict) -> IncomeEntry:
    created_raw = data.get("created_at")
    try:
        created_at = datetime.fromisoformat(created_raw) if created_raw else datetime.now()
    except ValueError:
        created_at = datetime.now()
    return IncomeEntry(
        source_type=parse_income_source(data.get("source_type", IncomeSourceType.OTHER.value)),
        display_name=data.get("display_name") or "",
        amount=_number(data.get("amount"), 0.0),
        id=data.get("id") or str(uuid.uuid4()),
        created_at=created_at,
        symbol=data.get("symbol"),
        shares=_number(data.get("shares")),
        fair_market_price=_number(data.get("fair_market_price")),
        cost_basis_per_share=_number(data.get("cost_basis_per_share")),
    )


def ledger_to_dict(ledger: YearLedger) -> dict:
    profile = None
    if ledger.profile is not None:
        profile = {
            "status": ledger.profile.status.value,
            "standard_deduction": ledger.profile.standard_deduction,
        }
    return {
        "year": ledger.year,
        "profile": profile,
        "entries": [entry_to_dict(e) for e in ledger.entries],
    }


# Raised by malformed records: unknown labels, missing keys, non-dict payloads
_RECORD_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


def _record_label(raw) -> str:
    if isinstance(raw, dict):
        return str(raw.get("id") or raw.get("year") or raw.get("display_name") or "?")
    return repr(raw)


def _entries_from_list(raw_entries, report: DataRepairReport) -> List[IncomeEntry]:
    """Parses entries one at a time; unreadable ones are logged, counted and left out."""
    entries = []
    for raw in raw_entries or []:
        try:
            entries.append(entry_from_dict(raw))
        except _RECORD_ERRORS as e:
            logger.warning("Skipping unreadable income entry %s: %s", _record_label(raw), e)
            report.skipped_records += 1
    return entries


def _ledger_from_dict(data: dict, report: DataRepairReport) -> YearLedger:
    year = int(data["year"])
    profile = None
    raw_profile = data.get("profile")
    if raw_profile:
        try:
            profile = FilingProfile(
                year=year,
                status=FilingStatus.parse(raw_profile.get("status", FilingStatus.SINGLE.value)),
                standard_deduction=_number(raw_profile.get("standard_deduction"), DEFAULT_STANDARD_DEDUCTION),
            )
        except _RECORD_ERRORS as e:
            # The entries are still usable without a profile
            logger.warning("Skipping unreadable filing profile for %s: %s", year, e)
            report.skipped_records += 1
    entries = _entries_from_list(data.get("entries", []), report)
    return YearLedger(year=year, profile=profile, entries=entries)


def ledger_from_dict(data: dict) -> YearLedger:
    return _ledger_from_dict(data, DataRepairReport())


# --- Disk IO ---

def backup_store(filepath: str = DATA_FILE) -> Optional[str]:
    """Copies the store aside before a partial load can be saved over it."""
    backup_path = f"{filepath}.{datetime.now():%Y%m%d%H%M%S}.bak"
    try:
        shutil.copy2(filepath, backup_path)
    except OSError as e:
        logger.error("Could not back up %s: %s", filepath, e)
        return None
    logger.warning("Backed up %s to %s", filepath, backup_path)
    return backup_path


def store_exists(filepath: str = DATA_FILE) -> bool:
    return os.path.exists(filepath)


def load_store(filepath: str = DATA_FILE,
               report: Optional[DataRepairReport] = None) -> Tuple[Dict[int, YearLedger], List[IncomeEntry]]:
    """
    Loads ledgers keyed by year plus any entries saved without a ledger.

    Records that cannot be parsed are skipped one by one and counted on the
    report; the rest of the file still loads. When anything was skipped, or
    the file cannot be decoded at all, a backup copy is written next to it.
    Returns empty collections when the file is missing.
    """
    report = report if report is not None else DataRepairReport()
    if not os.path.exists(filepath):
        return {}, []
    try:
        with open(filepath, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, found {type(data).__name__}")
    except (OSError, ValueError) as e:
        logger.error("Error loading ledgers from %s: %s", filepath, e)
        report.unreadable_store = True
        report.backup_path = backup_store(filepath)
        return {}, []

    ledgers: Dict[int, YearLedger] = {}
    for raw in data.get("ledgers") or []:
        try:
            ledger = _ledger_from_dict(raw, report)
        except _RECORD_ERRORS as e:
            logger.warning("Skipping unreadable ledger %s: %s", _record_label(raw), e)
            report.skipped_records += 1
            continue
        if ledger.year in ledgers:
            ledgers[ledger.year].entries.extend(ledger.entries)
            if ledgers[ledger.year].profile is None:
                ledgers[ledger.year].profile = ledger.profile
        else:
            ledgers[ledger.year] = ledger
    orphans = _entries_from_list(data.get("unassigned_entries") or [], report)

    if report.skipped_records:
        report.backup_path = backup_store(filepath)
    return ledgers, orphans


def load_ledgers(filepath: str = DATA_FILE, repair: bool = True) -> Tuple[Dict[int, YearLedger], DataRepairReport]:
    """Loads ledgers and, by default, runs the repair pass over them."""
    report = DataRepairReport()
    ledgers, orphans = load_store(filepath, report)
    if repair:
        repair_ledgers(ledgers, orphans, report=report)
    else:
        for entry in orphans:
            ensure_ledger(ledgers, entry.created_at.year).add_entry(entry)
    if not report.is_clean:
        logger.info("Repaired ledger data: %s", report)
    return ledgers, report


def save_ledgers(ledgers: Dict[int, YearLedger], filepath: str = DATA_FILE) -> None:
    data = {"ledgers": [ledger_to_dict(ledgers[y]) for y in sorted(ledgers)]}
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    try:
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        logger.error("Error saving ledgers to %s: %s", filepath, e)
        raise


def ensure_ledger(ledgers: Dict[int, YearLedger], year: int) -> YearLedger:
    if year not in ledgers:
        ledgers[year] = YearLedger(year=year)
    return ledgers[year]


# --- Repair ---

def _non_finite(value) -> bool:
    return isinstance(value, (int, float)) and not math.isfinite(value)


def repair_ledgers(ledgers: Dict[int, YearLedger],
                   orphans: Optional[List[IncomeEntry]] = None,
                   remove_recent_duplicates: bool = True,
                   report: Optional[DataRepairReport] = None) -> DataRepairReport:
    """
    One-shot repair pass so downstream views never see NaN/inf amounts,
    blank names, clashing ids or double-submitted entries. Mutates in place.
    Counts are added to report when one is given.
    """
    report = report if report is not None else DataRepairReport()

    # Orphans go to the ledger for the year they were created
    for entry in orphans or []:
        ensure_ledger(ledgers, entry.created_at.year).add_entry(entry)
        report.orphans_attached += 1

    all_entries = [e for ledger in ledgers.values() for e in ledger.entries]

    seen_ids = set()
    for entry in all_entries:
        if entry.id in seen_ids:
            entry.id = str(uuid.uuid4())
            report.duplicate_ids_fixed += 1
        seen_ids.add(entry.id)

    for entry in all_entries:
        if entry.amount is None or _non_finite(entry.amount):
            entry.amount = 0.0
            report.fixed_non_finite += 1
        for attr in ("shares", "fair_market_price", "cost_basis_per_share"):
            if _non_finite(getattr(entry, attr)):
                setattr(entry, attr, None)
                report.fixed_non_finite += 1
        if not entry.display_name or not entry.display_name.strip():
            entry.display_name = "Income"
            report.filled_required += 1

    for ledger in ledgers.values():
        if ledger.profile is not None and _non_finite(ledger.profile.standard_deduction):
            ledger.profile.standard_deduction = DEFAULT_STANDARD_DEDUCTION
            report.fixed_non_finite += 1

    if remove_recent_duplicates:
        for ledger in ledgers.values():
            report.recent_duplicates_removed += _remove_recent_duplicates(ledger)

    return report


def _remove_recent_duplicates(ledger: YearLedger) -> int:
    groups: Dict[tuple, List[IncomeEntry]] = {}
    for entry in ledger.entries:
        key = (entry.source_type, entry.display_name.strip().lower(), int(round(entry.amount * 100)))
        groups.setdefault(key, []).append(entry)

    dropped = set()
    for group in groups.values():
        newest_first = sorted(group, key=lambda e: e.created_at, reverse=True)
        newest = newest_first[0]
        for entry in newest_first[1:]:
            gap = abs((newest.created_at - entry.created_at).total_seconds())
            if gap <= RECENT_DUPLICATE_WINDOW_SECONDS:
                dropped.add(entry.id)

    if dropped:
        ledger.entries = [e for e in ledger.entries if e.id not in dropped]
    return len(dropped)


# --- Sample data ---

def seed_sample_ledger(year: Optional[int] = None, now: Optional[datetime] = None) -> YearLedger:
    """Demo ledger for a first run with an empty store."""
    now = now or datetime.now()
    year = year or now.year
    ledger = YearLedger(year=year, profile=FilingProfile(year=year, status=FilingStatus.SINGLE,
                                                          standard_deduction=DEFAULT_STANDARD_DEDUCTION))
    samples = [
        (IncomeSourceType.W2, "Base Salary", 120000.0),
        (IncomeSourceType.BONUS_W2, "Annual Bonus", 15000.0),
        (IncomeSourceType.RSU, f"Restricted Stock Vested - {year}", 10000.0),
        (IncomeSourceType.INTEREST, "High-Yield Savings Interest", 420.0),
    ]
    for source_type, name, amount in samples:
        ledger.add_entry(IncomeEntry(source_type=source_type, display_name=name, amount=amount, created_at=now))
    return ledger
