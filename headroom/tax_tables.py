"""
Bracket table loading.

Tables live in one JSON file per tax year (``TaxBrackets_<year>.json``),
each holding an array of per-filing-status tables:

    [{"year": 2025, "status": "Single",
      "brackets": [{"lower": 0, "upper": 11925, "rate": 0.10}, ...]}, ...]

Parsed tables are immutable and cached per (year, status).
"""
import json
import logging
import os
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from headroom.errors import TablesUnavailable
from headroom.models import BracketTable, FilingStatus, TaxBracket

logger = logging.getLogger(__name__)

BRACKET_DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
FILENAME_TEMPLATE = "TaxBrackets_{year}.json"


def parse_brackets(raw_brackets: List[dict]) -> Tuple[TaxBracket, ...]:
    brackets = []
    for raw in raw_brackets:
        upper = raw.get("upper")
        brackets.append(TaxBracket(
            lower=float(raw["lower"]),
            upper=None if upper is None else float(upper),
            rate=float(raw["rate"]),
        ))
    return tuple(sorted(brackets, key=lambda b: b.lower))


def validate_brackets(brackets: Iterable[TaxBracket]) -> None:
    """
    Raises ValueError unless the brackets are contiguous, non-overlapping,
    have unique lower bounds, exactly one unbounded top bracket and rates in [0, 1).
    """
    ordered = sorted(brackets, key=lambda b: b.lower)
    if not ordered:
        raise ValueError("bracket table is empty")

    unbounded = [b for b in ordered if b.upper is None]
    if len(unbounded) != 1:
        raise ValueError(f"expected exactly one top bracket, found {len(unbounded)}")
    if ordered[-1].upper is not None:
        raise ValueError("top bracket must have the highest lower bound")

    for b in ordered:
        if b.lower < 0:
            raise ValueError(f"negative lower bound {b.lower}")
        if not 0 <= b.rate < 1:
            raise ValueError(f"rate {b.rate} outside [0, 1)")
        if b.upper is not None and b.upper <= b.lower:
            raise ValueError(f"bracket upper {b.upper} not above lower {b.lower}")

    for current, following in zip(ordered, ordered[1:]):
        if current.lower == following.lower:
            raise ValueError(f"duplicate lower bound {current.lower}")
        if current.upper != following.lower:
            raise ValueError(f"gap or overlap between {current.upper} and {following.lower}")


class BracketTableProvider:
    """Loads bracket tables from disk and keeps them in memory."""

    def __init__(self, data_dir: str = BRACKET_DATA_DIR):
        self.data_dir = data_dir
        # key: (year, status). Loaded values are immutable, so a racing
        # double-load just stores an equal table twice.
        self._cache: Dict[Tuple[int, FilingStatus], BracketTable] = {}

    def _path_for(self, year: int) -> str:
        return os.path.join(self.data_dir, FILENAME_TEMPLATE.format(year=year))

    def get_bracket_table(self, year: int, status) -> BracketTable:
        status = FilingStatus.parse(status)
        key = (int(year), status)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        table = self._load(int(year), status)
        self._cache[key] = table
        return table

    def _load(self, year: int, status: FilingStatus) -> BracketTable:
        path = self._path_for(year)
        if not os.path.exists(path):
            raise TablesUnavailable(year, status, "file missing")

        try:
            with open(path, "r") as f:
                all_tables = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read bracket file %s: %s", path, e)
            raise TablesUnavailable(year, status, "decode failed") from e

        for raw in all_tables:
            try:
                raw_status = FilingStatus.parse(raw.get("status"))
            except ValueError:
                logger.warning("Skipping table with unknown status %r in %s", raw.get("status"), path)
                continue
            if raw_status != status:
                continue
            try:
                brackets = parse_brackets(raw["brackets"])
                validate_brackets(brackets)
            except (KeyError, TypeError, ValueError) as e:
                logger.error("Invalid %s table for %s in %s: %s", status.value, year, path, e)
                raise TablesUnavailable(year, status, "invalid table") from e
            logger.debug("Loaded %s bracket table for %s", status.value, year)
            return BracketTable(year=year, status=status, brackets=brackets)

        raise TablesUnavailable(year, status, "no table for status")

    def available_years(self) -> List[int]:
        years = []
        if not os.path.isdir(self.data_dir):
            return years
        prefix, suffix = FILENAME_TEMPLATE.split("{year}")
        for name in os.listdir(self.data_dir):
            if name.startswith(prefix) and name.endswith(suffix):
                middle = name[len(prefix):len(name) - len(suffix)]
                if middle.isdigit():
                    years.append(int(middle))
        return sorted(years)

    def prime(self, year: int, statuses: Optional[Iterable[FilingStatus]] = None) -> None:
        """Warm the cache for a year; missing tables are skipped."""
        for status in statuses or list(FilingStatus):
            try:
                self.get_bracket_table(year, status)
            except TablesUnavailable as e:
                logger.info("Skipping prime: %s", e)

    def prime_current_year(self, statuses: Optional[Iterable[FilingStatus]] = None) -> None:
        self.prime(datetime.now().year, statuses)

    def clear(self) -> None:
        self._cache.clear()

    def cached_keys(self) -> List[Tuple[int, FilingStatus]]:
        return list(self._cache.keys())


_default_provider: Optional[BracketTableProvider] = None


def default_provider() -> BracketTableProvider:
    global _default_provider
    if _default_provider is None:
        _default_provider = BracketTableProvider()
    return _default_provider


def get_bracket_table(year: int, status) -> BracketTable:
    return default_provider().get_bracket_table(year, status)
