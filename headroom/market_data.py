import logging
import os
from datetime import date, datetime
from typing import Optional

import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)

PRICE_CACHE_DIR = "data/prices"


def _cache_path(symbol: str, cache_dir: str) -> str:
    return os.path.join(cache_dir, f"{symbol.upper()}.csv")


def _is_fresh(path: str, today: Optional[date] = None) -> bool:
    """A cached price file is good for the day it was written."""
    today = today or date.today()
    return datetime.fromtimestamp(os.path.getmtime(path)).date() >= today


def _read_cache(path: str) -> pd.DataFrame:
    return pd.read_csv(path, index_col="Date", parse_dates=True)


def get_price_history(symbol: str, period: str = "5d", cache_dir: str = PRICE_CACHE_DIR,
                      refresh: bool = False) -> pd.DataFrame:
    """
    Fetches recent daily prices for a ticker from yfinance or loads from cache.
    Returns a DataFrame with 'Date' index and a 'Close' column.

    The cache is reused only on the day it was written. A stale cache is
    returned when a refetch fails.
    """
    path = _cache_path(symbol, cache_dir)
    cached = os.path.exists(path)
    if cached and not refresh and _is_fresh(path):
        return _read_cache(path)

    try:
        df = yf.Ticker(symbol.upper()).history(period=period)
    except Exception as e:
        if not cached:
            raise
        logger.warning("Refetch failed for %s, using cached prices: %s", symbol, e)
        return _read_cache(path)

    if df.empty:
        if cached:
            logger.info("No fresh prices for %s, using cached prices", symbol)
            return _read_cache(path)
        return df

    os.makedirs(cache_dir, exist_ok=True)
    df.index.name = "Date"
    df.to_csv(path)
    return df


def get_latest_price(symbol: str, cache_dir: str = PRICE_CACHE_DIR, refresh: bool = False) -> Optional[float]:
    """
    Last close for a ticker, used to prefill FMV / share on equity entries.
    Returns None when the symbol is blank or no price could be fetched.
    """
    if not symbol or not symbol.strip():
        return None
    symbol = symbol.strip()
    try:
        df = get_price_history(symbol, cache_dir=cache_dir, refresh=refresh)
    except Exception as e:
        logger.warning("Price lookup failed for %s: %s", symbol, e)
        return None

    if df.empty or "Close" not in df.columns:
        logger.info("No price history for %s", symbol)
        return None
    closes = df["Close"].dropna()
    if closes.empty:
        return None
    return float(closes.iloc[-1])
