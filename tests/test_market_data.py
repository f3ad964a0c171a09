import os
import tempfile
import time
import unittest
from unittest import mock

import pandas as pd

from headroom import market_data


def price_frame(closes):
    index = pd.date_range("2025-01-02", periods=len(closes), freq="D", name="Date")
    return pd.DataFrame({"Close": closes}, index=index)


class TestLatestPrice(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def test_should_return_none_for_blank_symbol(self):
        self.assertIsNone(market_data.get_latest_price("  ", cache_dir=self.tmp.name))

    def test_should_fetch_and_cache_last_close(self):
        # Precondition
        with mock.patch.object(market_data.yf, "Ticker") as ticker:
            ticker.return_value.history.return_value = price_frame([10.0, 11.0, 12.5])

            # Under test
            price = market_data.get_latest_price("acme", cache_dir=self.tmp.name)

        # Postcondition
        self.assertEqual(price, 12.5)
        ticker.assert_called_once_with("ACME")
        self.assertTrue(os.path.exists(os.path.join(self.tmp.name, "ACME.csv")))

    def test_should_read_cached_prices_without_network(self):
        # Precondition
        price_frame([20.0, 21.0]).to_csv(os.path.join(self.tmp.name, "ACME.csv"))

        # Under test
        with mock.patch.object(market_data.yf, "Ticker") as ticker:
            price = market_data.get_latest_price("ACME", cache_dir=self.tmp.name)

        # Postcondition
        self.assertEqual(price, 21.0)
        ticker.assert_not_called()

    def age_cache(self, path, days):
        stamp = time.time() - days * 86400
        os.utime(path, (stamp, stamp))

    def test_should_refetch_when_cache_is_from_an_earlier_day(self):
        # Precondition
        path = os.path.join(self.tmp.name, "ACME.csv")
        price_frame([20.0, 21.0]).to_csv(path)
        self.age_cache(path, 3)

        # Under test
        with mock.patch.object(market_data.yf, "Ticker") as ticker:
            ticker.return_value.history.return_value = price_frame([30.0, 31.5])
            price = market_data.get_latest_price("ACME", cache_dir=self.tmp.name)

        # Postcondition
        self.assertEqual(price, 31.5)
        ticker.assert_called_once_with("ACME")
        self.assertEqual(market_data.get_latest_price("ACME", cache_dir=self.tmp.name), 31.5)

    def test_should_fall_back_to_stale_cache_when_refetch_fails(self):
        path = os.path.join(self.tmp.name, "ACME.csv")
        price_frame([20.0, 21.0]).to_csv(path)
        self.age_cache(path, 3)

        with mock.patch.object(market_data.yf, "Ticker", side_effect=RuntimeError("offline")) as ticker:
            price = market_data.get_latest_price("ACME", cache_dir=self.tmp.name)

        self.assertEqual(price, 21.0)
        ticker.assert_called_once_with("ACME")

    def test_should_return_none_when_lookup_fails(self):
        with mock.patch.object(market_data.yf, "Ticker", side_effect=RuntimeError("offline")):
            self.assertIsNone(market_data.get_latest_price("ACME", cache_dir=self.tmp.name))

    def test_should_return_none_for_empty_history(self):
        with mock.patch.object(market_data.yf, "Ticker") as ticker:
            ticker.return_value.history.return_value = pd.DataFrame()

            self.assertIsNone(market_data.get_latest_price("ACME", cache_dir=self.tmp.name))
        self.assertFalse(os.path.exists(os.path.join(self.tmp.name, "ACME.csv")))


if __name__ == '__main__':
    unittest.main()
