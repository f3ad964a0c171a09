import unittest
from datetime import datetime

from headroom.income import FilingProfile, IncomeEntry, IncomeSourceType, YearLedger
from headroom.models import FilingStatus
from headroom.report import DISCLAIMER, build_report, currency, render_markdown
from headroom.tax_tables import BracketTableProvider

GENERATED = datetime(2025, 4, 15, 9, 30)


class TestCurrency(unittest.TestCase):
    def test_should_format_amounts(self):
        self.assertEqual(currency(38350), "$38,350.00")
        self.assertEqual(currency(-1234.5), "-$1,234.50")
        self.assertEqual(currency(None), "-")

    def test_should_format_whole_dollars_for_the_app(self):
        self.assertEqual(currency(38350.4, cents=False), "$38,350")
        self.assertEqual(currency(-1234.4, cents=False), "-$1,234")
        self.assertEqual(currency(None, cents=False, missing="—"), "—")


class TestReport(unittest.TestCase):
    def setUp(self):
        self.ledger = YearLedger(year=2025, profile=FilingProfile(year=2025, status=FilingStatus.SINGLE,
                                                                  standard_deduction=15000))
        self.ledger.add_entry(IncomeEntry(source_type=IncomeSourceType.W2, display_name="Salary", amount=80000))
        self.provider = BracketTableProvider()

    def test_should_include_headroom_and_thresholds(self):
        # Under test
        report = build_report(self.ledger, provider=self.provider, generated_at=GENERATED)
        text = render_markdown(report)

        # Postcondition
        self.assertIsNone(report["headroom_error"])
        self.assertIn("**Tax Year 2025**", text)
        self.assertIn("Generated Apr 15, 2025 09:30", text)
        self.assertIn("- Filing Status: Single", text)
        self.assertIn("- Taxable Income: $65,000.00", text)
        self.assertIn("- **Headroom to Next Bracket: $38,350.00**", text)
        self.assertIn("- Tier 1: $106,000.00", text)
        self.assertIn("- NIIT Threshold: $200,000.00", text)
        self.assertIn("- QBI Phase-in: $196,000.00", text)
        self.assertIn("## Income Entries (1)", text)
        self.assertIn("| Salary | W-2 Wages | $80,000.00 |", text)
        self.assertTrue(text.rstrip().endswith(DISCLAIMER))

    def test_should_mark_top_bracket(self):
        self.ledger.add_entry(IncomeEntry(source_type=IncomeSourceType.BUSINESS, display_name="Exit", amount=1e6))

        text = render_markdown(build_report(self.ledger, provider=self.provider, generated_at=GENERATED))

        self.assertIn("- **Headroom to Next Bracket: Top bracket**", text)

    def test_should_render_without_profile(self):
        # Precondition
        self.ledger.profile = None

        # Under test
        report = build_report(self.ledger, provider=self.provider, generated_at=GENERATED)
        text = render_markdown(report)

        # Postcondition
        self.assertIsNone(report["headroom"])
        self.assertIn("No filing profile set", report["headroom_error"])
        self.assertIn("- No filing profile set.", text)
        self.assertIn("- Total Income: $80,000.00", text)
        self.assertIn("Set a filing profile to include IRMAA, NIIT, and QBI thresholds.", text)


if __name__ == '__main__':
    unittest.main()
