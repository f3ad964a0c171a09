import unittest
from unittest import mock

from headroom import tax_rules
from headroom.income import FilingProfile, IncomeEntry, IncomeSourceType, YearLedger
from headroom.models import (
    FilingStatus,
    IncomeSummary,
    InsightStatus,
    ScenarioInputs,
    TaxThresholds,
    ThresholdDetail,
    ThresholdInsight,
    ThresholdKind,
    taxable_equivalent,
)
from headroom.thresholds import (
    classify,
    evaluate_insights,
    insights_for_ledger,
    next_tier,
    rank_insights,
    thresholds_for,
)


def summary(total_income: float, year: int = 2025, status=FilingStatus.SINGLE) -> IncomeSummary:
    return IncomeSummary(year=year, filing_status=status, standard_deduction=15000, total_income=total_income)


def detail(key: str, limit: float, kind=ThresholdKind.SURTAX) -> ThresholdDetail:
    return ThresholdDetail(key=key, label=key.upper(), limit=limit, kind=kind)


class TestClassify(unittest.TestCase):
    def test_should_flag_approaching_within_scaled_band(self):
        # limit 200000, income 195500 -> proximity 4500, band max(5000, 20000)
        self.assertEqual(classify(200000 - 195500, 200000), InsightStatus.APPROACHING)

    def test_should_use_floor_band_for_small_limits(self):
        self.assertEqual(classify(4999, 20000), InsightStatus.APPROACHING)
        self.assertEqual(classify(5000, 20000), InsightStatus.APPROACHING)
        self.assertEqual(classify(5001, 20000), InsightStatus.CLEAR)

    def test_should_flag_exceeded_at_or_past_limit(self):
        self.assertEqual(classify(0, 200000), InsightStatus.EXCEEDED)
        self.assertEqual(classify(-1, 200000), InsightStatus.EXCEEDED)

    def test_should_flag_clear_outside_band(self):
        self.assertEqual(classify(20001, 200000), InsightStatus.CLEAR)


class TestNextTier(unittest.TestCase):
    def setUp(self):
        self.tiers = [detail(f"t{i}", limit, ThresholdKind.MEANS_TESTED_TIER)
                      for i, limit in enumerate([106000, 133000, 166000])]

    def test_should_pick_first_tier_above_income(self):
        self.assertEqual(next_tier(120000, self.tiers).limit, 133000)

    def test_should_skip_tier_equal_to_income(self):
        self.assertEqual(next_tier(106000, self.tiers).limit, 133000)

    def test_should_fall_back_to_highest_tier_when_all_exceeded(self):
        self.assertEqual(next_tier(900000, self.tiers).limit, 166000)

    def test_should_return_none_without_tiers(self):
        self.assertIsNone(next_tier(100000, []))


class TestEvaluateInsights(unittest.TestCase):
    def test_should_emit_one_insight_per_threshold_group(self):
        # Under test
        insights = evaluate_insights(summary(120000))

        # Postcondition
        kinds = [i.detail.kind for i in insights]
        self.assertEqual(len(insights), 3)
        self.assertEqual(kinds.count(ThresholdKind.MEANS_TESTED_TIER), 1)
        self.assertIn(ThresholdKind.SURTAX, kinds)
        self.assertIn(ThresholdKind.QBI_PHASE_IN, kinds)

    def test_should_rank_approaching_insights_by_proximity(self):
        # Precondition: 2025 single - IRMAA 199000, NIIT 200000, QBI 196000
        income = summary(195500)

        # Under test
        insights = evaluate_insights(income)

        # Postcondition
        self.assertEqual([i.detail.kind for i in insights],
                         [ThresholdKind.QBI_PHASE_IN, ThresholdKind.MEANS_TESTED_TIER, ThresholdKind.SURTAX])
        self.assertTrue(all(i.status == InsightStatus.APPROACHING for i in insights))
        self.assertEqual([i.proximity for i in insights], [500, 3500, 4500])

    def test_should_order_exceeded_then_approaching_then_clear(self):
        # Precondition
        thresholds = TaxThresholds(
            means_tested_tiers=(detail("tier", 105000, ThresholdKind.MEANS_TESTED_TIER),),
            surtax=detail("surtax", 90000),
            qbi_phase_in=detail("qbi", 300000, ThresholdKind.QBI_PHASE_IN),
        )

        # Under test
        insights = evaluate_insights(summary(100000), ScenarioInputs.zero(), thresholds)

        # Postcondition
        self.assertEqual([i.status for i in insights],
                         [InsightStatus.EXCEEDED, InsightStatus.APPROACHING, InsightStatus.CLEAR])
        self.assertEqual([i.key for i in insights], ["surtax", "tier", "qbi"])
        self.assertEqual(insights[0].proximity, -10000)

    def test_should_use_gross_income_not_taxable_income(self):
        # A 15000 deduction must not move the surtax proximity
        insights = evaluate_insights(summary(150000))
        surtax = next(i for i in insights if i.detail.kind == ThresholdKind.SURTAX)

        self.assertEqual(surtax.proximity, 200000 - 150000)

    def test_should_apply_scenario_adjustment(self):
        # Precondition
        adjustment = ScenarioInputs(additional_ordinary_income=40000, additional_long_term_capital_gains=20000)

        # Under test
        insights = evaluate_insights(summary(150000), adjustment)

        # Postcondition: 210000 total - NIIT and QBI exceeded, next IRMAA tier is 510000
        by_kind = {i.detail.kind: i for i in insights}
        self.assertEqual(by_kind[ThresholdKind.SURTAX].status, InsightStatus.EXCEEDED)
        self.assertEqual(by_kind[ThresholdKind.QBI_PHASE_IN].status, InsightStatus.EXCEEDED)
        self.assertEqual(by_kind[ThresholdKind.MEANS_TESTED_TIER].detail.limit, 510000)

    def test_should_report_highest_tier_exceeded_above_all_tiers(self):
        insights = evaluate_insights(summary(600000))
        tier = next(i for i in insights if i.detail.kind == ThresholdKind.MEANS_TESTED_TIER)

        self.assertEqual(tier.detail.limit, 510000)
        self.assertEqual(tier.status, InsightStatus.EXCEEDED)
        self.assertEqual(tier.proximity, -90000)

    def test_should_return_none_when_dataset_lacks_status(self):
        # Precondition
        single_only = {2025: {FilingStatus.SINGLE: tax_rules.THRESHOLD_DATASET[2025][FilingStatus.SINGLE]}}

        # Under test
        thresholds = thresholds_for(2025, FilingStatus.MARRIED_JOINT, dataset=single_only)

        # Postcondition
        self.assertIsNone(thresholds)

    def test_should_return_empty_without_threshold_data(self):
        with mock.patch.object(tax_rules, "THRESHOLD_DATASET", {}):
            self.assertEqual(evaluate_insights(summary(100000)), [])

    def test_should_treat_nan_income_as_zero(self):
        self.assertEqual(evaluate_insights(summary(float("nan"))), evaluate_insights(summary(0)))


class TestRankInsights(unittest.TestCase):
    def test_should_rank_by_status_regardless_of_input_order(self):
        # Precondition
        clear = ThresholdInsight(detail("a", 300000), InsightStatus.CLEAR, 150000)
        exceeded = ThresholdInsight(detail("b", 100000), InsightStatus.EXCEEDED, -50000)
        approaching = ThresholdInsight(detail("c", 160000), InsightStatus.APPROACHING, 10000)

        for ordering in ([clear, exceeded, approaching], [approaching, clear, exceeded], [exceeded, approaching, clear]):
            # Under test
            ranked = rank_insights(ordering)

            # Postcondition
            self.assertEqual([i.status for i in ranked],
                             [InsightStatus.EXCEEDED, InsightStatus.APPROACHING, InsightStatus.CLEAR])

    def test_should_keep_input_order_for_full_ties(self):
        first = ThresholdInsight(detail("first", 100), InsightStatus.CLEAR, 100)
        second = ThresholdInsight(detail("second", 100), InsightStatus.CLEAR, 100)

        self.assertEqual(rank_insights([first, second]), [first, second])
        self.assertEqual(rank_insights([second, first]), [second, first])


class TestThresholdLookup(unittest.TestCase):
    def test_should_return_exact_year(self):
        self.assertEqual(thresholds_for(2024, FilingStatus.SINGLE).surtax.limit, 200000)
        self.assertEqual(thresholds_for(2024, FilingStatus.SINGLE).qbi_phase_in.limit, 191100)

    def test_should_fall_back_to_nearest_lower_year(self):
        self.assertEqual(thresholds_for(2030, FilingStatus.SINGLE), tax_rules.THRESHOLD_DATASET[2025][FilingStatus.SINGLE])

    def test_should_fall_back_to_nearest_higher_year(self):
        self.assertEqual(thresholds_for(2019, FilingStatus.SINGLE), tax_rules.THRESHOLD_DATASET[2024][FilingStatus.SINGLE])

    def test_should_prefer_lower_year_over_closer_higher_year(self):
        # Precondition
        dataset = {
            2020: tax_rules.THRESHOLD_DATASET[2024],
            2023: tax_rules.THRESHOLD_DATASET[2025],
        }

        # Under test
        match = thresholds_for(2022, FilingStatus.SINGLE, dataset=dataset)

        # Postcondition
        self.assertIs(match, dataset[2020][FilingStatus.SINGLE])

    def test_should_accept_status_label(self):
        self.assertEqual(thresholds_for(2025, "Married Filing Jointly").surtax.limit, 250000)

    def test_should_build_status_specific_thresholds(self):
        mfs = thresholds_for(2025, FilingStatus.MARRIED_SEPARATE)
        hoh = thresholds_for(2025, FilingStatus.HEAD_OF_HOUSEHOLD)
        mfj = thresholds_for(2025, FilingStatus.MARRIED_JOINT)

        self.assertEqual(mfs.surtax.key, "niit_separate")
        self.assertEqual(mfs.surtax.limit, 125000)
        self.assertEqual(mfs.qbi_phase_in.key, "qbi_single")
        self.assertEqual(hoh.surtax.key, "niit_single")
        self.assertEqual(mfj.qbi_phase_in.limit, 392000)
        self.assertEqual([t.limit for t in mfj.means_tested_tiers], [212000, 266000, 332000, 398000, 770000])
        self.assertEqual(mfj.means_tested_tiers[0].key, "irmaa_mfj_tier_0")
        self.assertEqual(mfj.means_tested_tiers[0].label, "IRMAA Tier 1")


class TestTaxableEquivalent(unittest.TestCase):
    def test_should_subtract_standard_deduction(self):
        d = detail("niit", 200000)
        self.assertEqual(taxable_equivalent(d, 15000), 185000)
        self.assertEqual(d.taxable_equivalent(15000), 185000)

    def test_should_floor_at_zero(self):
        self.assertEqual(taxable_equivalent(detail("x", 10000), 15000), 0)


class TestInsightsForLedger(unittest.TestCase):
    def test_should_return_empty_without_profile(self):
        ledger = YearLedger(year=2025)
        ledger.add_entry(IncomeEntry(source_type=IncomeSourceType.W2, display_name="Salary", amount=150000))

        self.assertEqual(insights_for_ledger(ledger), [])

    def test_should_evaluate_ledger_totals(self):
        # Precondition
        ledger = YearLedger(year=2025, profile=FilingProfile(year=2025, status=FilingStatus.SINGLE))
        ledger.add_entry(IncomeEntry(source_type=IncomeSourceType.W2, display_name="Salary", amount=150000))
        ledger.add_entry(IncomeEntry(source_type=IncomeSourceType.DIVIDENDS, display_name="Divs", amount=5000))

        # Under test
        insights = insights_for_ledger(ledger)

        # Postcondition
        tier = next(i for i in insights if i.detail.kind == ThresholdKind.MEANS_TESTED_TIER)
        self.assertEqual(tier.detail.limit, 166000)
        self.assertEqual(tier.proximity, 11000)
        self.assertEqual(tier.status, InsightStatus.APPROACHING)


if __name__ == '__main__':
    unittest.main()
