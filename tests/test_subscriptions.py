"""Tests for subscription detection."""
import unittest

from spendscan.analytics.models import Cadence
from spendscan.analytics.subscriptions import (
    SubscriptionDetector,
    classify_cadence,
    days_between,
    median,
)
from spendscan.parsing.models import Transaction


def _txns(merchant, dates, cents=1599):
    return [Transaction(date, merchant, cents) for date in dates]


class TestMedian(unittest.TestCase):
    """Test median of cents values."""

    def test_odd(self):
        self.assertEqual(median([100, 200, 300]), 200)
        self.assertEqual(median([300, 100, 200]), 200)

    def test_even(self):
        self.assertEqual(median([100, 200]), 150)

    def test_even_rounds(self):
        self.assertEqual(median([1, 2]), 2)

    def test_single(self):
        self.assertEqual(median([5]), 5)


class TestCadence(unittest.TestCase):
    """Test cadence buckets."""

    def test_bucket_edges_inclusive(self):
        self.assertEqual(classify_cadence(6), Cadence.WEEKLY)
        self.assertEqual(classify_cadence(9), Cadence.WEEKLY)
        self.assertEqual(classify_cadence(12), Cadence.BIWEEKLY)
        self.assertEqual(classify_cadence(16), Cadence.BIWEEKLY)
        self.assertEqual(classify_cadence(27), Cadence.MONTHLY)
        self.assertEqual(classify_cadence(32), Cadence.MONTHLY)
        self.assertEqual(classify_cadence(350), Cadence.YEARLY)
        self.assertEqual(classify_cadence(380), Cadence.YEARLY)

    def test_gaps_between_buckets(self):
        for gap in (5.9, 9.5, 20, 33, 100, 381):
            self.assertIsNone(classify_cadence(gap), gap)

    def test_days_between(self):
        self.assertEqual(days_between("2024-02-28", "2024-03-01"), 2)
        self.assertEqual(days_between("2024-03-01", "2024-02-28"), 2)


class TestSubscriptionDetector(unittest.TestCase):
    """Test SubscriptionDetector functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.detector = SubscriptionDetector()

    def test_monthly_subscription(self):
        txns = _txns("Netflix", ["2024-01-15", "2024-02-14", "2024-03-15", "2024-04-14"])

        result = self.detector.detect(txns)

        self.assertEqual(len(result), 1)
        sub = result[0]
        self.assertEqual(sub.merchant, "Netflix")
        self.assertEqual(sub.cadence, Cadence.MONTHLY)
        self.assertEqual(sub.average_cents, 1599)
        self.assertEqual(sub.count, 4)
        self.assertEqual(sub.last_date, "2024-04-14")
        self.assertEqual(sub.avg_gap_days, 30.0)

    def test_other_cadences(self):
        weekly = self.detector.detect(_txns("Gym", ["2024-01-01", "2024-01-08", "2024-01-15"]))
        biweekly = self.detector.detect(_txns("Cleaner", ["2024-01-01", "2024-01-15", "2024-01-29"]))
        yearly = self.detector.detect(_txns("Domain", ["2023-05-01", "2024-05-01"]))

        self.assertEqual(weekly[0].cadence, Cadence.WEEKLY)
        self.assertEqual(biweekly[0].cadence, Cadence.BIWEEKLY)
        self.assertEqual(yearly[0].cadence, Cadence.YEARLY)
        self.assertEqual(yearly[0].avg_gap_days, 366.0)

    def test_unsorted_input_uses_latest_date(self):
        txns = _txns("Gym", ["2024-01-15", "2024-01-01", "2024-01-08"])
        result = self.detector.detect(txns)
        self.assertEqual(result[0].last_date, "2024-01-15")

    def test_average_gap_rounded_to_one_decimal(self):
        txns = _txns("Gym", ["2024-01-01", "2024-01-08", "2024-01-15", "2024-01-23"])
        self.assertEqual(self.detector.detect(txns)[0].avg_gap_days, 7.3)

    def test_no_cadence_is_dropped(self):
        self.assertEqual(self.detector.detect(_txns("Shop", ["2024-01-01", "2024-01-21"])), [])

    def test_single_transaction_is_dropped(self):
        self.assertEqual(self.detector.detect(_txns("Shop", ["2024-01-01"])), [])

    def test_undated_transactions_excluded(self):
        txns = [
            Transaction(None, "Netflix", 1599),
            Transaction(None, "Netflix", 1599),
            Transaction("2024-01-01", "Netflix", 1599),
        ]
        self.assertEqual(self.detector.detect(txns), [])

    def test_grouping_ignores_case_and_keeps_first_seen_name(self):
        txns = [
            Transaction("2024-02-01", "NETFLIX", 1599),
            Transaction("2024-01-01", " Netflix ", 1599),
        ]
        result = self.detector.detect(txns)
        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].merchant, "NETFLIX")
        self.assertEqual(result[0].last_date, "2024-02-01")

    def test_median_of_amounts(self):
        txns = [
            Transaction("2024-01-01", "Power", 5000),
            Transaction("2024-01-31", "Power", 7000),
            Transaction("2024-03-01", "Power", 6000),
            Transaction("2024-03-31", "Power", 6500),
        ]
        self.assertEqual(self.detector.detect(txns)[0].average_cents, 6250)

    def test_rollover_dates(self):
        result = self.detector.detect(_txns("Rent", ["2025-02-30", "2025-03-30"]))
        self.assertEqual(result[0].avg_gap_days, 28.0)

    def test_sorted_by_count_descending_and_stable(self):
        txns = (
            _txns("Alpha", ["2024-01-01", "2024-01-08"])
            + _txns("Beta", ["2024-01-01", "2024-01-31", "2024-03-01"])
            + _txns("Gamma", ["2024-01-01", "2024-01-15"])
        )
        result = self.detector.detect(txns)
        self.assertEqual([s.merchant for s in result], ["Beta", "Alpha", "Gamma"])

    def test_to_dict(self):
        sub = self.detector.detect(_txns("Gym", ["2024-01-01", "2024-01-08"]))[0]
        self.assertEqual(sub.to_dict(), {
            "merchant": "Gym",
            "cadence": "weekly",
            "averageCents": 1599,
            "count": 2,
            "lastDate": "2024-01-08",
            "avgGapDays": 7.0,
        })


if __name__ == "__main__":
    unittest.main()
