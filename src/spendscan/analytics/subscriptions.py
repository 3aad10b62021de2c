"""Recurring payment (subscription) detection."""
import math
from typing import Dict, List, Optional, Sequence

from spendscan.parsing.dates import epoch_day
from spendscan.parsing.models import Transaction
from spendscan.utils.logger import get_logger
from .models import Cadence, Subscription

logger = get_logger()

# Inclusive mean-gap ranges in days, checked in order
CADENCE_BUCKETS = (
    (Cadence.WEEKLY, 6, 9),
    (Cadence.BIWEEKLY, 12, 16),
    (Cadence.MONTHLY, 27, 32),
    (Cadence.YEARLY, 350, 380),
)


def merchant_key(merchant: str) -> str:
    """Grouping key for a merchant name."""
    return merchant.strip().lower()


def median(values: Sequence[int]) -> int:
    """Middle value; for even counts the mean of the two middle values, rounded."""
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[middle]
    return _round_half_up((ordered[middle - 1] + ordered[middle]) / 2)


def days_between(a: str, b: str) -> int:
    """Whole calendar days between two YYYY-MM-DD dates."""
    return abs(epoch_day(b) - epoch_day(a))


def classify_cadence(average_gap: float) -> Optional[Cadence]:
    for cadence, low, high in CADENCE_BUCKETS:
        if low <= average_gap <= high:
            return cadence
    return None


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class SubscriptionDetector:
    """Infers recurring payments from same-merchant transaction dates."""

    def detect(self, transactions: List[Transaction]) -> List[Subscription]:
        """
        Detect subscriptions.

        Args:
            transactions: Transactions in original line order; undated ones are ignored

        Returns:
            Subscriptions sorted by count descending (stable for ties)
        """
        groups: Dict[str, List[Transaction]] = {}
        for txn in transactions:
            if txn.date is None:
                continue
            groups.setdefault(merchant_key(txn.merchant), []).append(txn)

        results = []
        for key, members in groups.items():
            if len(members) < 2:
                continue

            subscription = self._evaluate_group(members)
            if subscription is None:
                logger.debug(f"No cadence for merchant group '{key}' ({len(members)} transactions)")
                continue
            results.append(subscription)

        results.sort(key=lambda s: s.count, reverse=True)

        logger.info(f"Detected {len(results)} subscriptions across {len(groups)} merchant groups")
        return results

    def _evaluate_group(self, members: List[Transaction]) -> Optional[Subscription]:
        display_name = members[0].merchant
        ordered = sorted(members, key=lambda t: t.date)

        gaps = [
            days_between(previous.date, current.date)
            for previous, current in zip(ordered, ordered[1:])
        ]
        average_gap = sum(gaps) / len(gaps)

        cadence = classify_cadence(average_gap)
        if cadence is None:
            return None

        return Subscription(
            merchant=display_name,
            cadence=cadence,
            average_cents=median([t.amount_cents for t in ordered]),
            count=len(ordered),
            last_date=ordered[-1].date,
            avg_gap_days=_round_half_up(average_gap * 10) / 10,
        )


def find_subscriptions(transactions: List[Transaction]) -> List[Subscription]:
    return SubscriptionDetector().detect(transactions)
