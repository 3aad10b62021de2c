"""Transaction aggregation module."""
from typing import List

from spendscan.utils.logger import get_logger
from .models import (
    CategorizedTransaction,
    MerchantTotal,
    MonthlySummary,
    Summary,
    empty_category_totals,
)

logger = get_logger()

TOP_MERCHANT_COUNT = 5


def month_key(date: str) -> str:
    """Return the YYYY-MM bucket of a date string."""
    return date[:7]


class Aggregator:
    """Aggregates categorized transactions by category, merchant and month."""

    def summarize(self, transactions: List[CategorizedTransaction]) -> Summary:
        """
        Build overall totals.

        Args:
            transactions: Categorized transactions (dated or not)

        Returns:
            Summary with all categories present and the top five merchants
        """
        by_category = empty_category_totals()
        by_merchant = {}
        total = 0

        for txn in transactions:
            total += txn.amount_cents
            by_category[txn.category] += txn.amount_cents
            by_merchant[txn.merchant] = by_merchant.get(txn.merchant, 0) + txn.amount_cents

        top_merchants = [
            MerchantTotal(merchant, cents)
            for merchant, cents in sorted(by_merchant.items(), key=lambda item: item[1], reverse=True)
        ][:TOP_MERCHANT_COUNT]

        logger.info(
            f"Aggregated {len(transactions)} transactions across {len(by_merchant)} merchants"
        )

        return Summary(
            total_cents=total,
            by_category_cents=by_category,
            by_merchant_cents=by_merchant,
            top_merchants=top_merchants
        )

    def summarize_by_month(self, transactions: List[CategorizedTransaction]) -> MonthlySummary:
        """Build per-month totals; undated transactions are skipped."""
        by_month = {}
        by_month_category = {}

        for txn in transactions:
            if not txn.date:
                continue

            month = month_key(txn.date)
            by_month[month] = by_month.get(month, 0) + txn.amount_cents

            if month not in by_month_category:
                by_month_category[month] = empty_category_totals()
            by_month_category[month][txn.category] += txn.amount_cents

        logger.debug(f"Monthly summary covers {len(by_month)} months")

        return MonthlySummary(by_month_cents=by_month, by_month_category_cents=by_month_category)
