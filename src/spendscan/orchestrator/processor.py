"""Analysis orchestration: parse -> normalize -> categorize -> aggregate.

Merchant calls are the only blocking work and run through a bounded thread
pool. Results are mapped back in input order, so warnings, first-seen merchant
names and subscription display names follow the original line order.
"""
import concurrent.futures
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, TypeVar

from spendscan.analytics.aggregator import Aggregator
from spendscan.analytics.models import (
    Category,
    CategorizedTransaction,
    MonthlySummary,
    Subscription,
    Summary,
)
from spendscan.analytics.subscriptions import SubscriptionDetector
from spendscan.llm.merchant_service import MerchantService
from spendscan.parsing.line_parser import collect, parse_text
from spendscan.parsing.models import LineShape, Transaction
from spendscan.utils.exceptions import AnalysisError, SpendScanError
from spendscan.utils.logger import get_logger

logger = get_logger()

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class AnalysisResult:
    categorized: List[CategorizedTransaction]
    warnings: List[str]
    summary: Summary
    monthly_summary: MonthlySummary
    subscriptions: List[Subscription]
    input_text: str = ""
    transactions: List[Transaction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categorized": [t.to_dict() for t in self.categorized],
            "warnings": list(self.warnings),
            "summary": self.summary.to_dict(),
            "monthlySummary": self.monthly_summary.to_dict(),
            "subscriptions": [s.to_dict() for s in self.subscriptions],
            "inputText": self.input_text,
        }


def map_bounded(items: List[T], fn: Callable[[T], R], limit: int) -> List[R]:
    """Apply fn to items with at most `limit` calls in flight; results keep input order."""
    if not items:
        return []
    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, limit)) as executor:
        return list(executor.map(fn, items))


def unique_in_order(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


class AnalysisOrchestrator:
    """Runs a full analysis of one statement text."""

    def __init__(self, merchant_service: MerchantService, max_concurrency: int = 2):
        self.merchant_service = merchant_service
        self.max_concurrency = max_concurrency
        self.aggregator = Aggregator()
        self.detector = SubscriptionDetector()

    def analyze(self, text: str, shape: LineShape = LineShape.FREE_TEXT) -> AnalysisResult:
        """
        Analyze statement text.

        Args:
            text: Newline-delimited statement text
            shape: Input line dialect

        Returns:
            AnalysisResult

        Raises:
            AnalysisError: if merchant normalization/categorization fails after retries
        """
        transactions, warnings = collect(parse_text(text, shape))
        logger.info(f"Parsed {len(transactions)} transactions with {len(warnings)} warnings")

        try:
            normalized = self._normalize_merchants(transactions)
            categorized = self._categorize(normalized)
        except SpendScanError as e:
            logger.error(f"Merchant enrichment failed: {e}")
            raise AnalysisError(f"Merchant enrichment failed: {e}") from e

        summary = self.aggregator.summarize(categorized)
        monthly_summary = self.aggregator.summarize_by_month(categorized)
        subscriptions = self.detector.detect(normalized)

        return AnalysisResult(
            categorized=categorized,
            warnings=warnings,
            summary=summary,
            monthly_summary=monthly_summary,
            subscriptions=subscriptions,
            input_text=text,
            transactions=transactions
        )

    def _normalize_merchants(self, transactions: List[Transaction]) -> List[Transaction]:
        raw_names = unique_in_order([t.merchant for t in transactions])
        normalized_names = map_bounded(raw_names, self.merchant_service.normalize, self.max_concurrency)
        merchant_map = dict(zip(raw_names, normalized_names))

        logger.info(f"Normalized {len(raw_names)} unique merchants")

        return [
            Transaction(
                date=t.date,
                merchant=merchant_map.get(t.merchant) or t.merchant,
                amount_cents=t.amount_cents
            )
            for t in transactions
        ]

    def _categorize(self, transactions: List[Transaction]) -> List[CategorizedTransaction]:
        names = unique_in_order([t.merchant for t in transactions])
        categories = map_bounded(names, self.merchant_service.categorize, self.max_concurrency)
        category_map = dict(zip(names, categories))

        logger.info(f"Categorized {len(names)} unique merchants")

        return [
            CategorizedTransaction.from_transaction(
                t, Category.from_label(category_map.get(t.merchant))
            )
            for t in transactions
        ]


def analyze_text(
    text: str,
    merchant_service: MerchantService,
    shape: LineShape = LineShape.FREE_TEXT,
    max_concurrency: int = 2
) -> AnalysisResult:
    """Convenience wrapper around AnalysisOrchestrator.analyze."""
    return AnalysisOrchestrator(merchant_service, max_concurrency).analyze(text, shape)
