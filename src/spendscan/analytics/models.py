"""Data models for spending analytics."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from spendscan.parsing.models import Transaction


class Category(str, Enum):
    """Closed set of spending categories."""
    ENTERTAINMENT = "Entertainment"
    FOOD_AND_DRINK = "Food & Drink"
    FITNESS = "Fitness"
    SHOPPING = "Shopping"
    TRAVEL = "Travel"
    BILLS = "Bills"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Category":
        """Map a free-form label onto the closed set; anything unknown is Other."""
        if isinstance(label, cls):
            return label
        cleaned = (label or "").strip()
        for category in cls:
            if category.value == cleaned:
                return category
        return cls.OTHER

    @classmethod
    def labels(cls) -> List[str]:
        return [category.value for category in cls]


class Cadence(str, Enum):
    """Recurrence bucket inferred from the mean day gap."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def empty_category_totals() -> Dict[Category, int]:
    """All categories present, zero-initialized."""
    return {category: 0 for category in Category}


def _category_dict(totals: Dict[Category, int]) -> Dict[str, int]:
    return {category.value: cents for category, cents in totals.items()}


@dataclass(frozen=True)
class CategorizedTransaction:
    """Transaction with its (normalized) merchant category."""
    date: Optional[str]
    merchant: str
    amount_cents: int
    category: Category

    @classmethod
    def from_transaction(cls, txn: Transaction, category: Category) -> "CategorizedTransaction":
        return cls(date=txn.date, merchant=txn.merchant, amount_cents=txn.amount_cents, category=category)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "merchant": self.merchant,
            "centsAmount": self.amount_cents,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class Subscription:
    """Recurring payment pattern for one merchant."""
    merchant: str
    cadence: Cadence
    average_cents: int  # median of the group's amounts
    count: int
    last_date: str
    avg_gap_days: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merchant": self.merchant,
            "cadence": self.cadence.value,
            "averageCents": self.average_cents,
            "count": self.count,
            "lastDate": self.last_date,
            "avgGapDays": self.avg_gap_days,
        }


@dataclass(frozen=True)
class MerchantTotal:
    merchant: str
    cents: int

    def to_dict(self) -> Dict[str, Any]:
        return {"merchant": self.merchant, "cents": self.cents}


@dataclass
class Summary:
    """Totals over a categorized transaction list."""
    total_cents: int = 0
    by_category_cents: Dict[Category, int] = field(default_factory=empty_category_totals)
    by_merchant_cents: Dict[str, int] = field(default_factory=dict)
    top_merchants: List[MerchantTotal] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCents": self.total_cents,
            "byCategoryCents": _category_dict(self.by_category_cents),
            "byMerchantCents": dict(self.by_merchant_cents),
            "topMerchants": [m.to_dict() for m in self.top_merchants],
        }


@dataclass
class MonthlySummary:
    """Totals per "YYYY-MM" month, overall and per category."""
    by_month_cents: Dict[str, int] = field(default_factory=dict)
    by_month_category_cents: Dict[str, Dict[Category, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "byMonthCents": dict(self.by_month_cents),
            "byMonthCategoryCents": {
                month: _category_dict(totals)
                for month, totals in self.by_month_category_cents.items()
            },
        }
