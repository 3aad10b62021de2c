"""Spending analytics module."""
from .models import (
    Category,
    Cadence,
    CategorizedTransaction,
    Subscription,
    MerchantTotal,
    Summary,
    MonthlySummary,
)
from .aggregator import Aggregator
from .subscriptions import SubscriptionDetector, find_subscriptions, median

__all__ = [
    "Category",
    "Cadence",
    "CategorizedTransaction",
    "Subscription",
    "MerchantTotal",
    "Summary",
    "MonthlySummary",
    "Aggregator",
    "SubscriptionDetector",
    "find_subscriptions",
    "median",
]
