"""Data models for statement line parsing."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any


class LineShape(str, Enum):
    """Input dialect of a statement line."""
    FREE_TEXT = "free_text"  # "<date?> <merchant words...> <amount>"
    BANK_CSV = "bank_csv"    # quasi-CSV bank export row


@dataclass(frozen=True)
class Transaction:
    """One parsed statement line. Positive cents = spend, negative = refund."""
    date: Optional[str]
    merchant: str
    amount_cents: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "merchant": self.merchant,
            "centsAmount": self.amount_cents,
        }


@dataclass(frozen=True)
class LineOutcome:
    """Result of parsing one line: a transaction, a warning, or neither (skip)."""
    transaction: Optional[Transaction] = None
    warning: Optional[str] = None

    @property
    def is_skip(self) -> bool:
        return self.transaction is None and self.warning is None

    @classmethod
    def skip(cls) -> "LineOutcome":
        return cls()

    @classmethod
    def warn(cls, message: str) -> "LineOutcome":
        return cls(warning=message)

    @classmethod
    def parsed(cls, transaction: Transaction) -> "LineOutcome":
        return cls(transaction=transaction)
