"""Statement text parsing module."""
from .models import Transaction, LineOutcome, LineShape
from .amounts import amount_to_cents
from .dates import parse_date
from .tokenizer import tokenize, split_csv, split_whitespace
from .line_parser import parse_line, parse_text, collect

__all__ = [
    "Transaction",
    "LineOutcome",
    "LineShape",
    "amount_to_cents",
    "parse_date",
    "tokenize",
    "split_csv",
    "split_whitespace",
    "parse_line",
    "parse_text",
    "collect",
]
