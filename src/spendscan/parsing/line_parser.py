"""Statement line parsing into transactions."""
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

from .amounts import amount_to_cents
from .dates import parse_date
from .models import LineOutcome, LineShape, Transaction
from .tokenizer import split_whitespace, tokenize

UNKNOWN_MERCHANT = "Unknown Merchant"

# Column position that bank exports use for debits/refunds
REFUND_COLUMN = 3

_NUMERIC_TOKEN = re.compile(r"[\d.,+\-/:\s$€£]+")


@dataclass(frozen=True)
class DateCandidate:
    position: int
    value: str


@dataclass(frozen=True)
class AmountCandidate:
    position: int
    cents: int
    is_refund: bool


@dataclass(frozen=True)
class TextCandidate:
    position: int
    text: str


TokenCandidate = Union[DateCandidate, AmountCandidate, TextCandidate]


def classify_tokens(tokens: List[str]) -> Iterator[TokenCandidate]:
    """
    Classify bank-export tokens in one left-to-right pass.

    A token may yield several candidates (e.g. both an amount and text).
    Literal quotes around a token are stripped first; zero amounts are not
    amount candidates.
    """
    for position, raw in enumerate(tokens):
        token = raw.strip('"')

        date = parse_date(token)
        if date is not None:
            yield DateCandidate(position, date)

        cents = amount_to_cents(token)
        if cents:
            is_refund = position == REFUND_COLUMN or "-" in token
            yield AmountCandidate(position, cents, is_refund)

        if len(token) > 2 and not _NUMERIC_TOKEN.fullmatch(token):
            yield TextCandidate(position, token)


def parse_free_text_line(line: str) -> LineOutcome:
    """
    Parse "<date?> <merchant words...> <amount>".

    The last token is the amount, the first token is consumed as the date
    when it is one, and the remaining tokens form the merchant.
    """
    trimmed = line.strip()
    if not trimmed:
        return LineOutcome.skip()

    parts = split_whitespace(trimmed)
    if len(parts) < 2:
        return LineOutcome.warn(f'Invalid line: "{line}"')

    cents = amount_to_cents(parts[-1])
    if cents is None:
        return LineOutcome.warn(f'Invalid amount: "{line}"')

    date = parse_date(parts[0])
    merchant_parts = parts[1:-1] if date else parts[:-1]

    merchant = " ".join(merchant_parts).strip()
    if not merchant:
        return LineOutcome.warn(f'Missing merchant: "{line}"')

    return LineOutcome.parsed(Transaction(date=date, merchant=merchant, amount_cents=cents))


def parse_bank_csv_line(line: str) -> LineOutcome:
    """
    Parse one row of a bank CSV export.

    Blank rows, "0" rows and header rows are skipped silently. The first date
    and the first nonzero amount win; the longest text token is the merchant.
    The stored sign comes only from the refund flag (fourth column or a minus
    sign in the amount token).
    """
    trimmed = line.strip()
    if not trimmed or trimmed == "0" or "date" in trimmed.lower():
        return LineOutcome.skip()

    tokens = tokenize(trimmed)
    if len(tokens) < 2:
        return LineOutcome.warn(f'Invalid line: "{line}"')

    date: Optional[DateCandidate] = None
    amount: Optional[AmountCandidate] = None
    texts: List[TextCandidate] = []

    for candidate in classify_tokens(tokens):
        if isinstance(candidate, DateCandidate):
            if date is None:
                date = candidate
        elif isinstance(candidate, AmountCandidate):
            if amount is None:
                amount = candidate
        else:
            texts.append(candidate)

    if amount is None:
        return LineOutcome.warn(f'Amount not found: "{line}"')

    merchant = UNKNOWN_MERCHANT
    longest = 0
    for candidate in texts:
        # Strictly longer only, so the first of equal-length tokens wins
        if len(candidate.text) > longest:
            merchant = candidate.text
            longest = len(candidate.text)

    cents = -abs(amount.cents) if amount.is_refund else abs(amount.cents)

    return LineOutcome.parsed(Transaction(
        date=date.value if date else None,
        merchant=merchant,
        amount_cents=cents
    ))


def parse_line(line: str, shape: LineShape = LineShape.FREE_TEXT) -> LineOutcome:
    """Parse one line in the given input shape."""
    if LineShape(shape) is LineShape.BANK_CSV:
        return parse_bank_csv_line(line)
    return parse_free_text_line(line)


def parse_text(text: str, shape: LineShape = LineShape.FREE_TEXT) -> List[LineOutcome]:
    """Parse every newline-delimited line, keeping input order."""
    return [parse_line(line, shape) for line in text.split("\n")]


def collect(outcomes: List[LineOutcome]) -> Tuple[List[Transaction], List[str]]:
    """Split outcomes into (transactions, warnings), both in line order."""
    transactions = [o.transaction for o in outcomes if o.transaction is not None]
    warnings = [o.warning for o in outcomes if o.warning is not None]
    return transactions, warnings
