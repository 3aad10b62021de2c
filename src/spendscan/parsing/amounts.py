"""Amount token normalization to integer cents."""
import re
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Optional

CURRENCY_SYMBOLS = ("$", "€", "£")
MAX_EXPONENT = 308

# Plain decimal literal: sign, digits with optional fraction, optional exponent
_NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def amount_to_cents(raw: str) -> Optional[int]:
    """
    Convert an amount token into signed integer cents.

    When both '.' and ',' appear, whichever occurs last is the decimal point
    and the other is a grouping separator. A lone ',' is a decimal comma.

    Args:
        raw: Raw amount token, e.g. "$1,234.56", "1.234,56", "-12,50"

    Returns:
        Cents rounded half away from zero, or None if the token is not a finite number
    """
    text = raw.strip()
    for symbol in CURRENCY_SYMBOLS:
        text = text.replace(symbol, "")
    text = text.replace(" ", "")

    has_dot = "." in text
    has_comma = "," in text

    if has_dot and has_comma:
        if text.rfind(".") > text.rfind(","):
            text = text.replace(",", "")
        else:
            text = text.replace(".", "").replace(",", ".")
    elif has_comma:
        text = text.replace(",", ".")

    if not _NUMBER_PATTERN.fullmatch(text):
        return None

    value = Decimal(text)
    # Beyond double range there is no finite cent value
    if value.adjusted() > MAX_EXPONENT:
        return None

    with localcontext() as ctx:
        ctx.prec = max(value.adjusted(), 0) + len(text) + 3
        cents = (value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    return int(cents)
