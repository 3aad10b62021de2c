"""Fixed-format date recognition."""
from datetime import date
from typing import Optional

EPOCH_ORDINAL = date(1970, 1, 1).toordinal()
DAYS_PER_CYCLE = 146097


def parse_date(token: str) -> Optional[str]:
    """
    Recognize a YYYY-MM-DD token.

    Only numeric ranges are checked (month 1-12, day 1-31); days-in-month and
    leap years are not, so "2025-02-30" is accepted.

    Returns:
        The token unchanged, or None
    """
    if len(token) != 10 or token[4] != "-" or token[7] != "-":
        return None

    year, month, day = token[0:4], token[5:7], token[8:10]
    if not all(part.isascii() and part.isdigit() for part in (year, month, day)):
        return None

    if not 1 <= int(month) <= 12:
        return None
    if not 1 <= int(day) <= 31:
        return None

    return token


def epoch_day(date_str: str) -> int:
    """
    Day number of a recognized date, counted from 1970-01-01 at UTC midnight.

    Days beyond the month's real length roll over into the following month,
    so "2025-02-30" falls on the same day as "2025-03-02".
    """
    year = int(date_str[0:4])
    month = int(date_str[5:7])
    day = int(date_str[8:10])

    # Year 0000 is shifted one 400-year cycle forward to stay within date's range
    cycles = 1 if year < date.min.year else 0
    first_of_month = date(year + 400 * cycles, month, 1).toordinal() - DAYS_PER_CYCLE * cycles
    return first_of_month - EPOCH_ORDINAL + day - 1
