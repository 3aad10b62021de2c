"""Line tokenization for statement text."""
from typing import List


def split_whitespace(line: str) -> List[str]:
    """Split on runs of whitespace, dropping empty fragments."""
    return [part.strip() for part in line.split() if part.strip()]


def split_csv(line: str) -> List[str]:
    """
    Split a quasi-CSV row on commas outside double quotes.

    Quote characters toggle the quoted state and are not emitted. Fields are
    trimmed; empty fields are dropped.

    Args:
        line: Raw row text

    Returns:
        List of non-empty trimmed fields
    """
    fields = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))

    return [field.strip() for field in fields if field.strip()]


def tokenize(line: str) -> List[str]:
    """CSV split when the line contains a comma, whitespace split otherwise."""
    if "," in line:
        return split_csv(line)
    return split_whitespace(line)
