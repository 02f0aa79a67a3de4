"""
Results Ingest: Worksheet Column Names

Spreadsheet columns are named A-Z, then AA-ZZ, then AAA and so on. This is
bijective base-26 numbering where the digit 0 is "A".
"""

import string
from itertools import count, islice, product
from typing import Iterator

LETTERS = string.ascii_uppercase


def column_name(index: int) -> str:
    """
    Get the name of the column at a zero-based index.

    >>> column_name(0), column_name(26), column_name(701), column_name(702)
    ('A', 'AA', 'ZZ', 'AAA')
    """
    if index < 0:
        raise ValueError(f"column index must not be negative, got {index}")

    name = ""
    n = index + 1
    while n:
        n, remainder = divmod(n - 1, 26)
        name = LETTERS[remainder] + name
    return name


def column_index(name: str) -> int:
    """Inverse of :func:`column_name`."""
    if not name or not name.isalpha():
        raise ValueError(f"invalid column name: {name!r}")

    n = 0
    for letter in name.upper():
        n = n * 26 + LETTERS.index(letter) + 1
    return n - 1


def cell_reference(column: int, row: int) -> str:
    """Build a cell reference from a zero-based column and a one-based row, e.g. ``C7``."""
    return f"{column_name(column)}{row}"


def xlsx_columns() -> Iterator[str]:
    """
    Lazily enumerate every column name in order.

    Each call returns a fresh iterator starting again from "A".
    """
    for width in count(1):
        for letters in product(LETTERS, repeat=width):
            yield "".join(letters)


def nth_column(n: int) -> str:
    """The n-th (zero-based) name produced by :func:`xlsx_columns`."""
    return next(islice(xlsx_columns(), n, None))
