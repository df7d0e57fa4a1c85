"""ISBN normalisation and validation."""

import re

from bookstore.core.errors import ValidationError

_NON_ISBN_CHARS = re.compile(r"[^0-9X]", re.IGNORECASE)


def normalize_isbn(raw: str) -> str:
    """Strip everything except digits and the ``X`` check digit."""
    return _NON_ISBN_CHARS.sub("", raw or "").upper()


def _isbn10_checksum_ok(isbn: str) -> bool:
    if not isbn[:9].isdigit() or not (isbn[9].isdigit() or isbn[9] == "X"):
        return False
    total = 0
    for position, char in enumerate(isbn):
        value = 10 if char == "X" else int(char)
        total += (10 - position) * value
    return total % 11 == 0


def _isbn13_checksum_ok(isbn: str) -> bool:
    if not isbn.isdigit():
        return False
    total = sum(int(char) * (1 if i % 2 == 0 else 3) for i, char in enumerate(isbn))
    return total % 10 == 0


def is_valid_isbn(raw: str, check_checksum: bool = False) -> bool:
    """Length check on the normalised form; optionally verify the check digit."""
    isbn = normalize_isbn(raw)
    if len(isbn) == 10:
        return _isbn10_checksum_ok(isbn) if check_checksum else True
    if len(isbn) == 13:
        return _isbn13_checksum_ok(isbn) if check_checksum else True
    return False


def validate_isbn(raw: str, check_checksum: bool = False) -> str:
    """Return the normalised ISBN or raise :class:`ValidationError`."""
    if not is_valid_isbn(raw, check_checksum=check_checksum):
        raise ValidationError("Invalid ISBN format")
    return normalize_isbn(raw)
