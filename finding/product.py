"""Product identifier validation (ISBN, UPC, EAN and eBay reference IDs)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .errors import ErrorKind, FindingError, invalid_enum

ISBN_SHORT_LENGTH = 10
ISBN_LONG_LENGTH = 13
UPC_LENGTH = 12
EAN_SHORT_LENGTH = 8
EAN_LONG_LENGTH = 13


class ProductIDType(str, Enum):
    REFERENCE_ID = "ReferenceID"
    ISBN = "ISBN"
    UPC = "UPC"
    EAN = "EAN"


@dataclass(frozen=True)
class ProductID:
    """A typed product identifier, validated on construction via :func:`parse_product_id`."""

    id_type: ProductIDType
    value: str


def _digits(value: str) -> Optional[List[int]]:
    if not value.isascii() or not value.isdigit():
        return None
    return [int(ch) for ch in value]


def is_valid_isbn10(value: str) -> bool:
    """Running-sum ISBN-10 check; ``X`` stands for 10 in the final position only."""

    total = 0
    running = 0
    for idx, ch in enumerate(value):
        if "0" <= ch <= "9":
            digit = int(ch)
        elif ch == "X" and idx == len(value) - 1:
            digit = 10
        else:
            return False
        running += digit
        total += running
    return total % 11 == 0


def _weighted_sum(digits: Iterable[int], *, triple_even: bool) -> int:
    total = 0
    for idx, digit in enumerate(digits):
        if (idx % 2 == 0) == triple_even:
            total += digit * 3
        else:
            total += digit
    return total


def is_valid_isbn13(value: str) -> bool:
    digits = _digits(value)
    return digits is not None and _weighted_sum(digits, triple_even=False) % 10 == 0


def is_valid_upc(value: str) -> bool:
    digits = _digits(value)
    return digits is not None and _weighted_sum(digits, triple_even=True) % 10 == 0


def is_valid_ean(value: str) -> bool:
    # EAN-8 weights even positions by 3, EAN-13 weights odd positions by 3.
    digits = _digits(value)
    if digits is None:
        return False
    return _weighted_sum(digits, triple_even=len(digits) == EAN_SHORT_LENGTH) % 10 == 0


def _length_error(id_type: ProductIDType, value: str, allowed: str) -> FindingError:
    return FindingError(
        ErrorKind.INVALID_RANGE,
        f"finding: invalid {id_type.value} length: must be {allowed} characters",
        code=f"Invalid{id_type.value}Length",
        value=value,
    )


def _checksum_error(id_type: ProductIDType, value: str) -> FindingError:
    return FindingError(
        ErrorKind.INVALID_CHECKSUM,
        f"finding: invalid {id_type.value}: {value}",
        code=f"Invalid{id_type.value}",
        value=value,
    )


def validate_product_id(id_type: ProductIDType, value: str) -> None:
    if id_type is ProductIDType.REFERENCE_ID:
        if not value:
            raise FindingError(
                ErrorKind.MISSING_REQUIRED_FIELD,
                "finding: product reference ID must not be empty",
                code="InvalidProductReferenceID",
            )
        return

    if id_type is ProductIDType.ISBN:
        if len(value) == ISBN_SHORT_LENGTH:
            valid = is_valid_isbn10(value)
        elif len(value) == ISBN_LONG_LENGTH:
            valid = is_valid_isbn13(value)
        else:
            raise _length_error(id_type, value, "10 or 13")
    elif id_type is ProductIDType.UPC:
        if len(value) != UPC_LENGTH:
            raise _length_error(id_type, value, "12")
        valid = is_valid_upc(value)
    else:
        if len(value) not in (EAN_SHORT_LENGTH, EAN_LONG_LENGTH):
            raise _length_error(id_type, value, "8 or 13")
        valid = is_valid_ean(value)

    if not valid:
        raise _checksum_error(id_type, value)


def parse_product_id(id_type: str, value: str) -> ProductID:
    """Build a :class:`ProductID` from the raw ``productId.@type`` and ``productId`` values."""

    try:
        product_type = ProductIDType(id_type)
    except ValueError:
        raise invalid_enum("InvalidProductIDType", "product ID type", id_type) from None
    validate_product_id(product_type, value)
    return ProductID(id_type=product_type, value=value)


__all__ = [
    "ProductID",
    "ProductIDType",
    "is_valid_ean",
    "is_valid_isbn10",
    "is_valid_isbn13",
    "is_valid_upc",
    "parse_product_id",
    "validate_product_id",
]
