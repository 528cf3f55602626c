"""Input parsing and validation for values entering the ledger.

Everything the allocation engine consumes passes through here first, so the
engine can assume defaulted, well-typed values.

Example:
    >>> parse_amount("12.50", "amount")
    Decimal('12.50')

    >>> require_positive(Decimal("0"), "amount")
    Traceback (most recent call last):
    ValidationError: amount must be greater than 0

    >>> parse_enum(ExpenseCategory, "rent", "category")
    <ExpenseCategory.RENT: 'rent'>
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from src.services.errors import ValidationError

E = TypeVar("E", bound=Enum)

ACCEPTED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MAX_ATTACHMENT_SIZE_MB = 5


def parse_amount(value: Any, field: str) -> Decimal:
    """
    Parse a monetary value to Decimal.

    Args:
        value: Number or numeric string
        field: Field name used in error messages

    Returns:
        Decimal value

    Raises:
        ValidationError: If value is missing or not numeric
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (ValueError, InvalidOperation) as e:
        raise ValidationError(f"{field} must be a number, got {value!r}") from e
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return amount


def parse_optional_amount(value: Any, field: str) -> Optional[Decimal]:
    """Like parse_amount, but None and empty strings pass through as None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_amount(value, field)


def require_positive(amount: Decimal, field: str) -> Decimal:
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return amount


def require_non_negative(amount: Decimal, field: str) -> Decimal:
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")
    return amount


def require_percentage(amount: Decimal, field: str) -> Decimal:
    if amount < 0 or amount > 100:
        raise ValidationError(f"{field} must be between 0 and 100")
    return amount


def parse_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """
    Parse an enum member from its value (or accept the member itself).

    Raises:
        ValidationError: If value is not one of the enum's values
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from e


def parse_optional_enum(enum_cls: Type[E], value: Any, field: str) -> Optional[E]:
    if value is None or value == "":
        return None
    return parse_enum(enum_cls, value, field)


def validate_attachment(content_type: str | None, size_bytes: int) -> None:
    """
    Check a receipt or photo upload before it is sent to the object store.

    Raises:
        ValidationError: If the type is not an accepted image or it is too large
    """
    if content_type not in ACCEPTED_IMAGE_TYPES:
        raise ValidationError("Attachment must be a JPEG, PNG, WebP or GIF image")
    if size_bytes > MAX_ATTACHMENT_SIZE_MB * 1024 * 1024:
        raise ValidationError(f"Image must be under {MAX_ATTACHMENT_SIZE_MB}MB")


__all__ = [
    "ACCEPTED_IMAGE_TYPES",
    "MAX_ATTACHMENT_SIZE_MB",
    "parse_amount",
    "parse_enum",
    "parse_optional_amount",
    "parse_optional_enum",
    "require_non_negative",
    "require_percentage",
    "require_positive",
    "validate_attachment",
]
