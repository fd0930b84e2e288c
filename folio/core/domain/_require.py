'''
Validate scalar fields shared by the ledger domain dataclasses.

Used at construction time to enforce non-empty identifiers, positive
decimal amounts, and timezone-aware timestamps.
'''

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

__all__ = ['_require_aware', '_require_positive', '_require_str']

_ZERO = Decimal(0)


def _require_str(cls: str, field: str, value: str | None, *, optional: bool = False) -> None:

    '''
    Validate that a string field is non-empty and not only whitespace.

    Args:
        cls (str): Class name for error context.
        field (str): Field name for error context.
        value (str | None): Value to validate.
        optional (bool): Allow None values when True.
    '''

    if value is None and optional:
        return

    if not value or not value.strip():
        msg = f'{cls}.{field} must be a non-empty string'
        raise ValueError(msg)


def _require_positive(cls: str, field: str, value: Decimal) -> None:

    '''
    Validate that a decimal field is strictly greater than zero.

    Args:
        cls (str): Class name for error context.
        field (str): Field name for error context.
        value (Decimal): Value to validate.
    '''

    if not isinstance(value, Decimal):
        msg = f'{cls}.{field} must be a Decimal, got {type(value).__name__}'
        raise TypeError(msg)

    if not value.is_finite() or value <= _ZERO:
        msg = f'{cls}.{field} must be positive'
        raise ValueError(msg)


def _require_aware(cls: str, field: str, value: datetime) -> None:

    '''Validate that a datetime field carries a timezone.'''

    if value.tzinfo is None or value.utcoffset() is None:
        msg = f'{cls}.{field} must be timezone-aware'
        raise ValueError(msg)
