# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Base Entity (Domain Layer).

Purpose:
    Mixin for immutable domain entities plus the numeric coercion shared by
    every entity that carries work units or money.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from workledger.domain.exceptions import ValidationError

ZERO = Decimal("0")

# Fractional digits kept by the stored work-unit counters and totals.
WORK_UNIT_PLACES = 3


@dataclass(frozen=True, slots=True)
class BaseEntity:
    """Base mixin for domain entities.

    ``BaseEntity`` does not define concrete fields itself; it provides the
    common dataclass configuration (frozen + slots) and a standard invariant
    hook via :meth:`__post_init__`.
    """

    def __post_init__(self) -> None:  # noqa: D401
        """Hook for subclasses to extend with invariant checks."""
        return


def to_decimal(value: object, *, field: str, places: int | None = None) -> Decimal:
    """Coerce ``value`` into a finite :class:`Decimal`.

    Floats go through ``str`` so ``0.5`` becomes exactly ``Decimal("0.5")``.

    Args:
        value: int, float, str or Decimal.
        field: Field name used in the error message.
        places: Maximum number of significant fractional digits, if any.
            Trailing zeros do not count (``"1.5000"`` fits in 3 places).

    Returns:
        Decimal: The coerced value.

    Raises:
        ValidationError: If the value is not numeric, not finite, or has more
            fractional digits than ``places``.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be numeric", details={"field": field})
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValidationError(
                f"{field} must be numeric", details={"field": field, "value": str(value)}
            ) from exc
    else:
        raise ValidationError(f"{field} must be numeric", details={"field": field})

    if not result.is_finite():
        raise ValidationError(f"{field} must be finite", details={"field": field})
    if places is not None and result != 0:
        exponent = result.normalize().as_tuple().exponent
        if isinstance(exponent, int) and -exponent > places:
            raise ValidationError(
                f"{field} allows at most {places} decimal places",
                details={"field": field, "value": str(result), "places": places},
            )
    return result
