# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Currency helpers for DIAN documents

All amounts sent to the gateway are Colombian pesos with two decimals.
Rounding is done half-up on the decimal string of the value, never on the
binary float, so values such as 143.04000000000002 come out as 143.04.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Sums are compared within this tolerance (a tenth of a cent)
SUM_TOLERANCE = Decimal("0.001")


def to_decimal(value: Any) -> Decimal:
    """Coerce value to Decimal without rounding. Invalid input becomes 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        dec = value
    else:
        try:
            dec = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            return ZERO
    if not dec.is_finite():
        return ZERO
    return dec


def round_cop(value: Any) -> Decimal:
    """
    Round to 2 decimal places using half-up rounding.

    Total over its domain: None, non-numeric strings, NaN and infinities
    return 0.

    >>> round_cop(22.8076)
    Decimal('22.81')
    """
    dec = to_decimal(value)
    with localcontext() as ctx:
        # quantize needs every integer digit plus two decimals
        ctx.prec = max(ctx.prec, dec.adjusted() + 4)
        return dec.quantize(CENT, rounding=ROUND_HALF_UP)


def amounts_match(a: Any, b: Any) -> bool:
    """True when two amounts agree within SUM_TOLERANCE."""
    return abs(to_decimal(a) - to_decimal(b)) <= SUM_TOLERANCE


def to_wire(value: Any) -> float:
    """Render an amount for the JSON body."""
    return float(round_cop(value))
