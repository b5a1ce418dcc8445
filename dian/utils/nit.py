# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
NIT check digit (DV) utilities

The DV is computed with the modulus-11 prime-weight algorithm published by
DIAN. Weights are applied from the rightmost digit of the identifier.

    >>> calculate_check_digit("900123456")
    8
"""

import re
from typing import Any

from frappe import _

from dian.exceptions import ChecksumInputError

NIT_WEIGHTS = (3, 7, 13, 17, 19, 23, 29, 37, 41, 43, 47, 53, 59, 67, 71)

_EXPLICIT_DV = re.compile(r"^\s*([\d.\s]+?)\s*-\s*(\d)\s*$")


def digits_only(value: Any) -> str:
    """Strip everything but digits."""
    if value is None:
        return ""
    return re.sub(r"\D", "", str(value))


def calculate_check_digit(identifier: Any) -> int:
    """
    Compute the DV for a numeric tax identifier.

    Raises:
        ChecksumInputError: identifier empty after stripping or longer than 15 digits
    """
    digits = digits_only(identifier)
    if not digits:
        raise ChecksumInputError(_("Identification number has no digits"), value=identifier)
    if len(digits) > len(NIT_WEIGHTS):
        raise ChecksumInputError(
            _("Identification number is longer than {0} digits").format(len(NIT_WEIGHTS)),
            value=identifier
        )

    total = sum(int(d) * w for d, w in zip(reversed(digits), NIT_WEIGHTS))
    remainder = total % 11
    return remainder if remainder <= 1 else 11 - remainder


def split_identification(raw: Any) -> tuple[str, int]:
    """
    Split an identification string into (digits, dv).

    "900123456-8" keeps the explicit DV. Anything else is stripped to digits
    and the DV is computed.
    """
    text = "" if raw is None else str(raw)
    match = _EXPLICIT_DV.match(text)
    if match:
        digits = digits_only(match.group(1))
        if digits:
            return digits, int(match.group(2))

    digits = digits_only(text)
    return digits, calculate_check_digit(digits)
