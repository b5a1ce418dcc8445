# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN API - Tax Rate Classifier

Colombian IVA has three standard rates plus exempt goods. A percentage
derived from stored amounts is snapped to the nearest standard rate when it
falls inside that rate's window, otherwise it is kept as a custom rate.
"""

from decimal import Decimal

from dian.utils.money import ZERO, round_cop, to_decimal

# (canonical rate, lower bound, upper bound), bounds inclusive
TAX_BRACKETS = (
	(Decimal("19"), Decimal("18.5"), Decimal("19.5")),
	(Decimal("8"), Decimal("7.5"), Decimal("8.5")),
	(Decimal("5"), Decimal("4.5"), Decimal("5.5")),
)

EXEMPT_THRESHOLD = Decimal("0.5")

HUNDRED = Decimal("100")


def classify_tax_rate(base, tax) -> Decimal:
	"""
	Map a taxable base and its tax to a percentage.

	>>> classify_tax_rate(100, "18.7")
	Decimal('19')
	>>> classify_tax_rate(100, "12.34")
	Decimal('12.34')
	"""
	base = to_decimal(base)
	tax = to_decimal(tax)
	if base == ZERO or tax == ZERO:
		return ZERO

	raw = tax / base * HUNDRED

	for rate, low, high in TAX_BRACKETS:
		if low <= raw <= high:
			return rate

	if raw < EXEMPT_THRESHOLD:
		return ZERO

	return round_cop(raw)
