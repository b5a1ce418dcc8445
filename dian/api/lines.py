# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN API - Line Builder

Turns stored detail rows into NormalizedLine values, each with its own IVA
entry. Small rounding slips in the stored line tax are corrected here; larger
differences are left for the reconciliation step.
"""

from decimal import Decimal

from dian.logger import log_tax_correction
from dian.models import TAX_ID_IVA, InvoiceLineRaw, NormalizedLine, TaxEntry
from dian.api.taxes import classify_tax_rate
from dian.utils.money import ZERO, round_cop, to_decimal, to_wire

# A stored line tax closer than this to the recomputed one is replaced.
# Candidate for tightening once the gateway's real tolerance is known.
TAX_CORRECTION_TOLERANCE = Decimal("1")

DEFAULT_DESCRIPTION = "VENTA DE PRODUCTOS Y SERVICIOS"

# Wire constants for invoice_lines
UNIT_MEASURE_ID = 70            # Unidad
TYPE_ITEM_IDENTIFICATION_ID = 4  # Estándar de adopción del contribuyente

HUNDRED = Decimal("100")


def line_description(row):
	"""description, then item_name, then the generic sales description."""
	for value in (row.description, row.item_name):
		if value and str(value).strip():
			return str(value).strip()
	return DEFAULT_DESCRIPTION


def line_code(row, position):
	"""reference_code, then item_code, then the 1-based position."""
	for value in (row.reference_code, row.item_code):
		if value is not None and str(value).strip():
			return str(value).strip()
	return str(position)


class LineBuilder:
	"""
	Build normalized lines for one document.

	Usage:
		builder = LineBuilder()
		lines = builder.build(rows, header)
	"""

	def __init__(self, tolerance=None):
		self.tolerance = to_decimal(tolerance) if tolerance is not None else TAX_CORRECTION_TOLERANCE

	def build_line(self, row, position):
		"""
		Normalize a single raw row.

		Args:
			row: InvoiceLineRaw
			position: 1-based position, used as fallback code

		Returns:
			NormalizedLine
		"""
		quantity = to_decimal(row.quantity)
		unit_price = to_decimal(row.unit_price)
		raw_tax = round_cop(row.tax_amount)

		extension = round_cop(unit_price * quantity - to_decimal(row.discount_amount))
		percent = classify_tax_rate(extension, raw_tax)

		tax_amount = raw_tax
		candidate = round_cop(extension * percent / HUNDRED)
		if candidate != raw_tax and abs(candidate - raw_tax) < self.tolerance:
			log_tax_correction(position, raw_tax, candidate, percent)
			tax_amount = candidate

		return NormalizedLine(
			quantity=quantity,
			unit_price=unit_price,
			line_extension_amount=extension,
			tax=TaxEntry(
				tax_id=TAX_ID_IVA,
				tax_amount=tax_amount,
				taxable_amount=extension,
				percent=percent
			),
			code=line_code(row, position),
			description=line_description(row)
		)

	def build(self, rows, header=None):
		"""
		Normalize all rows of a document.

		A document stored without detail rows is sent as one consolidated
		line carrying the header totals.
		"""
		rows = list(rows or [])
		if not rows:
			if header is None:
				return []
			rows = [consolidated_row(header)]

		return [self.build_line(row, index) for index, row in enumerate(rows, start=1)]


def consolidated_row(header):
	"""Single raw row standing in for a document without details."""
	return InvoiceLineRaw(
		quantity=Decimal("1"),
		unit_price=round_cop(header.taxable_amount),
		tax_amount=round_cop(header.tax_amount),
		discount_amount=ZERO,
		description=DEFAULT_DESCRIPTION,
		reference_code="1"
	)


def line_to_api(line):
	"""Render a NormalizedLine as an invoice_lines entry."""
	return {
		"unit_measure_id": UNIT_MEASURE_ID,
		"invoiced_quantity": float(line.quantity),
		"line_extension_amount": float(line.line_extension_amount),
		"free_of_charge_indicator": False,
		"description": line.description,
		"price_amount": to_wire(line.unit_price),
		"code": line.code,
		"type_item_identification_id": TYPE_ITEM_IDENTIFICATION_ID,
		"base_quantity": float(line.quantity),
		"tax_totals": [line.tax.to_api()]
	}
