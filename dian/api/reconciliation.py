# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN API - Reconciliation Engine

The gateway rejects any document where the invoice lines do not add up to
the header totals, even by one cent. reconcile() forces them to agree:

1. Sum line taxes and line extensions.
2. Header tax differs from line tax sum: line sum wins, total is recomputed.
3. Residual tax difference left: absorbed by the last line's tax.
4. Header taxable base differs from line extension sum: the last line's
   extension and taxable amount absorb the difference and its unit price
   is recomputed.
5. Sums still differ: ReconciliationError.

Lines are frozen; adjusted lines are new instances.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal

from frappe import _

from dian.exceptions import ComputationError, ReconciliationError
from dian.utils.money import ZERO, amounts_match, round_cop, to_decimal


@dataclass(frozen=True)
class ReconciliationResult:
	lines: list
	taxable_amount: Decimal
	tax_amount: Decimal
	total: Decimal
	adjustments: list = field(default_factory=list)

	@property
	def adjusted(self) -> bool:
		return bool(self.adjustments)


def sum_tax(lines) -> Decimal:
	return sum((line.tax_amount for line in lines), ZERO)


def sum_base(lines) -> Decimal:
	return sum((line.line_extension_amount for line in lines), ZERO)


def reconcile(lines, taxable_amount, tax_amount) -> ReconciliationResult:
	"""
	Make header totals and line sums agree.

	Args:
		lines: list of NormalizedLine
		taxable_amount: header taxable base as stored
		tax_amount: header tax as stored

	Returns:
		ReconciliationResult with the (possibly adjusted) lines and totals

	Raises:
		ComputationError: base residual must go on a line with zero quantity
		ReconciliationError: sums cannot be made to agree
	"""
	lines = list(lines)
	taxable_amount = round_cop(taxable_amount)
	tax_amount = round_cop(tax_amount)
	adjustments = []

	if not lines:
		raise ReconciliationError(
			_("Document has no lines to reconcile"),
			header_taxable=taxable_amount,
			line_taxable=ZERO,
			header_tax=tax_amount,
			line_tax=ZERO
		)

	# Step 1
	line_tax = sum_tax(lines)
	line_base = sum_base(lines)

	# Step 2: line-level tax is the truth
	if not amounts_match(tax_amount, line_tax):
		adjustments.append({
			"step": "header_tax",
			"from": tax_amount,
			"to": line_tax
		})
		tax_amount = round_cop(line_tax)

	# Step 3: unreachable after step 2 unless sums carry sub-cent noise
	residual_tax = tax_amount - sum_tax(lines)
	if not amounts_match(residual_tax, ZERO):
		last = lines[-1]
		new_tax = round_cop(last.tax.tax_amount + residual_tax)
		lines[-1] = replace(last, tax=replace(last.tax, tax_amount=new_tax))
		adjustments.append({
			"step": "last_line_tax",
			"delta": residual_tax,
			"to": new_tax
		})

	# Step 4
	residual_base = taxable_amount - line_base
	if not amounts_match(residual_base, ZERO):
		lines[-1] = _absorb_base_residual(lines[-1], residual_base)
		adjustments.append({
			"step": "last_line_base",
			"delta": residual_base,
			"to": lines[-1].line_extension_amount
		})

	# Step 5
	final_tax = sum_tax(lines)
	final_base = sum_base(lines)
	if not (amounts_match(tax_amount, final_tax) and amounts_match(taxable_amount, final_base)):
		raise ReconciliationError(
			_("Invoice lines do not match document totals (base {0} vs {1}, tax {2} vs {3})").format(
				taxable_amount, final_base, tax_amount, final_tax
			),
			header_taxable=taxable_amount,
			line_taxable=final_base,
			header_tax=tax_amount,
			line_tax=final_tax
		)

	return ReconciliationResult(
		lines=lines,
		taxable_amount=taxable_amount,
		tax_amount=tax_amount,
		total=round_cop(taxable_amount + tax_amount),
		adjustments=adjustments
	)


def _absorb_base_residual(line, delta):
	quantity = to_decimal(line.quantity)
	if quantity == ZERO:
		raise ComputationError(
			_("Cannot recompute unit price for a line with zero quantity"),
			field="quantity",
			value=line.quantity
		)

	extension = round_cop(line.line_extension_amount + delta)
	return replace(
		line,
		line_extension_amount=extension,
		unit_price=round_cop(extension / quantity),
		tax=replace(line.tax, taxable_amount=extension)
	)
