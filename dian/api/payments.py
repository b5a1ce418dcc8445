# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN API - Payment Method Resolver

Infers the DIAN payment form / payment method pair from the balances an
invoice was settled with.

Payment forms:
- 1: Contado (immediate)
- 2: Crédito (deferred)

Payment methods used:
- 10: Efectivo (cash)
- 30: Crédito ACH (instrument not specified)
- 47: Transferencia débito bancaria
- 48: Tarjeta crédito
"""

from frappe.utils import add_days, cint, getdate

from dian.models import PaymentTerms
from dian.utils.money import ZERO, to_decimal

FORM_CASH = 1
FORM_CREDIT = 2

METHOD_CASH = 10
METHOD_CREDIT = 30
METHOD_TRANSFER = 47
METHOD_CARD = 48

# Credit balances at or below this are float noise from upstream
CREDIT_NOISE = to_decimal("0.01")


def resolve_payment_terms(issue_date, card=0, transfer=0, credit=0, cash=0, credit_term_days=0):
	"""
	Decide payment form, method and due date. First match wins.

	Args:
		issue_date: Invoice issue date
		card, transfer, credit, cash: Amounts settled through each channel
		credit_term_days: Days granted when sold on credit

	Returns:
		PaymentTerms
	"""
	issue_date = getdate(issue_date)

	if to_decimal(card) > ZERO:
		return PaymentTerms(FORM_CASH, METHOD_CARD, issue_date)

	if to_decimal(transfer) > ZERO:
		return PaymentTerms(FORM_CASH, METHOD_TRANSFER, issue_date)

	if to_decimal(credit) > CREDIT_NOISE:
		term = cint(credit_term_days)
		return PaymentTerms(
			FORM_CREDIT,
			METHOD_CREDIT,
			getdate(add_days(issue_date, term)),
			credit_term_days=term
		)

	return PaymentTerms(FORM_CASH, METHOD_CASH, issue_date)


def resolve_for_header(header):
	"""Resolve payment terms from an InvoiceHeader."""
	return resolve_payment_terms(
		header.issue_date,
		card=header.card,
		transfer=header.transfer,
		credit=header.credit,
		cash=header.cash,
		credit_term_days=header.credit_term_days
	)


def payment_form_to_api(terms):
	"""Render PaymentTerms as a payment_forms entry."""
	return {
		"payment_form_id": terms.payment_form_id,
		"payment_method_id": terms.payment_method_id,
		"payment_due_date": terms.due_date.strftime("%Y-%m-%d"),
		"duration_measure": terms.duration_measure
	}
