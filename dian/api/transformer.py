# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
# pyright: reportMissingImports=false

"""
DIAN API - Document Assembler

Builds the JSON body the gateway expects for an invoice or a credit note.

Flow:
	raw rows -> LineBuilder -> reconcile() -> header taxes / payment terms
	-> company and customer blocks -> AssembledDocument
"""

import time
from dataclasses import replace

from frappe import _
from frappe.utils import getdate

from dian.api.lines import LineBuilder, line_to_api
from dian.api.payments import payment_form_to_api, resolve_for_header
from dian.api.reconciliation import reconcile
from dian.api.taxes import classify_tax_rate
from dian.exceptions import MissingReferenceError
from dian.logger import log_document_assembled, log_reconciliation_adjustment
from dian.models import CREDIT_NOTE, INVOICE, TAX_ID_IVA, AssembledDocument, Counterparty
from dian.utils.config import GatewayConfig
from dian.utils.money import to_wire, to_decimal
from dian.utils.nit import digits_only, split_identification
from dian.utils.numbering import effective_resolution_id, next_document_number
from dian.utils.validators import validate_header


class DIANTransformer:
	"""
	Transform stored invoice data into DIAN gateway documents.

	Usage:
		transformer = DIANTransformer(get_gateway_config())
		document = transformer.build_invoice(header, rows, customer, company, resolution)
	"""

	# =========================================================================
	# Customer defaults (consumidor final)
	# =========================================================================

	FINAL_CONSUMER_ID = "222222222222"
	FINAL_CONSUMER_NAME = "CONSUMIDOR FINAL"
	FINAL_CONSUMER_EMAIL = "consumidor@final.com"

	CUSTOMER_TYPE_ORGANIZATION_ID = 2   # Persona natural
	CUSTOMER_TYPE_DOCUMENT_ID = "13"    # Cédula de ciudadanía

	DEFAULT_LOCATION_CODE = "11001"     # Bogotá D.C.
	DEFAULT_ADDRESS = "BOGOTA D.C."

	# =========================================================================
	# Phone normalization
	# =========================================================================

	DEFAULT_PHONE = "3000000000"
	PHONE_MIN_LENGTH = 10
	PHONE_MAX_LENGTH = 15

	# =========================================================================
	# Credit note correction concepts
	# =========================================================================

	CONCEPT_PARTIAL_RETURN = 1       # Devolución parcial
	CONCEPT_ANNULMENT = 2            # Anulación de factura

	CORRECTION_REFERENCED = "referenced"
	CORRECTION_SUBSTITUTION = "substitution"

	# Days after the original invoice within which a correction is "referenced"
	REFERENCED_WINDOW_DAYS = 5

	def __init__(self, config=None, line_builder=None):
		self.config = config or GatewayConfig()
		self.line_builder = line_builder or LineBuilder(self.config.tax_correction_tolerance)

	# =========================================================================
	# Identity blocks
	# =========================================================================

	def normalize_phone(self, *candidates):
		"""
		First non-empty candidate, digits only, 10 to 15 digits.

		Empty input gives the default mobile number; short numbers are
		left-padded with zeros.
		"""
		phone = ""
		for candidate in candidates:
			phone = digits_only(candidate)
			if phone:
				break

		if not phone:
			return self.DEFAULT_PHONE

		return phone.rjust(self.PHONE_MIN_LENGTH, "0")[:self.PHONE_MAX_LENGTH]

	def customer_to_api(self, customer):
		"""
		Transform a Counterparty to the customer block.

		Unknown customers are sent as the generic final consumer.
		"""
		customer = customer or Counterparty()
		raw_id = customer.identification
		if not digits_only(raw_id):
			raw_id = self.FINAL_CONSUMER_ID

		identification, dv = split_identification(raw_id)

		return {
			"identification_number": int(identification),
			"dv": dv,
			"name": (customer.name or self.FINAL_CONSUMER_NAME).strip().upper(),
			"type_organization_id": customer.type_organization_id or self.CUSTOMER_TYPE_ORGANIZATION_ID,
			"type_document_id": str(customer.type_document_id or self.CUSTOMER_TYPE_DOCUMENT_ID),
			"id_location": customer.location_code or self.DEFAULT_LOCATION_CODE,
			"address": (customer.address or self.DEFAULT_ADDRESS).strip().upper(),
			"phone": self.normalize_phone(customer.phone, customer.mobile),
			"email": (customer.email or self.FINAL_CONSUMER_EMAIL).strip()
		}

	def company_to_api(self, company):
		"""Transform a CompanyIdentity to the company block."""
		identification, dv = split_identification(company.identification_number)
		if company.check_digit is not None:
			dv = company.check_digit

		return {
			"identification_number": int(identification),
			"dv": dv,
			"name": company.name.strip().upper(),
			"type_organization_id": company.type_organization_id,
			"type_document_id": str(company.type_document_id),
			"id_location": company.location_code or self.DEFAULT_LOCATION_CODE,
			"address": (company.address or self.DEFAULT_ADDRESS).strip().upper(),
			"phone": self.normalize_phone(company.phone),
			"email": company.email or ""
		}

	# =========================================================================
	# Documents
	# =========================================================================

	def build_invoice(self, header, rows, customer, company, resolution, track_id=None):
		"""
		Assemble a sales invoice.

		Args:
			header: InvoiceHeader
			rows: list of InvoiceLineRaw (may be empty)
			customer: Counterparty or None
			company: CompanyIdentity for this request
			resolution: active Resolution
			track_id: optional trackId, generated when sync is on

		Returns:
			AssembledDocument
		"""
		payload = self._build_payload(header, rows, customer, company, resolution, track_id)
		return self._finish(INVOICE, payload)

	def build_credit_note(self, header, rows, customer, company, resolution, reference, track_id=None):
		"""
		Assemble a credit note against an accepted invoice.

		Args:
			header: InvoiceHeader of the credit note (positive amounts)
			reference: CreditNoteReference to the original invoice

		Raises:
			MissingReferenceError: original invoice has no CUFE
		"""
		if reference is None or not (reference.authority_reference or "").strip():
			raise MissingReferenceError(
				_("Invoice {0} has not been accepted by DIAN. A credit note needs its CUFE.").format(
					reference.number if reference else None
				),
				invoice_number=reference.number if reference else None
			)

		payload = self._build_payload(header, rows, customer, company, resolution, track_id)
		total = to_decimal(payload["legal_monetary_totals"]["payable_amount"])

		payload["billing_reference"] = {
			"number": str(reference.number),
			"uuid": reference.authority_reference.strip(),
			"issue_date": getdate(reference.issue_date).strftime("%Y-%m-%d")
		}
		payload["discrepancy_response"] = {
			"correction_concept_id": self.correction_concept(reference, total),
			"correction_type": self.correction_type(reference.issue_date, header.issue_date),
			"description": reference.reason or _("Devolución de productos")
		}
		return self._finish(CREDIT_NOTE, payload)

	def correction_concept(self, reference, credit_note_total):
		"""Full annulment when the note covers the whole invoice, else partial return."""
		if reference.correction_concept_id:
			return int(reference.correction_concept_id)

		original_total = to_decimal(reference.total)
		if original_total > 0 and to_decimal(credit_note_total) >= original_total - to_decimal("0.01"):
			return self.CONCEPT_ANNULMENT
		return self.CONCEPT_PARTIAL_RETURN

	def correction_type(self, original_date, note_date):
		"""'referenced' within REFERENCED_WINDOW_DAYS of the invoice, else 'substitution'."""
		elapsed = (getdate(note_date) - getdate(original_date)).days
		if elapsed <= self.REFERENCED_WINDOW_DAYS:
			return self.CORRECTION_REFERENCED
		return self.CORRECTION_SUBSTITUTION

	# =========================================================================
	# Internals
	# =========================================================================

	def _build_payload(self, header, rows, customer, company, resolution, track_id):
		number = header.number or next_document_number(resolution)
		if not header.number:
			header = replace(header, number=number)

		validate_header(header).raise_if_invalid()

		lines = self.line_builder.build(rows, header)
		result = reconcile(lines, header.taxable_amount, header.tax_amount)
		for adjustment in result.adjustments:
			log_reconciliation_adjustment(str(number), adjustment)

		terms = resolve_for_header(header)
		company_block = self.company_to_api(company)

		payload = {
			"number": int(number),
			"type_document_id": self.config.type_document_id,
			"identification_number": company_block["identification_number"],
			"resolution_id": effective_resolution_id(resolution, self.config.resolution_id_override),
			"sync": bool(self.config.sync),
			"company": company_block,
			"customer": self.customer_to_api(customer),
			"tax_totals": [{
				"tax_id": TAX_ID_IVA,
				"tax_amount": to_wire(result.tax_amount),
				"taxable_amount": to_wire(result.taxable_amount),
				"percent": float(classify_tax_rate(result.taxable_amount, result.tax_amount))
			}],
			"legal_monetary_totals": {
				"line_extension_amount": to_wire(result.taxable_amount),
				"tax_exclusive_amount": to_wire(result.taxable_amount),
				"tax_inclusive_amount": to_wire(result.total),
				"payable_amount": to_wire(result.total),
				"allowance_total_amount": to_wire(header.discount_amount),
				"charge_total_amount": 0
			},
			"invoice_lines": [line_to_api(line) for line in result.lines],
			"payment_forms": [payment_form_to_api(terms)]
		}

		if self.config.sync:
			payload["trackId"] = self._track_id(number, track_id)

		return payload

	def _track_id(self, number, track_id=None):
		if track_id is not None and not isinstance(track_id, (list, dict, tuple)) and str(track_id).strip():
			return str(track_id).strip()
		return f"track-{number}-{int(time.time() * 1000)}"

	def _finish(self, kind, payload):
		document = AssembledDocument(kind=kind, number=payload["number"], payload=payload)
		log_document_assembled(kind, document.number, document.total, len(payload["invoice_lines"]))
		return document


def get_transformer(config=None):
	"""Get DIAN Transformer instance"""
	return DIANTransformer(config)

