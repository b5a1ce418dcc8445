# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
# pyright: reportMissingImports=false, reportAttributeAccessIssue=false

"""
DIAN API Client

Submission client for the UBL 2.1 e-invoicing gateway:

1. invoice - POST /api/ubl2.1/invoice/{test_set_id}
2. credit-note - POST /api/ubl2.1/credit-note/{test_set_id}

Each call sends one AssembledDocument and returns a SubmissionResult. Errors
are raised to the caller; nothing is retried here.
"""

from frappe import _

from dian.api.http_client import DIANHTTPClient
from dian.api.response import parse_response
from dian.exceptions import DIANValidationError
from dian.logger import log_action, log_submission_result
from dian.models import CREDIT_NOTE, INVOICE
from dian.utils.config import get_gateway_config


class DIANClient:
	"""
	DIAN gateway client.

	Usage:
		client = DIANClient()
		result = client.submit_invoice(document)
		if result.success:
			cufe = result.reference
	"""

	# API endpoint paths (relative to /api/ubl2.1)
	ENDPOINTS = {
		INVOICE: "invoice",
		CREDIT_NOTE: "credit-note"
	}

	def __init__(self, config=None, http=None):
		"""
		Initialize DIAN client.

		Args:
			config: GatewayConfig or None to read DIAN Settings
			http: DIANHTTPClient override
		"""
		self.config = config or get_gateway_config()
		self.http = http or DIANHTTPClient(self.config)

	def _endpoint(self, kind):
		return f"{self.ENDPOINTS[kind]}/{self.config.test_set_id}"

	def _submit(self, kind, document):
		if document.kind != kind:
			raise DIANValidationError(
				_("Expected a {0} document, got {1}").format(kind, document.kind),
				field="kind"
			)

		status_code, body = self.http.post(self._endpoint(kind), data=document.to_payload())
		result = parse_response(body, status_code)

		log_submission_result(kind, document.number, result.status, result.reference, result.message)
		return result

	# =========================================================================
	# API 1: Invoice
	# =========================================================================

	@log_action("Submit Invoice")
	def submit_invoice(self, document):
		"""
		Send a sales invoice (factura electrónica de venta).

		Args:
			document: AssembledDocument of kind "invoice"

		Returns:
			SubmissionResult
		"""
		return self._submit(INVOICE, document)

	# =========================================================================
	# API 2: Credit Note
	# =========================================================================

	@log_action("Submit Credit Note")
	def submit_credit_note(self, document):
		"""
		Send a credit note (nota crédito).

		Args:
			document: AssembledDocument of kind "credit_note"

		Returns:
			SubmissionResult
		"""
		return self._submit(CREDIT_NOTE, document)

	def submit(self, document):
		"""Dispatch on document kind."""
		if document.kind == CREDIT_NOTE:
			return self.submit_credit_note(document)
		return self.submit_invoice(document)


def get_client():
	"""Get DIAN Client instance"""
	return DIANClient()
