# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
# pyright: reportMissingImports=false, reportAttributeAccessIssue=false, reportArgumentType=false

"""
DIAN Settings DocType

Manages configuration for the DIAN e-invoicing gateway integration.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import flt

from dian.utils.config import DEFAULT_BASE_URL, DEFAULT_TEST_SET_ID, DEFAULT_TIMEOUT


class DIANSettings(Document):
	"""
	DIAN Settings - Configuration for the UBL 2.1 gateway

	Environments:
	- Test: documents sent with type_document_id 2 (habilitación)
	- Production: documents sent with type_document_id 1

	Numbering:
	- Resolutions live in DIAN Resolution; the active one is used
	- resolution_id_override forces a fixed id on the wire
	"""

	def validate(self):
		"""Validate settings before save"""
		self.set_defaults()

		if self.enabled:
			self.validate_gateway()
			self.validate_company()

	def set_defaults(self):
		if not self.environment:
			self.environment = "Test"
		if not self.api_base_url:
			self.api_base_url = DEFAULT_BASE_URL
		self.api_base_url = self.api_base_url.strip().rstrip("/")
		if not self.test_set_id:
			self.test_set_id = DEFAULT_TEST_SET_ID
		if not self.timeout:
			self.timeout = DEFAULT_TIMEOUT

	def validate_gateway(self):
		from dian.utils.validators import validate_test_set_id

		validate_test_set_id(self.test_set_id).raise_if_invalid()

		if flt(self.tax_correction_tolerance) < 0:
			frappe.throw(_("Tax Correction Tolerance cannot be negative"))

	def validate_company(self):
		from dian.utils.validators import validate_email

		if self.company_email:
			validate_email(self.company_email).raise_if_invalid()

	@frappe.whitelist()
	def test_connection(self):
		"""
		Validate configuration and check that the gateway host answers.

		Returns:
			dict: Connection status and configuration issues
		"""
		if not self.enabled:
			return {"success": False, "message": _("DIAN integration is not enabled")}

		from dian.api.http_client import DIANHTTPClient
		from dian.exceptions import GatewayError
		from dian.utils.config import ConfigValidator, get_gateway_config

		result = ConfigValidator().validate_settings(self)
		if not result.is_valid:
			return {
				"success": False,
				"message": "; ".join(i.message for i in result.get_errors()),
				"warnings": [i.message for i in result.get_warnings()]
			}

		try:
			status_code = DIANHTTPClient(get_gateway_config(self)).ping()
		except GatewayError as e:
			self.db_set("connection_status", "Failed")
			frappe.log_error(f"DIAN connection test failed: {e!s}", "DIAN")
			return {"success": False, "message": e.message}

		self.db_set("connection_status", "Connected")
		return {
			"success": True,
			"message": _("Gateway reachable (HTTP {0})").format(status_code),
			"warnings": [i.message for i in result.get_warnings()]
		}
