# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
# pyright: reportMissingImports=false, reportAttributeAccessIssue=false, reportArgumentType=false

"""
DIAN API - HTTP Client Module

Handles all HTTP communication with the e-invoicing gateway.
One POST per document, no retries.
"""

import json
import time

import frappe
import requests

from dian.exceptions import GatewayError
from dian.utils.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, GatewayConfig

API_PREFIX = "/api/ubl2.1"


class DIANHTTPClient:
	"""
	HTTP client for the DIAN gateway.

	Key features:
	- JSON request/response headers
	- Non-2xx responses raised as GatewayError with the raw body
	- Debug mode support (request and response bodies to Error Log)
	"""

	def __init__(self, config=None):
		"""
		Initialize HTTP client.

		Args:
			config: GatewayConfig or None for defaults
		"""
		self.config = config or GatewayConfig()

	@property
	def base_url(self):
		"""Get API base URL"""
		return (self.config.base_url or DEFAULT_BASE_URL).rstrip("/")

	@property
	def timeout(self):
		"""Get request timeout"""
		return self.config.timeout or DEFAULT_TIMEOUT

	@property
	def debug_mode(self):
		"""Check if debug mode is enabled"""
		return bool(self.config.debug_mode)

	def _build_url(self, endpoint):
		"""Build full URL from an endpoint under /api/ubl2.1"""
		if endpoint.startswith("http"):
			return endpoint
		return f"{self.base_url}{API_PREFIX}/{endpoint.lstrip('/')}"

	def _get_headers(self, extra_headers=None):
		headers = {
			"Content-Type": "application/json",
			"Accept": "application/json"
		}
		if extra_headers:
			headers.update(extra_headers)
		return headers

	def _log_request(self, method, url, headers, data=None):
		"""Log request details in debug mode"""
		if not self.debug_mode:
			return

		log_msg = f"""
DIAN API Request:
- Method: {method}
- URL: {url}
- Headers: {json.dumps(headers, indent=2)}
- Body: {json.dumps(data, indent=2, ensure_ascii=False, default=str)[:4000] if data else None}
"""
		frappe.log_error(log_msg, "DIAN HTTP Debug - Request")

	def _log_response(self, response, duration=None):
		"""Log response details in debug mode"""
		if not self.debug_mode:
			return

		log_msg = f"""
DIAN API Response:
- Status: {response.status_code}
- Duration: {duration}s
- Body: {response.text[:4000]}
"""
		frappe.log_error(log_msg, "DIAN HTTP Debug - Response")

	def ping(self):
		"""
		Check that the gateway host answers.

		Returns:
			int: HTTP status of a GET on the base URL

		Raises:
			GatewayError: transport failure
		"""
		try:
			response = requests.get(self.base_url, headers=self._get_headers(), timeout=self.timeout)
		except requests.exceptions.Timeout:
			raise GatewayError(f"Request timeout after {self.timeout}s", status_code=408)
		except requests.exceptions.ConnectionError as e:
			raise GatewayError(f"Connection error: {str(e)}", status_code=503)
		return response.status_code

	def post(self, endpoint, data=None, headers=None):
		"""
		POST a JSON document.

		Args:
			endpoint: path under /api/ubl2.1, e.g. "invoice/1"
			data: Request body (dict)
			headers: Additional headers

		Returns:
			tuple: (status_code, raw response text)

		Raises:
			GatewayError: transport failure or non-2xx status
		"""
		url = self._build_url(endpoint)
		request_headers = self._get_headers(headers)

		self._log_request("POST", url, request_headers, data=data)

		start_time = time.time()
		try:
			response = requests.post(
				url,
				json=data,
				headers=request_headers,
				timeout=self.timeout
			)
		except requests.exceptions.Timeout:
			raise GatewayError(f"Request timeout after {self.timeout}s", status_code=408)
		except requests.exceptions.ConnectionError as e:
			raise GatewayError(f"Connection error: {str(e)}", status_code=503)
		finally:
			duration = round(time.time() - start_time, 2)

		self._log_response(response, duration)

		if not 200 <= response.status_code < 300:
			raise GatewayError(
				f"HTTP {response.status_code}: {response.text[:500]}",
				status_code=response.status_code,
				response_body=response.text
			)

		return response.status_code, response.text


def get_http_client(config=None):
	"""Get DIAN HTTP client instance"""
	return DIANHTTPClient(config)
