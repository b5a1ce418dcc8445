# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN Submission Client Tests

Response parsing and the HTTP round trip, with requests mocked out.
"""

import json
import unittest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests

from dian.api.client import DIANClient
from dian.api.http_client import DIANHTTPClient
from dian.api.response import parse_response
from dian.exceptions import DIANValidationError, GatewayError
from dian.models import CREDIT_NOTE, INVOICE, AssembledDocument
from dian.utils.config import GatewayConfig

CONFIG = GatewayConfig(base_url="https://gw.example.com/", test_set_id="abc")


def mock_response(status_code=200, body=None, text=None):
	response = MagicMock()
	response.status_code = status_code
	response.text = text if text is not None else json.dumps(body)
	return response


def make_document(kind=INVOICE, number=1001):
	return AssembledDocument(kind=kind, number=number, payload={
		"number": number,
		"legal_monetary_totals": {"payable_amount": 119000.0},
		"invoice_lines": []
	})


class TestResponseParsing(unittest.TestCase):
	"""Gateway response variants"""

	def test_nested_accepted(self):
		raw = json.dumps({
			"response": {
				"statusCode": "00",
				"cufe": "abc123",
				"isValid": True,
				"pdf_url": "https://gw/pdf/1",
				"qr_code": "QR"
			},
			"message": "ok"
		})
		result = parse_response(raw)

		self.assertTrue(result.success)
		self.assertEqual(result.status, "accepted")
		self.assertEqual(result.reference, "abc123")
		self.assertTrue(result.is_valid)
		self.assertEqual(result.pdf_url, "https://gw/pdf/1")
		self.assertEqual(result.message, "ok")
		self.assertEqual(result.raw_response, raw)

	def test_nested_falls_back_to_outer_keys(self):
		result = parse_response(json.dumps({"response": {"statusCode": "00"}, "uuid": "outer-ref"}))
		self.assertTrue(result.success)
		self.assertEqual(result.reference, "outer-ref")

	def test_flat_error(self):
		result = parse_response(json.dumps({"statusCode": "99", "message": "Documento con errores"}))

		self.assertFalse(result.success)
		self.assertEqual(result.status, "error")
		self.assertEqual(result.status_code, "99")
		self.assertEqual(result.message, "Documento con errores")

	def test_flat_rejected(self):
		result = parse_response(json.dumps({"statusCode": "02", "CUFE": "x"}))
		self.assertFalse(result.success)
		self.assertEqual(result.status, "rejected")

	def test_is_valid_string_flags(self):
		for flag, expected in (("false", False), ("False", False), ("0", False), ("true", True), (1, True), (False, False)):
			result = parse_response(json.dumps({"statusCode": "00", "cufe": "abc", "isValid": flag}))
			self.assertIs(result.is_valid, expected, flag)

		self.assertIsNone(parse_response(json.dumps({"statusCode": "00", "cufe": "abc"})).is_valid)
		self.assertIsNone(parse_response(json.dumps({"statusCode": "00", "cufe": "abc", "isValid": "maybe"})).is_valid)

	def test_accepted_code_without_reference_is_not_success(self):
		result = parse_response(json.dumps({"statusCode": "00"}))
		self.assertFalse(result.success)
		self.assertIsNone(result.reference)

	def test_numeric_status_code(self):
		result = parse_response(json.dumps({"status_code": 99}))
		self.assertEqual(result.status_code, "99")
		self.assertEqual(result.status, "error")

	def test_structured_message(self):
		result = parse_response(json.dumps({"statusCode": "99", "message": {"errors": ["FAD06"]}}))
		self.assertEqual(json.loads(result.message), {"errors": ["FAD06"]})

	def test_plain_text_with_cufe(self):
		raw = "Documento procesado. CUFE: 9F86D081884C7D659A2FEAA0"
		result = parse_response(raw)

		self.assertFalse(result.success)
		self.assertEqual(result.status, "rejected")
		self.assertEqual(result.reference, "9F86D081884C7D659A2FEAA0")
		self.assertEqual(result.raw_response, raw)

	def test_unrecognized_body(self):
		with self.assertRaises(GatewayError) as ctx:
			parse_response("<html>Bad Gateway</html>", 200)
		self.assertEqual(ctx.exception.response_body, "<html>Bad Gateway</html>")
		self.assertEqual(ctx.exception.status_code, 200)

	def test_json_array_unrecognized(self):
		with self.assertRaises(GatewayError):
			parse_response("[1, 2, 3]")

	def test_to_dict(self):
		result = parse_response(json.dumps({"statusCode": "00", "cufe": "abc"}))
		self.assertEqual(result.to_dict()["cufe"], "abc")


class TestHTTPClient(unittest.TestCase):

	@patch("dian.api.http_client.requests.post")
	def test_post_url_and_body(self, mock_post):
		mock_post.return_value = mock_response(body={"statusCode": "00"})
		client = DIANHTTPClient(CONFIG)

		status_code, text = client.post("invoice/abc", data={"number": 1})

		self.assertEqual(status_code, 200)
		self.assertEqual(json.loads(text), {"statusCode": "00"})
		args, kwargs = mock_post.call_args
		self.assertEqual(args[0], "https://gw.example.com/api/ubl2.1/invoice/abc")
		self.assertEqual(kwargs["json"], {"number": 1})
		self.assertEqual(kwargs["headers"]["Content-Type"], "application/json")
		self.assertEqual(kwargs["timeout"], 30)

	@patch("dian.api.http_client.requests.post")
	def test_non_2xx_raises(self, mock_post):
		mock_post.return_value = mock_response(status_code=500, text="Internal Server Error")

		with self.assertRaises(GatewayError) as ctx:
			DIANHTTPClient(CONFIG).post("invoice/abc", data={})
		self.assertEqual(ctx.exception.status_code, 500)
		self.assertEqual(ctx.exception.response_body, "Internal Server Error")

	@patch("dian.api.http_client.requests.post")
	def test_timeout(self, mock_post):
		mock_post.side_effect = requests.exceptions.Timeout()

		with self.assertRaises(GatewayError) as ctx:
			DIANHTTPClient(CONFIG).post("invoice/abc", data={})
		self.assertEqual(ctx.exception.status_code, 408)

	@patch("dian.api.http_client.requests.post")
	def test_connection_error(self, mock_post):
		mock_post.side_effect = requests.exceptions.ConnectionError("refused")

		with self.assertRaises(GatewayError) as ctx:
			DIANHTTPClient(CONFIG).post("invoice/abc", data={})
		self.assertEqual(ctx.exception.status_code, 503)

	@patch("dian.api.http_client.requests.get")
	def test_ping(self, mock_get):
		mock_get.return_value = mock_response(status_code=200, text="ok")
		self.assertEqual(DIANHTTPClient(CONFIG).ping(), 200)
		self.assertEqual(mock_get.call_args[0][0], "https://gw.example.com")


class TestDIANClient(unittest.TestCase):
	"""Submission through DIANClient"""

	@patch("dian.api.http_client.requests.post")
	def test_submit_invoice(self, mock_post):
		mock_post.return_value = mock_response(body={"response": {"statusCode": "00", "cufe": "cufe-1"}})

		result = DIANClient(CONFIG).submit(make_document())

		self.assertTrue(result.success)
		self.assertEqual(result.reference, "cufe-1")
		self.assertEqual(mock_post.call_args[0][0], "https://gw.example.com/api/ubl2.1/invoice/abc")
		self.assertEqual(mock_post.call_args[1]["json"]["number"], 1001)

	@patch("dian.api.http_client.requests.post")
	def test_submit_credit_note(self, mock_post):
		mock_post.return_value = mock_response(body={"statusCode": "00", "cufe": "cude-1"})

		result = DIANClient(CONFIG).submit(make_document(kind=CREDIT_NOTE, number=7))

		self.assertTrue(result.success)
		self.assertEqual(mock_post.call_args[0][0], "https://gw.example.com/api/ubl2.1/credit-note/abc")

	@patch("dian.api.http_client.requests.post")
	def test_rejected_is_returned(self, mock_post):
		mock_post.return_value = mock_response(body={"statusCode": "99", "message": "NIT invalido"})

		result = DIANClient(CONFIG).submit_invoice(make_document())

		self.assertFalse(result.success)
		self.assertEqual(result.status, "error")
		self.assertEqual(result.message, "NIT invalido")

	@patch("dian.api.http_client.requests.post")
	def test_http_error_propagates(self, mock_post):
		mock_post.return_value = mock_response(status_code=422, text='{"message": "invalid"}')

		with self.assertRaises(GatewayError) as ctx:
			DIANClient(CONFIG).submit_invoice(make_document())
		self.assertEqual(ctx.exception.response_body, '{"message": "invalid"}')

	def test_kind_mismatch(self):
		http = MagicMock()

		with self.assertRaises(DIANValidationError):
			DIANClient(CONFIG, http=http).submit_credit_note(make_document(kind=INVOICE))
		http.post.assert_not_called()

	@patch("dian.api.http_client.requests.post")
	def test_credit_note_without_cufe_never_sent(self, mock_post):
		from dian.api.transformer import DIANTransformer
		from dian.exceptions import MissingReferenceError
		from dian.models import CompanyIdentity, CreditNoteReference, InvoiceHeader, Resolution

		transformer = DIANTransformer(CONFIG)
		header = InvoiceHeader(number=7, issue_date=date(2024, 3, 4), taxable_amount=Decimal("1000"), tax_amount=Decimal("190"))
		reference = CreditNoteReference(number=1001, authority_reference=None, issue_date=date(2024, 3, 1))

		with self.assertRaises(MissingReferenceError):
			document = transformer.build_credit_note(
				header, [], None,
				CompanyIdentity(identification_number="900123456", name="Acme"),
				Resolution(resolution_id=1, range_start=1, range_end=100),
				reference
			)
			DIANClient(CONFIG).submit(document)

		mock_post.assert_not_called()
