# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN API - Gateway Response Parsing

The gateway answers in one of three shapes:

- NestedJsonResponse: JSON object with the verdict under "response"
- FlatJsonResponse: JSON object with the verdict at the top level
- PlainTextResponse: not JSON; the CUFE is found by pattern search

parse_response() tries the variants in that order and turns the first match
into a SubmissionResult. The raw body is kept untouched on the result.
"""

import json
import re
from dataclasses import dataclass

from frappe import _

from dian.exceptions import GatewayError
from dian.models import SubmissionResult

STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
STATUS_ERROR = "error"

CODE_ACCEPTED = "00"
CODE_ERROR = "99"

# Key names in priority order
STATUS_CODE_KEYS = ("statusCode", "status_code", "code")
REFERENCE_KEYS = ("cufe", "CUFE", "uuid", "UUID", "trackId")
MESSAGE_KEYS = ("message", "Message", "error")
PDF_KEYS = ("pdf_url", "pdfUrl", "pdf")
XML_KEYS = ("xml_url", "xmlUrl", "xml")
QR_KEYS = ("qr_code", "qrCode", "qr")

TEXT_REFERENCE_PATTERNS = (
	re.compile(r"CUFE[:\s]+([A-Z0-9-]+)", re.IGNORECASE),
	re.compile(r'"cufe"\s*:\s*"([^"]+)"', re.IGNORECASE),
)


def _pick(sources, keys):
	"""First non-empty value for keys, looking through sources in order."""
	for source in sources:
		if not isinstance(source, dict):
			continue
		for key in keys:
			value = source.get(key)
			if value not in (None, ""):
				return value
	return None


def _as_bool(value):
	"""Gateway flags arrive as booleans, 0/1 or strings like "false"."""
	if value is None or isinstance(value, bool):
		return value
	if isinstance(value, str):
		text = value.strip().lower()
		if text in ("true", "1", "yes", "si", "sí"):
			return True
		if text in ("false", "0", "no", ""):
			return False
		return None
	return bool(value)


def _status_for(status_code):
	if status_code == CODE_ACCEPTED:
		return STATUS_ACCEPTED
	if status_code == CODE_ERROR:
		return STATUS_ERROR
	return STATUS_REJECTED


@dataclass(frozen=True)
class FlatJsonResponse:
	"""Verdict fields at the top level of a JSON object."""
	body: dict
	raw: str

	@classmethod
	def parse(cls, raw, data):
		if isinstance(data, dict):
			return cls(body=data, raw=raw)
		return None

	def sources(self):
		return (self.body,)

	def to_result(self):
		sources = self.sources()
		status_code = _pick(sources, STATUS_CODE_KEYS)
		status_code = str(status_code) if status_code is not None else None
		reference = _pick(sources, REFERENCE_KEYS)
		reference = str(reference).strip() if reference is not None else None
		is_valid = _pick(sources, ("isValid", "is_valid"))

		return SubmissionResult(
			success=status_code == CODE_ACCEPTED and bool(reference),
			status=_status_for(status_code),
			status_code=status_code,
			reference=reference or None,
			is_valid=_as_bool(is_valid),
			message=_message(_pick(sources, MESSAGE_KEYS)),
			pdf_url=_pick(sources, PDF_KEYS),
			xml_url=_pick(sources, XML_KEYS),
			qr_code=_pick(sources, QR_KEYS),
			raw_response=self.raw
		)


@dataclass(frozen=True)
class NestedJsonResponse(FlatJsonResponse):
	"""Verdict wrapped in a "response" object; outer keys are a fallback."""
	inner: dict = None

	@classmethod
	def parse(cls, raw, data):
		if isinstance(data, dict) and isinstance(data.get("response"), dict):
			return cls(body=data, raw=raw, inner=data["response"])
		return None

	def sources(self):
		return (self.inner, self.body)


@dataclass(frozen=True)
class PlainTextResponse:
	"""Body that is not JSON. Recognized only if a CUFE can be extracted."""
	raw: str
	reference: str

	@classmethod
	def parse(cls, raw, data):
		if data is not None:
			return None
		for pattern in TEXT_REFERENCE_PATTERNS:
			match = pattern.search(raw or "")
			if match:
				return cls(raw=raw, reference=match.group(1))
		return None

	def to_result(self):
		# No status code in a text body, so never a success
		return SubmissionResult(
			success=False,
			status=_status_for(None),
			status_code=None,
			reference=self.reference,
			message=self.raw[:500],
			raw_response=self.raw
		)


RESPONSE_VARIANTS = (NestedJsonResponse, FlatJsonResponse, PlainTextResponse)


def _message(value):
	if value is None:
		return None
	if isinstance(value, (dict, list)):
		return json.dumps(value, ensure_ascii=False)
	return str(value)


def _load_json(raw):
	try:
		return json.loads(raw)
	except (TypeError, ValueError):
		return None


def parse_response(raw, status_code=None):
	"""
	Turn a 2xx gateway body into a SubmissionResult.

	Raises:
		GatewayError: body matches no variant
	"""
	data = _load_json(raw)

	for variant in RESPONSE_VARIANTS:
		parsed = variant.parse(raw, data)
		if parsed is not None:
			return parsed.to_result()

	raise GatewayError(
		_("Unrecognized gateway response without a CUFE"),
		status_code=status_code,
		response_body=raw
	)
