# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
"""
DIAN Exception Hierarchy

Provides a consistent exception hierarchy for DIAN e-invoicing operations.
All custom exceptions inherit from DIANError for easy catching.

None of these are retried inside the app: they are raised to the caller,
which logs them and stops processing of the affected document.
"""

from __future__ import annotations

from typing import Any


class DIANError(Exception):
    """Base exception for all DIAN errors.

    Example:
        try:
            document = transformer.build_invoice(...)
        except DIANError as e:
            log_error(str(e), e.to_dict())
    """

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details
        }


class DIANValidationError(DIANError):
    """Input data failed validation before assembly.

    Attributes:
        field: Field that failed validation
        errors: List of validation messages
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[str] | None = None,
        code: str = "VALIDATION_ERROR",
        details: dict[str, Any] | None = None
    ):
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        super().__init__(message, code=code, details=details)
        self.field = field
        self.errors = errors or []


class ChecksumInputError(DIANValidationError):
    """Identification number cannot be used to compute a check digit.

    Raised when the identifier is empty after stripping non-digits or is
    longer than the weight table supports.
    """

    def __init__(self, message: str, value: Any = None):
        super().__init__(
            message,
            field="identification_number",
            code="CHECKSUM_INPUT",
            details={"value": value}
        )
        self.value = value


class MissingReferenceError(DIANValidationError):
    """Credit note has no authority reference (CUFE) for the original invoice."""

    def __init__(self, message: str, invoice_number: Any = None):
        super().__init__(
            message,
            field="authority_reference",
            code="FACTURA_NO_TIMBRADA",
            details={"invoice_number": invoice_number}
        )
        self.invoice_number = invoice_number


class ComputationError(DIANError):
    """Arithmetic on document data could not be carried out.

    Typical cause is a zero quantity on the line that must absorb a
    reconciliation residual.
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        super().__init__(message, code="COMPUTATION_ERROR", details={"field": field, "value": value})
        self.field = field
        self.value = value


class ReconciliationError(DIANError):
    """Line sums and header totals could not be made to agree.

    This is fatal for the document: it must not be submitted.

    Attributes:
        header_taxable / line_taxable: declared vs. summed taxable base
        header_tax / line_tax: declared vs. summed tax
    """

    def __init__(self, message: str, header_taxable=None, line_taxable=None, header_tax=None, line_tax=None):
        super().__init__(
            message,
            code="RECONCILIATION_ERROR",
            details={
                "header_taxable": header_taxable,
                "line_taxable": line_taxable,
                "header_tax": header_tax,
                "line_tax": line_tax,
            }
        )
        self.header_taxable = header_taxable
        self.line_taxable = line_taxable
        self.header_tax = header_tax
        self.line_tax = line_tax


class GatewayError(DIANError):
    """Error talking to the e-invoicing gateway.

    Raised for non-2xx HTTP responses, transport failures and response
    bodies from which no authority reference can be recovered.

    Attributes:
        status_code: HTTP status code (408/503 for transport failures)
        response_body: Raw response text, untouched
    """

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        super().__init__(message, code="GATEWAY_ERROR", details={"status_code": status_code})
        self.status_code = status_code
        self.response_body = response_body


class ConfigurationError(DIANError):
    """Required settings or numbering authorization are missing or invalid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


# Export all exceptions
__all__ = [
    "DIANError",
    "DIANValidationError",
    "ChecksumInputError",
    "MissingReferenceError",
    "ComputationError",
    "ReconciliationError",
    "GatewayError",
    "ConfigurationError",
]
