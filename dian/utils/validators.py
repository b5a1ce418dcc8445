# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Validation Utilities for DIAN

Checks document data before it is assembled, so that bad input fails closed
before anything is sent to the gateway.

    validate_header(header).raise_if_invalid()
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import frappe
from frappe import _
from frappe.utils import getdate

from dian.exceptions import DIANValidationError
from dian.utils.money import to_decimal


@dataclass
class FieldError:
    field: str
    message: str
    code: str = "invalid"
    value: Any = None


@dataclass
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_if_invalid(self):
        """Raise DIANValidationError listing every failed field."""
        if self.is_valid:
            return
        messages = [f"{e.field}: {e.message}" for e in self.errors]
        raise DIANValidationError(
            _("Document data is invalid: {0}").format("; ".join(messages)),
            field=self.errors[0].field,
            errors=messages
        )


class Validator:
    """
    Chainable field checks. A failed presence check stops the remaining
    checks for that field.

        Validator().field("number", 12).required().positive_int().validate()
    """

    def __init__(self):
        self._result = ValidationResult()
        self._name = None
        self._value = None
        self._stopped = False

    def field(self, name: str, value: Any) -> "Validator":
        self._name, self._value, self._stopped = name, value, False
        return self

    def _fail(self, message: str, code: str):
        self._result.errors.append(FieldError(self._name, message, code, self._value))

    def _blank(self) -> bool:
        return self._value is None or (isinstance(self._value, str) and not self._value.strip())

    def required(self, message: str | None = None) -> "Validator":
        if not self._stopped and self._blank():
            self._fail(message or _("Value is required"), "required")
            self._stopped = True
        return self

    def optional(self) -> "Validator":
        if self._blank():
            self._stopped = True
        return self

    def matches(self, pattern: str, message: str | None = None) -> "Validator":
        if not self._stopped and not re.match(pattern, str(self._value)):
            self._fail(message or _("Invalid format"), "format")
        return self

    def positive_int(self, message: str | None = None) -> "Validator":
        if self._stopped:
            return self
        if isinstance(self._value, bool) or not str(self._value).strip().isdigit() or int(self._value) <= 0:
            self._fail(message or _("Must be a whole number greater than zero"), "positive")
        return self

    def amount(self, message: str | None = None) -> "Validator":
        """Numeric and not negative. Peso amounts on a document are never negative."""
        if self._stopped:
            return self
        if to_decimal(self._value) < 0:
            self._fail(message or _("Amount cannot be negative"), "non_negative")
        return self

    def is_date(self, message: str | None = None) -> "Validator":
        if self._stopped or isinstance(self._value, date):
            return self
        try:
            getdate(self._value)
        except (ValueError, TypeError, frappe.ValidationError):
            self._fail(message or _("Not a valid date"), "date")
        return self

    def validate(self) -> ValidationResult:
        return ValidationResult(errors=list(self._result.errors))


def validate_header(header) -> ValidationResult:
    """InvoiceHeader checks run before assembly."""
    v = Validator()

    v.field("number", header.number).required().positive_int(_("Document number must be positive"))
    v.field("issue_date", header.issue_date).required().is_date()
    for name in ("taxable_amount", "tax_amount", "discount_amount"):
        v.field(name, getattr(header, name)).amount()
    v.field("credit_term_days", header.credit_term_days).amount(_("Credit term cannot be negative"))

    return v.validate()


def validate_email(email: str) -> ValidationResult:
    return (Validator()
        .field("email", email)
        .optional()
        .matches(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", _("Invalid email address"))
        .validate())


def validate_test_set_id(test_set_id: str) -> ValidationResult:
    """Test set id is used as a URL path segment."""
    return (Validator()
        .field("test_set_id", test_set_id)
        .required()
        .matches(r"^[A-Za-z0-9-]+$", _("Test Set ID may only contain letters, digits and dashes"))
        .validate())
