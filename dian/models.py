# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Data model for DIAN documents

Raw inputs (InvoiceHeader, InvoiceLineRaw, Counterparty) are read-only views
of rows supplied by the caller. Each has a from_row() constructor that reads a
mapping, trying alternate column names in a fixed order.

Outputs (NormalizedLine, AssembledDocument, SubmissionResult) are frozen.
Code that needs a different value builds a new instance with
dataclasses.replace().
"""

import copy
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping, Optional

from frappe.utils import cint, getdate

from dian.utils.money import ZERO, round_cop, to_decimal

INVOICE = "invoice"
CREDIT_NOTE = "credit_note"

# DIAN tax scheme id for IVA
TAX_ID_IVA = 1


def first_value(row: Any, *keys: str, default: Any = None) -> Any:
    """Return the first non-empty value for keys, in order."""
    for key in keys:
        value = row.get(key) if hasattr(row, "get") else getattr(row, key, None)
        if value is not None and value != "":
            return value
    return default


def _date_or_none(value: Any) -> Optional[date]:
    return getdate(value) if value else None


@dataclass(frozen=True)
class InvoiceHeader:
    """Document-level values as stored, before any reconciliation."""
    number: int
    issue_date: date
    taxable_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    discount_amount: Decimal = ZERO
    total: Decimal = ZERO
    cash: Decimal = ZERO
    credit: Decimal = ZERO
    card: Decimal = ZERO
    transfer: Decimal = ZERO
    credit_term_days: int = 0
    due_date: Optional[date] = None
    customer: Optional[str] = None
    authority_reference: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "InvoiceHeader":
        return cls(
            number=cint(first_value(row, "number", "numero_factura", "numfact")),
            issue_date=getdate(first_value(row, "issue_date", "posting_date", "fecha")),
            taxable_amount=round_cop(first_value(row, "taxable_amount", "net_total", "subtotal", default=0)),
            tax_amount=round_cop(first_value(row, "tax_amount", "total_taxes_and_charges", "valiva", "iva_valor", default=0)),
            discount_amount=round_cop(first_value(row, "discount_amount", "descuento", default=0)),
            total=round_cop(first_value(row, "total", "grand_total", "netfac", default=0)),
            cash=round_cop(first_value(row, "cash", "efectivo", default=0)),
            credit=round_cop(first_value(row, "credit", "credito", default=0)),
            card=round_cop(first_value(row, "card", "tarjeta", default=0)),
            transfer=round_cop(first_value(row, "transfer", "transferencia", default=0)),
            credit_term_days=cint(first_value(row, "credit_term_days", "plazo", default=0)),
            due_date=_date_or_none(first_value(row, "due_date", "fecha_vencimiento")),
            customer=first_value(row, "customer", "cliente_id", "codter"),
            authority_reference=first_value(row, "authority_reference", "dian_cufe", "cufe"),
        )


@dataclass(frozen=True)
class InvoiceLineRaw:
    """One detail row as stored."""
    quantity: Decimal
    unit_price: Decimal
    tax_amount: Decimal = ZERO
    discount_amount: Decimal = ZERO
    description: Optional[str] = None
    item_name: Optional[str] = None
    reference_code: Optional[str] = None
    item_code: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "InvoiceLineRaw":
        return cls(
            quantity=to_decimal(first_value(row, "quantity", "qty", "cantidad", "qtyins", default=0)),
            unit_price=to_decimal(first_value(row, "unit_price", "rate", "valins", default=0)),
            tax_amount=round_cop(first_value(row, "tax_amount", "ivains", default=0)),
            discount_amount=round_cop(first_value(row, "discount_amount", "descuento", default=0)),
            description=first_value(row, "description", "descripcion"),
            item_name=first_value(row, "item_name", "nombre"),
            reference_code=first_value(row, "reference_code", "productoId"),
            item_code=first_value(row, "item_code", "codins"),
        )


@dataclass(frozen=True)
class Counterparty:
    """Customer (or issuing company) identity as stored."""
    identification: Optional[str] = None
    name: Optional[str] = None
    type_organization_id: Optional[int] = None
    type_document_id: Optional[str] = None
    location_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "Counterparty":
        org_type = first_value(row, "type_organization_id")
        return cls(
            identification=first_value(row, "identification", "tax_id", "codter"),
            name=first_value(row, "name", "customer_name", "nomter", "nombreCompleto"),
            type_organization_id=cint(org_type) if org_type else None,
            type_document_id=first_value(row, "type_document_id"),
            location_code=first_value(row, "location_code", "id_location", "codigo_municipio"),
            address=first_value(row, "address", "dirter", "direccion"),
            phone=first_value(row, "phone", "telefono", "TELTER"),
            mobile=first_value(row, "mobile", "mobile_no", "celular", "CELTER"),
            email=first_value(row, "email", "email_id", "EMAIL"),
        )


@dataclass(frozen=True)
class CompanyIdentity:
    """
    Issuer identity for one request.

    Built from the Company and DIAN Settings each time a document is
    assembled and passed down explicitly.
    """
    identification_number: str
    name: str
    check_digit: Optional[int] = None
    type_organization_id: int = 1
    type_document_id: str = "31"
    location_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class TaxEntry:
    tax_id: int
    tax_amount: Decimal
    taxable_amount: Decimal
    percent: Decimal

    def to_api(self) -> dict:
        return {
            "tax_id": self.tax_id,
            "tax_amount": float(self.tax_amount),
            "taxable_amount": float(self.taxable_amount),
            "percent": float(self.percent),
        }


@dataclass(frozen=True)
class NormalizedLine:
    quantity: Decimal
    unit_price: Decimal
    line_extension_amount: Decimal
    tax: TaxEntry
    code: str
    description: str

    @property
    def tax_amount(self) -> Decimal:
        return self.tax.tax_amount


@dataclass(frozen=True)
class PaymentTerms:
    payment_form_id: int
    payment_method_id: int
    due_date: date
    credit_term_days: int = 0

    @property
    def duration_measure(self) -> int:
        # Only deferred payments carry a term
        return self.credit_term_days if self.payment_form_id == 2 else 0


@dataclass(frozen=True)
class Resolution:
    """Numbering authorization (resolución de facturación)."""
    resolution_id: int
    range_start: int
    range_end: int
    last_number: int = 0
    prefix: Optional[str] = None
    name: Optional[str] = None
    document_kind: str = INVOICE


@dataclass(frozen=True)
class CreditNoteReference:
    """The accepted invoice a credit note corrects."""
    number: Any
    authority_reference: Optional[str]
    issue_date: date
    total: Decimal = ZERO
    reason: Optional[str] = None
    correction_concept_id: Optional[int] = None


@dataclass(frozen=True)
class AssembledDocument:
    kind: str
    number: int
    payload: Mapping[str, Any] = field(repr=False)

    def __post_init__(self):
        # detached from the caller's dict, top level read-only
        object.__setattr__(self, "payload", MappingProxyType(copy.deepcopy(dict(self.payload))))

    def to_payload(self) -> dict:
        """Wire body. A copy, so callers cannot alter the document."""
        return copy.deepcopy(dict(self.payload))

    @property
    def total(self) -> float:
        return self.payload["legal_monetary_totals"]["payable_amount"]


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    status: str
    status_code: Optional[str] = None
    reference: Optional[str] = None
    is_valid: Optional[bool] = None
    message: Optional[str] = None
    pdf_url: Optional[str] = None
    xml_url: Optional[str] = None
    qr_code: Optional[str] = None
    raw_response: Optional[str] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "status": self.status,
            "status_code": self.status_code,
            "cufe": self.reference,
            "is_valid": self.is_valid,
            "message": self.message,
            "pdf_url": self.pdf_url,
            "xml_url": self.xml_url,
            "qr_code": self.qr_code,
        }
