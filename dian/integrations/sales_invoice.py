# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN Sales Invoice Integration

Sends submitted Sales Invoices to the DIAN gateway as electronic invoices.
Return invoices (is_return) are sent as credit notes against the invoice in
return_against, which must already carry a CUFE.

Every round trip is recorded in a DIAN Submission Log, and the verdict is
written back to the invoice's dian_* custom fields.
"""

import json

import frappe
from frappe import _
from frappe.utils import cint, date_diff, flt, getdate, strip_html_tags

from dian.api.client import DIANClient
from dian.api.transformer import DIANTransformer
from dian.exceptions import DIANError, GatewayError
from dian.logger import log_error, log_info
from dian.models import (
    CREDIT_NOTE,
    INVOICE,
    Counterparty,
    CreditNoteReference,
    InvoiceHeader,
    InvoiceLineRaw,
)
from dian.utils.company import get_company_identity
from dian.utils.config import get_gateway_config, get_settings, is_enabled
from dian.utils.money import round_cop, to_decimal
from dian.utils.numbering import get_active_resolution, reserve_document_number

SUBMISSION_LOG_DOCTYPE = "DIAN Submission Log"

CARD_KEYWORDS = ("card", "tarjeta", "credit card", "debit card")


def on_submit(doc, method=None):
    """
    Handle Sales Invoice submission - send the document to DIAN.

    Args:
        doc: Sales Invoice document
        method: Event method name
    """
    if not is_enabled():
        return

    # Skip zero-value invoices
    if not flt(doc.grand_total):
        return

    submit_sales_invoice(doc)


def before_cancel(doc, method=None):
    """Invoices accepted by DIAN are corrected with a credit note, not cancelled."""
    if not is_enabled():
        return

    if doc.get("dian_cufe") and not doc.is_return:
        frappe.throw(
            _("Sales Invoice {0} was accepted by DIAN (CUFE {1}). Create a return (credit note) instead of cancelling.").format(
                doc.name, doc.dian_cufe
            ),
            title=_("DIAN")
        )


@frappe.whitelist()
def resend_invoice(sales_invoice):
    """Submit again an invoice whose previous attempt failed or was rejected."""
    doc = frappe.get_doc("Sales Invoice", sales_invoice)
    doc.check_permission("submit")

    if doc.docstatus != 1:
        frappe.throw(_("Only submitted invoices can be sent to DIAN"))
    if doc.get("dian_status") == "Accepted":
        frappe.throw(_("Sales Invoice {0} is already accepted by DIAN").format(doc.name))

    result = submit_sales_invoice(doc)
    return result.to_dict() if result else None


def submit_sales_invoice(doc):
    """
    Assemble and submit a Sales Invoice or return.

    Assembly errors are raised, so nothing reaches the gateway. Gateway
    errors are logged against the invoice and shown to the user.

    A new invoice takes its number from the resolution before sending and
    keeps it whatever DIAN answers.

    Returns:
        SubmissionResult, or None when the gateway call failed
    """
    settings = get_settings()
    config = get_gateway_config(settings)
    kind = CREDIT_NOTE if doc.is_return else INVOICE

    resolution = get_active_resolution(kind)
    # a stamped number is kept on resend
    number = cint(doc.get("dian_number")) or reserve_document_number(resolution)

    try:
        company = get_company_identity(doc.company, settings)
        transformer = DIANTransformer(config)
        header = header_from_invoice(doc, number)
        rows = lines_from_invoice(doc)
        customer = counterparty_from_customer(doc)

        if kind == CREDIT_NOTE:
            document = transformer.build_credit_note(
                header, rows, customer, company, resolution, reference_from_return(doc)
            )
        else:
            document = transformer.build_invoice(header, rows, customer, company, resolution)
    except DIANError as e:
        log_error(f"DIAN assembly failed for {doc.name}", e.to_dict(), exc=e)
        raise

    try:
        result = DIANClient(config).submit(document)
    except GatewayError as e:
        log_error(f"DIAN gateway error for {doc.name}", e.to_dict(), exc=e)
        _create_submission_log(doc, document, status="Error", message=e.message, response_body=e.response_body)
        _set_invoice_status(doc, number, "Error")
        frappe.msgprint(e.response_body or e.message, title=_("DIAN Gateway Error"), indicator="red")
        return None

    _create_submission_log(doc, document, result=result)
    _set_invoice_status(doc, number, _status_label(result), result.reference)

    if result.success:
        log_info(f"DIAN accepted {doc.name}", {"cufe": result.reference, "number": number})
    else:
        frappe.msgprint(
            result.message or result.raw_response or _("Document rejected by DIAN"),
            title=_("DIAN Rejected"),
            indicator="orange"
        )

    return result


# =============================================================================
# Sales Invoice -> raw model
# =============================================================================

def header_from_invoice(doc, number):
    """Map a Sales Invoice to InvoiceHeader. Return amounts are made positive."""
    payments = _payment_channels(doc)
    posting_date = getdate(doc.posting_date)
    due_date = getdate(doc.due_date) if doc.get("due_date") else posting_date

    return InvoiceHeader(
        number=cint(number),
        issue_date=posting_date,
        due_date=due_date,
        customer=doc.customer,
        taxable_amount=round_cop(abs(flt(doc.net_total))),
        tax_amount=round_cop(abs(flt(doc.total_taxes_and_charges))),
        discount_amount=round_cop(abs(flt(doc.get("discount_amount")))),
        total=round_cop(abs(flt(doc.grand_total))),
        cash=payments["cash"],
        card=payments["card"],
        transfer=payments["transfer"],
        credit=payments["credit"],
        credit_term_days=max(date_diff(due_date, posting_date), 0),
        authority_reference=doc.get("dian_cufe"),
    )


def lines_from_invoice(doc):
    """Map Sales Invoice Items to InvoiceLineRaw, allocating header tax by net amount."""
    net_total = abs(flt(doc.net_total))
    total_tax = abs(flt(doc.total_taxes_and_charges))

    rows = []
    for item in doc.items or []:
        net_amount = abs(flt(item.net_amount))
        tax_amount = total_tax * net_amount / net_total if net_total else 0
        qty = abs(flt(item.qty))

        rows.append(InvoiceLineRaw(
            quantity=to_decimal(qty),
            unit_price=to_decimal(flt(item.net_rate) or (net_amount / qty if qty else 0)),
            tax_amount=round_cop(tax_amount),
            discount_amount=round_cop(0),
            description=strip_html_tags(item.get("description") or ""),
            item_name=item.get("item_name"),
            reference_code=item.get("dian_product_code"),
            item_code=item.get("item_code"),
        ))
    return rows


def counterparty_from_customer(doc):
    """Map the invoice's Customer (and contact fields on the invoice) to Counterparty."""
    if not doc.customer:
        return None

    customer = frappe.get_cached_doc("Customer", doc.customer)
    is_company = customer.get("customer_type") == "Company"

    address = None
    location_code = None
    if doc.get("customer_address"):
        address_doc = frappe.get_cached_doc("Address", doc.customer_address)
        address = ", ".join(filter(None, [address_doc.get("address_line1"), address_doc.get("city")]))
        location_code = address_doc.get("dian_location_code")

    return Counterparty(
        identification=customer.get("tax_id"),
        name=customer.get("customer_name") or doc.get("customer_name"),
        type_organization_id=1 if is_company else 2,
        type_document_id="31" if is_company else "13",
        location_code=location_code,
        address=address,
        phone=doc.get("contact_phone") or customer.get("mobile_no"),
        mobile=doc.get("contact_mobile"),
        email=doc.get("contact_email") or customer.get("email_id"),
    )


def reference_from_return(doc):
    """Build the CreditNoteReference for a return invoice."""
    if not doc.return_against:
        return None

    original = frappe.get_doc("Sales Invoice", doc.return_against)
    return CreditNoteReference(
        number=original.get("dian_number") or original.name,
        authority_reference=original.get("dian_cufe"),
        issue_date=getdate(original.posting_date),
        total=round_cop(abs(flt(original.grand_total))),
        reason=doc.get("remarks") if doc.get("remarks") not in (None, "", "No Remarks") else None,
        correction_concept_id=cint(doc.get("dian_correction_concept")) or None,
    )


def _payment_channels(doc):
    """Split what was paid by channel. Unpaid balance is credit."""
    channels = {"cash": 0.0, "card": 0.0, "transfer": 0.0}

    for payment in doc.get("payments") or []:
        amount = abs(flt(payment.amount))
        if not amount:
            continue
        mode = (payment.mode_of_payment or "").lower()
        mode_type = payment.get("type") or frappe.db.get_value("Mode of Payment", payment.mode_of_payment, "type")

        if any(keyword in mode for keyword in CARD_KEYWORDS):
            channels["card"] += amount
        elif mode_type == "Bank":
            channels["transfer"] += amount
        else:
            channels["cash"] += amount

    return {
        "cash": round_cop(channels["cash"]),
        "card": round_cop(channels["card"]),
        "transfer": round_cop(channels["transfer"]),
        "credit": round_cop(abs(flt(doc.get("outstanding_amount")))),
    }


def _create_submission_log(doc, document, result=None, status=None, message=None, response_body=None):
    log = frappe.get_doc({
        "doctype": SUBMISSION_LOG_DOCTYPE,
        "reference_doctype": doc.doctype,
        "reference_name": doc.name,
        "company": doc.company,
        "document_kind": "Credit Note" if document.kind == CREDIT_NOTE else "Invoice",
        "document_number": document.number,
        "status": status or _status_label(result),
        "status_code": result.status_code if result else None,
        "cufe": result.reference if result else None,
        "message": message or (result.message if result else None),
        "pdf_url": result.pdf_url if result else None,
        "xml_url": result.xml_url if result else None,
        "qr_code": result.qr_code if result else None,
        "request_payload": json.dumps(document.to_payload(), indent=2, ensure_ascii=False),
        "response_body": response_body if result is None else result.raw_response,
    })
    log.insert(ignore_permissions=True)
    return log


def _status_label(result):
    if result.success:
        return "Accepted"
    if result.status == "error":
        return "Error"
    return "Rejected"


def _set_invoice_status(doc, number, status, cufe=None):
    values = {"dian_number": number, "dian_status": status}
    if cufe and status == "Accepted":
        values["dian_cufe"] = cufe
    doc.db_set(values, update_modified=False)
