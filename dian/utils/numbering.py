# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Numbering authorization (resolución) helpers

The active DIAN Resolution is the only source for the resolution id and the
document number. The resolution_id_override setting exists for gateways that
expect a fixed id regardless of the stored resolution.
"""

from dataclasses import replace

import frappe
from frappe import _
from frappe.utils import cint

from dian.exceptions import ConfigurationError
from dian.models import CREDIT_NOTE, INVOICE, Resolution

RESOLUTION_DOCTYPE = "DIAN Resolution"

# document_kind Select options
KIND_LABELS = {INVOICE: "Invoice", CREDIT_NOTE: "Credit Note"}


def resolution_from_doc(doc) -> Resolution:
    return Resolution(
        resolution_id=cint(doc.resolution_id),
        range_start=cint(doc.range_start),
        range_end=cint(doc.range_end),
        last_number=cint(doc.last_number),
        prefix=doc.get("prefix"),
        name=doc.name,
        document_kind=CREDIT_NOTE if doc.get("document_kind") == KIND_LABELS[CREDIT_NOTE] else INVOICE,
    )


def get_active_resolution(kind: str = INVOICE) -> Resolution:
    """
    Most recent active resolution for a document kind.

    Raises:
        ConfigurationError: no active resolution
    """
    names = frappe.get_all(
        RESOLUTION_DOCTYPE,
        filters={"active": 1, "document_kind": KIND_LABELS[kind]},
        order_by="creation desc",
        limit=1,
        pluck="name"
    )
    if not names:
        raise ConfigurationError(
            _("No active DIAN Resolution found for {0}").format(kind),
            details={"document_kind": kind}
        )
    return resolution_from_doc(frappe.get_doc(RESOLUTION_DOCTYPE, names[0]))


def next_document_number(resolution: Resolution) -> int:
    """
    Next number inside the authorized range.

    Raises:
        ConfigurationError: range exhausted or malformed
    """
    if resolution.range_end and resolution.range_start > resolution.range_end:
        raise ConfigurationError(
            _("DIAN Resolution {0} has an invalid range").format(resolution.name or resolution.resolution_id),
            details={"range_start": resolution.range_start, "range_end": resolution.range_end}
        )

    number = max(resolution.last_number + 1, resolution.range_start)
    if resolution.range_end and number > resolution.range_end:
        raise ConfigurationError(
            _("DIAN Resolution {0} is exhausted (last number {1}, range end {2})").format(
                resolution.name or resolution.resolution_id, resolution.last_number, resolution.range_end
            ),
            details={"last_number": resolution.last_number, "range_end": resolution.range_end}
        )
    return number


def effective_resolution_id(resolution: Resolution, override: int = 0) -> int:
    """Resolution id sent on the wire."""
    return cint(override) or resolution.resolution_id


def reserve_document_number(resolution: Resolution) -> int:
    """
    Take the next number and advance the resolution's counter in one step.

    The resolution row stays locked until the transaction ends, so concurrent
    submissions never share a number. A taken number is not handed out again,
    whatever the gateway answers; resends reuse the invoice's own number.

    Raises:
        ConfigurationError: range exhausted or malformed
    """
    if not resolution.name:
        return next_document_number(resolution)

    last_number = cint(frappe.db.get_value(RESOLUTION_DOCTYPE, resolution.name, "last_number", for_update=True))
    number = next_document_number(replace(resolution, last_number=last_number))
    frappe.db.set_value(RESOLUTION_DOCTYPE, resolution.name, "last_number", number, update_modified=False)
    return number
