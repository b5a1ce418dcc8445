# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN Resolution DocType

Numbering authorization granted by DIAN: an id and an inclusive range of
document numbers. Only one resolution per document kind may be active.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint, getdate


class DIANResolution(Document):
    """DIAN Resolution - authorized numbering range for invoices or credit notes."""

    def validate(self):
        self.validate_range()
        self.validate_dates()
        if self.active:
            self.deactivate_others()

    def validate_range(self):
        if cint(self.range_start) <= 0:
            frappe.throw(_("Range start must be positive"))
        if cint(self.range_end) < cint(self.range_start):
            frappe.throw(_("Range end cannot be before range start"))
        if cint(self.last_number) and cint(self.last_number) > cint(self.range_end):
            frappe.throw(_("Last number {0} is outside the authorized range").format(self.last_number))

    def validate_dates(self):
        if self.valid_from and self.valid_to and getdate(self.valid_to) < getdate(self.valid_from):
            frappe.throw(_("Valid To cannot be before Valid From"))

    def deactivate_others(self):
        """Keep a single active resolution per document kind."""
        others = frappe.get_all(
            "DIAN Resolution",
            filters={
                "active": 1,
                "document_kind": self.document_kind,
                "name": ["!=", self.name or ""]
            },
            pluck="name"
        )
        for name in others:
            frappe.db.set_value("DIAN Resolution", name, "active", 0)
