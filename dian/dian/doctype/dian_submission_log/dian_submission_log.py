# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN Submission Log DocType

One record per gateway round trip: the JSON sent, the raw body received and
the parsed verdict. Records are written by the Sales Invoice integration and
are read-only afterwards.
"""

import frappe
from frappe import _
from frappe.model.document import Document


class DIANSubmissionLog(Document):
    """DIAN Submission Log - audit trail of documents sent to the gateway."""

    def validate(self):
        self.validate_reference()
        if self.status == "Accepted" and not self.cufe:
            frappe.throw(_("Accepted submissions must carry a CUFE"))

    def validate_reference(self):
        """Validate that the reference document exists."""
        if self.reference_doctype and self.reference_name:
            if not frappe.db.exists(self.reference_doctype, self.reference_name):
                frappe.throw(
                    _("Reference {0} {1} does not exist").format(
                        self.reference_doctype, self.reference_name
                    )
                )
