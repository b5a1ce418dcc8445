# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN ERPNext Integrations

- Sales Invoice: electronic invoice on submit
- Return Sales Invoice: credit note referencing the original CUFE

All integrations respect the "Enabled" flag in DIAN Settings.
"""

from dian.integrations.sales_invoice import (
    on_submit as sales_invoice_on_submit,
    before_cancel as sales_invoice_before_cancel,
    resend_invoice,
)

__all__ = [
    "sales_invoice_on_submit",
    "sales_invoice_before_cancel",
    "resend_invoice",
]
