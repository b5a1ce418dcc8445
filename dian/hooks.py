# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN - Electronic Invoicing for the Colombian tax authority (DIAN)

Works with ERPNext:
- Sales Invoice: sent as factura electrónica de venta on submit
- Return Sales Invoice: sent as nota crédito against the original invoice
"""

app_name = "dian"
app_title = "DIAN"
app_publisher = "Digital Consulting Service LLC (Mongolia)"
app_description = (
    "Electronic invoicing for the Colombian tax authority (DIAN) through a UBL 2.1 gateway. "
    "Sends ERPNext Sales Invoices and credit notes."
)
app_email = "dev@frappe.mn"
app_license = "gpl-3.0"
app_version = "1.0.0"

# Required Apps - ERPNext required for Sales Invoice
required_apps = ["frappe", "erpnext"]

# Installation
# ------------

after_install = "dian.setup.install.after_install"
before_uninstall = "dian.setup.install.before_uninstall"
after_migrate = ["dian.setup.install.after_migrate"]

# Document Events
# ---------------
# Hook on document methods and events

doc_events = {
	"Sales Invoice": {
		"on_submit": "dian.integrations.sales_invoice.on_submit",
		"before_cancel": "dian.integrations.sales_invoice.before_cancel"
	}
}

# Testing
# -------

# before_tests = "dian.install.before_tests"

# default_log_clearing_doctypes = {
# 	"DIAN Submission Log": 365  # days to retain logs
# }
