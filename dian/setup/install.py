# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
# pyright: reportMissingImports=false, reportAttributeAccessIssue=false

"""
DIAN Installation Script

Called after app installation to set up:
- Default settings
- Custom fields on Sales Invoice, Sales Invoice Item and Address
"""

import frappe
from frappe.custom.doctype.custom_field.custom_field import create_custom_fields

from dian.utils.config import DEFAULT_BASE_URL, DEFAULT_TEST_SET_ID, DEFAULT_TIMEOUT

CUSTOM_FIELDS = {
    "Sales Invoice": [
        {
            "fieldname": "dian_section",
            "fieldtype": "Section Break",
            "label": "DIAN",
            "insert_after": "remarks",
            "collapsible": 1,
        },
        {
            "fieldname": "dian_status",
            "fieldtype": "Select",
            "label": "DIAN Status",
            "options": "\nAccepted\nRejected\nError",
            "insert_after": "dian_section",
            "read_only": 1,
            "no_copy": 1,
            "allow_on_submit": 1,
            "in_standard_filter": 1,
        },
        {
            "fieldname": "dian_number",
            "fieldtype": "Int",
            "label": "DIAN Number",
            "insert_after": "dian_status",
            "read_only": 1,
            "no_copy": 1,
            "allow_on_submit": 1,
        },
        {
            "fieldname": "dian_cufe",
            "fieldtype": "Data",
            "label": "CUFE",
            "insert_after": "dian_number",
            "read_only": 1,
            "no_copy": 1,
            "allow_on_submit": 1,
        },
        {
            "fieldname": "dian_correction_concept",
            "fieldtype": "Select",
            "label": "DIAN Correction Concept",
            "description": "Credit notes only. Leave empty to decide from the returned amount.",
            "options": "\n1\n2",
            "insert_after": "dian_cufe",
            "depends_on": "eval:doc.is_return",
            "no_copy": 1,
        },
    ],
    "Sales Invoice Item": [
        {
            "fieldname": "dian_product_code",
            "fieldtype": "Data",
            "label": "DIAN Product Code",
            "insert_after": "item_code",
            "fetch_from": "item_code.dian_product_code",
        },
    ],
    "Item": [
        {
            "fieldname": "dian_product_code",
            "fieldtype": "Data",
            "label": "DIAN Product Code",
            "insert_after": "item_code",
        },
    ],
    "Address": [
        {
            "fieldname": "dian_location_code",
            "fieldtype": "Data",
            "label": "Municipality Code (DANE)",
            "insert_after": "city",
        },
    ],
}


def after_install():
    """Run after DIAN app is installed"""
    create_default_settings()
    setup_custom_fields()
    frappe.db.commit()
    print("DIAN app installed successfully!")


def after_migrate():
    setup_custom_fields()


def setup_custom_fields():
    create_custom_fields(CUSTOM_FIELDS, update=True)


def create_default_settings():
    """Create default DIAN Settings if not exists"""
    if not frappe.db.exists("DocType", "DIAN Settings"):
        return

    settings = frappe.get_single("DIAN Settings")

    # Use set_single_value to avoid validation of an incomplete setup
    defaults = {
        "environment": settings.environment or "Test",
        "api_base_url": settings.api_base_url or DEFAULT_BASE_URL,
        "test_set_id": settings.test_set_id or DEFAULT_TEST_SET_ID,
        "timeout": settings.timeout or DEFAULT_TIMEOUT,
    }
    for field, value in defaults.items():
        frappe.db.set_single_value("DIAN Settings", field, value)


def before_uninstall():
    """Run before DIAN app is uninstalled"""
    print("Preparing to uninstall DIAN app...")
    remove_custom_fields()


def remove_custom_fields():
    for doctype, fields in CUSTOM_FIELDS.items():
        for field in fields:
            name = frappe.db.get_value("Custom Field", {"dt": doctype, "fieldname": field["fieldname"]})
            if name:
                frappe.delete_doc("Custom Field", name, ignore_permissions=True)
