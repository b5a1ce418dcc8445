# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Company identity for DIAN documents

    from dian.utils.company import get_company_identity

    identity = get_company_identity(sales_invoice.company)
    identity.identification_number  # "900123456"
    identity.check_digit            # 8

The identity is built on every call and handed to the transformer. It is
never kept in module state, so two companies on the same site cannot see
each other's data.
"""

import frappe
from frappe import _
from typing import Optional

from dian.models import CompanyIdentity
from dian.utils.nit import split_identification

DEFAULT_LOCATION_CODE = "11001"  # Bogotá D.C.
DEFAULT_ADDRESS = "BOGOTA D.C."


def get_company_identity(company_name: Optional[str] = None, settings=None) -> CompanyIdentity:
    """
    Build the issuer identity for a company.

    Company fields are used first; DIAN Settings fill in what the Company
    does not carry (location code, address) and may override contact data.

    Raises:
        frappe.ValidationError: company has no Tax ID
    """
    if settings is None:
        settings = frappe.get_single("DIAN Settings")

    company_name = company_name or settings.get("company")
    if not company_name:
        frappe.throw(_("Company is required"), title=_("Missing Company"))

    company = frappe.get_cached_doc("Company", company_name)

    if not company.tax_id:
        frappe.throw(
            _("Company {0} does not have Tax ID (NIT) configured").format(company_name),
            title=_("Missing Tax ID")
        )

    digits, check_digit = split_identification(company.tax_id)

    return CompanyIdentity(
        identification_number=digits,
        check_digit=check_digit,
        name=(company.company_name or company_name).strip().upper(),
        location_code=settings.get("company_location_code") or DEFAULT_LOCATION_CODE,
        address=(settings.get("company_address") or DEFAULT_ADDRESS).strip().upper(),
        phone=settings.get("company_phone") or company.get("phone_no"),
        email=settings.get("company_email") or company.get("email"),
    )
