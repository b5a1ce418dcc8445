# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
# pyright: reportMissingImports=false, reportAttributeAccessIssue=false

"""
DIAN - Colombian Electronic Invoicing for ERPNext

Sends Sales Invoices and credit notes to a DIAN UBL 2.1 gateway:
- Line amounts reconciled to the cent against document totals
- IVA rates snapped to the legal brackets (19, 8, 5, 0)
- NIT check digit (DV) computed for issuer and customer
- Payment form and method inferred from how the invoice was paid
- CUFE, QR and document URLs recorded from the gateway response
"""

__version__ = "1.0.0"
