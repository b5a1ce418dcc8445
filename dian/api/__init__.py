# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
DIAN API Module

Document assembly and submission for the DIAN e-invoicing gateway.
"""

from dian.api.client import DIANClient, get_client
from dian.api.http_client import DIANHTTPClient, get_http_client
from dian.api.lines import LineBuilder
from dian.api.reconciliation import ReconciliationResult, reconcile
from dian.api.transformer import DIANTransformer, get_transformer

__all__ = [
    "DIANClient",
    "DIANHTTPClient",
    "DIANTransformer",
    "LineBuilder",
    "ReconciliationResult",
    "get_client",
    "get_http_client",
    "get_transformer",
    "reconcile"
]
