# pyright: reportMissingImports=false
"""
DIAN Logging Utilities

All DIAN logging goes through frappe's site logger ("dian"). Records end up in:
- logs/dian.log (debug/info/warning)
- Error Log DocType (errors, see log_error)
- DIAN Submission Log DocType (gateway round trips, written by integrations)
"""

import json
import traceback
from functools import wraps
from typing import Any, Optional

import frappe


def get_logger():
    return frappe.logger("dian", allow_site=True, file_count=10)


def _format(message: str, data: Optional[dict] = None) -> str:
    if not data:
        return message
    return f"{message} | {json.dumps(data, default=str, ensure_ascii=False)}"


def log_info(message: str, data: Optional[dict] = None):
    get_logger().info(_format(message, data))


def log_debug(message: str, data: Optional[dict] = None):
    get_logger().debug(_format(message, data))


def log_warning(message: str, data: Optional[dict] = None):
    get_logger().warning(_format(message, data))


def log_error(message: str, data: Optional[dict] = None, exc: Optional[BaseException] = None):
    """
    Log to dian.log and to the Error Log DocType.

    Args:
        message: Short description, also used as the Error Log title
        data: Context (document number, exception to_dict(), ...)
        exc: Exception being handled; its traceback is attached
    """
    details = {"message": message, "data": data}
    if exc is not None:
        details["traceback"] = traceback.format_exc()

    get_logger().error(_format(message, details))
    frappe.log_error(
        message=json.dumps(details, default=str, indent=2, ensure_ascii=False),
        title=f"DIAN: {message[:100]}"
    )


def log_action(action_name: str):
    """
    Decorator: debug entry/exit, error log on failure, exception re-raised.

    Usage:
        @log_action("Submit Invoice")
        def submit_invoice(self, document):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger()
            logger.debug(f"[{action_name}] start")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log_error(f"[{action_name}] {e}", {"function": func.__qualname__}, exc=e)
                raise
            logger.debug(f"[{action_name}] done")
            return result

        return wrapper
    return decorator


# Domain events

def log_reconciliation_adjustment(document: str, adjustment: dict):
    """Line sums were forced to match header totals."""
    log_warning(f"Reconciliation adjusted document {document}", adjustment)


def log_tax_correction(position: int, raw_tax: Any, corrected_tax: Any, percent: Any):
    log_debug(f"Line {position}: tax {raw_tax} replaced by {corrected_tax} ({percent}%)")


def log_document_assembled(kind: str, number: int, total: Any, line_count: int):
    log_info(f"Assembled {kind} {number}", {"total": total, "lines": line_count})


def log_submission_result(kind: str, number: int, status: str, reference: Optional[str], message: Optional[str]):
    log_info(f"Gateway verdict for {kind} {number}: {status}", {
        "reference": reference,
        "message": message
    })
