# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Tests for DIAN Sales Invoice integration

Covers:
- Sales Invoice to raw model mapping
- Payment channel detection
- Submission flow with the gateway mocked out
- Credit notes against invoices without a CUFE
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import frappe
from frappe.tests.utils import FrappeTestCase

from dian.models import CompanyIdentity, Resolution, SubmissionResult
from dian.utils.config import GatewayConfig

MODULE = "dian.integrations.sales_invoice"


def make_invoice(**overrides):
    doc = frappe._dict({
        "doctype": "Sales Invoice",
        "name": "ACC-SINV-2024-00001",
        "company": "Acme",
        "customer": "CUST-1",
        "is_return": 0,
        "return_against": None,
        "dian_number": None,
        "dian_cufe": None,
        "posting_date": "2024-03-01",
        "due_date": "2024-03-01",
        "net_total": 100000,
        "total_taxes_and_charges": 19000,
        "discount_amount": 0,
        "grand_total": 119000,
        "outstanding_amount": 0,
        "payments": [],
        "items": [
            frappe._dict({
                "item_code": "SKU-1",
                "item_name": "Camisa",
                "description": "<p>Camisa <b>azul</b></p>",
                "qty": 1,
                "net_rate": 60000,
                "net_amount": 60000,
            }),
            frappe._dict({
                "item_code": "SKU-2",
                "item_name": "Pantalon",
                "description": "",
                "dian_product_code": "7701234000011",
                "qty": 2,
                "net_rate": 20000,
                "net_amount": 40000,
            }),
        ],
    })
    doc.update(overrides)
    doc.db_set = MagicMock()
    return doc


class TestSalesInvoiceMapping(FrappeTestCase):
    """Test Sales Invoice to raw model mapping"""

    def test_header_from_invoice(self):
        """Header amounts and credit term come from the invoice"""
        from dian.integrations.sales_invoice import header_from_invoice

        doc = make_invoice(due_date="2024-03-31", outstanding_amount=119000)
        header = header_from_invoice(doc, 1001)

        self.assertEqual(header.number, 1001)
        self.assertEqual(header.issue_date, date(2024, 3, 1))
        self.assertEqual(header.taxable_amount, Decimal("100000.00"))
        self.assertEqual(header.tax_amount, Decimal("19000.00"))
        self.assertEqual(header.total, Decimal("119000.00"))
        self.assertEqual(header.credit, Decimal("119000.00"))
        self.assertEqual(header.credit_term_days, 30)

    def test_return_amounts_positive(self):
        """Return invoices carry negative amounts in ERPNext"""
        from dian.integrations.sales_invoice import header_from_invoice

        doc = make_invoice(is_return=1, net_total=-100000, total_taxes_and_charges=-19000, grand_total=-119000)
        header = header_from_invoice(doc, 7)

        self.assertEqual(header.taxable_amount, Decimal("100000.00"))
        self.assertEqual(header.tax_amount, Decimal("19000.00"))
        self.assertEqual(header.total, Decimal("119000.00"))

    def test_lines_from_invoice(self):
        """Header tax is split across items by net amount"""
        from dian.integrations.sales_invoice import lines_from_invoice

        rows = lines_from_invoice(make_invoice())

        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0].tax_amount, Decimal("11400.00"))
        self.assertEqual(rows[1].tax_amount, Decimal("7600.00"))
        self.assertEqual(rows[0].description, "Camisa azul")
        self.assertEqual(rows[1].reference_code, "7701234000011")
        self.assertEqual(rows[1].quantity, Decimal("2"))
        self.assertEqual(rows[1].unit_price, Decimal("20000"))

    def test_payment_channels(self):
        """Card keywords win; Bank mode types are transfers"""
        from dian.integrations.sales_invoice import _payment_channels

        doc = make_invoice(
            outstanding_amount=1000,
            payments=[
                frappe._dict({"mode_of_payment": "Tarjeta Credito", "type": "Bank", "amount": 50000}),
                frappe._dict({"mode_of_payment": "Wire Transfer", "type": "Bank", "amount": 30000}),
                frappe._dict({"mode_of_payment": "Cash", "type": "Cash", "amount": 20000}),
                frappe._dict({"mode_of_payment": "Cash", "type": "Cash", "amount": 0}),
            ]
        )
        channels = _payment_channels(doc)

        self.assertEqual(channels["card"], Decimal("50000.00"))
        self.assertEqual(channels["transfer"], Decimal("30000.00"))
        self.assertEqual(channels["cash"], Decimal("20000.00"))
        self.assertEqual(channels["credit"], Decimal("1000.00"))


class TestSalesInvoiceEvents(FrappeTestCase):
    """Test doc_events handlers"""

    @patch(f"{MODULE}.submit_sales_invoice")
    @patch(f"{MODULE}.is_enabled")
    def test_on_submit_disabled(self, mock_is_enabled, mock_submit):
        """Nothing is sent while DIAN is disabled"""
        from dian.integrations.sales_invoice import on_submit

        mock_is_enabled.return_value = False
        on_submit(make_invoice())
        mock_submit.assert_not_called()

    @patch(f"{MODULE}.submit_sales_invoice")
    @patch(f"{MODULE}.is_enabled")
    def test_on_submit_zero_total(self, mock_is_enabled, mock_submit):
        """Zero-value invoices are skipped"""
        from dian.integrations.sales_invoice import on_submit

        mock_is_enabled.return_value = True
        on_submit(make_invoice(grand_total=0))
        mock_submit.assert_not_called()

    @patch(f"{MODULE}.is_enabled")
    def test_before_cancel_accepted_invoice(self, mock_is_enabled):
        """Accepted invoices cannot be cancelled"""
        from dian.integrations.sales_invoice import before_cancel

        mock_is_enabled.return_value = True
        with self.assertRaises(frappe.ValidationError):
            before_cancel(make_invoice(dian_cufe="cufe-1"))


@patch(f"{MODULE}.counterparty_from_customer", return_value=None)
@patch(f"{MODULE}.get_company_identity")
@patch(f"{MODULE}.get_active_resolution")
@patch(f"{MODULE}.get_gateway_config")
@patch(f"{MODULE}.get_settings")
class TestSubmitSalesInvoice(FrappeTestCase):
    """Test the submission flow"""

    def prepare(self, mock_settings, mock_config, mock_resolution, mock_company):
        mock_settings.return_value = frappe._dict({"enabled": 1})
        mock_config.return_value = GatewayConfig(base_url="https://gw.example.com", test_set_id="abc")
        self.resolution = Resolution(18760000001, range_start=1, range_end=5000, last_number=1000, name="RES-1")
        mock_resolution.return_value = self.resolution
        mock_company.return_value = CompanyIdentity(identification_number="900123456", name="ACME")

    @patch(f"{MODULE}._create_submission_log")
    @patch(f"{MODULE}.reserve_document_number", return_value=1001)
    @patch(f"{MODULE}.DIANClient")
    def test_accepted(self, mock_client, mock_reserve, mock_log,
                      mock_settings, mock_config, mock_resolution, mock_company, mock_customer):
        """Accepted invoice gets its number and CUFE"""
        from dian.integrations.sales_invoice import submit_sales_invoice

        self.prepare(mock_settings, mock_config, mock_resolution, mock_company)
        mock_client.return_value.submit.return_value = SubmissionResult(
            success=True, status="accepted", status_code="00", reference="cufe-1"
        )
        doc = make_invoice()

        result = submit_sales_invoice(doc)

        self.assertTrue(result.success)
        document = mock_client.return_value.submit.call_args[0][0]
        self.assertEqual(document.number, 1001)
        self.assertEqual(document.to_payload()["legal_monetary_totals"]["payable_amount"], 119000.0)
        mock_reserve.assert_called_once_with(self.resolution)
        mock_log.assert_called_once()
        doc.db_set.assert_called_once_with(
            {"dian_number": 1001, "dian_status": "Accepted", "dian_cufe": "cufe-1"},
            update_modified=False
        )

    @patch(f"{MODULE}.frappe.msgprint")
    @patch(f"{MODULE}._create_submission_log")
    @patch(f"{MODULE}.reserve_document_number", return_value=1001)
    @patch(f"{MODULE}.DIANClient")
    def test_rejected(self, mock_client, mock_reserve, mock_log, mock_msgprint,
                      mock_settings, mock_config, mock_resolution, mock_company, mock_customer):
        """Rejected invoice keeps its reserved number"""
        from dian.integrations.sales_invoice import submit_sales_invoice

        self.prepare(mock_settings, mock_config, mock_resolution, mock_company)
        mock_client.return_value.submit.return_value = SubmissionResult(
            success=False, status="error", status_code="99", message="NIT invalido"
        )
        doc = make_invoice()

        result = submit_sales_invoice(doc)

        self.assertFalse(result.success)
        mock_reserve.assert_called_once_with(self.resolution)
        mock_msgprint.assert_called_once()
        doc.db_set.assert_called_once_with({"dian_number": 1001, "dian_status": "Error"}, update_modified=False)

    @patch(f"{MODULE}.log_error")
    @patch(f"{MODULE}.frappe.msgprint")
    @patch(f"{MODULE}._create_submission_log")
    @patch(f"{MODULE}.reserve_document_number", return_value=1001)
    @patch(f"{MODULE}.DIANClient")
    def test_gateway_error(self, mock_client, mock_reserve, mock_log, mock_msgprint, mock_log_error,
                           mock_settings, mock_config, mock_resolution, mock_company, mock_customer):
        """Transport failures are logged, not raised"""
        from dian.exceptions import GatewayError
        from dian.integrations.sales_invoice import submit_sales_invoice

        self.prepare(mock_settings, mock_config, mock_resolution, mock_company)
        mock_client.return_value.submit.side_effect = GatewayError("timeout", status_code=408)
        doc = make_invoice()

        self.assertIsNone(submit_sales_invoice(doc))
        self.assertEqual(mock_log.call_args[1]["status"], "Error")
        doc.db_set.assert_called_once_with({"dian_number": 1001, "dian_status": "Error"}, update_modified=False)

    @patch(f"{MODULE}.log_error")
    @patch(f"{MODULE}.frappe.get_doc")
    @patch(f"{MODULE}.reserve_document_number", return_value=1002)
    @patch(f"{MODULE}.DIANClient")
    def test_return_without_cufe(self, mock_client, mock_reserve, mock_get_doc, mock_log_error,
                                 mock_settings, mock_config, mock_resolution, mock_company, mock_customer):
        """Credit note against an unaccepted invoice is never sent"""
        from dian.exceptions import MissingReferenceError
        from dian.integrations.sales_invoice import submit_sales_invoice

        self.prepare(mock_settings, mock_config, mock_resolution, mock_company)
        mock_get_doc.return_value = frappe._dict({
            "name": "ACC-SINV-2024-00001",
            "dian_number": 1001,
            "dian_cufe": None,
            "posting_date": "2024-03-01",
            "grand_total": 119000,
        })
        doc = make_invoice(
            name="ACC-SINV-RET-2024-00001",
            is_return=1,
            return_against="ACC-SINV-2024-00001",
            net_total=-100000,
            total_taxes_and_charges=-19000,
            grand_total=-119000,
        )

        with self.assertRaises(MissingReferenceError):
            submit_sales_invoice(doc)

        mock_client.assert_not_called()
        doc.db_set.assert_not_called()

    @patch("frappe.db.set_value")
    @patch("frappe.db.get_value")
    @patch(f"{MODULE}.frappe.msgprint")
    @patch(f"{MODULE}._create_submission_log")
    @patch(f"{MODULE}.DIANClient")
    def test_rejected_number_not_reused(self, mock_client, mock_log, mock_msgprint, mock_get_value, mock_set_value,
                                        mock_settings, mock_config, mock_resolution, mock_company, mock_customer):
        """The invoice after a rejected one gets the next number"""
        from dian.integrations.sales_invoice import submit_sales_invoice

        self.prepare(mock_settings, mock_config, mock_resolution, mock_company)
        row = {"last_number": 1000}
        mock_get_value.side_effect = lambda doctype, name, fieldname, **kwargs: row[fieldname]
        mock_set_value.side_effect = lambda doctype, name, fieldname, value, **kwargs: row.update({fieldname: value})
        mock_client.return_value.submit.side_effect = [
            SubmissionResult(success=False, status="error", status_code="99", message="NIT invalido"),
            SubmissionResult(success=True, status="accepted", status_code="00", reference="cufe-2"),
        ]
        first = make_invoice()
        second = make_invoice(name="ACC-SINV-2024-00002")

        submit_sales_invoice(first)
        submit_sales_invoice(second)

        first_number = first.db_set.call_args[0][0]["dian_number"]
        second_number = second.db_set.call_args[0][0]["dian_number"]
        self.assertEqual(first_number, 1001)
        self.assertEqual(second_number, 1002)
        self.assertEqual(row["last_number"], 1002)
        self.assertTrue(mock_get_value.call_args[1]["for_update"])

    @patch(f"{MODULE}.frappe.msgprint")
    @patch(f"{MODULE}._create_submission_log")
    @patch(f"{MODULE}.reserve_document_number")
    @patch(f"{MODULE}.DIANClient")
    def test_resend_keeps_number(self, mock_client, mock_reserve, mock_log, mock_msgprint,
                                 mock_settings, mock_config, mock_resolution, mock_company, mock_customer):
        """A resent invoice is submitted under its stamped number"""
        from dian.integrations.sales_invoice import submit_sales_invoice

        self.prepare(mock_settings, mock_config, mock_resolution, mock_company)
        mock_client.return_value.submit.return_value = SubmissionResult(
            success=True, status="accepted", status_code="00", reference="cufe-1"
        )
        doc = make_invoice(dian_number=1001, dian_status="Error")

        submit_sales_invoice(doc)

        mock_reserve.assert_not_called()
        self.assertEqual(mock_client.return_value.submit.call_args[0][0].number, 1001)
