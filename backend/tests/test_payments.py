# tests/test_payments.py
"""
Tests for bill payments and invoice receipts.

Tests cover:
- UNPAID → PARTIAL → PAID transitions
- Overpayment guards
- Cash / bank ledger posting
- Reversing a payment
"""

import pytest

from shiv_accounts.core.config import settings

API = settings.API_V1_STR


@pytest.fixture
async def invoice(client, admin_headers, customer, chair, gst18, due_date):
    response = await client.post(f"{API}/customer-invoices", headers=admin_headers, json={
        "customer_id": customer["id"],
        "due_date": due_date,
        "items": [{"product_id": chair["id"], "tax_id": gst18["id"], "quantity": 2, "unit_price": 1000}],
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def bill(client, admin_headers, vendor, chair, due_date):
    response = await client.post(f"{API}/vendor-bills", headers=admin_headers, json={
        "vendor_id": vendor["id"],
        "due_date": due_date,
        "items": [{"product_id": chair["id"], "quantity": 5, "unit_price": 1000}],
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestInvoicePayments:

    async def test_partial_then_full(self, client, admin_headers, customer, invoice):
        url = f"{API}/payments/invoice-payments"
        first = await client.post(url, headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"],
            "amount": 1000, "payment_method": "CASH",
        })
        assert first.status_code == 201
        assert first.json()["payment_number"].startswith("IP-")

        current = await client.get(f"{API}/customer-invoices/{invoice['id']}", headers=admin_headers)
        assert current.json()["payment_status"] == "PARTIAL"
        assert current.json()["remaining_amount"] == 1360

        second = await client.post(url, headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"],
            "amount": 1360, "payment_method": "BANK",
        })
        assert second.status_code == 201

        current = await client.get(f"{API}/customer-invoices/{invoice['id']}", headers=admin_headers)
        assert current.json()["payment_status"] == "PAID"
        assert current.json()["remaining_amount"] == 0
        assert len(current.json()["payments"]) == 2

    async def test_overpayment_is_rejected(self, client, admin_headers, customer, invoice):
        response = await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"], "amount": 5000,
        })
        assert response.status_code == 400
        assert "exceeds remaining amount" in response.json()["detail"]

    async def test_paid_invoice_takes_no_more(self, client, admin_headers, customer, invoice):
        url = f"{API}/payments/invoice-payments"
        body = {"customer_id": customer["id"], "customer_invoice_id": invoice["id"], "amount": 2360}
        assert (await client.post(url, headers=admin_headers, json=body)).status_code == 201

        body["amount"] = 1
        response = await client.post(url, headers=admin_headers, json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Document is already fully paid"

    async def test_invoice_of_another_customer(self, client, admin_headers, invoice):
        other = await client.post(f"{API}/contacts", headers=admin_headers, json={"name": "Other", "type": "CUSTOMER"})
        response = await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
            "customer_id": other.json()["id"], "customer_invoice_id": invoice["id"], "amount": 10,
        })
        assert response.status_code == 400

    async def test_zero_amount(self, client, admin_headers, customer, invoice):
        response = await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"], "amount": 0,
        })
        assert response.status_code == 422

    async def test_amount_rounding_to_zero(self, client, admin_headers, customer, invoice):
        response = await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"], "amount": 0.004,
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Payment amount must be greater than 0"

        payments = await client.get(f"{API}/payments/invoice-payments", headers=admin_headers)
        assert payments.json()["total"] == 0

    async def test_cash_receipt_posting(self, client, admin_headers, customer, invoice):
        payment = (await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"],
            "amount": 500, "payment_method": "CASH",
        })).json()

        ledger = await client.get(f"{API}/ledger-entries", headers=admin_headers, params={
            "reference_type": "INVOICE_PAYMENT", "reference_id": payment["id"],
        })
        entries = {(e["account_code"], e["entry_type"]): e["amount"] for e in ledger.json()["data"]}
        assert entries == {("1001", "DEBIT"): 500, ("1003", "CREDIT"): 500}

    async def test_delete_restores_balance(self, client, admin_headers, customer, invoice):
        payment = (await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"], "amount": 2360,
        })).json()

        response = await client.delete(f"{API}/payments/invoice-payments/{payment['id']}", headers=admin_headers)
        assert response.status_code == 200

        current = await client.get(f"{API}/customer-invoices/{invoice['id']}", headers=admin_headers)
        assert current.json()["payment_status"] == "UNPAID"
        assert current.json()["paid_amount"] == 0

        ledger = await client.get(f"{API}/ledger-entries", headers=admin_headers, params={"reference_type": "INVOICE_PAYMENT"})
        assert ledger.json()["total"] == 0

    async def test_invoice_with_payments_cannot_be_deleted(self, client, admin_headers, customer, invoice):
        await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"], "amount": 100,
        })
        response = await client.delete(f"{API}/customer-invoices/{invoice['id']}", headers=admin_headers)
        assert response.status_code == 400


class TestBillPayments:

    async def test_bank_payment_posting(self, client, admin_headers, vendor, bill):
        response = await client.post(f"{API}/payments/bill-payments", headers=admin_headers, json={
            "vendor_id": vendor["id"], "vendor_bill_id": bill["id"],
            "amount": 2000, "payment_method": "ONLINE", "reference": "UTR123",
        })
        assert response.status_code == 201
        payment = response.json()
        assert payment["bill_number"] == bill["bill_number"]

        ledger = await client.get(f"{API}/ledger-entries", headers=admin_headers, params={
            "reference_type": "BILL_PAYMENT", "reference_id": payment["id"],
        })
        entries = {(e["account_code"], e["entry_type"]): e["amount"] for e in ledger.json()["data"]}
        assert entries == {("2001", "DEBIT"): 2000, ("1002", "CREDIT"): 2000}

        current = await client.get(f"{API}/vendor-bills/{bill['id']}", headers=admin_headers)
        assert current.json()["payment_status"] == "PARTIAL"

    async def test_unknown_bill(self, client, admin_headers, vendor):
        response = await client.post(f"{API}/payments/bill-payments", headers=admin_headers, json={
            "vendor_id": vendor["id"], "vendor_bill_id": 999, "amount": 10,
        })
        assert response.status_code == 404

    async def test_paid_bill_lines_are_locked(self, client, admin_headers, vendor, bill, chair):
        await client.post(f"{API}/payments/bill-payments", headers=admin_headers, json={
            "vendor_id": vendor["id"], "vendor_bill_id": bill["id"], "amount": 100,
        })
        response = await client.put(f"{API}/vendor-bills/{bill['id']}", headers=admin_headers, json={
            "items": [{"product_id": chair["id"], "quantity": 1, "unit_price": 1}],
        })
        assert response.status_code == 400

    async def test_delete_reverses_payment(self, client, admin_headers, vendor, bill):
        payment = (await client.post(f"{API}/payments/bill-payments", headers=admin_headers, json={
            "vendor_id": vendor["id"], "vendor_bill_id": bill["id"], "amount": 5000,
        })).json()
        paid = await client.get(f"{API}/vendor-bills/{bill['id']}", headers=admin_headers)
        assert paid.json()["payment_status"] == "PAID"

        response = await client.delete(f"{API}/payments/bill-payments/{payment['id']}", headers=admin_headers)
        assert response.status_code == 200

        current = await client.get(f"{API}/vendor-bills/{bill['id']}", headers=admin_headers)
        assert current.json()["payment_status"] == "UNPAID"
        assert current.json()["remaining_amount"] == 5000

        ledger = await client.get(f"{API}/ledger-entries", headers=admin_headers, params={"reference_type": "BILL_PAYMENT"})
        assert ledger.json()["total"] == 0

        again = await client.delete(f"{API}/payments/bill-payments/{payment['id']}", headers=admin_headers)
        assert again.status_code == 404

    async def test_amount_rounding_to_zero(self, client, admin_headers, vendor, bill):
        response = await client.post(f"{API}/payments/bill-payments", headers=admin_headers, json={
            "vendor_id": vendor["id"], "vendor_bill_id": bill["id"], "amount": 0.001,
        })
        assert response.status_code == 400


class TestPaymentSummaries:

    async def test_stats_and_date_range(self, client, admin_headers, vendor, customer, bill, invoice):
        await client.post(f"{API}/payments/bill-payments", headers=admin_headers, json={
            "vendor_id": vendor["id"], "vendor_bill_id": bill["id"], "amount": 1500,
            "payment_date": "2026-03-10T10:00:00",
        })
        await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
            "customer_id": customer["id"], "customer_invoice_id": invoice["id"], "amount": 2000,
            "payment_date": "2026-03-12T10:00:00",
        })

        stats = (await client.get(f"{API}/payments/stats", headers=admin_headers)).json()
        assert stats == {
            "bill_payment_count": 1,
            "invoice_payment_count": 1,
            "total_paid": 1500,
            "total_received": 2000,
            "net_cash_flow": 500,
        }

        ranged = await client.get(f"{API}/payments/by-date-range", headers=admin_headers, params={
            "start_date": "2026-03-11", "end_date": "2026-03-31",
        })
        body = ranged.json()
        assert body["bill_payments"] == []
        assert body["total_received"] == 2000

        only_bills = await client.get(f"{API}/payments/by-date-range", headers=admin_headers, params={
            "start_date": "2026-03-01", "end_date": "2026-03-10", "type": "bill",
        })
        assert only_bills.json()["total_paid"] == 1500
        assert "invoice_payments" not in only_bills.json()

    async def test_bad_date(self, client, admin_headers):
        response = await client.get(f"{API}/payments/by-date-range", headers=admin_headers, params={
            "start_date": "March", "end_date": "2026-03-31",
        })
        assert response.status_code == 400

    @pytest.mark.parametrize("params", [
        {"start_date": "", "end_date": "2026-03-31"},
        {"start_date": "2026-03-01", "end_date": " "},
    ])
    async def test_blank_date(self, client, admin_headers, params):
        response = await client.get(f"{API}/payments/by-date-range", headers=admin_headers, params=params)
        assert response.status_code == 400
        assert response.json()["detail"].endswith("is required")
