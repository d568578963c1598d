# tests/test_sales_flow.py
"""
Tests for sales orders and customer invoices.
"""

import pytest

from shiv_accounts.core.config import settings

API = settings.API_V1_STR


@pytest.fixture
async def sales_order(client, admin_headers, customer, chair, installation, gst18):
    response = await client.post(f"{API}/sales-orders", headers=admin_headers, json={
        "customer_id": customer["id"],
        "so_ref": "NP-ORDER-9",
        "status": "CONFIRMED",
        "items": [
            {"product_id": chair["id"], "tax_id": gst18["id"], "quantity": 1, "unit_price": 1500},
            {"product_id": installation["id"], "tax_id": gst18["id"], "quantity": 1, "unit_price": 500},
        ],
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestSalesOrders:

    async def test_totals(self, sales_order):
        assert sales_order["so_number"].startswith("SO-")
        assert sales_order["subtotal"] == 2000
        assert sales_order["tax_amount"] == 360
        assert sales_order["total"] == 2360

    async def test_vendor_cannot_be_customer(self, client, admin_headers, vendor, chair):
        response = await client.post(f"{API}/sales-orders", headers=admin_headers, json={
            "customer_id": vendor["id"],
            "items": [{"product_id": chair["id"], "quantity": 1, "unit_price": 10}],
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Contact is not a customer"

    async def test_status_filter(self, client, admin_headers, sales_order):
        confirmed = await client.get(f"{API}/sales-orders", headers=admin_headers, params={"status": "CONFIRMED"})
        drafts = await client.get(f"{API}/sales-orders", headers=admin_headers, params={"status": "DRAFT"})
        assert confirmed.json()["total"] == 1
        assert drafts.json()["total"] == 0

    async def test_update_lines_recomputes_totals(self, client, admin_headers, sales_order, chair, gst18):
        response = await client.put(f"{API}/sales-orders/{sales_order['id']}", headers=admin_headers, json={
            "so_ref": "NP-ORDER-9B",
            "items": [{"product_id": chair["id"], "tax_id": gst18["id"], "quantity": 3, "unit_price": 1500}],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["so_ref"] == "NP-ORDER-9B"
        assert body["subtotal"] == 4500
        assert body["tax_amount"] == 810
        assert body["total"] == 5310
        assert len(body["items"]) == 1

    async def test_delete(self, client, admin_headers, sales_order):
        response = await client.delete(f"{API}/sales-orders/{sales_order['id']}", headers=admin_headers)
        assert response.status_code == 200
        missing = await client.get(f"{API}/sales-orders/{sales_order['id']}", headers=admin_headers)
        assert missing.status_code == 404


class TestConvertToInvoice:

    async def test_convert_posts_invoice(self, client, admin_headers, sales_order, chair, due_date):
        response = await client.post(
            f"{API}/sales-orders/{sales_order['id']}/convert-to-invoice",
            headers=admin_headers, json={"due_date": due_date},
        )
        assert response.status_code == 201
        invoice = response.json()
        assert invoice["invoice_number"].startswith("CI-")
        assert invoice["so_number"] == sales_order["so_number"]
        assert invoice["total"] == 2360

        order = await client.get(f"{API}/sales-orders/{sales_order['id']}", headers=admin_headers)
        assert order.json()["status"] == "CONVERTED"

        ledger = await client.get(f"{API}/ledger-entries", headers=admin_headers, params={
            "reference_type": "CUSTOMER_INVOICE", "reference_id": invoice["id"],
        })
        entries = {(e["account_code"], e["entry_type"]): e["amount"] for e in ledger.json()["data"]}
        assert entries == {
            ("1003", "DEBIT"): 2360,
            ("4001", "CREDIT"): 2000,
            ("2002", "CREDIT"): 360,
        }

        # Only the GOODS line moves stock
        stock = await client.get(f"{API}/stock-movements", headers=admin_headers)
        movements = stock.json()["data"]
        assert [(m["product_id"], m["movement_type"], m["quantity"]) for m in movements] == [(chair["id"], "OUT", 1)]

    async def test_convert_twice(self, client, admin_headers, sales_order, due_date):
        url = f"{API}/sales-orders/{sales_order['id']}/convert-to-invoice"
        await client.post(url, headers=admin_headers, json={"due_date": due_date})
        response = await client.post(url, headers=admin_headers, json={"due_date": due_date})
        assert response.status_code == 400
        assert response.json()["detail"] == "Sales order already converted"

    async def test_converted_order_is_frozen(self, client, admin_headers, sales_order, due_date):
        url = f"{API}/sales-orders/{sales_order['id']}"
        await client.post(f"{url}/convert-to-invoice", headers=admin_headers, json={"due_date": due_date})

        update = await client.put(url, headers=admin_headers, json={"so_ref": "changed"})
        assert update.status_code == 400
        assert update.json()["detail"] == "Cannot update converted sales order"

        delete = await client.delete(url, headers=admin_headers)
        assert delete.status_code == 400
        assert delete.json()["detail"] == "Cannot delete converted sales order"

    async def test_cancelled_order_cannot_convert(self, client, admin_headers, sales_order, due_date):
        url = f"{API}/sales-orders/{sales_order['id']}"
        cancelled = await client.put(url, headers=admin_headers, json={"status": "CANCELLED"})
        assert cancelled.json()["status"] == "CANCELLED"

        response = await client.post(f"{url}/convert-to-invoice", headers=admin_headers, json={"due_date": due_date})
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot convert a cancelled sales order"

        invoices = await client.get(f"{API}/customer-invoices", headers=admin_headers)
        assert invoices.json()["total"] == 0


class TestCustomerInvoices:

    async def test_direct_invoice_and_stats(self, client, admin_headers, customer, installation, due_date):
        response = await client.post(f"{API}/customer-invoices", headers=admin_headers, json={
            "customer_id": customer["id"],
            "due_date": due_date,
            "invoice_reference": "WALK-IN",
            "items": [{"product_id": installation["id"], "quantity": 2, "unit_price": 500}],
        })
        assert response.status_code == 201
        assert response.json()["total"] == 1000

        stats = await client.get(f"{API}/customer-invoices/stats", headers=admin_headers)
        assert stats.json()["total_invoices"] == 1
        assert stats.json()["pending_value"] == 1000

    async def test_delete_invoice_reopens_order(self, client, admin_headers, sales_order, due_date):
        invoice = (await client.post(
            f"{API}/sales-orders/{sales_order['id']}/convert-to-invoice",
            headers=admin_headers, json={"due_date": due_date},
        )).json()

        response = await client.delete(f"{API}/customer-invoices/{invoice['id']}", headers=admin_headers)
        assert response.status_code == 200

        order = await client.get(f"{API}/sales-orders/{sales_order['id']}", headers=admin_headers)
        assert order.json()["status"] == "CONFIRMED"

        stock = await client.get(f"{API}/stock-movements", headers=admin_headers)
        assert stock.json()["total"] == 0

    async def test_lines_are_priced_on_rounded_values(self, client, admin_headers, customer, installation, due_date):
        response = await client.post(f"{API}/customer-invoices", headers=admin_headers, json={
            "customer_id": customer["id"],
            "due_date": due_date,
            "items": [{"product_id": installation["id"], "quantity": 0.333, "unit_price": 10.005}],
        })
        assert response.status_code == 201
        line = response.json()["items"][0]
        assert line["quantity"] == 0.33
        assert line["unit_price"] == 10.01
        assert line["subtotal"] == 3.30
        assert line["total"] == line["subtotal"] + line["tax_amount"]
        assert response.json()["total"] == 3.30

    async def test_quantity_rounding_to_zero(self, client, admin_headers, customer, chair, due_date):
        response = await client.post(f"{API}/customer-invoices", headers=admin_headers, json={
            "customer_id": customer["id"],
            "due_date": due_date,
            "items": [{"product_id": chair["id"], "quantity": 0.004, "unit_price": 1000}],
        })
        assert response.status_code == 400

        stock = await client.get(f"{API}/stock-movements", headers=admin_headers)
        assert stock.json()["total"] == 0
