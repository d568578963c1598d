# tests/test_purchase_flow.py
"""
Tests for purchase orders and vendor bills.

Tests cover:
- Order pricing with GST
- DRAFT → CONFIRMED → CONVERTED status flow
- Bill posting to the ledger and stock
- Guards on converted orders and paid bills
"""

import pytest

from shiv_accounts.core.config import settings

API = settings.API_V1_STR


@pytest.fixture
async def purchase_order(client, admin_headers, vendor, chair, installation, gst18):
    response = await client.post(f"{API}/purchase-orders", headers=admin_headers, json={
        "vendor_id": vendor["id"],
        "vendor_ref": "AZ-Q-101",
        "status": "CONFIRMED",
        "items": [
            {"product_id": chair["id"], "tax_id": gst18["id"], "quantity": 2, "unit_price": 1000},
            {"product_id": installation["id"], "quantity": 1, "unit_price": 500},
        ],
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestPurchaseOrders:

    async def test_totals(self, purchase_order):
        assert purchase_order["po_number"].startswith("PO-")
        assert purchase_order["status"] == "CONFIRMED"
        assert purchase_order["subtotal"] == 2500
        assert purchase_order["tax_amount"] == 360
        assert purchase_order["total"] == 2860
        assert purchase_order["items"][0]["subtotal"] == 2000
        assert purchase_order["items"][0]["total"] == 2360
        assert purchase_order["items"][0]["tax_name"] == "GST 18%"

    async def test_customer_cannot_be_vendor(self, client, admin_headers, customer, chair):
        response = await client.post(f"{API}/purchase-orders", headers=admin_headers, json={
            "vendor_id": customer["id"],
            "items": [{"product_id": chair["id"], "quantity": 1, "unit_price": 10}],
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Contact is not a vendor"

    async def test_unknown_product(self, client, admin_headers, vendor):
        response = await client.post(f"{API}/purchase-orders", headers=admin_headers, json={
            "vendor_id": vendor["id"],
            "items": [{"product_id": 999, "quantity": 1, "unit_price": 10}],
        })
        assert response.status_code == 404

    async def test_needs_a_line(self, client, admin_headers, vendor):
        response = await client.post(f"{API}/purchase-orders", headers=admin_headers, json={
            "vendor_id": vendor["id"], "items": [],
        })
        assert response.status_code == 422

    async def test_update_lines_recomputes_totals(self, client, admin_headers, purchase_order, chair):
        response = await client.put(f"{API}/purchase-orders/{purchase_order['id']}", headers=admin_headers, json={
            "items": [{"product_id": chair["id"], "quantity": 5, "unit_price": 900}],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 4500
        assert len(body["items"]) == 1

    async def test_stats(self, client, admin_headers, purchase_order):
        response = await client.get(f"{API}/purchase-orders/stats", headers=admin_headers)
        stats = response.json()
        assert stats["total_pos"] == 1
        assert stats["confirmed_pos"] == 1
        assert stats["total_value"] == 2860

    async def test_search_by_vendor_name(self, client, admin_headers, purchase_order):
        response = await client.get(f"{API}/purchase-orders", headers=admin_headers, params={"search": "azure"})
        assert response.json()["total"] == 1

    async def test_delete(self, client, admin_headers, purchase_order):
        response = await client.delete(f"{API}/purchase-orders/{purchase_order['id']}", headers=admin_headers)
        assert response.status_code == 200
        missing = await client.get(f"{API}/purchase-orders/{purchase_order['id']}", headers=admin_headers)
        assert missing.status_code == 404


class TestConvertToBill:

    async def test_convert(self, client, admin_headers, purchase_order, due_date):
        response = await client.post(
            f"{API}/purchase-orders/{purchase_order['id']}/convert-to-bill",
            headers=admin_headers, json={"due_date": due_date, "bill_reference": "AZ-INV-77"},
        )
        assert response.status_code == 201
        bill = response.json()
        assert bill["bill_number"].startswith("VB-")
        assert bill["po_number"] == purchase_order["po_number"]
        assert bill["total"] == 2860
        assert bill["payment_status"] == "UNPAID"
        assert bill["remaining_amount"] == 2860
        assert bill["is_overdue"] is False

        order = await client.get(f"{API}/purchase-orders/{purchase_order['id']}", headers=admin_headers)
        assert order.json()["status"] == "CONVERTED"
        assert order.json()["bill_ids"] == [bill["id"]]

    async def test_converted_order_is_frozen(self, client, admin_headers, purchase_order, due_date):
        url = f"{API}/purchase-orders/{purchase_order['id']}"
        await client.post(f"{url}/convert-to-bill", headers=admin_headers, json={"due_date": due_date})

        again = await client.post(f"{url}/convert-to-bill", headers=admin_headers, json={"due_date": due_date})
        assert again.status_code == 400
        assert again.json()["detail"] == "Purchase order already converted"

        update = await client.put(url, headers=admin_headers, json={"vendor_ref": "changed"})
        assert update.status_code == 400
        assert update.json()["detail"] == "Cannot update converted purchase order"

        delete = await client.delete(url, headers=admin_headers)
        assert delete.status_code == 400

    async def test_cancelled_order_cannot_convert(self, client, admin_headers, purchase_order, due_date):
        url = f"{API}/purchase-orders/{purchase_order['id']}"
        await client.put(url, headers=admin_headers, json={"status": "CANCELLED"})
        response = await client.post(f"{url}/convert-to-bill", headers=admin_headers, json={"due_date": due_date})
        assert response.status_code == 400

    async def test_bill_posts_ledger_and_stock(self, client, admin_headers, purchase_order, chair, due_date):
        bill = (await client.post(
            f"{API}/purchase-orders/{purchase_order['id']}/convert-to-bill",
            headers=admin_headers, json={"due_date": due_date},
        )).json()

        ledger = await client.get(f"{API}/ledger-entries", headers=admin_headers, params={
            "reference_type": "VENDOR_BILL", "reference_id": bill["id"],
        })
        entries = {(e["account_code"], e["entry_type"]): e["amount"] for e in ledger.json()["data"]}
        assert entries == {
            ("5001", "DEBIT"): 2500,
            ("2002", "DEBIT"): 360,
            ("2001", "CREDIT"): 2860,
        }

        stock = await client.get(f"{API}/stock-movements", headers=admin_headers, params={"product_id": chair["id"]})
        movements = stock.json()["data"]
        assert len(movements) == 1
        assert movements[0]["movement_type"] == "IN"
        assert movements[0]["quantity"] == 2


class TestVendorBills:

    async def test_direct_bill(self, client, admin_headers, vendor, chair, due_date):
        response = await client.post(f"{API}/vendor-bills", headers=admin_headers, json={
            "vendor_id": vendor["id"],
            "due_date": due_date,
            "items": [{"product_id": chair["id"], "quantity": 3, "unit_price": 950}],
        })
        assert response.status_code == 201
        assert response.json()["total"] == 2850
        assert response.json()["purchase_order_id"] is None

    async def test_bill_marks_linked_order_converted(self, client, admin_headers, vendor, chair, purchase_order, due_date):
        response = await client.post(f"{API}/vendor-bills", headers=admin_headers, json={
            "vendor_id": vendor["id"],
            "purchase_order_id": purchase_order["id"],
            "due_date": due_date,
            "items": [{"product_id": chair["id"], "quantity": 2, "unit_price": 1000}],
        })
        assert response.status_code == 201
        order = await client.get(f"{API}/purchase-orders/{purchase_order['id']}", headers=admin_headers)
        assert order.json()["status"] == "CONVERTED"

    async def test_due_date_before_bill_date(self, client, admin_headers, vendor, chair):
        response = await client.post(f"{API}/vendor-bills", headers=admin_headers, json={
            "vendor_id": vendor["id"],
            "bill_date": "2026-05-10T00:00:00",
            "due_date": "2026-05-01T00:00:00",
            "items": [{"product_id": chair["id"], "quantity": 1, "unit_price": 100}],
        })
        assert response.status_code == 422

    async def test_overdue_flag(self, client, admin_headers, vendor, chair):
        response = await client.post(f"{API}/vendor-bills", headers=admin_headers, json={
            "vendor_id": vendor["id"],
            "bill_date": "2025-01-01T00:00:00",
            "due_date": "2025-01-31T00:00:00",
            "items": [{"product_id": chair["id"], "quantity": 1, "unit_price": 100}],
        })
        assert response.json()["is_overdue"] is True

    async def test_update_lines_reposts(self, client, admin_headers, vendor, chair, due_date):
        bill = (await client.post(f"{API}/vendor-bills", headers=admin_headers, json={
            "vendor_id": vendor["id"],
            "due_date": due_date,
            "items": [{"product_id": chair["id"], "quantity": 1, "unit_price": 1000}],
        })).json()

        response = await client.put(f"{API}/vendor-bills/{bill['id']}", headers=admin_headers, json={
            "items": [{"product_id": chair["id"], "quantity": 4, "unit_price": 1000}],
        })
        assert response.status_code == 200
        assert response.json()["total"] == 4000

        ledger = await client.get(f"{API}/ledger-entries", headers=admin_headers, params={
            "reference_type": "VENDOR_BILL", "reference_id": bill["id"],
        })
        assert sorted(e["amount"] for e in ledger.json()["data"]) == [4000, 4000]

        stock = await client.get(f"{API}/stock-movements", headers=admin_headers, params={"product_id": chair["id"]})
        assert [m["quantity"] for m in stock.json()["data"]] == [4]

    async def test_delete_reopens_order_and_removes_postings(self, client, admin_headers, purchase_order, due_date):
        bill = (await client.post(
            f"{API}/purchase-orders/{purchase_order['id']}/convert-to-bill",
            headers=admin_headers, json={"due_date": due_date},
        )).json()

        response = await client.delete(f"{API}/vendor-bills/{bill['id']}", headers=admin_headers)
        assert response.status_code == 200

        order = await client.get(f"{API}/purchase-orders/{purchase_order['id']}", headers=admin_headers)
        assert order.json()["status"] == "CONFIRMED"

        ledger = await client.get(f"{API}/ledger-entries", headers=admin_headers, params={"reference_type": "VENDOR_BILL"})
        assert ledger.json()["total"] == 0

    async def test_stats(self, client, admin_headers, vendor, chair, due_date):
        await client.post(f"{API}/vendor-bills", headers=admin_headers, json={
            "vendor_id": vendor["id"],
            "due_date": due_date,
            "items": [{"product_id": chair["id"], "quantity": 1, "unit_price": 1000}],
        })
        response = await client.get(f"{API}/vendor-bills/stats", headers=admin_headers)
        stats = response.json()
        assert stats["total_bills"] == 1
        assert stats["unpaid_bills"] == 1
        assert stats["pending_value"] == 1000
