# tests/test_products_taxes.py
"""
Tests for the product and tax masters.
"""

from shiv_accounts.core.config import settings

API = settings.API_V1_STR


class TestProducts:

    async def test_create(self, chair):
        assert chair["type"] == "GOODS"
        assert chair["sales_price"] == 1500
        assert chair["hsn_code"] == "9401"

    async def test_duplicate_name(self, client, admin_headers, chair):
        response = await client.post(f"{API}/products", headers=admin_headers, json={
            "name": "Office Chair", "sales_price": 1, "purchase_price": 1,
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Product with this name already exists"

    async def test_negative_price(self, client, admin_headers):
        response = await client.post(f"{API}/products", headers=admin_headers, json={
            "name": "Broken", "sales_price": -1, "purchase_price": 1,
        })
        assert response.status_code == 422

    async def test_update(self, client, admin_headers, chair):
        response = await client.put(f"{API}/products/{chair['id']}", headers=admin_headers, json={"sales_price": 1650})
        assert response.status_code == 200
        assert response.json()["sales_price"] == 1650

    async def test_categories_and_stats(self, client, admin_headers, chair, installation):
        categories = await client.get(f"{API}/products/categories", headers=admin_headers)
        assert categories.json()["data"] == ["Furniture"]

        stats = await client.get(f"{API}/products/stats", headers=admin_headers)
        assert stats.json() == {"total": 2, "goods": 1, "services": 1}

    async def test_bulk_update(self, client, admin_headers, chair, installation):
        response = await client.put(f"{API}/products/bulk-update", headers=admin_headers, json={
            "product_ids": [chair["id"], installation["id"]],
            "updates": {"category": "Office"},
        })
        assert response.status_code == 200
        assert response.json()["updated"] == 2

        listing = await client.get(f"{API}/products", headers=admin_headers, params={"category": "Office"})
        assert listing.json()["total"] == 2

    async def test_bulk_update_cannot_rename(self, client, admin_headers, chair):
        response = await client.put(f"{API}/products/bulk-update", headers=admin_headers, json={
            "product_ids": [chair["id"]],
            "updates": {"name": "Same Name"},
        })
        assert response.status_code == 422

    async def test_bulk_update_unknown_product(self, client, admin_headers, chair):
        response = await client.put(f"{API}/products/bulk-update", headers=admin_headers, json={
            "product_ids": [chair["id"], 9999],
            "updates": {"category": "Office"},
        })
        assert response.status_code == 404

    async def test_delete_unused(self, client, admin_headers, installation):
        response = await client.delete(f"{API}/products/{installation['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert (await client.get(f"{API}/products/{installation['id']}", headers=admin_headers)).status_code == 404

    async def test_product_on_a_line_cannot_be_deleted(self, client, admin_headers, customer, chair):
        order = await client.post(f"{API}/sales-orders", headers=admin_headers, json={
            "customer_id": customer["id"],
            "items": [{"product_id": chair["id"], "quantity": 2, "unit_price": 1500}],
        })
        assert order.status_code == 201

        response = await client.delete(f"{API}/products/{chair['id']}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot delete product that is used in transactions"

        # Still blocked once the order itself is gone, by its stock history
        await client.post(f"{API}/stock-movements/adjustment", headers=admin_headers, json={
            "product_id": chair["id"], "quantity": 1,
        })
        await client.delete(f"{API}/sales-orders/{order.json()['id']}", headers=admin_headers)
        response = await client.delete(f"{API}/products/{chair['id']}", headers=admin_headers)
        assert response.status_code == 400


class TestTaxes:

    async def test_seeded_gst_rates(self, client, admin_headers):
        response = await client.get(f"{API}/taxes", headers=admin_headers)
        assert [t["name"] for t in response.json()["data"]] == ["GST 5%", "GST 12%", "GST 18%", "GST 28%"]

    async def test_percentage_cannot_exceed_100(self, client, admin_headers):
        response = await client.post(f"{API}/taxes", headers=admin_headers, json={
            "name": "Too Much", "computation_method": "PERCENTAGE", "rate": 150,
        })
        assert response.status_code == 422

    async def test_fixed_value_tax(self, client, admin_headers):
        created = await client.post(f"{API}/taxes", headers=admin_headers, json={
            "name": "Green Cess", "computation_method": "FIXED_VALUE", "rate": 150,
            "applicable_on_purchase": False,
        })
        assert created.status_code == 201

        response = await client.post(f"{API}/taxes/calculate", headers=admin_headers, json={
            "amount": 1000, "tax_id": created.json()["id"],
        })
        body = response.json()
        assert body["tax_amount"] == 150
        assert body["total"] == 1150

        purchase = await client.get(f"{API}/taxes/by-type/purchase", headers=admin_headers)
        assert "Green Cess" not in [t["name"] for t in purchase.json()["data"]]

    async def test_calculate_percentage(self, client, admin_headers, gst18):
        response = await client.post(f"{API}/taxes/calculate", headers=admin_headers, json={
            "amount": 2500, "tax_id": gst18["id"],
        })
        assert response.json()["tax_amount"] == 450
        assert response.json()["total"] == 2950

    async def test_by_type_rejects_unknown(self, client, admin_headers):
        response = await client.get(f"{API}/taxes/by-type/import", headers=admin_headers)
        assert response.status_code == 400

    async def test_duplicate_name(self, client, admin_headers):
        response = await client.post(f"{API}/taxes", headers=admin_headers, json={"name": "GST 5%", "rate": 5})
        assert response.status_code == 400

    async def test_tax_in_use_cannot_be_deleted(self, client, admin_headers, vendor, chair, gst18):
        order = await client.post(f"{API}/purchase-orders", headers=admin_headers, json={
            "vendor_id": vendor["id"],
            "items": [{"product_id": chair["id"], "tax_id": gst18["id"], "quantity": 1, "unit_price": 1000}],
        })
        assert order.status_code == 201

        response = await client.delete(f"{API}/taxes/{gst18['id']}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot delete tax that is used in transactions"
