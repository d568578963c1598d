# tests/test_reports.py
"""
Tests for the financial reports and the manual books (journals, stock adjustments).

Scenario used by most tests:
- bill: 2 chairs @ 1000 from the vendor (no tax)            → 2000
- invoice: 2 chairs @ 1500 + GST 18% to the customer        → 3540
- receipt: 1000 cash from the customer
"""

from datetime import datetime, timedelta

import pytest

from shiv_accounts.core.config import settings

API = settings.API_V1_STR


@pytest.fixture
async def books(client, admin_headers, vendor, customer, chair, gst18, due_date):
    bill = await client.post(f"{API}/vendor-bills", headers=admin_headers, json={
        "vendor_id": vendor["id"],
        "due_date": due_date,
        "items": [{"product_id": chair["id"], "quantity": 2, "unit_price": 1000}],
    })
    assert bill.status_code == 201, bill.text
    invoice = await client.post(f"{API}/customer-invoices", headers=admin_headers, json={
        "customer_id": customer["id"],
        "due_date": due_date,
        "items": [{"product_id": chair["id"], "tax_id": gst18["id"], "quantity": 2, "unit_price": 1500}],
    })
    assert invoice.status_code == 201, invoice.text
    receipt = await client.post(f"{API}/payments/invoice-payments", headers=admin_headers, json={
        "customer_id": customer["id"],
        "customer_invoice_id": invoice.json()["id"],
        "amount": 1000,
        "payment_method": "CASH",
    })
    assert receipt.status_code == 201, receipt.text
    return {"bill": bill.json(), "invoice": invoice.json()}


def _balances(section):
    return {item["name"]: item["balance"] for item in section["items"]}


class TestBalanceSheet:

    async def test_balances(self, client, admin_headers, books):
        response = await client.get(f"{API}/reports/balance-sheet", headers=admin_headers)
        assert response.status_code == 200
        sheet = response.json()

        assert _balances(sheet["assets"]) == {"Cash": 1000, "Accounts Receivable": 2540}
        assert _balances(sheet["liabilities"]) == {"Accounts Payable": 2000, "GST Payable": 540}
        assert _balances(sheet["equity"]) == {"Current Earnings": 1000}
        assert sheet["current_earnings"] == 1000
        assert sheet["assets"]["total"] == 3540
        assert sheet["total_liabilities_and_equity"] == 3540
        assert sheet["is_balanced"] is True

    async def test_before_any_activity(self, client, admin_headers, books):
        response = await client.get(f"{API}/reports/balance-sheet", headers=admin_headers, params={
            "as_of_date": "2020-01-01",
        })
        sheet = response.json()
        assert sheet["assets"]["items"] == []
        assert sheet["current_earnings"] == 0
        assert sheet["is_balanced"] is True

    async def test_bad_date(self, client, admin_headers):
        response = await client.get(f"{API}/reports/balance-sheet", headers=admin_headers, params={
            "as_of_date": "yesterday",
        })
        assert response.status_code == 400

    async def test_owner_capital_journal(self, client, admin_headers):
        accounts = (await client.get(f"{API}/chart-of-accounts", headers=admin_headers, params={"limit": 100})).json()
        by_code = {a["code"]: a["id"] for a in accounts["data"]}

        response = await client.post(f"{API}/ledger-entries/journal", headers=admin_headers, json={
            "description": "Owner capital",
            "lines": [
                {"account_id": by_code["1002"], "entry_type": "DEBIT", "amount": 50000},
                {"account_id": by_code["3001"], "entry_type": "CREDIT", "amount": 50000},
            ],
        })
        assert response.status_code == 201
        assert len(response.json()["data"]) == 2

        sheet = (await client.get(f"{API}/reports/balance-sheet", headers=admin_headers)).json()
        assert _balances(sheet["assets"]) == {"Bank Account": 50000}
        assert _balances(sheet["equity"]) == {"Owner Equity": 50000}
        assert sheet["is_balanced"] is True

        account = await client.get(f"{API}/chart-of-accounts/{by_code['1002']}", headers=admin_headers)
        assert account.json()["balance"] == 50000

    async def test_unbalanced_journal(self, client, admin_headers):
        response = await client.post(f"{API}/ledger-entries/journal", headers=admin_headers, json={
            "lines": [
                {"account_id": 1, "entry_type": "DEBIT", "amount": 100},
                {"account_id": 2, "entry_type": "CREDIT", "amount": 90},
            ],
        })
        assert response.status_code == 422

    async def test_journal_is_admin_only(self, client, user_headers):
        response = await client.post(f"{API}/ledger-entries/journal", headers=user_headers, json={
            "lines": [
                {"account_id": 1, "entry_type": "DEBIT", "amount": 100},
                {"account_id": 2, "entry_type": "CREDIT", "amount": 100},
            ],
        })
        assert response.status_code == 403


class TestProfitLoss:

    async def test_current_period(self, client, admin_headers, books):
        today = datetime.utcnow().date()
        response = await client.get(f"{API}/reports/profit-loss", headers=admin_headers, params={
            "start_date": (today - timedelta(days=1)).isoformat(),
            "end_date": today.isoformat(),
        })
        assert response.status_code == 200
        report = response.json()
        assert report["income"]["total"] == 3000
        assert report["expenses"]["total"] == 2000
        assert report["net_profit"] == 1000
        assert report["is_profit"] is True

    async def test_empty_period(self, client, admin_headers, books):
        response = await client.get(f"{API}/reports/profit-loss", headers=admin_headers, params={
            "start_date": "2020-01-01", "end_date": "2020-12-31",
        })
        report = response.json()
        assert report["net_profit"] == 0
        assert report["income"]["items"] == []

    async def test_dates_are_required(self, client, admin_headers):
        response = await client.get(f"{API}/reports/profit-loss", headers=admin_headers)
        assert response.status_code == 422

    async def test_blank_start_date(self, client, admin_headers):
        response = await client.get(f"{API}/reports/profit-loss", headers=admin_headers, params={
            "start_date": "", "end_date": "2025-01-31",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "start_date is required"

    async def test_reversed_range(self, client, admin_headers):
        response = await client.get(f"{API}/reports/profit-loss", headers=admin_headers, params={
            "start_date": "2026-02-01", "end_date": "2026-01-01",
        })
        assert response.status_code == 400


class TestStockStatement:

    async def test_closing_stock(self, client, admin_headers, books, chair, installation):
        adjustment = await client.post(f"{API}/stock-movements/adjustment", headers=admin_headers, json={
            "product_id": chair["id"], "quantity": 3, "description": "Opening stock",
        })
        assert adjustment.status_code == 201

        response = await client.get(f"{API}/reports/stock-statement", headers=admin_headers)
        statement = response.json()

        assert [i["product_name"] for i in statement["items"]] == ["Office Chair"]
        item = statement["items"][0]
        assert item["purchases"] == 2
        assert item["sales"] == 2
        assert item["adjustments"] == 3
        assert item["closing_stock"] == 3
        assert item["stock_value"] == 3000
        assert len(item["movements"]) == 3
        assert statement["summary"] == {"total_products": 1, "total_quantity": 3, "total_stock_value": 3000}

    async def test_services_carry_no_stock(self, client, admin_headers, installation):
        response = await client.post(f"{API}/stock-movements/adjustment", headers=admin_headers, json={
            "product_id": installation["id"], "quantity": 1,
        })
        assert response.status_code == 400

    async def test_unknown_product(self, client, admin_headers):
        response = await client.get(f"{API}/reports/stock-statement", headers=admin_headers, params={"product_id": 999})
        assert response.status_code == 404


class TestPartnerLedger:

    async def test_customer(self, client, admin_headers, books, customer):
        response = await client.get(f"{API}/reports/partner-ledger", headers=admin_headers, params={
            "contact_id": customer["id"],
        })
        assert response.status_code == 200
        ledger = response.json()
        assert [(t["debit"], t["credit"], t["balance"]) for t in ledger["transactions"]] == [
            (3540, 0, 3540),
            (0, 1000, 2540),
        ]
        assert ledger["summary"] == {
            "total_debit": 3540, "total_credit": 1000, "final_balance": 2540, "is_debit": True,
        }

    async def test_vendor_is_owed(self, client, admin_headers, books, vendor):
        response = await client.get(f"{API}/reports/partner-ledger", headers=admin_headers, params={
            "contact_id": vendor["id"],
        })
        summary = response.json()["summary"]
        assert summary["final_balance"] == -2000
        assert summary["is_debit"] is False

    async def test_contact_is_required(self, client, admin_headers):
        response = await client.get(f"{API}/reports/partner-ledger", headers=admin_headers)
        assert response.status_code == 422

    async def test_unknown_contact(self, client, admin_headers):
        response = await client.get(f"{API}/reports/partner-ledger", headers=admin_headers, params={"contact_id": 999})
        assert response.status_code == 404


class TestDashboard:

    async def test_figures(self, client, admin_headers, books):
        response = await client.get(f"{API}/reports/dashboard", headers=admin_headers)
        assert response.status_code == 200
        board = response.json()
        assert board["sales"]["total"] == {"amount": 3540, "count": 1}
        assert board["sales"]["monthly"]["amount"] == 3540
        assert board["purchases"]["total"]["amount"] == 2000
        assert board["receipts"]["total"]["amount"] == 1000
        assert board["payments"]["total"]["count"] == 0
        assert board["pending_receivables"] == 2540
        assert board["pending_payables"] == 2000
        assert board["overdue_invoices"] == 0
        assert board["contact_count"] == 2
        assert board["profit_total"] == 1540
