"""
Tests for entry endpoints, with the focus on deletion.
"""

from decimal import Decimal

from church_ledger.store import LedgerStore, StoreError


def create_account(client, opening_balance="500.00"):
    return client.post("/finance/accounts", json={
        "name": "General Fund", "opening_balance": opening_balance,
    }).json()


def create_expenditure(client, account_id, amount="75.00", **extra):
    response = client.post("/finance/expenditures", json={
        "amount": amount, "account_id": account_id, **extra,
    })
    assert response.status_code == 201
    return response.json()


def balance(client, account_id):
    return Decimal(client.get(f"/finance/accounts/{account_id}").json()["balance"])


class TestCreateEntries:

    def test_create_income_returns_201(self, client):
        account = create_account(client)
        response = client.post("/finance/income", json={
            "amount": "150.00", "account_id": account["id"], "description": "Tithe",
        })
        assert response.status_code == 201
        assert balance(client, account["id"]) == Decimal("650")

    def test_zero_amount_returns_422(self, client):
        response = client.post("/finance/income", json={"amount": "0"})
        assert response.status_code == 422

    def test_unknown_account_returns_400(self, client):
        response = client.post("/finance/expenditures", json={
            "amount": "1", "account_id": "missing",
        })
        assert response.status_code == 400

    def test_update_amount(self, client):
        account = create_account(client)
        entry = create_expenditure(client, account["id"])

        response = client.patch(f"/finance/expenditures/{entry['id']}", json={"amount": "100"})

        assert response.status_code == 200
        assert balance(client, account["id"]) == Decimal("400")


class TestDeleteEntry:

    def test_delete_returns_report(self, client):
        account = create_account(client)
        entry = create_expenditure(client, account["id"])

        response = client.delete(f"/finance/entries/expenditure_entries/{entry['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["deleted"] is True
        assert data["status"] == "deleted"
        assert data["notice"] == "Entry deleted successfully"
        assert data["warnings"] == []
        assert balance(client, account["id"]) == Decimal("500")

    def test_delete_missing_returns_404(self, client):
        response = client.delete("/finance/entries/income_entries/missing")
        assert response.status_code == 404

    def test_delete_unknown_table_returns_422(self, client):
        response = client.delete("/finance/entries/members/abc")
        assert response.status_code == 422

    def test_failed_delete_returns_500(self, client, monkeypatch):
        account = create_account(client)
        entry = create_expenditure(client, account["id"])

        def broken_delete(self, table, row_id):
            raise StoreError("delete", table, RuntimeError("permission denied"))

        monkeypatch.setattr(LedgerStore, "delete", broken_delete)

        response = client.delete(f"/finance/entries/expenditure_entries/{entry['id']}")

        assert response.status_code == 500
        assert response.json()["detail"].startswith("Failed to delete:")


class TestBudgetSync:

    def test_sync_counts_expenditure(self, client):
        budget = client.post("/finance/budgets", json={
            "title": "2024", "start_date": "2024-01-01", "end_date": "2024-12-31",
        }).json()
        item = client.post(f"/finance/budgets/{budget['id']}/items", json={
            "planned_amount": "1000",
        }).json()
        account = create_account(client)
        entry = create_expenditure(client, account["id"], budget_item_id=item["id"])

        response = client.post(f"/finance/expenditures/{entry['id']}/budget-item")

        assert response.json() == {"expenditure_id": entry["id"], "updated": True}
        item = client.get(f"/finance/budget-items/{item['id']}").json()
        assert Decimal(item["actual_amount"]) == Decimal("75")
        assert Decimal(item["variance"]) == Decimal("925")

    def test_sync_missing_expenditure(self, client):
        response = client.post("/finance/expenditures/missing/budget-item")
        assert response.status_code == 200
        assert response.json()["updated"] is False
