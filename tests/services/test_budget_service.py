"""
Tests for the BudgetService.
"""

import datetime as dt
from decimal import Decimal

import pytest

from church_ledger.schemas.budgets import BudgetCreate, BudgetItemCreate
from church_ledger.schemas.entries import ExpenditureEntryCreate
from church_ledger.services.budget_service import BudgetService
from church_ledger.services.entry_service import EntryService
from church_ledger.store import LedgerStore, StoreError


def make_item(db_session, planned="1000", actual="0"):
    service = BudgetService(db_session)
    budget = service.create_budget(BudgetCreate(
        title="2024 Operations",
        start_date=dt.date(2024, 1, 1),
        end_date=dt.date(2024, 12, 31),
    ))
    item = service.add_item(budget.id, BudgetItemCreate(
        description="Utilities", planned_amount=Decimal(planned),
    ))
    if actual != "0":
        service.apply_entry(item.id, Decimal(actual))
    return item


class TestBudgetItems:

    def test_new_item_has_full_variance(self, db_session):
        item = make_item(db_session, planned="800")
        assert item.actual_amount == Decimal("0")
        assert item.variance == Decimal("800")

    def test_add_item_to_missing_budget_fails(self, db_session):
        with pytest.raises(ValueError, match="not found"):
            BudgetService(db_session).add_item(
                "missing", BudgetItemCreate(planned_amount=Decimal("1"))
            )

    def test_budget_dates_validated(self):
        with pytest.raises(ValueError):
            BudgetCreate(
                title="Backwards",
                start_date=dt.date(2024, 12, 31),
                end_date=dt.date(2024, 1, 1),
            )


class TestReverseEntry:

    def test_reverse_subtracts_and_recomputes_variance(self, db_session):
        item = make_item(db_session, planned="1000", actual="300")
        service = BudgetService(db_session)

        assert service.reverse_entry(item.id, Decimal("100")) is True

        item = service.get_item(item.id)
        assert item.actual_amount == Decimal("200")
        assert item.variance == Decimal("800")

    def test_reverse_clamps_at_zero(self, db_session):
        item = make_item(db_session, planned="1000", actual="50")
        service = BudgetService(db_session)

        service.reverse_entry(item.id, Decimal("80"))

        item = service.get_item(item.id)
        assert item.actual_amount == Decimal("0")
        assert item.variance == Decimal("1000")

    def test_missing_item_is_a_successful_no_op(self, db_session):
        assert BudgetService(db_session).reverse_entry("gone", Decimal("10")) is True

    def test_no_item_id_is_a_no_op(self, db_session):
        assert BudgetService(db_session).reverse_entry(None, Decimal("10")) is True

    def test_store_failure_returns_false(self, db_session, monkeypatch):
        item = make_item(db_session)

        def broken_update(self, table, row_id, patch):
            raise StoreError("update", table, RuntimeError("down"))

        monkeypatch.setattr(LedgerStore, "update", broken_update)

        assert BudgetService(db_session).reverse_entry(item.id, Decimal("1")) is False


class TestUpdateBudgetItemForExpenditure:

    def _expenditure(self, db_session, budget_item_id, amount="250"):
        return LedgerStore(db_session).insert("expenditure_entries", {
            "amount": Decimal(amount),
            "budget_item_id": budget_item_id,
        })

    def test_counts_expenditure_against_item(self, db_session):
        item = make_item(db_session, planned="1000")
        expenditure = self._expenditure(db_session, item.id)
        service = BudgetService(db_session)

        assert service.update_budget_item_for_expenditure(expenditure.id) is True

        item = service.get_item(item.id)
        assert item.actual_amount == Decimal("250")
        assert item.variance == Decimal("750")

    def test_syncing_twice_counts_once(self, db_session):
        item = make_item(db_session, planned="500")
        expenditure = self._expenditure(db_session, item.id, amount="100")
        service = BudgetService(db_session)

        assert service.update_budget_item_for_expenditure(expenditure.id) is True
        assert service.update_budget_item_for_expenditure(expenditure.id) is True

        item = service.get_item(item.id)
        assert item.actual_amount == Decimal("100")
        assert item.variance == Decimal("400")

    def test_sync_after_create_counts_once(self, db_session):
        item = make_item(db_session, planned="500")
        expenditure = EntryService(db_session).create_expenditure(ExpenditureEntryCreate(
            amount=Decimal("100"), budget_item_id=item.id,
        ))
        service = BudgetService(db_session)

        assert service.update_budget_item_for_expenditure(expenditure.id) is True

        item = service.get_item(item.id)
        assert item.actual_amount == Decimal("100")
        assert item.variance == Decimal("400")

    def test_sync_totals_every_entry_on_the_item(self, db_session):
        item = make_item(db_session, planned="1000")
        self._expenditure(db_session, item.id, amount="300")
        LedgerStore(db_session).insert("income_entries", {
            "amount": Decimal("50"), "budget_item_id": item.id,
        })
        expenditure = self._expenditure(db_session, item.id, amount="100")
        service = BudgetService(db_session)

        assert service.update_budget_item_for_expenditure(expenditure.id) is True

        item = service.get_item(item.id)
        assert item.actual_amount == Decimal("450")
        assert item.variance == Decimal("550")

    def test_sync_store_failure_returns_false(self, db_session, monkeypatch):
        item = make_item(db_session)
        expenditure = self._expenditure(db_session, item.id)

        def broken_update(self, table, row_id, patch):
            raise StoreError("update", table, RuntimeError("down"))

        monkeypatch.setattr(LedgerStore, "update", broken_update)

        assert BudgetService(db_session).update_budget_item_for_expenditure(expenditure.id) is False

    def test_missing_expenditure_returns_false(self, db_session):
        assert BudgetService(db_session).update_budget_item_for_expenditure("nope") is False

    def test_expenditure_without_item_is_true(self, db_session):
        expenditure = self._expenditure(db_session, None)
        assert BudgetService(db_session).update_budget_item_for_expenditure(expenditure.id) is True

    def test_expenditure_whose_item_is_gone_is_true(self, db_session):
        expenditure = self._expenditure(db_session, "deleted-item")
        assert BudgetService(db_session).update_budget_item_for_expenditure(expenditure.id) is True
