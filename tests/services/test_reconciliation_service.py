"""
Tests for the ReconciliationService: lifecycle, adjustments, and the
book-balance update that runs after an adjustment is deleted.
"""

import datetime as dt
from decimal import Decimal

import pytest

from church_ledger.models.enums import CategoryType, EntryTable
from church_ledger.schemas.entries import IncomeEntryCreate
from church_ledger.schemas.reconciliation import (
    ReconciliationCreate,
    AdjustmentCreate,
    BookBalanceStatus,
)
from church_ledger.services.deletion_service import EntryDeletionService
from church_ledger.services.entry_service import EntryService
from church_ledger.services.reconciliation_service import ReconciliationService
from church_ledger.store import LedgerStore, StoreError


def start(db_session, account, bank_balance="1000"):
    return ReconciliationService(db_session).start_reconciliation(ReconciliationCreate(
        account_id=account.id,
        start_date=dt.date(2024, 1, 1),
        end_date=dt.date(2024, 1, 31),
        bank_balance=Decimal(bank_balance),
    ))


def adjust(db_session, reconciliation, kind, amount):
    return ReconciliationService(db_session).create_adjustment(
        reconciliation.id,
        AdjustmentCreate(
            adjustment_type=kind, amount=Decimal(amount), description="Bank charges",
        ),
    )


class TestLifecycle:

    def test_book_balance_starts_at_account_balance(self, db_session, make_account):
        account = make_account(opening_balance="800")
        EntryService(db_session).create_income(IncomeEntryCreate(
            amount=Decimal("200"), account_id=account.id,
        ))

        reconciliation = start(db_session, account, bank_balance="950")

        assert reconciliation.book_balance == Decimal("1000")
        assert reconciliation.difference == Decimal("-50")
        assert reconciliation.has_manual_adjustments is False

    def test_unknown_account_rejected(self, db_session):
        with pytest.raises(ValueError, match="not found"):
            ReconciliationService(db_session).start_reconciliation(ReconciliationCreate(
                account_id="missing",
                start_date=dt.date(2024, 1, 1),
                end_date=dt.date(2024, 1, 31),
                bank_balance=Decimal("1"),
            ))


class TestCreateAdjustment:

    def test_income_adjustment_lowers_book_balance(self, db_session, make_account):
        account = make_account(opening_balance="1000")
        reconciliation = start(db_session, account)

        entry = adjust(db_session, reconciliation, CategoryType.INCOME, "150")

        reconciliation = ReconciliationService(db_session).get_reconciliation(reconciliation.id)
        assert reconciliation.book_balance == Decimal("850")
        assert reconciliation.has_manual_adjustments is True
        assert entry.payment_method == "reconciliation"
        assert entry.is_reconciliation_adjustment is True
        assert entry.description == (
            f"[RECONCILIATION] Bank charges (Reconciliation ID: {reconciliation.id})"
        )
        links = LedgerStore(db_session).find(
            "transaction_reconciliations", transaction_id=entry.id
        )
        assert [link.reconciliation_id for link in links] == [reconciliation.id]

    def test_expenditure_adjustment_raises_book_balance(self, db_session, make_account):
        account = make_account(opening_balance="1000")
        reconciliation = start(db_session, account)

        adjust(db_session, reconciliation, CategoryType.EXPENDITURE, "40")

        reconciliation = ReconciliationService(db_session).get_reconciliation(reconciliation.id)
        assert reconciliation.book_balance == Decimal("1040")

    def test_adjustment_posts_to_the_account(self, db_session, make_account):
        account = make_account(opening_balance="1000")
        reconciliation = start(db_session, account)

        adjust(db_session, reconciliation, CategoryType.EXPENDITURE, "40")

        assert LedgerStore(db_session).find_one("accounts", account.id).balance == Decimal("960")


class TestAdjustmentAmountChange:

    def test_income_adjustment_change_then_delete_restores_book(
        self, db_session, make_account
    ):
        account = make_account(opening_balance="1000")
        reconciliation = start(db_session, account)
        entry = adjust(db_session, reconciliation, CategoryType.INCOME, "50")
        service = ReconciliationService(db_session)

        EntryService(db_session).update_entry_amount(EntryTable.INCOME, entry.id, Decimal("80"))

        assert service.get_reconciliation(reconciliation.id).book_balance == Decimal("920")

        report = EntryDeletionService(db_session).delete_financial_entry(
            "income_entries", entry.id
        )

        assert report.deleted is True
        assert service.get_reconciliation(reconciliation.id).book_balance == Decimal("1000")

    def test_expenditure_adjustment_change_moves_book_up(self, db_session, make_account):
        account = make_account(opening_balance="1000")
        reconciliation = start(db_session, account)
        entry = adjust(db_session, reconciliation, CategoryType.EXPENDITURE, "40")

        EntryService(db_session).update_entry_amount(
            EntryTable.EXPENDITURE, entry.id, Decimal("25")
        )

        reconciliation = ReconciliationService(db_session).get_reconciliation(reconciliation.id)
        assert reconciliation.book_balance == Decimal("1025")

    def test_ordinary_entry_change_leaves_book_alone(self, db_session, make_account):
        account = make_account(opening_balance="1000")
        reconciliation = start(db_session, account)
        entry = EntryService(db_session).create_income(IncomeEntryCreate(
            amount=Decimal("30"), account_id=account.id, description="Offering",
        ))

        EntryService(db_session).update_entry_amount(EntryTable.INCOME, entry.id, Decimal("60"))

        reconciliation = ReconciliationService(db_session).get_reconciliation(reconciliation.id)
        assert reconciliation.book_balance == Decimal("1000")


class TestUpdateBookBalanceAfterDeletion:

    def _reconciliation(self, db_session, account, book="1000", manual=False):
        return LedgerStore(db_session).insert("bank_reconciliations", {
            "account_id": account.id,
            "start_date": dt.date(2024, 1, 1),
            "end_date": dt.date(2024, 1, 31),
            "bank_balance": Decimal("1000"),
            "book_balance": Decimal(book),
            "has_manual_adjustments": manual,
        })

    def _adjustment(self, db_session, reconciliation, amount="10"):
        return LedgerStore(db_session).insert("income_entries", {
            "amount": Decimal(amount),
            "reconciliation_id": reconciliation.id,
            "is_reconciliation_adjustment": True,
        })

    def test_income_deletion_adds_back(self, db_session, make_account):
        reconciliation = self._reconciliation(db_session, make_account())

        result = ReconciliationService(db_session).update_book_balance_after_deletion(
            reconciliation.id, EntryTable.INCOME, Decimal("150")
        )

        assert result.status == BookBalanceStatus.UPDATED
        assert result.book_balance == Decimal("1150")

    def test_expenditure_deletion_subtracts(self, db_session, make_account):
        reconciliation = self._reconciliation(db_session, make_account())

        result = ReconciliationService(db_session).update_book_balance_after_deletion(
            reconciliation.id, EntryTable.EXPENDITURE, Decimal("75")
        )

        assert result.book_balance == Decimal("925")

    def test_preserved_while_other_adjustments_remain(self, db_session, make_account):
        reconciliation = self._reconciliation(db_session, make_account(), manual=True)
        self._adjustment(db_session, reconciliation)
        service = ReconciliationService(db_session)

        result = service.update_book_balance_after_deletion(
            reconciliation.id, EntryTable.INCOME, Decimal("150")
        )

        assert result.status == BookBalanceStatus.PRESERVED
        reconciliation = service.get_reconciliation(reconciliation.id)
        assert reconciliation.book_balance == Decimal("1000")
        assert reconciliation.has_manual_adjustments is True
        assert reconciliation.pending_adjustment_delta == Decimal("150")

    def test_pending_delta_applied_with_last_adjustment(self, db_session, make_account):
        reconciliation = self._reconciliation(db_session, make_account(), manual=True)
        remaining = self._adjustment(db_session, reconciliation)
        service = ReconciliationService(db_session)
        service.update_book_balance_after_deletion(
            reconciliation.id, EntryTable.INCOME, Decimal("150")
        )
        LedgerStore(db_session).delete("income_entries", remaining.id)

        result = service.update_book_balance_after_deletion(
            reconciliation.id, EntryTable.INCOME, Decimal("10")
        )

        assert result.status == BookBalanceStatus.UPDATED
        assert result.delta_applied == Decimal("160")
        reconciliation = service.get_reconciliation(reconciliation.id)
        assert reconciliation.book_balance == Decimal("1160")
        assert reconciliation.has_manual_adjustments is False
        assert reconciliation.pending_adjustment_delta == Decimal("0")

    def test_linked_entries_count_as_remaining(self, db_session, make_account):
        reconciliation = self._reconciliation(db_session, make_account(), manual=True)
        store = LedgerStore(db_session)
        linked = store.insert("expenditure_entries", {
            "amount": Decimal("5"), "description": "[RECONCILIATION] fee",
        })
        store.insert("transaction_reconciliations", {
            "transaction_id": linked.id,
            "transaction_type": "expenditure",
            "reconciliation_id": reconciliation.id,
        })

        result = ReconciliationService(db_session).update_book_balance_after_deletion(
            reconciliation.id, EntryTable.INCOME, Decimal("1")
        )

        assert result.status == BookBalanceStatus.PRESERVED

    def test_missing_reconciliation_fails(self, db_session):
        result = ReconciliationService(db_session).update_book_balance_after_deletion(
            "missing", EntryTable.INCOME, Decimal("1")
        )
        assert result.status == BookBalanceStatus.FAILED
        assert result.ok is False

    def test_store_failure_fails(self, db_session, make_account, monkeypatch):
        reconciliation = self._reconciliation(db_session, make_account())

        def broken_update(self, table, row_id, patch):
            raise StoreError("update", table, RuntimeError("down"))

        monkeypatch.setattr(LedgerStore, "update", broken_update)

        result = ReconciliationService(db_session).update_book_balance_after_deletion(
            reconciliation.id, EntryTable.INCOME, Decimal("1")
        )
        assert result.status == BookBalanceStatus.FAILED


class TestDeleteReconciliation:

    def test_removes_adjustments_and_restores_account(self, db_session, make_account):
        account = make_account(opening_balance="1000")
        reconciliation = start(db_session, account)
        adjust(db_session, reconciliation, CategoryType.EXPENDITURE, "40")
        adjust(db_session, reconciliation, CategoryType.INCOME, "15")
        service = ReconciliationService(db_session)

        removed = service.delete_reconciliation(reconciliation.id)

        store = LedgerStore(db_session)
        assert removed == 2
        assert store.find_one("bank_reconciliations", reconciliation.id) is None
        assert store.find("transaction_reconciliations") == []
        assert store.find("account_transactions") == []
        assert store.find_one("accounts", account.id).balance == Decimal("1000")

    def test_missing_reconciliation_rejected(self, db_session):
        with pytest.raises(ValueError, match="not found"):
            ReconciliationService(db_session).delete_reconciliation("missing")
