"""
Tests for adjustment classification and reconciliation lookup.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

import pytest

from church_ledger.models.enums import EntryTable
from church_ledger.schemas.entries import EntrySnapshot
from church_ledger.services.reconciliation_resolver import (
    ReconciliationResolver,
    is_reconciliation_adjustment,
    first_match,
    RESOLUTION_STRATEGIES,
)
from church_ledger.store import LedgerStore, StoreError


def make_reconciliation(db_session, account_id, created_at):
    return LedgerStore(db_session).insert("bank_reconciliations", {
        "account_id": account_id,
        "start_date": dt.date(2024, 1, 1),
        "end_date": dt.date(2024, 1, 31),
        "bank_balance": Decimal("1000"),
        "book_balance": Decimal("1000"),
        "created_at": created_at,
    })


def snapshot(**fields):
    fields.setdefault("table", EntryTable.INCOME)
    fields.setdefault("id", "entry-1")
    fields.setdefault("amount", Decimal("10"))
    return EntrySnapshot(**fields)


class TestIsReconciliationAdjustment:

    @pytest.mark.parametrize("kwargs", [
        {"description": "[RECONCILIATION] bank fee"},
        {"description": "Reconciliation Adjustment for March"},
        {"description": "reconciled against statement"},
        {"payment_method": "reconciliation"},
        {"reconciliation_id": "abc"},
        {"flag": True},
    ])
    def test_any_marker_is_enough(self, kwargs):
        assert is_reconciliation_adjustment(**kwargs) is True

    def test_plain_entry_is_not_an_adjustment(self):
        assert is_reconciliation_adjustment(
            description="Sunday offering", payment_method="cash"
        ) is False

    def test_no_fields_is_not_an_adjustment(self):
        assert is_reconciliation_adjustment() is False


class TestResolutionOrder:

    @pytest.fixture
    def setup(self, db_session, make_account):
        account = make_account()
        other = make_account()
        older = make_reconciliation(db_session, account.id, datetime(2024, 1, 1))
        newer = make_reconciliation(db_session, account.id, datetime(2024, 2, 1))
        latest_overall = make_reconciliation(db_session, other.id, datetime(2024, 3, 1))
        return account, other, older, newer, latest_overall

    def resolve(self, db_session, entry):
        return ReconciliationResolver(db_session).resolve(entry)

    def test_entry_field_wins(self, db_session, setup):
        _, _, older, _, _ = setup
        match = self.resolve(db_session, snapshot(reconciliation_id=older.id))
        assert match.reconciliation_id == older.id
        assert match.strategy == "entry_field"

    def test_transaction_link(self, db_session, setup):
        _, _, older, _, _ = setup
        LedgerStore(db_session).insert("transaction_reconciliations", {
            "transaction_id": "entry-1",
            "transaction_type": "income",
            "reconciliation_id": older.id,
        })
        match = self.resolve(db_session, snapshot(description="[RECONCILIATION]"))
        assert (match.reconciliation_id, match.strategy) == (older.id, "transaction_link")

    def test_reconciliation_item(self, db_session, setup):
        _, _, older, _, _ = setup
        LedgerStore(db_session).insert("reconciliation_items", {
            "reconciliation_id": older.id,
            "transaction_type": "income",
            "transaction_id": "entry-1",
            "amount": Decimal("10"),
        })
        match = self.resolve(db_session, snapshot(description="[RECONCILIATION]"))
        assert (match.reconciliation_id, match.strategy) == (older.id, "reconciliation_item")

    def test_description_reconciliation_id(self, db_session, setup):
        _, _, older, _, _ = setup
        entry = snapshot(description=f"[RECONCILIATION] fee (Reconciliation ID: {older.id})")
        match = self.resolve(db_session, entry)
        assert (match.reconciliation_id, match.strategy) == (older.id, "description_id")

    def test_description_id_must_exist(self, db_session, setup):
        entry = snapshot(
            description="Reconciliation ID: 00000000-0000-0000-0000-000000000000"
        )
        match = self.resolve(db_session, entry)
        assert match.strategy == "latest"

    def test_description_account_full_id(self, db_session, setup):
        account, _, _, newer, _ = setup
        entry = snapshot(description=f"Reconciliation for account {account.id}")
        match = self.resolve(db_session, entry)
        assert (match.reconciliation_id, match.strategy) == (newer.id, "description_account")

    def test_description_account_truncated_id(self, db_session, setup):
        account, _, _, newer, _ = setup
        entry = snapshot(description=f"Reconciliation for account {account.id[:8]}")
        match = self.resolve(db_session, entry)
        assert (match.reconciliation_id, match.strategy) == (newer.id, "description_account")

    def test_entry_account_latest(self, db_session, setup):
        account, _, _, newer, _ = setup
        entry = snapshot(description="[RECONCILIATION]", account_id=account.id)
        match = self.resolve(db_session, entry)
        assert (match.reconciliation_id, match.strategy) == (newer.id, "entry_account")

    def test_falls_back_to_latest_overall(self, db_session, setup):
        _, _, _, _, latest_overall = setup
        match = self.resolve(db_session, snapshot(description="[RECONCILIATION]"))
        assert (match.reconciliation_id, match.strategy) == (latest_overall.id, "latest")

    def test_no_reconciliations_resolves_nothing(self, db_session):
        assert self.resolve(db_session, snapshot(description="[RECONCILIATION]")) is None


class TestFirstMatch:

    def test_failing_strategy_does_not_stop_the_cascade(self, db_session):
        def broken(store, entry):
            raise StoreError("find", "transaction_reconciliations", RuntimeError("down"))

        strategies = [
            ("broken", broken),
            ("fixed", lambda store, entry: "rec-1"),
        ]

        match = first_match(strategies, LedgerStore(db_session), snapshot())

        assert (match.reconciliation_id, match.strategy) == ("rec-1", "fixed")

    def test_strategies_run_in_documented_order(self):
        assert [name for name, _ in RESOLUTION_STRATEGIES] == [
            "entry_field",
            "transaction_link",
            "reconciliation_item",
            "description_id",
            "description_account",
            "entry_account",
            "latest",
        ]
