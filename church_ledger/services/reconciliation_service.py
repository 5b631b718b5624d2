"""
Reconciliation service — bank reconciliations and their book balance.

book_balance is the system-side figure a reconciliation compares to
the bank statement. Two things move it:

    Creating a manual adjustment
        income adjustment       book_balance -= amount
        expenditure adjustment  book_balance += amount
        and has_manual_adjustments becomes true.

    Deleting an adjustment (the reverse)
        income deleted          book_balance += amount
        expenditure deleted     book_balance -= amount

While a reconciliation has manual adjustments and at least one of
them is still present, a deletion does not touch book_balance. Its
correction is parked in pending_adjustment_delta and applied, all at
once, when the last adjustment goes.
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from church_ledger.models.enums import (
    CategoryType,
    EntryTable,
    REFERENCE_TYPE_BY_TABLE,
)
from church_ledger.models.ledger_entry import IncomeEntry, ExpenditureEntry
from church_ledger.models.reconciliation import BankReconciliation
from church_ledger.schemas.entries import IncomeEntryCreate, ExpenditureEntryCreate
from church_ledger.schemas.reconciliation import (
    ReconciliationCreate,
    AdjustmentCreate,
    BookBalanceResult,
    BookBalanceStatus,
)
from church_ledger.services.account_balance_service import AccountBalanceService
from church_ledger.services.entry_service import EntryService
from church_ledger.services.reconciliation_resolver import (
    ADJUSTMENT_TAG,
    ADJUSTMENT_PAYMENT_METHOD,
    linked_to_reconciliation,
)
from church_ledger.store import LedgerStore, StoreError

logger = logging.getLogger(__name__)


ZERO = Decimal("0")

ENTRY_MODELS = {
    EntryTable.INCOME: IncomeEntry,
    EntryTable.EXPENDITURE: ExpenditureEntry,
}


def _money(value) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def adjustment_description(text: str, reconciliation_id: str) -> str:
    return f"{ADJUSTMENT_TAG} {text} (Reconciliation ID: {reconciliation_id})"


class ReconciliationService:

    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)
        self.balances = AccountBalanceService(db)

    # --- Lifecycle ---

    def start_reconciliation(self, request: ReconciliationCreate) -> BankReconciliation:
        """
        Open a reconciliation for one account and period.

        The book balance starts at the account's balance as rebuilt
        from its transaction log.
        """
        account = self.store.find_one("accounts", request.account_id)
        if not account:
            raise ValueError(f"Account {request.account_id} not found")

        book_balance = self.balances.recalculate_balance(request.account_id)
        if book_balance is None:
            logger.warning(
                "Using stored balance of account %s as book balance",
                request.account_id,
            )
            book_balance = _money(account.balance)

        reconciliation = self.store.insert("bank_reconciliations", {
            **request.model_dump(),
            "book_balance": book_balance,
        })
        logger.info(
            "Reconciliation %s started for account %s: bank=%s book=%s",
            reconciliation.id, request.account_id,
            request.bank_balance, book_balance,
        )
        return reconciliation

    def get_reconciliation(self, reconciliation_id: str) -> BankReconciliation:
        reconciliation = self.store.find_one("bank_reconciliations", reconciliation_id)
        if not reconciliation:
            raise ValueError(f"Reconciliation {reconciliation_id} not found")
        return reconciliation

    def create_adjustment(
        self, reconciliation_id: str, request: AdjustmentCreate
    ) -> IncomeEntry | ExpenditureEntry:
        """
        Post a manual adjustment entry against a reconciliation.

        The entry is tagged every way the resolver looks for it: the
        description tag and id, payment method, reconciliation_id,
        the flag, and a transaction_reconciliations link row.
        """
        reconciliation = self.get_reconciliation(reconciliation_id)
        entries = EntryService(self.db)

        fields = dict(
            date=request.date,
            description=adjustment_description(request.description, reconciliation_id),
            amount=request.amount,
            payment_method=ADJUSTMENT_PAYMENT_METHOD,
            account_id=reconciliation.account_id,
            reconciliation_id=reconciliation_id,
            is_reconciliation_adjustment=True,
        )
        if request.adjustment_type == CategoryType.INCOME:
            entry = entries.create_income(IncomeEntryCreate(**fields))
            delta = -request.amount
        else:
            entry = entries.create_expenditure(ExpenditureEntryCreate(**fields))
            delta = request.amount

        self.store.insert("transaction_reconciliations", {
            "transaction_id": entry.id,
            "transaction_type": request.adjustment_type.value,
            "reconciliation_id": reconciliation_id,
        })

        reconciliation = self.get_reconciliation(reconciliation_id)
        book_balance = _money(reconciliation.book_balance) + delta
        self.store.update("bank_reconciliations", reconciliation_id, {
            "book_balance": book_balance,
            "has_manual_adjustments": True,
        })
        logger.info(
            "Adjustment %s (%s %s) added to reconciliation %s, book=%s",
            entry.id, request.adjustment_type.value, request.amount,
            reconciliation_id, book_balance,
        )
        return entry

    def remaining_adjustments(self, reconciliation_id: str) -> list:
        """Adjustment entries still tied to the reconciliation."""
        remaining = []
        for table, model in ENTRY_MODELS.items():
            remaining.extend(self.store.find(
                table.value, linked_to_reconciliation(model, reconciliation_id)
            ))
        return remaining

    def delete_reconciliation(self, reconciliation_id: str) -> int:
        """
        Remove a reconciliation together with its adjustment entries.

        Each adjustment takes its log rows with it and the affected
        accounts are recalculated. Returns the number of entries removed.
        """
        self.get_reconciliation(reconciliation_id)

        adjustments = [
            (table, entry)
            for table, model in ENTRY_MODELS.items()
            for entry in self.store.find(
                table.value, linked_to_reconciliation(model, reconciliation_id)
            )
        ]
        account_ids = set()
        for table, entry in adjustments:
            if entry.account_id:
                account_ids.add(entry.account_id)
            self.store.delete_where(
                "account_transactions",
                reference_id=entry.id,
                reference_type=REFERENCE_TYPE_BY_TABLE[table],
            )
            self.store.delete(table.value, entry.id)

        self.store.delete_where(
            "transaction_reconciliations", reconciliation_id=reconciliation_id
        )
        self.store.delete_where(
            "reconciliation_items", reconciliation_id=reconciliation_id
        )
        self.store.delete("bank_reconciliations", reconciliation_id)

        for account_id in account_ids:
            if self.balances.recalculate_balance(account_id) is None:
                logger.warning("Balance of account %s not recalculated", account_id)

        logger.info(
            "Reconciliation %s deleted with %d adjustment(s)",
            reconciliation_id, len(adjustments),
        )
        return len(adjustments)

    # --- Book balance after deletion ---

    def update_book_balance_after_deletion(
        self, reconciliation_id: str, table: EntryTable, amount
    ) -> BookBalanceResult:
        """
        Reverse a deleted adjustment's effect on book_balance.

        Call once per deleted entry; the delta is not idempotent.
        """
        if table == EntryTable.INCOME:
            delta = _money(amount)
        elif table == EntryTable.EXPENDITURE:
            delta = -_money(amount)
        else:
            return BookBalanceResult(
                status=BookBalanceStatus.FAILED,
                reconciliation_id=reconciliation_id,
                error=f"{table.value} entries do not affect book balance",
            )

        try:
            reconciliation = self.store.find_one(
                "bank_reconciliations", reconciliation_id
            )
            if reconciliation is None:
                return BookBalanceResult(
                    status=BookBalanceStatus.FAILED,
                    reconciliation_id=reconciliation_id,
                    error="Reconciliation not found",
                )

            book_balance = _money(reconciliation.book_balance)
            pending = _money(reconciliation.pending_adjustment_delta)

            if reconciliation.has_manual_adjustments:
                remaining = self.remaining_adjustments(reconciliation_id)
                if remaining:
                    self.store.update("bank_reconciliations", reconciliation_id, {
                        "pending_adjustment_delta": pending + delta,
                    })
                    logger.info(
                        "Reconciliation %s has %d other adjustment(s), "
                        "book balance preserved (pending %s)",
                        reconciliation_id, len(remaining), pending + delta,
                    )
                    return BookBalanceResult(
                        status=BookBalanceStatus.PRESERVED,
                        reconciliation_id=reconciliation_id,
                        book_balance=book_balance,
                    )
                total = pending + delta
                patch = {
                    "book_balance": book_balance + total,
                    "has_manual_adjustments": False,
                    "pending_adjustment_delta": ZERO,
                }
            else:
                total = delta
                patch = {"book_balance": book_balance + total}

            self.store.update("bank_reconciliations", reconciliation_id, patch)
        except StoreError as e:
            logger.error(
                "Could not update book balance of reconciliation %s: %s",
                reconciliation_id, e,
            )
            return BookBalanceResult(
                status=BookBalanceStatus.FAILED,
                reconciliation_id=reconciliation_id,
                error=str(e),
            )

        logger.info(
            "Reconciliation %s book balance %s -> %s",
            reconciliation_id, book_balance, patch["book_balance"],
        )
        return BookBalanceResult(
            status=BookBalanceStatus.UPDATED,
            reconciliation_id=reconciliation_id,
            book_balance=patch["book_balance"],
            delta_applied=total,
        )
