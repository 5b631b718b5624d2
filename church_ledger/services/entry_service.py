"""
Entry service — posting income and expenditure.

Creating an entry:
1. Validates the account it posts to (if any)
2. Stores the entry row
3. Writes its account transaction log row
4. Moves the account balance
5. Counts it against its budget line (if any)
6. Records a liability payment (expenditures with liability_id)

Steps 3-6 are bookkeeping around an entry that already exists. A
failure there is logged; the entry stays, and the balance
recalculator can repair the account later.
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from church_ledger.models.enums import (
    EntryTable,
    TransactionType,
    REFERENCE_TYPE_BY_TABLE,
)
from church_ledger.models.ledger_entry import IncomeEntry, ExpenditureEntry
from church_ledger.schemas.entries import (
    IncomeEntryCreate,
    ExpenditureEntryCreate,
    EntrySnapshot,
)
from church_ledger.services.account_balance_service import AccountBalanceService
from church_ledger.services.budget_service import BudgetService
from church_ledger.services.liability_service import LiabilityService
from church_ledger.services.reconciliation_resolver import ReconciliationResolver
from church_ledger.store import LedgerStore, StoreError

logger = logging.getLogger(__name__)


TRANSACTION_TYPE_BY_TABLE = {
    EntryTable.INCOME: TransactionType.INCOME,
    EntryTable.EXPENDITURE: TransactionType.EXPENDITURE,
}


class EntryService:

    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)
        self.balances = AccountBalanceService(db)
        self.budgets = BudgetService(db)
        self.liabilities = LiabilityService(db)

    def _validate_account(self, account_id: str | None) -> None:
        if account_id and not self.store.find_one("accounts", account_id):
            raise ValueError(f"Account {account_id} not found")

    def _post_to_account(self, table: EntryTable, entry) -> None:
        if not entry.account_id:
            return
        transaction_type = TRANSACTION_TYPE_BY_TABLE[table]
        self.balances.ensure_transaction(
            account_id=entry.account_id,
            amount=entry.amount,
            transaction_type=transaction_type,
            reference_id=entry.id,
            reference_type=REFERENCE_TYPE_BY_TABLE[table],
            date=entry.date,
            description=entry.description,
        )
        if self.balances.adjust_balance(
            entry.account_id, entry.amount, "create", transaction_type
        ) is None:
            logger.warning(
                "Balance of account %s not updated for %s %s",
                entry.account_id, table.value, entry.id,
            )

    # --- Create ---

    def create_income(self, request: IncomeEntryCreate) -> IncomeEntry:
        self._validate_account(request.account_id)

        entry = self.store.insert(EntryTable.INCOME.value, request.model_dump())
        logger.info("Income %s recorded: %s", entry.id, entry.amount)

        self._post_to_account(EntryTable.INCOME, entry)
        if not self.budgets.apply_entry(entry.budget_item_id, entry.amount):
            logger.warning("Budget item %s not updated for income %s",
                           entry.budget_item_id, entry.id)
        return entry

    def create_expenditure(self, request: ExpenditureEntryCreate) -> ExpenditureEntry:
        self._validate_account(request.account_id)
        if request.liability_id and not self.store.find_one(
            "liability_entries", request.liability_id
        ):
            raise ValueError(f"Liability {request.liability_id} not found")

        values = request.model_dump()
        values["liability_payment"] = request.liability_id is not None
        entry = self.store.insert(EntryTable.EXPENDITURE.value, values)
        logger.info("Expenditure %s recorded: %s", entry.id, entry.amount)

        self._post_to_account(EntryTable.EXPENDITURE, entry)
        if not self.budgets.update_budget_item_for_expenditure(entry.id):
            logger.warning("Budget item %s not updated for expenditure %s",
                           entry.budget_item_id, entry.id)
        if entry.liability_id and not self.liabilities.record_payment(
            entry.liability_id, entry.amount
        ):
            logger.warning("Liability %s not updated for expenditure %s",
                           entry.liability_id, entry.id)
        return entry

    # --- Read / update ---

    def get_entry(self, table: EntryTable, entry_id: str):
        if table not in TRANSACTION_TYPE_BY_TABLE:
            raise ValueError(f"{table.value} entries are not income or expenditure")
        entry = self.store.find_one(table.value, entry_id)
        if not entry:
            raise ValueError(f"Entry {entry_id} not found in {table.value}")
        return entry

    def _shift_adjustment_book_balance(
        self, table: EntryTable, entry, old_amount: Decimal, amount: Decimal
    ) -> None:
        """Move the owning reconciliation's book_balance by an adjustment's change."""
        snapshot = EntrySnapshot.from_row(table, entry)
        if not ReconciliationResolver.is_adjustment(snapshot):
            return
        match = ReconciliationResolver(self.db).resolve(snapshot)
        if match is None:
            return

        change = Decimal(str(amount)) - old_amount
        # Income adjustments lower the book balance, expenditures raise it
        delta = -change if table == EntryTable.INCOME else change
        try:
            reconciliation = self.store.find_one(
                "bank_reconciliations", match.reconciliation_id
            )
            if reconciliation is None:
                return
            book_balance = Decimal(str(reconciliation.book_balance)) + delta
            self.store.update("bank_reconciliations", match.reconciliation_id, {
                "book_balance": book_balance,
            })
        except StoreError as e:
            logger.warning(
                "Book balance of reconciliation %s not updated for %s %s: %s",
                match.reconciliation_id, table.value, entry.id, e,
            )
            return
        logger.info(
            "Reconciliation %s book balance -> %s after %s %s changed",
            match.reconciliation_id, book_balance, table.value, entry.id,
        )

    def update_entry_amount(self, table: EntryTable, entry_id: str, amount: Decimal):
        """
        Change an entry's amount and carry the difference through.

        The log row is rewritten, the account balance moves by the
        difference, and the budget line and liability are shifted.
        An adjustment also moves its reconciliation's book balance.
        """
        entry = self.get_entry(table, entry_id)
        old_amount = Decimal(str(entry.amount))

        entry = self.store.update(table.value, entry_id, {"amount": amount})
        if entry is None:
            raise ValueError(f"Entry {entry_id} not found in {table.value}")
        logger.info("%s %s amount changed %s -> %s",
                    table.value, entry_id, old_amount, amount)

        if entry.account_id:
            transaction_type = TRANSACTION_TYPE_BY_TABLE[table]
            self.balances.ensure_transaction(
                account_id=entry.account_id,
                amount=amount,
                transaction_type=transaction_type,
                reference_id=entry.id,
                reference_type=REFERENCE_TYPE_BY_TABLE[table],
                date=entry.date,
                description=entry.description,
            )
            self.balances.adjust_balance(
                entry.account_id, amount, "update", transaction_type,
                old_amount=old_amount,
            )

        self.budgets.change_entry_amount(entry.budget_item_id, old_amount, amount)

        liability_id = getattr(entry, "liability_id", None)
        if liability_id:
            self.liabilities.reverse_payment(liability_id, old_amount)
            self.liabilities.record_payment(liability_id, amount)

        self._shift_adjustment_book_balance(table, entry, old_amount, amount)

        return entry
