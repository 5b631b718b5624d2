"""
Ledger store — table-addressed data access over one session.

The bookkeeping services talk to the database only through this
class. It mirrors the hosted store the finance screens were built
against: filtered reads, single-row inserts, updates and deletes,
and a small set of named server-side functions.

Every write is its own unit of work. It is flushed and committed
before the call returns, and a failed write rolls back only itself.
There is no way to group several writes into one transaction. That
is what lets a deletion keep its primary row delete even when a
later bookkeeping step fails.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from sqlalchemy import select, update, delete as sa_delete, func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from church_ledger.config import get_settings
from church_ledger.models import (
    Account,
    AccountTransaction,
    AccountTransfer,
    IncomeEntry,
    ExpenditureEntry,
    LiabilityEntry,
    Budget,
    BudgetItem,
    BankReconciliation,
    TransactionReconciliation,
    ReconciliationItem,
    TransactionType,
)
from church_ledger.retry import with_retry

logger = logging.getLogger(__name__)


TABLES: dict[str, type] = {
    "accounts": Account,
    "account_transactions": AccountTransaction,
    "account_transfers": AccountTransfer,
    "income_entries": IncomeEntry,
    "expenditure_entries": ExpenditureEntry,
    "liability_entries": LiabilityEntry,
    "budgets": Budget,
    "budget_items": BudgetItem,
    "bank_reconciliations": BankReconciliation,
    "transaction_reconciliations": TransactionReconciliation,
    "reconciliation_items": ReconciliationItem,
}


class StoreError(Exception):
    """A store call failed at the database level."""

    def __init__(self, operation: str, table: str, cause: BaseException):
        self.operation = operation
        self.table = table
        self.cause = cause
        super().__init__(f"{operation} on {table} failed: {cause}")


# --- Server-side functions ---

def _recalculate_account_balance(db: Session, account_id: str) -> Decimal | None:
    """
    Set accounts.balance = opening_balance + signed SUM(log) in one statement.

    Returns the stored balance, or None when the account does not exist.
    """
    log_total = (
        select(func.coalesce(func.sum(case(
            (
                AccountTransaction.transaction_type.in_(
                    [TransactionType.EXPENDITURE, TransactionType.TRANSFER_OUT]
                ),
                -func.abs(AccountTransaction.amount),
            ),
            else_=func.abs(AccountTransaction.amount),
        )), 0))
        .where(AccountTransaction.account_id == account_id)
        .scalar_subquery()
    )
    result = db.execute(
        update(Account)
        .where(Account.id == account_id)
        .values(
            balance=Account.opening_balance + log_total,
            updated_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None

    balance = db.execute(
        select(Account.balance).where(Account.id == account_id)
    ).scalar_one()
    return Decimal(str(balance))


SERVER_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "recalculate_account_balance": _recalculate_account_balance,
}


class LedgerStore:
    """
    Generic create/read/update/delete by table name.

    Reads are retried on transient failures. Writes are not: a write
    that may already have committed must not be replayed.
    """

    def __init__(
        self,
        db: Session,
        retry_attempts: int | None = None,
        retry_base_delay: float | None = None,
    ):
        settings = get_settings()
        self.db = db
        self.retry_attempts = (
            retry_attempts if retry_attempts is not None
            else settings.STORE_RETRY_ATTEMPTS
        )
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None
            else settings.STORE_RETRY_BASE_DELAY
        )

    @staticmethod
    def model_for(table: str) -> type:
        """Resolve a table name to its model. Unknown names are a caller bug."""
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table '{table}'")

    # --- Reads ---

    def _read(self, operation: str, table: str, fn: Callable[[], Any]) -> Any:
        def attempt():
            try:
                return fn()
            except SQLAlchemyError:
                # A failed statement can leave the transaction aborted
                self.db.rollback()
                raise

        try:
            return with_retry(
                attempt,
                attempts=self.retry_attempts,
                base_delay=self.retry_base_delay,
                name=f"{operation} {table}",
            )
        except SQLAlchemyError as e:
            raise StoreError(operation, table, e) from e

    def find(
        self,
        table: str,
        *criteria,
        order_by=None,
        limit: int | None = None,
        **filters,
    ) -> list:
        """
        Rows matching every criterion and every column=value filter.

        criteria are SQLAlchemy expressions for predicates that are
        not simple equality (OR groups, LIKE patterns).
        """
        model = self.model_for(table)
        stmt = select(model)
        for column, value in filters.items():
            stmt = stmt.where(getattr(model, column) == value)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        return self._read(
            "find", table, lambda: list(self.db.execute(stmt).scalars().all())
        )

    def find_one(self, table: str, row_id: str):
        """The row with this primary key, or None."""
        model = self.model_for(table)
        return self._read(
            "find_one", table,
            lambda: self.db.execute(
                select(model).where(model.id == row_id)
            ).scalar_one_or_none(),
        )

    def latest(self, table: str, *criteria, **filters):
        """The most recently created matching row, or None."""
        model = self.model_for(table)
        rows = self.find(
            table, *criteria, order_by=model.created_at.desc(), limit=1, **filters
        )
        return rows[0] if rows else None

    # --- Writes ---

    def _write(self, operation: str, table: str, fn: Callable[[], Any]) -> Any:
        try:
            result = fn()
            self.db.commit()
            return result
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(operation, table, e) from e

    def insert(self, table: str, values: dict):
        """Insert one row and return it."""
        model = self.model_for(table)

        def do_insert():
            row = model(**values)
            self.db.add(row)
            self.db.flush()
            return row

        return self._write("insert", table, do_insert)

    def update(self, table: str, row_id: str, patch: dict):
        """Apply patch to one row. Returns the row, or None if it is gone."""
        model = self.model_for(table)
        for column in patch:
            if not hasattr(model, column):
                raise ValueError(f"Table '{table}' has no column '{column}'")

        def do_update():
            row = self.db.get(model, row_id)
            if row is None:
                return None
            for column, value in patch.items():
                setattr(row, column, value)
            if hasattr(model, "updated_at") and "updated_at" not in patch:
                row.updated_at = datetime.utcnow()
            self.db.flush()
            return row

        return self._write("update", table, do_update)

    def delete(self, table: str, row_id: str) -> bool:
        """Delete one row. Returns False if it did not exist."""
        model = self.model_for(table)

        def do_delete():
            row = self.db.get(model, row_id)
            if row is None:
                return False
            self.db.delete(row)
            self.db.flush()
            return True

        return self._write("delete", table, do_delete)

    def delete_where(self, table: str, *criteria, **filters) -> int:
        """Delete every matching row. Returns the number removed."""
        model = self.model_for(table)
        if not criteria and not filters:
            raise ValueError("delete_where needs at least one filter")

        stmt = sa_delete(model)
        for column, value in filters.items():
            stmt = stmt.where(getattr(model, column) == value)
        if criteria:
            stmt = stmt.where(*criteria)
        stmt = stmt.execution_options(synchronize_session=False)

        return self._write(
            "delete_where", table, lambda: self.db.execute(stmt).rowcount
        )

    # --- Server-side functions ---

    def rpc(self, name: str, **params) -> Any:
        """
        Call a named server-side function.

        Unknown names raise StoreError, the same as a function the
        database does not have.
        """
        function = SERVER_FUNCTIONS.get(name)
        if function is None:
            raise StoreError(
                "rpc", name, LookupError(f"function {name} does not exist")
            )
        return self._write("rpc", name, lambda: function(self.db, **params))
