"""
Entry deletion service — removing a financial entry and repairing
everything derived from it.

Deleting one row touches up to five other records: the account
transaction log, account balances, a bank reconciliation's book
balance, a budget line, and a liability. The store cannot group
those writes into one transaction, so each step commits on its own
and the steps run in a fixed order:

1. Fetch the entry                     (not found: stop, nothing done)
2. Snapshot the fields later steps need
3. Classify it and resolve its reconciliation, while links still exist
4. Remove its transaction log rows and reconciliation links
5. Delete the row                      (failure: stop, report failed)
6. Reverse its effect on the reconciliation book balance
7. Recalculate the affected account balances
8. Reverse its effect on the budget line and the liability

Only steps 1 and 5 can fail the deletion. Once the row is gone it
stays gone; steps 6-8 report problems as warnings on the
DeletionReport and every one of them still runs.
"""

import logging

from sqlalchemy.orm import Session

from church_ledger.models.enums import EntryTable, REFERENCE_TYPE_BY_TABLE
from church_ledger.schemas.entries import DeletionReport, EntrySnapshot
from church_ledger.schemas.reconciliation import BookBalanceStatus, ReconciliationMatch
from church_ledger.services.account_balance_service import AccountBalanceService
from church_ledger.services.budget_service import BudgetService
from church_ledger.services.liability_service import LiabilityService
from church_ledger.services.reconciliation_resolver import ReconciliationResolver
from church_ledger.services.reconciliation_service import ReconciliationService
from church_ledger.store import LedgerStore, StoreError

logger = logging.getLogger(__name__)


BALANCE_PRESERVED_NOTICE = (
    "Reconciliation has manual adjustments. Book balance preserved."
)
RECONCILIATION_NOT_FOUND_WARNING = (
    "Reconciliation ID not found. Book balance may not update correctly."
)

# Tables whose entries can be reconciliation adjustments
ADJUSTABLE_TABLES = (EntryTable.INCOME, EntryTable.EXPENDITURE)


class EntryDeletionService:

    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)
        self.resolver = ReconciliationResolver(db)
        self.reconciliations = ReconciliationService(db)
        self.balances = AccountBalanceService(db)
        self.budgets = BudgetService(db)
        self.liabilities = LiabilityService(db)

    def delete_financial_entry(self, table_name: str, entry_id: str) -> DeletionReport:
        """
        Delete one entry and run the bookkeeping around it.

        report.deleted is True iff the row was removed. Raises
        ValueError for a table that is not a deletable entry table.
        """
        try:
            table = EntryTable(table_name)
        except ValueError:
            raise ValueError(f"Cannot delete entries from '{table_name}'")

        report = DeletionReport(table=table, entry_id=entry_id)

        # 1. Fetch
        try:
            row = self.store.find_one(table.value, entry_id)
        except StoreError as e:
            logger.error("Could not load %s %s: %s", table.value, entry_id, e)
            report.error = str(e)
            return report
        if row is None:
            logger.warning("%s %s not found, nothing deleted", table.value, entry_id)
            report.error = "Entry not found"
            return report

        # 2. Snapshot
        entry = EntrySnapshot.from_row(table, row)

        # 3. Classify and resolve
        match = self._resolve_adjustment(entry, report)

        # 4. Log rows and links
        self._remove_transaction_log(entry)
        self._remove_reconciliation_links(entry)

        # 5. Delete
        try:
            deleted = self.store.delete(table.value, entry_id)
        except StoreError as e:
            logger.error("Could not delete %s %s: %s", table.value, entry_id, e)
            report.error = str(e)
            return report
        if not deleted:
            report.error = "Entry not found"
            return report
        report.deleted = True
        logger.info("%s %s deleted (amount %s)", table.value, entry_id, entry.amount)

        # 6-8. Bookkeeping
        if report.is_reconciliation_adjustment:
            self._update_book_balance(entry, match, report)
        self._recalculate_accounts(entry, report)
        self._reverse_budget(entry, report)
        self._reverse_liability_payment(entry, report)

        if report.warnings:
            logger.warning(
                "%s %s deleted with %d warning(s): %s",
                table.value, entry_id, len(report.warnings),
                "; ".join(report.warnings),
            )
        return report

    # --- Steps ---

    def _resolve_adjustment(
        self, entry: EntrySnapshot, report: DeletionReport
    ) -> ReconciliationMatch | None:
        if entry.table not in ADJUSTABLE_TABLES:
            return None
        if not self.resolver.is_adjustment(entry):
            return None

        report.is_reconciliation_adjustment = True
        match = self.resolver.resolve(entry)
        if match is not None:
            report.reconciliation_id = match.reconciliation_id
            report.reconciliation_strategy = match.strategy
        return match

    def _remove_transaction_log(self, entry: EntrySnapshot) -> None:
        reference_type = REFERENCE_TYPE_BY_TABLE[entry.table]
        try:
            removed = self.balances.remove_transactions(entry.id, reference_type)
        except StoreError as e:
            # The recalculation in step 7 will still count the stale rows
            logger.warning(
                "Could not remove transaction log for %s %s: %s",
                entry.table.value, entry.id, e,
            )
            return
        logger.debug("Removed %d log row(s) for %s", removed, entry.id)

    def _remove_reconciliation_links(self, entry: EntrySnapshot) -> None:
        if entry.table not in ADJUSTABLE_TABLES:
            return
        for link_table in ("transaction_reconciliations", "reconciliation_items"):
            try:
                self.store.delete_where(link_table, transaction_id=entry.id)
            except StoreError as e:
                logger.warning(
                    "Could not remove %s rows for %s: %s", link_table, entry.id, e
                )

    def _update_book_balance(
        self,
        entry: EntrySnapshot,
        match: ReconciliationMatch | None,
        report: DeletionReport,
    ) -> None:
        if match is None:
            report.warnings.append(RECONCILIATION_NOT_FOUND_WARNING)
            return

        result = self.reconciliations.update_book_balance_after_deletion(
            match.reconciliation_id, entry.table, entry.amount
        )
        if result.status == BookBalanceStatus.UPDATED:
            report.book_balance = result.book_balance
        elif result.status == BookBalanceStatus.PRESERVED:
            report.book_balance = result.book_balance
            report.notices.append(BALANCE_PRESERVED_NOTICE)
        else:
            report.warnings.append(
                f"Reconciliation book balance not updated: {result.error}"
            )

    def _recalculate_accounts(self, entry: EntrySnapshot, report: DeletionReport) -> None:
        for account_id in entry.affected_account_ids:
            if self.balances.recalculate_balance(account_id) is None:
                report.warnings.append(
                    f"Balance of account {account_id} could not be recalculated"
                )

    def _reverse_budget(self, entry: EntrySnapshot, report: DeletionReport) -> None:
        if not entry.budget_item_id:
            return
        if not self.budgets.reverse_entry(entry.budget_item_id, entry.amount):
            report.warnings.append(
                f"Budget item {entry.budget_item_id} could not be updated"
            )

    def _reverse_liability_payment(
        self, entry: EntrySnapshot, report: DeletionReport
    ) -> None:
        if entry.table != EntryTable.EXPENDITURE or not entry.liability_id:
            return
        if not self.liabilities.reverse_payment(entry.liability_id, entry.amount):
            report.warnings.append(
                f"Liability {entry.liability_id} could not be updated"
            )
