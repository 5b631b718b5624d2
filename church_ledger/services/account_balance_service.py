"""
Account balance service — the account transaction log and the
balances derived from it.

The invariant this service owns:

    accounts.balance == opening_balance + sum(signed log amounts)

Income and incoming transfers count positive, expenditure and
outgoing transfers negative. Create and update flows keep the
balance current incrementally, which is cheap but can drift. The
recalculator rebuilds it from the log and is what deletion uses.

Nothing here raises across the service boundary for database
failures: callers get None (or False) and decide what to tell the
user.
"""

import datetime as dt
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from church_ledger.config import get_settings
from church_ledger.models.enums import TransactionType, ReferenceType
from church_ledger.store import LedgerStore, StoreError

logger = logging.getLogger(__name__)


OUTFLOW_TYPES = {TransactionType.EXPENDITURE, TransactionType.TRANSFER_OUT}

OPERATIONS = ("create", "update", "delete")


def signed_amount(transaction_type: TransactionType, amount) -> Decimal:
    """Log amount with the sign its transaction type implies."""
    magnitude = abs(Decimal(str(amount)))
    if transaction_type in OUTFLOW_TYPES:
        return -magnitude
    return magnitude


class AccountBalanceService:

    def __init__(self, db: Session, use_balance_function: bool | None = None):
        self.db = db
        self.store = LedgerStore(db)
        self.use_balance_function = (
            use_balance_function if use_balance_function is not None
            else get_settings().USE_BALANCE_FUNCTION
        )

    # --- Recalculation ---

    def recalculate_balance(self, account_id: str | None) -> Decimal | None:
        """
        Rebuild an account's balance from its transaction log.

        Tries the server-side aggregate first. If that is disabled,
        missing, or errors, fetches the log and sums it here. Returns
        the stored balance, or None if neither path succeeded.
        """
        if not account_id:
            return None

        if self.use_balance_function:
            try:
                balance = self.store.rpc(
                    "recalculate_account_balance", account_id=account_id
                )
            except StoreError as e:
                logger.warning(
                    "Server-side recalculation failed for account %s, "
                    "falling back to client-side sum: %s", account_id, e,
                )
            else:
                if balance is None:
                    logger.warning("Account %s not found", account_id)
                    return None
                logger.info("Account %s balance recalculated: %s", account_id, balance)
                return balance

        return self._recalculate_client_side(account_id)

    def _recalculate_client_side(self, account_id: str) -> Decimal | None:
        try:
            account = self.store.find_one("accounts", account_id)
            if account is None:
                logger.warning("Account %s not found", account_id)
                return None

            transactions = self.store.find(
                "account_transactions", account_id=account_id
            )
            total = sum(
                (signed_amount(tx.transaction_type, tx.amount) for tx in transactions),
                Decimal("0"),
            )
            balance = Decimal(str(account.opening_balance or 0)) + total

            self.store.update("accounts", account_id, {"balance": balance})
        except StoreError as e:
            logger.error("Could not recalculate account %s: %s", account_id, e)
            return None

        logger.info(
            "Account %s balance recalculated from %d transactions: %s",
            account_id, len(transactions), balance,
        )
        return balance

    def recalculate_all_balances(self) -> dict[str, Decimal | None]:
        """Recalculate every account. None marks the ones that failed."""
        try:
            accounts = self.store.find("accounts")
        except StoreError as e:
            logger.error("Could not list accounts: %s", e)
            return {}

        account_ids = [account.id for account in accounts]
        return {
            account_id: self.recalculate_balance(account_id)
            for account_id in account_ids
        }

    # --- Incremental updates ---

    def adjust_balance(
        self,
        account_id: str | None,
        amount,
        operation: str,
        entry_kind: TransactionType,
        old_amount=0,
    ) -> Decimal | None:
        """
        Move the stored balance for one entry change without a full rebuild.

        create applies the entry, delete reverses it, update reverses
        old_amount and applies amount. Returns the new balance, or None
        on failure or when there is no account.
        """
        if not account_id:
            return None
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown balance operation '{operation}'")

        new_effect = signed_amount(entry_kind, amount)
        old_effect = signed_amount(entry_kind, old_amount)

        try:
            account = self.store.find_one("accounts", account_id)
            if account is None:
                logger.warning("Account %s not found", account_id)
                return None

            balance = Decimal(str(account.balance or 0))
            if operation == "create":
                balance += new_effect
            elif operation == "update":
                balance = balance - old_effect + new_effect
            else:
                balance -= new_effect

            self.store.update("accounts", account_id, {"balance": balance})
        except StoreError as e:
            logger.error("Could not adjust balance of account %s: %s", account_id, e)
            return None

        return balance

    # --- Transaction log ---

    def ensure_transaction(
        self,
        account_id: str,
        amount,
        transaction_type: TransactionType,
        reference_id: str,
        reference_type: ReferenceType,
        date: dt.date | None = None,
        description: str | None = None,
    ) -> bool:
        """
        Write the log row for one entry's effect on one account.

        An existing row for the same account and reference is rewritten
        instead of duplicated.
        """
        values = {
            "amount": signed_amount(transaction_type, amount),
            "date": date or dt.date.today(),
            "description": description,
            "transaction_type": transaction_type,
        }
        try:
            existing = self.store.find(
                "account_transactions",
                account_id=account_id,
                reference_id=reference_id,
                reference_type=reference_type,
                limit=1,
            )
            if existing:
                self.store.update("account_transactions", existing[0].id, values)
            else:
                self.store.insert("account_transactions", {
                    **values,
                    "account_id": account_id,
                    "reference_id": reference_id,
                    "reference_type": reference_type,
                })
        except StoreError as e:
            logger.error(
                "Could not record transaction for %s %s: %s",
                reference_type.value, reference_id, e,
            )
            return False
        return True

    def remove_transactions(
        self, reference_id: str, reference_type: ReferenceType
    ) -> int:
        """
        Delete every log row written for one entry.

        Raises StoreError; the caller decides whether that matters.
        """
        return self.store.delete_where(
            "account_transactions",
            reference_id=reference_id,
            reference_type=reference_type,
        )
