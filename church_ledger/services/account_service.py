"""
Account service — the accounts money is posted to.

An account opens at its opening balance with an empty transaction
log. Only one account is the default at a time.
"""

import logging

from sqlalchemy.orm import Session

from church_ledger.models.account import Account
from church_ledger.schemas.accounts import AccountCreate
from church_ledger.store import LedgerStore

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)

    def create_account(self, request: AccountCreate) -> Account:
        """Create an account whose balance starts at its opening balance."""
        existing = self.store.find("accounts", name=request.name, limit=1)
        if existing:
            raise ValueError(f"Account named '{request.name}' already exists")

        if request.is_default:
            for account in self.store.find("accounts", is_default=True):
                self.store.update("accounts", account.id, {"is_default": False})

        account = self.store.insert("accounts", {
            **request.model_dump(),
            "balance": request.opening_balance,
        })
        logger.info(
            "Account %s opened: %s (%s)",
            account.id, account.name, account.account_type.value,
        )
        return account

    def get_account(self, account_id: str) -> Account:
        account = self.store.find_one("accounts", account_id)
        if not account:
            raise ValueError(f"Account {account_id} not found")
        return account
