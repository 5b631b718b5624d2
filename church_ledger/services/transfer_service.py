"""
Transfer service — moving money between two accounts.

A transfer is one account_transfers row and two log rows: a
transfer_out on the source and a transfer_in on the destination.
Both balances are then rebuilt from their logs.
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from church_ledger.models.account import Account
from church_ledger.models.account_transfer import AccountTransfer
from church_ledger.models.enums import TransactionType, ReferenceType
from church_ledger.schemas.accounts import TransferCreate
from church_ledger.services.account_balance_service import AccountBalanceService
from church_ledger.store import LedgerStore

logger = logging.getLogger(__name__)


class TransferService:

    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)
        self.balances = AccountBalanceService(db)

    def _validate_account(self, account_id: str) -> Account:
        account = self.store.find_one("accounts", account_id)
        if not account:
            raise ValueError(f"Account {account_id} not found")
        return account

    def create_transfer(self, request: TransferCreate) -> AccountTransfer:
        """
        Move request.amount from the source account to the destination.

        Raises ValueError if the accounts are the same, either does
        not exist, or the source cannot cover the amount.
        """
        if request.source_account_id == request.destination_account_id:
            raise ValueError("Cannot transfer to the same account")

        source = self._validate_account(request.source_account_id)
        self._validate_account(request.destination_account_id)

        available = Decimal(str(source.balance))
        if available < request.amount:
            raise ValueError(
                f"Insufficient balance. Available: {available}, "
                f"Requested: {request.amount}"
            )

        transfer = self.store.insert("account_transfers", request.model_dump())

        legs = [
            (request.source_account_id, TransactionType.TRANSFER_OUT),
            (request.destination_account_id, TransactionType.TRANSFER_IN),
        ]
        for account_id, transaction_type in legs:
            self.balances.ensure_transaction(
                account_id=account_id,
                amount=request.amount,
                transaction_type=transaction_type,
                reference_id=transfer.id,
                reference_type=ReferenceType.ACCOUNT_TRANSFER,
                date=request.date,
                description=request.description,
            )
            if self.balances.recalculate_balance(account_id) is None:
                logger.warning("Balance of account %s not recalculated", account_id)

        logger.info(
            "Transfer %s: %s from %s to %s",
            transfer.id, request.amount,
            request.source_account_id, request.destination_account_id,
        )
        return transfer
