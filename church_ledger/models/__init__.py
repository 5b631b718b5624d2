"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from church_ledger.models.base import Base
from church_ledger.models.enums import (
    AccountType,
    TransactionType,
    ReferenceType,
    LiabilityStatus,
    BudgetStatus,
    CategoryType,
    ReconciliationStatus,
    EntryTable,
)
from church_ledger.models.account import Account
from church_ledger.models.account_transaction import AccountTransaction
from church_ledger.models.account_transfer import AccountTransfer
from church_ledger.models.ledger_entry import IncomeEntry, ExpenditureEntry
from church_ledger.models.liability import LiabilityEntry
from church_ledger.models.budget import Budget, BudgetItem
from church_ledger.models.reconciliation import (
    BankReconciliation,
    TransactionReconciliation,
    ReconciliationItem,
)

__all__ = [
    "Base",
    "AccountType",
    "TransactionType",
    "ReferenceType",
    "LiabilityStatus",
    "BudgetStatus",
    "CategoryType",
    "ReconciliationStatus",
    "EntryTable",
    "Account",
    "AccountTransaction",
    "AccountTransfer",
    "IncomeEntry",
    "ExpenditureEntry",
    "LiabilityEntry",
    "Budget",
    "BudgetItem",
    "BankReconciliation",
    "TransactionReconciliation",
    "ReconciliationItem",
]
