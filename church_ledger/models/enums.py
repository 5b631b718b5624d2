"""
Shared enumerations for database models.

Values mirror the strings stored by the hosted schema, so rows
written by older code paths still map cleanly.
"""

import enum


class AccountType(str, enum.Enum):
    CASH = "cash"
    BANK = "bank"
    MOBILE_MONEY = "mobile_money"
    OTHER = "other"


class TransactionType(str, enum.Enum):
    """Kind of row in the account transaction log."""
    INCOME = "income"
    EXPENDITURE = "expenditure"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class ReferenceType(str, enum.Enum):
    """Which table a transaction log row was written for."""
    INCOME_ENTRY = "income_entry"
    EXPENDITURE_ENTRY = "expenditure_entry"
    ACCOUNT_TRANSFER = "account_transfer"
    LIABILITY_ENTRY = "liability_entry"


class LiabilityStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class BudgetStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CategoryType(str, enum.Enum):
    """Which side of the ledger a budget line tracks."""
    INCOME = "income"
    EXPENDITURE = "expenditure"


class ReconciliationStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class EntryTable(str, enum.Enum):
    """Tables whose rows can be deleted through the deletion orchestrator."""
    INCOME = "income_entries"
    EXPENDITURE = "expenditure_entries"
    LIABILITY = "liability_entries"
    TRANSFER = "account_transfers"


# Log reference type written for each deletable table
REFERENCE_TYPE_BY_TABLE: dict[EntryTable, ReferenceType] = {
    EntryTable.INCOME: ReferenceType.INCOME_ENTRY,
    EntryTable.EXPENDITURE: ReferenceType.EXPENDITURE_ENTRY,
    EntryTable.TRANSFER: ReferenceType.ACCOUNT_TRANSFER,
    EntryTable.LIABILITY: ReferenceType.LIABILITY_ENTRY,
}
