"""
Pydantic schemas for income and expenditure entries and for the
deletion report returned to the finance screens.
"""

import datetime as dt
import enum
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from church_ledger.models.enums import EntryTable


# --- Request Schemas ---

class LedgerEntryCreate(BaseModel):
    """Fields shared by income and expenditure entries."""
    date: dt.date = Field(default_factory=dt.date.today)
    category_id: str | None = None
    description: str | None = Field(default=None, max_length=500)
    amount: Decimal = Field(gt=0, decimal_places=4)
    payment_method: str = Field(default="cash", max_length=50)
    account_id: str | None = None
    budget_item_id: str | None = None
    reconciliation_id: str | None = None
    is_reconciliation_adjustment: bool = False


class IncomeEntryCreate(LedgerEntryCreate):
    member_id: str | None = None


class ExpenditureEntryCreate(LedgerEntryCreate):
    recipient: str | None = Field(default=None, max_length=255)
    liability_id: str | None = None


class EntryAmountUpdate(BaseModel):
    amount: Decimal = Field(gt=0, decimal_places=4)


# --- Response Schemas ---

class IncomeEntryResponse(BaseModel):
    id: str
    date: dt.date
    category_id: str | None
    description: str | None
    amount: Decimal
    payment_method: str
    account_id: str | None
    budget_item_id: str | None
    reconciliation_id: str | None
    is_reconciliation_adjustment: bool
    member_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ExpenditureEntryResponse(BaseModel):
    id: str
    date: dt.date
    category_id: str | None
    description: str | None
    amount: Decimal
    payment_method: str
    account_id: str | None
    budget_item_id: str | None
    reconciliation_id: str | None
    is_reconciliation_adjustment: bool
    recipient: str | None
    liability_payment: bool
    liability_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class DeletionStatus(str, enum.Enum):
    DELETED = "deleted"
    DELETED_WITH_WARNINGS = "deleted_with_warnings"
    FAILED = "failed"


class DeletionReport(BaseModel):
    """
    Outcome of deleting one financial entry.

    deleted is True iff the row itself was removed. Bookkeeping
    steps that ran after the delete and failed show up in warnings;
    they never turn a deletion into a failure.
    """
    table: EntryTable
    entry_id: str
    deleted: bool = False
    is_reconciliation_adjustment: bool = False
    reconciliation_id: str | None = None
    reconciliation_strategy: str | None = None
    book_balance: Decimal | None = None
    warnings: list[str] = Field(default_factory=list)
    notices: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def status(self) -> DeletionStatus:
        if not self.deleted:
            return DeletionStatus.FAILED
        if self.warnings:
            return DeletionStatus.DELETED_WITH_WARNINGS
        return DeletionStatus.DELETED

    @property
    def notice(self) -> str:
        """The one-line message the finance screen shows as a toast."""
        if self.status == DeletionStatus.FAILED:
            return f"Failed to delete: {self.error or 'unknown error'}"
        if self.status == DeletionStatus.DELETED_WITH_WARNINGS:
            return "Entry deleted, but balances may not be accurate"
        return "Entry deleted successfully"


class DeletionReportResponse(BaseModel):
    table: EntryTable
    entry_id: str
    deleted: bool
    status: DeletionStatus
    notice: str
    is_reconciliation_adjustment: bool
    reconciliation_id: str | None
    reconciliation_strategy: str | None
    book_balance: Decimal | None
    warnings: list[str]
    notices: list[str]

    @classmethod
    def from_report(cls, report: DeletionReport) -> "DeletionReportResponse":
        return cls(
            **report.model_dump(exclude={"error"}),
            status=report.status,
            notice=report.notice,
        )


class BudgetSyncResponse(BaseModel):
    expenditure_id: str
    updated: bool


# --- Internal ---

class EntrySnapshot(BaseModel):
    """
    The fields of an entry that deletion needs, read before the row goes.

    Covers all four deletable tables. Fields a table does not have
    stay None.
    """
    table: EntryTable
    id: str
    amount: Decimal
    description: str | None = None
    payment_method: str | None = None
    account_id: str | None = None
    budget_item_id: str | None = None
    reconciliation_id: str | None = None
    is_reconciliation_adjustment: bool = False
    liability_id: str | None = None
    source_account_id: str | None = None
    destination_account_id: str | None = None

    @classmethod
    def from_row(cls, table: EntryTable, row) -> "EntrySnapshot":
        amount = getattr(row, "amount", None)
        if amount is None:
            amount = row.total_amount
        return cls(
            table=table,
            id=row.id,
            amount=amount,
            description=getattr(row, "description", None),
            payment_method=getattr(row, "payment_method", None),
            account_id=getattr(row, "account_id", None),
            budget_item_id=getattr(row, "budget_item_id", None),
            reconciliation_id=getattr(row, "reconciliation_id", None),
            is_reconciliation_adjustment=bool(
                getattr(row, "is_reconciliation_adjustment", False)
            ),
            liability_id=getattr(row, "liability_id", None),
            source_account_id=getattr(row, "source_account_id", None),
            destination_account_id=getattr(row, "destination_account_id", None),
        )

    @property
    def affected_account_ids(self) -> list[str]:
        """Accounts whose balance moves when this entry goes."""
        if self.table == EntryTable.TRANSFER:
            candidates = [self.source_account_id, self.destination_account_id]
        else:
            candidates = [self.account_id]
        return [account_id for account_id in candidates if account_id]
