"""
Income and expenditure entries.

Both tables share the same shape. A row may be an ordinary posted
transaction or a reconciliation adjustment. Adjustment metadata was
added to the schema late and inconsistently, so the marker can be
any of: the explicit flag, a reconciliation_id, payment_method
"reconciliation", or a tag in the free-text description.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from church_ledger.models.base import Base, new_id


class LedgerEntryMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, default=dt.date.today)
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    payment_method: Mapped[str] = mapped_column(
        String(50), nullable=False, default="cash"
    )
    account_id: Mapped[str | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    # Soft references: the row may outlive the budget line or reconciliation
    budget_item_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True
    )
    reconciliation_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True
    )
    is_reconciliation_adjustment: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id} {self.amount}>"


class IncomeEntry(LedgerEntryMixin, Base):
    __tablename__ = "income_entries"

    member_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class ExpenditureEntry(LedgerEntryMixin, Base):
    __tablename__ = "expenditure_entries"

    recipient: Mapped[str | None] = mapped_column(String(255), nullable=True)
    liability_payment: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    liability_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True
    )
