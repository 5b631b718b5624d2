"""
Bank reconciliation models.

A reconciliation compares the bank's statement figure (bank_balance)
with the system figure (book_balance) for one account and period.
Entries are linked to a reconciliation through
transaction_reconciliations, the authoritative join table, or through
the older reconciliation_items table.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Date, DateTime, Numeric, Text, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from church_ledger.models.base import Base, new_id, enum_values
from church_ledger.models.enums import ReconciliationStatus


class BankReconciliation(Base):
    __tablename__ = "bank_reconciliations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    bank_balance: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    book_balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    status: Mapped[ReconciliationStatus] = mapped_column(
        SAEnum(
            ReconciliationStatus,
            name="reconciliation_status_enum",
            values_callable=enum_values,
        ),
        nullable=False,
        default=ReconciliationStatus.IN_PROGRESS,
    )
    reconciled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_manual_adjustments: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    # Book-balance corrections deferred while other adjustments still exist
    pending_adjustment_delta: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def difference(self) -> Decimal:
        return self.bank_balance - self.book_balance

    def __repr__(self) -> str:
        return (
            f"<BankReconciliation {self.id} bank={self.bank_balance} "
            f"book={self.book_balance}>"
        )


class TransactionReconciliation(Base):
    """Authoritative link between a ledger entry and a reconciliation."""

    __tablename__ = "transaction_reconciliations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    transaction_id: Mapped[str] = mapped_column(
        String(36), nullable=False, index=True
    )
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    reconciliation_id: Mapped[str] = mapped_column(
        ForeignKey("bank_reconciliations.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )


class ReconciliationItem(Base):
    """Legacy per-transaction reconciliation record."""

    __tablename__ = "reconciliation_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    reconciliation_id: Mapped[str] = mapped_column(
        ForeignKey("bank_reconciliations.id"), nullable=False, index=True
    )
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    transaction_id: Mapped[str] = mapped_column(
        String(36), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, default=dt.date.today)
    is_cleared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
