"""
Liability model.

Payments against a liability are realized as expenditure entries
carrying liability_id. amount_remaining is derived and kept in sync
by the LiabilityService.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, Date, DateTime, Numeric, Text, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from church_ledger.models.base import Base, new_id, enum_values
from church_ledger.models.enums import LiabilityStatus


class LiabilityEntry(Base):
    __tablename__ = "liability_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, default=dt.date.today)
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    creditor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    amount_remaining: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    due_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    status: Mapped[LiabilityStatus] = mapped_column(
        SAEnum(
            LiabilityStatus,
            name="liability_status_enum",
            values_callable=enum_values,
            create_constraint=True,
        ),
        nullable=False,
        default=LiabilityStatus.UNPAID,
    )
    is_loan: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<LiabilityEntry {self.creditor_name} "
            f"{self.amount_paid}/{self.total_amount} ({self.status.value})>"
        )
