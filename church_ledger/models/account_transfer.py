"""
Account transfer model.

A transfer moves money between two accounts. It is logged as a
transfer_out row on the source and a transfer_in row on the
destination.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from church_ledger.models.base import Base, new_id


class AccountTransfer(Base):
    __tablename__ = "account_transfers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, default=dt.date.today)
    source_account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    destination_account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<AccountTransfer {self.source_account_id} -> "
            f"{self.destination_account_id} {self.amount}>"
        )
