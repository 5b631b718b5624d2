"""
Account transaction log.

One row per posted effect on an account. Amounts are signed:
income and incoming transfers are positive, expenditure and
outgoing transfers are negative. The log is the source of truth
the balance recalculator sums.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from church_ledger.models.base import Base, new_id, enum_values
from church_ledger.models.enums import TransactionType, ReferenceType


class AccountTransaction(Base):
    __tablename__ = "account_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, default=dt.date.today)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="transaction_type_enum",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    # Polymorphic back-reference, no foreign key
    reference_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True
    )
    reference_type: Mapped[ReferenceType | None] = mapped_column(
        SAEnum(
            ReferenceType,
            name="reference_type_enum",
            values_callable=enum_values,
        ),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    account: Mapped["Account"] = relationship(back_populates="transactions")

    def __repr__(self) -> str:
        return (
            f"<AccountTransaction {self.transaction_type.value} "
            f"{self.amount} ref={self.reference_id}>"
        )
