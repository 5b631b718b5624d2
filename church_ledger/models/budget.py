"""
Budget and budget item models.

A budget item's actual_amount is the running total of the ledger
entries tagged against it; variance is planned_amount - actual_amount.
Both are derived values maintained by the BudgetService.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from church_ledger.models.base import Base, new_id, enum_values
from church_ledger.models.enums import BudgetStatus, CategoryType


class Budget(Base):
    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    status: Mapped[BudgetStatus] = mapped_column(
        SAEnum(
            BudgetStatus,
            name="budget_status_enum",
            values_callable=enum_values,
        ),
        nullable=False,
        default=BudgetStatus.DRAFT,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    items: Mapped[list["BudgetItem"]] = relationship(back_populates="budget")

    def __repr__(self) -> str:
        return f"<Budget {self.title} ({self.status.value})>"


class BudgetItem(Base):
    __tablename__ = "budget_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    budget_id: Mapped[str] = mapped_column(
        ForeignKey("budgets.id"), nullable=False, index=True
    )
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    category_type: Mapped[CategoryType] = mapped_column(
        SAEnum(
            CategoryType,
            name="category_type_enum",
            values_callable=enum_values,
        ),
        nullable=False,
        default=CategoryType.EXPENDITURE,
    )
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    planned_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    actual_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    variance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    budget: Mapped["Budget"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return (
            f"<BudgetItem planned={self.planned_amount} "
            f"actual={self.actual_amount}>"
        )
