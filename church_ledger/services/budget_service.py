"""
Budget service — budgets, budget lines, and their actual amounts.

A budget item's actual_amount tracks the entries tagged against it.
Creating an entry adds its amount, deleting one subtracts it, and
variance is always recomputed as planned_amount - actual_amount.
The expenditure sync instead rebuilds actual_amount from the entries
themselves, so it can run any number of times.

A missing budget item is not an error for the sync operations:
entries keep their budget_item_id after a budget line is removed,
and there is nothing left to update.
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from church_ledger.models.budget import Budget, BudgetItem
from church_ledger.schemas.budgets import BudgetCreate, BudgetItemCreate
from church_ledger.store import LedgerStore, StoreError

logger = logging.getLogger(__name__)


ZERO = Decimal("0")


def _money(value) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


class BudgetService:

    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)

    # --- Budgets ---

    def create_budget(self, request: BudgetCreate) -> Budget:
        budget = self.store.insert("budgets", request.model_dump())
        logger.info("Budget %s created: %s", budget.id, budget.title)
        return budget

    def get_budget(self, budget_id: str) -> Budget:
        budget = self.store.find_one("budgets", budget_id)
        if not budget:
            raise ValueError(f"Budget {budget_id} not found")
        return budget

    def add_item(self, budget_id: str, request: BudgetItemCreate) -> BudgetItem:
        """Add a budget line. It starts with nothing spent against it."""
        self.get_budget(budget_id)
        return self.store.insert("budget_items", {
            **request.model_dump(),
            "budget_id": budget_id,
            "actual_amount": ZERO,
            "variance": request.planned_amount,
        })

    def get_item(self, item_id: str) -> BudgetItem:
        item = self.store.find_one("budget_items", item_id)
        if not item:
            raise ValueError(f"Budget item {item_id} not found")
        return item

    # --- Actual amount sync ---

    def _shift_actual(self, budget_item_id: str, delta: Decimal) -> bool:
        """
        Move actual_amount by delta, clamped at zero, and recompute variance.

        Returns True when the item was updated or does not exist.
        """
        try:
            item = self.store.find_one("budget_items", budget_item_id)
            if item is None:
                logger.info(
                    "Budget item %s no longer exists, nothing to update",
                    budget_item_id,
                )
                return True

            actual = max(ZERO, _money(item.actual_amount) + delta)
            variance = _money(item.planned_amount) - actual
            self.store.update("budget_items", budget_item_id, {
                "actual_amount": actual,
                "variance": variance,
            })
        except StoreError as e:
            logger.error("Could not update budget item %s: %s", budget_item_id, e)
            return False

        logger.info(
            "Budget item %s actual=%s variance=%s", budget_item_id, actual, variance
        )
        return True

    def apply_entry(self, budget_item_id: str | None, amount) -> bool:
        """Count a newly created entry against its budget line."""
        if not budget_item_id:
            return True
        return self._shift_actual(budget_item_id, _money(amount))

    def reverse_entry(self, budget_item_id: str | None, amount) -> bool:
        """Take a deleted entry back out of its budget line."""
        if not budget_item_id:
            return True
        return self._shift_actual(budget_item_id, -_money(amount))

    def change_entry_amount(
        self, budget_item_id: str | None, old_amount, new_amount
    ) -> bool:
        if not budget_item_id:
            return True
        return self._shift_actual(
            budget_item_id, _money(new_amount) - _money(old_amount)
        )

    def recompute_actual(self, budget_item_id: str | None) -> bool:
        """
        Set actual_amount to the sum of every entry tagged with the item.

        Safe to repeat. A missing item is a successful no-op.
        """
        if not budget_item_id:
            return True
        try:
            item = self.store.find_one("budget_items", budget_item_id)
            if item is None:
                logger.info(
                    "Budget item %s no longer exists, nothing to update",
                    budget_item_id,
                )
                return True

            entries = [
                *self.store.find("income_entries", budget_item_id=budget_item_id),
                *self.store.find("expenditure_entries", budget_item_id=budget_item_id),
            ]
            actual = sum((_money(entry.amount) for entry in entries), ZERO)
            variance = _money(item.planned_amount) - actual
            self.store.update("budget_items", budget_item_id, {
                "actual_amount": actual,
                "variance": variance,
            })
        except StoreError as e:
            logger.error("Could not update budget item %s: %s", budget_item_id, e)
            return False

        logger.info(
            "Budget item %s actual=%s variance=%s (from %d entries)",
            budget_item_id, actual, variance, len(entries),
        )
        return True

    def update_budget_item_for_expenditure(self, expenditure_id: str) -> bool:
        """
        Bring a stored expenditure's budget line up to date.

        The line is recomputed from its entries, so calling this again
        for the same expenditure changes nothing. Returns False if the
        expenditure cannot be found or the item update fails. An
        expenditure without a budget line, or whose budget line is
        gone, is a successful no-op.
        """
        try:
            expenditure = self.store.find_one("expenditure_entries", expenditure_id)
        except StoreError as e:
            logger.error("Could not load expenditure %s: %s", expenditure_id, e)
            return False

        if expenditure is None:
            logger.warning("Expenditure %s not found", expenditure_id)
            return False

        return self.recompute_actual(expenditure.budget_item_id)
