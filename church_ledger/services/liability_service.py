"""
Liability service — money owed and the payments made against it.

A payment is an expenditure entry carrying liability_id. Recording
or reversing one keeps amount_paid, amount_remaining and status in
step:

    unpaid   nothing paid
    partial  something paid, something remaining
    paid     nothing remaining
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from church_ledger.models.enums import LiabilityStatus
from church_ledger.models.liability import LiabilityEntry
from church_ledger.schemas.liabilities import LiabilityCreate
from church_ledger.store import LedgerStore, StoreError

logger = logging.getLogger(__name__)


ZERO = Decimal("0")


def liability_status(amount_paid: Decimal, total_amount: Decimal) -> LiabilityStatus:
    if amount_paid <= ZERO:
        return LiabilityStatus.UNPAID
    if amount_paid >= total_amount:
        return LiabilityStatus.PAID
    return LiabilityStatus.PARTIAL


class LiabilityService:

    def __init__(self, db: Session):
        self.db = db
        self.store = LedgerStore(db)

    def create_liability(self, request: LiabilityCreate) -> LiabilityEntry:
        liability = self.store.insert("liability_entries", {
            **request.model_dump(),
            "amount_paid": ZERO,
            "amount_remaining": request.total_amount,
            "status": LiabilityStatus.UNPAID,
        })
        logger.info(
            "Liability %s created: %s owed to %s",
            liability.id, liability.total_amount, liability.creditor_name,
        )
        return liability

    def get_liability(self, liability_id: str) -> LiabilityEntry:
        liability = self.store.find_one("liability_entries", liability_id)
        if not liability:
            raise ValueError(f"Liability {liability_id} not found")
        return liability

    def _apply_payment(self, liability_id: str, delta: Decimal) -> bool:
        try:
            liability = self.store.find_one("liability_entries", liability_id)
            if liability is None:
                logger.warning("Liability %s not found", liability_id)
                return False

            total = Decimal(str(liability.total_amount))
            paid = max(ZERO, Decimal(str(liability.amount_paid or 0)) + delta)
            remaining = max(ZERO, total - paid)
            status = liability_status(paid, total)

            self.store.update("liability_entries", liability_id, {
                "amount_paid": paid,
                "amount_remaining": remaining,
                "status": status,
            })
        except StoreError as e:
            logger.error("Could not update liability %s: %s", liability_id, e)
            return False

        logger.info(
            "Liability %s paid=%s remaining=%s (%s)",
            liability_id, paid, remaining, status.value,
        )
        return True

    def record_payment(self, liability_id: str, amount) -> bool:
        """Count an expenditure against the liability it pays."""
        return self._apply_payment(liability_id, Decimal(str(amount)))

    def reverse_payment(self, liability_id: str, amount) -> bool:
        """Undo a payment whose expenditure was deleted."""
        return self._apply_payment(liability_id, -Decimal(str(amount)))
