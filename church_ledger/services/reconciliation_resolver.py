"""
Reconciliation resolver — is this entry an adjustment, and whose?

Adjustment entries carry their reconciliation in several places
depending on which version of the finance screens wrote them. The
resolver tries each place in a fixed order and stops at the first
that yields an id:

    1. entry_field            the entry's own reconciliation_id
    2. transaction_link       transaction_reconciliations row
    3. reconciliation_item    legacy reconciliation_items row
    4. description_id         "Reconciliation ID: <uuid>" in the text
    5. description_account    "account <id>" in the text, then that
                              account's latest reconciliation
    6. entry_account          the entry's account_id, then that
                              account's latest reconciliation
    7. latest                 the latest reconciliation of all

A strategy that hits a store error is logged and skipped; it never
ends the cascade.
"""

import logging
import re
from typing import Callable

from sqlalchemy import or_, and_, select
from sqlalchemy.orm import Session

from church_ledger.models.reconciliation import (
    BankReconciliation,
    TransactionReconciliation,
)
from church_ledger.schemas.entries import EntrySnapshot
from church_ledger.schemas.reconciliation import ReconciliationMatch
from church_ledger.store import LedgerStore, StoreError

logger = logging.getLogger(__name__)


ADJUSTMENT_TAG = "[RECONCILIATION]"
ADJUSTMENT_PAYMENT_METHOD = "reconciliation"

RECONCILIATION_ID_PATTERN = re.compile(
    r"reconciliation\s+id:\s*([a-f0-9-]+)", re.IGNORECASE
)
ACCOUNT_ID_PATTERN = re.compile(r"account\s+([a-f0-9-]+)", re.IGNORECASE)

UUID_LENGTH = 36
# Shorter tokens are too ambiguous to prefix-match against account ids
MIN_ACCOUNT_PREFIX = 8


# --- Classification ---

def is_reconciliation_adjustment(
    description: str | None = None,
    payment_method: str | None = None,
    reconciliation_id: str | None = None,
    flag: bool = False,
) -> bool:
    """True if any adjustment marker is present."""
    text = description or ""
    lowered = text.lower()
    return (
        ADJUSTMENT_TAG in text
        or "reconciliation adjustment" in lowered
        or "reconcil" in lowered
        or payment_method == ADJUSTMENT_PAYMENT_METHOD
        or reconciliation_id is not None
        or bool(flag)
    )


def adjustment_criteria(model):
    """
    SQL form of is_reconciliation_adjustment for an entry model.

    "reconcil" also covers the tag and the "reconciliation adjustment"
    phrase, so one pattern stands in for all three description markers.
    """
    return or_(
        model.description.ilike("%reconcil%"),
        model.payment_method == ADJUSTMENT_PAYMENT_METHOD,
        model.reconciliation_id.isnot(None),
        model.is_reconciliation_adjustment.is_(True),
    )


def linked_to_reconciliation(model, reconciliation_id: str):
    """Entries of model tied to reconciliation_id by field or by link row."""
    linked_ids = select(TransactionReconciliation.transaction_id).where(
        TransactionReconciliation.reconciliation_id == reconciliation_id
    )
    return or_(
        model.reconciliation_id == reconciliation_id,
        and_(model.id.in_(linked_ids), adjustment_criteria(model)),
    )


# --- Strategies ---

Strategy = Callable[[LedgerStore, EntrySnapshot], str | None]


def from_entry_field(store: LedgerStore, entry: EntrySnapshot) -> str | None:
    return entry.reconciliation_id


def from_transaction_link(store: LedgerStore, entry: EntrySnapshot) -> str | None:
    links = store.find("transaction_reconciliations", transaction_id=entry.id, limit=1)
    return links[0].reconciliation_id if links else None


def from_reconciliation_item(store: LedgerStore, entry: EntrySnapshot) -> str | None:
    items = store.find("reconciliation_items", transaction_id=entry.id, limit=1)
    return items[0].reconciliation_id if items else None


def from_description_id(store: LedgerStore, entry: EntrySnapshot) -> str | None:
    match = RECONCILIATION_ID_PATTERN.search(entry.description or "")
    if not match:
        return None
    candidate = match.group(1).lower()
    reconciliation = store.find_one("bank_reconciliations", candidate)
    return reconciliation.id if reconciliation else None


def from_description_account(store: LedgerStore, entry: EntrySnapshot) -> str | None:
    match = ACCOUNT_ID_PATTERN.search(entry.description or "")
    if not match:
        return None
    token = match.group(1).lower()

    if len(token) >= UUID_LENGTH:
        criterion = BankReconciliation.account_id == token
    elif len(token) >= MIN_ACCOUNT_PREFIX:
        criterion = BankReconciliation.account_id.like(f"{token}%")
    else:
        return None

    reconciliation = store.latest("bank_reconciliations", criterion)
    return reconciliation.id if reconciliation else None


def from_entry_account(store: LedgerStore, entry: EntrySnapshot) -> str | None:
    if not entry.account_id:
        return None
    reconciliation = store.latest("bank_reconciliations", account_id=entry.account_id)
    return reconciliation.id if reconciliation else None


def from_latest(store: LedgerStore, entry: EntrySnapshot) -> str | None:
    reconciliation = store.latest("bank_reconciliations")
    return reconciliation.id if reconciliation else None


RESOLUTION_STRATEGIES: list[tuple[str, Strategy]] = [
    ("entry_field", from_entry_field),
    ("transaction_link", from_transaction_link),
    ("reconciliation_item", from_reconciliation_item),
    ("description_id", from_description_id),
    ("description_account", from_description_account),
    ("entry_account", from_entry_account),
    ("latest", from_latest),
]


def first_match(
    strategies: list[tuple[str, Strategy]],
    store: LedgerStore,
    entry: EntrySnapshot,
) -> ReconciliationMatch | None:
    for name, strategy in strategies:
        try:
            reconciliation_id = strategy(store, entry)
        except StoreError as e:
            logger.warning(
                "Reconciliation lookup '%s' failed for entry %s: %s",
                name, entry.id, e,
            )
            continue
        if not reconciliation_id:
            logger.debug("Lookup '%s' found nothing for entry %s", name, entry.id)
            continue
        logger.info(
            "Entry %s belongs to reconciliation %s (found by %s)",
            entry.id, reconciliation_id, name,
        )
        return ReconciliationMatch(reconciliation_id=reconciliation_id, strategy=name)
    return None


class ReconciliationResolver:

    def __init__(self, db: Session, strategies: list[tuple[str, Strategy]] | None = None):
        self.db = db
        self.store = LedgerStore(db)
        self.strategies = strategies if strategies is not None else RESOLUTION_STRATEGIES

    @staticmethod
    def is_adjustment(entry: EntrySnapshot) -> bool:
        return is_reconciliation_adjustment(
            description=entry.description,
            payment_method=entry.payment_method,
            reconciliation_id=entry.reconciliation_id,
            flag=entry.is_reconciliation_adjustment,
        )

    def resolve(self, entry: EntrySnapshot) -> ReconciliationMatch | None:
        """The entry's reconciliation, or None if no strategy finds one."""
        match = first_match(self.strategies, self.store, entry)
        if match is None:
            logger.warning("No reconciliation found for entry %s", entry.id)
        return match
