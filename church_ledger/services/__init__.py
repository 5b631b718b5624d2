"""Business logic services."""

from church_ledger.services.account_service import AccountService
from church_ledger.services.account_balance_service import AccountBalanceService
from church_ledger.services.budget_service import BudgetService
from church_ledger.services.liability_service import LiabilityService
from church_ledger.services.entry_service import EntryService
from church_ledger.services.transfer_service import TransferService
from church_ledger.services.reconciliation_resolver import ReconciliationResolver
from church_ledger.services.reconciliation_service import ReconciliationService
from church_ledger.services.deletion_service import EntryDeletionService

__all__ = [
    "AccountService",
    "AccountBalanceService",
    "BudgetService",
    "LiabilityService",
    "EntryService",
    "TransferService",
    "ReconciliationResolver",
    "ReconciliationService",
    "EntryDeletionService",
]
