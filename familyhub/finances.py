"""
Per-member finance documents under ``/family/<member>/finances/``.

Budgets are read-only here; transactions can be listed and appended.
"""

from __future__ import annotations

from familyhub.collection import CollectionService, ReadOnlyCollection
from familyhub.paths import BUDGETS_TEMPLATE, TRANSACTIONS_TEMPLATE


class BudgetService(ReadOnlyCollection):
    path_template = BUDGETS_TEMPLATE
    record_name = "Budget"


class TransactionService(CollectionService):
    path_template = TRANSACTIONS_TEMPLATE
    record_name = "Transaction"
