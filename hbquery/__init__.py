from hbquery.aggregate import (
    UNCATEGORIZED, BudgetProgress, Interval, account_balance, budget_progress,
    budget_report, review, sum_amounts,
)
from hbquery.categories import full_path, resolve_category
from hbquery.errors import ConfigError, DecodeError, HBQueryError, ReferenceWarning
from hbquery.loader import Model, load
from hbquery.query import FilterSpec, filter_transactions

__all__ = [
    "UNCATEGORIZED", "BudgetProgress", "ConfigError", "DecodeError", "FilterSpec",
    "HBQueryError", "Interval", "Model", "ReferenceWarning", "account_balance",
    "budget_progress", "budget_report", "filter_transactions", "full_path", "load",
    "resolve_category", "review", "sum_amounts",
]
