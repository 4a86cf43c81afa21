from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache, reduce
from typing import Iterable, Optional

from hbquery.domain import Transaction
from hbquery.loader import Model
from hbquery.query import FilterSpec, filter_transactions

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class Interval:
    """Closed date interval, both ends included."""
    since: date
    until: date

    @classmethod
    def month(cls, period: str) -> "Interval":
        """Interval covering a "YYYY-MM" period."""
        year, month = (int(p) for p in period.split("-"))
        first = date(year, month, 1)
        next_first = date(year + month // 12, month % 12 + 1, 1)
        return cls(first, next_first - timedelta(days=1))

    @classmethod
    def current_month(cls, today: Optional[date] = None) -> "Interval":
        today = today or date.today()
        return cls.month(f"{today.year}-{today.month:02d}")

    def months(self) -> tuple[tuple[int, int], ...]:
        return _months(self.since, self.until)


@lru_cache(maxsize=128)
def _months(since: date, until: date) -> tuple[tuple[int, int], ...]:
    result = []
    year, month = since.year, since.month
    while (year, month) <= (until.year, until.month):
        result.append((year, month))
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return tuple(result)


@dataclass(frozen=True)
class BudgetProgress:
    actual: int
    allocated: int
    ratio: Optional[float]   # None when no budget is set

    @property
    def has_budget(self) -> bool:
        return self.ratio is not None


def sum_amounts(transactions: Iterable[Transaction]) -> int:
    return reduce(lambda acc, t: acc + t.amount, transactions, 0)


def review(model: Model, spec: Optional[FilterSpec] = None, include_empty: bool = False) -> dict[str, int]:
    """Totals per category path for the transactions matching `spec`.

    Split transactions contribute each line to its own category. Lines with
    no category are totalled under UNCATEGORIZED, which sorts last.
    """
    spec = spec or FilterSpec()
    totals: dict[str, int] = defaultdict(int)
    uncategorized = None
    for t in filter_transactions(model, spec):
        for cat, amount in t.lines():
            if cat is None:
                uncategorized = (uncategorized or 0) + amount
            else:
                totals[model.paths[cat]] += amount

    if include_empty:
        keys = model.categories.keys() if spec.category is None else spec.category
        for key in keys:
            if key in model.paths:
                totals.setdefault(model.paths[key], 0)

    result = {path: totals[path] for path in sorted(totals) if path != UNCATEGORIZED}
    # a category literally named "Uncategorized" shares the bucket
    if uncategorized is not None or UNCATEGORIZED in totals:
        result[UNCATEGORIZED] = totals.get(UNCATEGORIZED, 0) + (uncategorized or 0)
    return result


def monthly_budget(model: Model, category: int, month: int) -> Optional[int]:
    """Budget of one category for a month (1..12); an every-month entry wins."""
    per_month = None
    for b in model.budgets:
        if b.category != category:
            continue
        if b.every_month:
            return b.amount
        if b.month == month:
            per_month = b.amount
    return per_month


def budgeted_categories(model: Model) -> frozenset[int]:
    return frozenset(b.category for b in model.budgets)


def allocated_amount(model: Model, categories: Iterable[int], interval: Interval) -> int:
    keys = set(categories)
    return sum(
        monthly_budget(model, key, month) or 0
        for key in keys
        for _, month in interval.months()
    )


def budget_progress(model: Model, categories: Iterable[int], interval: Interval) -> BudgetProgress:
    keys = frozenset(categories)
    spec = FilterSpec(category=keys, since=interval.since, until=interval.until)
    actual = sum_amounts(filter_transactions(model, spec))
    allocated = allocated_amount(model, keys, interval)
    ratio = actual / allocated if allocated else None
    return BudgetProgress(actual=actual, allocated=allocated, ratio=ratio)


def budget_report(model: Model, interval: Interval) -> dict[str, BudgetProgress]:
    """Progress of every budgeted category, keyed by category path."""
    report = {
        model.paths[key]: budget_progress(model, {key}, interval)
        for key in budgeted_categories(model)
    }
    return dict(sorted(report.items()))


def account_balance(model: Model, account: int, until: Optional[date] = None) -> int:
    initial = model.account(account).map(lambda a: a.initial).get_or_else(0)
    spec = FilterSpec(account=frozenset({account}), until=until)
    return initial + sum_amounts(filter_transactions(model, spec))
