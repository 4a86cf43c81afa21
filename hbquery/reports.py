import asyncio
from typing import Any, Dict, Iterable, List, Optional

from hbquery.aggregate import BudgetProgress, Interval, budget_progress, budget_report, review
from hbquery.loader import Model
from hbquery.query import FilterSpec


async def progress_by_month(model: Model, categories: Iterable[int], months: List[str]) -> Dict[str, BudgetProgress]:
    """Budget progress of a category set for each "YYYY-MM" month, computed concurrently.

    The model is read-only, so the per-month tasks share it without locking.
    """
    keys = frozenset(categories)

    async def month_progress(month: str) -> tuple[str, BudgetProgress]:
        result = budget_progress(model, keys, Interval.month(month))
        await asyncio.sleep(0)
        return month, result

    results = await asyncio.gather(*(month_progress(m) for m in months))
    return {k: v for k, v in results}


async def overview(model: Model, interval: Interval, spec: Optional[FilterSpec] = None) -> Dict[str, Any]:
    """Category review and budget report over the same interval, side by side."""
    spec = spec or FilterSpec(since=interval.since, until=interval.until)

    async def review_task() -> Dict[str, int]:
        await asyncio.sleep(0)
        return review(model, spec)

    async def budget_task() -> Dict[str, BudgetProgress]:
        await asyncio.sleep(0)
        return budget_report(model, interval)

    totals, budgets = await asyncio.gather(review_task(), budget_task())
    return {"review": totals, "budget": budgets}
