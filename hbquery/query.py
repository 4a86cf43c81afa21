import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Iterator, Optional

from hbquery.domain import Account, Category, Payee, PayMode, Transaction, TransactionStatus, TransactionType
from hbquery.loader import Model

Predicate = Callable[[Transaction], bool]


@dataclass(frozen=True)
class FilterSpec:
    """Options for `filter_transactions`; None means "no constraint".

    An empty `category` set is a constraint that nothing satisfies, which is
    what an unmatched category name resolves to.
    """
    category: Optional[frozenset[int]] = None
    since: Optional[date] = None
    until: Optional[date] = None
    text: Optional[str] = None
    account: Optional[frozenset[int]] = None
    payee: Optional[frozenset[int]] = None
    status: Optional[frozenset[TransactionStatus]] = None
    paymode: Optional[frozenset[PayMode]] = None
    type: Optional[frozenset[TransactionType]] = None
    min_amount: Optional[int] = None
    max_amount: Optional[int] = None


def by_date_range(since: Optional[date], until: Optional[date]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return (since is None or since <= t.date) and (until is None or t.date <= until)

    return _filter


def by_amount_range(low: Optional[int], high: Optional[int]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return (low is None or low <= t.amount) and (high is None or t.amount <= high)

    return _filter


def by_account(keys: frozenset[int]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.account in keys

    return _filter


def by_payee(keys: frozenset[int]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.payee in keys

    return _filter


def by_status(statuses: frozenset[TransactionStatus]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.status in statuses

    return _filter


def by_paymode(modes: frozenset[PayMode]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.paymode in modes

    return _filter


def by_type(types: frozenset[TransactionType]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.type in types

    return _filter


def by_text(model: Model, text: str) -> Predicate:
    needle = text.casefold()

    def _filter(t: Transaction) -> bool:
        haystack = [t.memo, t.info, *t.tags, *(s.memo for s in t.splits)]
        haystack.append(model.payee(t.payee).map(lambda p: p.name).get_or_else(""))
        return any(needle in h.casefold() for h in haystack)

    return _filter


def in_categories(t: Transaction, keys: frozenset) -> Optional[Transaction]:
    """`t` itself, its split lines within `keys`, or None."""
    if t.is_split:
        return t.narrowed(keys)
    return t if t.category in keys else None


def predicates(model: Model, spec: FilterSpec) -> list[Predicate]:
    preds = []
    if spec.since is not None or spec.until is not None:
        preds.append(by_date_range(spec.since, spec.until))
    if spec.account is not None:
        preds.append(by_account(spec.account))
    if spec.payee is not None:
        preds.append(by_payee(spec.payee))
    if spec.status is not None:
        preds.append(by_status(spec.status))
    if spec.paymode is not None:
        preds.append(by_paymode(spec.paymode))
    if spec.type is not None:
        preds.append(by_type(spec.type))
    if spec.text:
        preds.append(by_text(model, spec.text))
    if spec.min_amount is not None or spec.max_amount is not None:
        preds.append(by_amount_range(spec.min_amount, spec.max_amount))
    return preds


class TransactionQuery:
    """Transactions matching a spec, computed afresh on every iteration."""

    def __init__(self, model: Model, spec: FilterSpec):
        self.model = model
        self.spec = spec

    def __iter__(self) -> Iterator[Transaction]:
        cats = self.spec.category
        preds = predicates(self.model, self.spec)
        for t in self.model.transactions:
            if cats is not None:
                t = in_categories(t, cats)
                if t is None:
                    continue
            if all(p(t) for p in preds):
                yield t

    def __repr__(self) -> str:
        return f"TransactionQuery({self.spec!r})"


def filter_transactions(model: Model, spec: Optional[FilterSpec] = None) -> TransactionQuery:
    return TransactionQuery(model, spec or FilterSpec())


def _search(items: Iterable, pattern: str, name: Callable) -> tuple:
    rx = re.compile(pattern)
    return tuple(sorted((i for i in items if rx.search(name(i))), key=name))


def accounts_matching(model: Model, pattern: str = "") -> tuple[Account, ...]:
    return _search(model.accounts.values(), pattern, lambda a: a.name)


def payees_matching(model: Model, pattern: str = "") -> tuple[Payee, ...]:
    return _search(model.payees.values(), pattern, lambda p: p.name)


def categories_matching(model: Model, pattern: str = "") -> tuple[Category, ...]:
    """Categories whose full path matches a regular expression."""
    return _search(model.categories.values(), pattern, lambda c: model.paths[c.key])
