import logging
import os
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from hbquery.decoder import (
    AccountRecord, BudgetRecord, CategoryRecord, CurrencyRecord, PayeeRecord,
    PropertiesRecord, Record, TransactionRecord, decode,
)
from hbquery.domain import (
    Account, AccountType, BudgetEntry, Category, Currency, PayMode, Payee,
    Properties, Split, Transaction, TransactionStatus,
)
from hbquery.errors import DecodeError, ReferenceWarning
from hbquery.functional import Maybe, check_reference, lookup

logger = logging.getLogger(__name__)

DEFAULT_FRAC = 2


@dataclass(frozen=True)
class Model:
    """The whole database, read-only once built."""
    properties: Properties
    currencies: Mapping[int, Currency]
    accounts: Mapping[int, Account]
    payees: Mapping[int, Payee]
    categories: Mapping[int, Category]
    transactions: tuple[Transaction, ...]
    budgets: tuple[BudgetEntry, ...]
    paths: Mapping[int, str]     # category key -> "Parent:Child"
    warnings: tuple[ReferenceWarning, ...] = ()

    def category(self, key: Optional[int]) -> Maybe[Category]:
        return lookup(self.categories, key)

    def payee(self, key: Optional[int]) -> Maybe[Payee]:
        return lookup(self.payees, key)

    def account(self, key: Optional[int]) -> Maybe[Account]:
        return lookup(self.accounts, key)


def to_minor(value: Decimal, frac: int) -> int:
    return int(value.scaleb(frac).to_integral_value(rounding=ROUND_HALF_UP))


def _enum(cls, value: int, default):
    try:
        return cls(value)
    except ValueError:
        return default


def _register(table: dict, record, kind: str) -> None:
    if record.key in table:
        raise DecodeError(f"duplicate {kind} key {record.key}", record={"kind": kind, "key": record.key})
    table[record.key] = record


class _Resolver:
    """Second-pass reference checks; collects a warning per dangling key."""

    def __init__(self):
        self.warnings: list[ReferenceWarning] = []

    def ref(self, table: Mapping[int, object], key: Optional[int], kind: str, source: str) -> Optional[int]:
        result = check_reference(table, key, kind, source)
        if result.is_left():
            warning = result.get_error()
            logger.warning("%s; treating it as absent", warning)
            self.warnings.append(warning)
        return result.get_or_else(None)


def _category_paths(categories: Mapping[int, Category]) -> dict[int, str]:
    paths: dict[int, str] = {}
    for key in categories:
        chain = []
        seen = set()
        node: Optional[int] = key
        while node is not None and node not in paths:
            if node in seen:
                raise DecodeError(
                    f"category cycle through key {node}",
                    record={"kind": "cat", "key": node, "name": categories[node].name},
                )
            seen.add(node)
            chain.append(node)
            node = categories[node].parent
        prefix = paths[node] if node is not None else None
        for k in reversed(chain):
            name = categories[k].name
            prefix = name if prefix is None else f"{prefix}:{name}"
            paths[k] = prefix
    return paths


def build_model(records: Iterable[Record]) -> Model:
    """Turn decoded records into a `Model`.

    Entities are registered first and cross references resolved afterwards,
    so a child category may precede its parent in the file.
    """
    properties = Properties()
    currencies: dict[int, CurrencyRecord] = {}
    accounts: dict[int, AccountRecord] = {}
    payees: dict[int, PayeeRecord] = {}
    cat_records: dict[int, CategoryRecord] = {}
    budget_records: list[BudgetRecord] = []
    txn_records: list[TransactionRecord] = []

    for r in records:
        if isinstance(r, PropertiesRecord):
            properties = Properties(title=r.title, currency=r.currency, version=r.version)
        elif isinstance(r, CurrencyRecord):
            _register(currencies, r, "cur")
        elif isinstance(r, AccountRecord):
            _register(accounts, r, "account")
        elif isinstance(r, PayeeRecord):
            _register(payees, r, "pay")
        elif isinstance(r, CategoryRecord):
            _register(cat_records, r, "cat")
        elif isinstance(r, BudgetRecord):
            budget_records.append(r)
        elif isinstance(r, TransactionRecord):
            txn_records.append(r)

    resolve = _Resolver()
    currency_map = {
        k: Currency(key=k, iso=c.iso, symbol=c.symbol, name=c.name, frac=c.frac)
        for k, c in currencies.items()
    }
    base_curr = resolve.ref(currency_map, properties.currency, "currency", "properties")
    base_frac = lookup(currency_map, base_curr).map(lambda c: c.frac).get_or_else(DEFAULT_FRAC)

    account_map: dict[int, Account] = {}
    for k, a in accounts.items():
        curr = resolve.ref(currency_map, a.currency, "currency", f"account {k}")
        frac = lookup(currency_map, curr).map(lambda c: c.frac).get_or_else(base_frac)
        account_map[k] = Account(
            key=k,
            name=a.name,
            currency=curr,
            type=_enum(AccountType, a.type, AccountType.NONE),
            initial=to_minor(a.initial, frac),
            flags=a.flags,
        )

    def frac_of(account_key: Optional[int]) -> int:
        return (
            lookup(account_map, account_key)
            .bind(lambda a: lookup(currency_map, a.currency))
            .map(lambda c: c.frac)
            .get_or_else(base_frac)
        )

    payee_map = {k: Payee(key=k, name=p.name) for k, p in payees.items()}

    category_map: dict[int, Category] = {}
    for k, c in cat_records.items():
        parent = resolve.ref(cat_records, c.parent, "category", f"category {k}")
        category_map[k] = Category(key=k, name=c.name, parent=parent, flags=c.flags)
    paths = _category_paths(category_map)

    budgets = []
    for b in budget_records:
        if resolve.ref(category_map, b.category, "category", f"budget of category {b.category}") is None:
            continue
        budgets.append(BudgetEntry(category=b.category, month=b.month, amount=to_minor(b.amount, base_frac)))

    transactions = []
    for t in txn_records:
        source = f"transaction {t.index}"
        account = resolve.ref(account_map, t.account, "account", source)
        frac = frac_of(account)
        splits = tuple(
            Split(
                category=resolve.ref(category_map, s.category, "category", source),
                amount=to_minor(s.amount, frac),
                memo=s.memo,
            )
            for s in t.splits
        )
        transactions.append(Transaction(
            index=t.index,
            date=t.date,
            amount=sum(s.amount for s in splits) if splits else to_minor(t.amount, frac),
            account=account,
            category=resolve.ref(category_map, t.category, "category", source),
            payee=resolve.ref(payee_map, t.payee, "payee", source),
            memo=t.memo,
            info=t.info,
            tags=t.tags,
            status=_enum(TransactionStatus, t.status, TransactionStatus.NONE),
            paymode=_enum(PayMode, t.paymode, PayMode.NONE),
            transfer_account=resolve.ref(account_map, t.transfer_account, "account", source),
            splits=splits,
        ))

    logger.debug(
        "loaded %d accounts, %d categories, %d payees, %d transactions, %d budget entries",
        len(account_map), len(category_map), len(payee_map), len(transactions), len(budgets),
    )
    return Model(
        properties=properties,
        currencies=MappingProxyType(currency_map),
        accounts=MappingProxyType(account_map),
        payees=MappingProxyType(payee_map),
        categories=MappingProxyType(category_map),
        transactions=tuple(transactions),
        budgets=tuple(budgets),
        paths=MappingProxyType(paths),
        warnings=tuple(resolve.warnings),
    )


def load(path: Union[str, os.PathLike]) -> Model:
    """Read and decode a HomeBank file. Raises DecodeError if it cannot be parsed."""
    records = decode(path)
    try:
        return build_model(records)
    except DecodeError as e:
        if e.path is None:
            e.path = os.fspath(path)
        raise
