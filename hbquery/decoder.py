"""Single-pass reader for HomeBank ``.xhb`` files.

The file is a flat XML document: a ``<homebank>`` root holding one element per
record (``cur``, ``account``, ``pay``, ``cat``, ``ope``...), with every field
stored as an attribute. ``decode`` turns it into typed records that still
carry raw keys and decimal amounts; resolving references and converting
amounts to minor units is the loader's job.
"""
import io
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import BinaryIO, Optional, Union

from hbquery.errors import DecodeError

ROOT_TAG = "homebank"
SPLIT_SEPARATOR = "||"
BUDGET_ATTRS = tuple(f"b{i}" for i in range(13))

# HomeBank stores dates as day numbers with day 1 = 0001-01-01
MIN_DATE = date(1900, 1, 1)
MAX_DATE = date(2200, 12, 31)

# recognised but not needed for querying
IGNORED_KINDS = frozenset({"grp", "tag", "asg", "fav"})


@dataclass(frozen=True)
class PropertiesRecord:
    title: str
    currency: Optional[int]
    version: str


@dataclass(frozen=True)
class CurrencyRecord:
    key: int
    iso: str
    symbol: str
    name: str
    frac: int


@dataclass(frozen=True)
class AccountRecord:
    key: int
    name: str
    currency: Optional[int]
    type: int
    flags: int
    initial: Decimal


@dataclass(frozen=True)
class PayeeRecord:
    key: int
    name: str


@dataclass(frozen=True)
class CategoryRecord:
    key: int
    name: str
    parent: Optional[int]
    flags: int


@dataclass(frozen=True)
class BudgetRecord:
    category: int
    month: int
    amount: Decimal


@dataclass(frozen=True)
class SplitRecord:
    category: Optional[int]
    amount: Decimal
    memo: str


@dataclass(frozen=True)
class TransactionRecord:
    index: int
    date: date
    amount: Decimal
    account: Optional[int]
    category: Optional[int]
    payee: Optional[int]
    memo: str
    info: str
    tags: tuple[str, ...]
    status: int
    paymode: int
    transfer_account: Optional[int]
    splits: tuple[SplitRecord, ...]


Record = Union[
    PropertiesRecord, CurrencyRecord, AccountRecord, PayeeRecord,
    CategoryRecord, BudgetRecord, TransactionRecord,
]

Source = Union[str, os.PathLike, bytes, BinaryIO]


def date_from_day_number(n: int) -> date:
    """Convert a HomeBank day number, clamped to the range HomeBank supports."""
    n = max(min(n, MAX_DATE.toordinal()), MIN_DATE.toordinal())
    return date.fromordinal(n)


class _Fields:
    """Typed access to one element's attributes, failing with record context."""

    def __init__(self, kind: str, attrs: dict):
        self.kind = kind
        self.attrs = attrs

    def fail(self, message: str) -> DecodeError:
        return DecodeError(message, record={"kind": self.kind, **self.attrs})

    def text(self, name: str) -> str:
        return self.attrs.get(name, "")

    def integer(self, name: str, default: Optional[int] = None) -> Optional[int]:
        raw = self.attrs.get(name)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise self.fail(f"invalid integer for '{name}': {raw!r}") from None

    def required_int(self, name: str) -> int:
        value = self.integer(name)
        if value is None:
            raise self.fail(f"missing required field '{name}'")
        return value

    def ref(self, name: str) -> Optional[int]:
        # key 0 means "none" in HomeBank files
        value = self.integer(name)
        return value or None

    def decimal(self, name: str, default: Optional[Decimal] = None) -> Optional[Decimal]:
        raw = self.attrs.get(name)
        if raw is None or raw == "":
            return default
        return self.parse_decimal(name, raw)

    def parse_decimal(self, name: str, raw: str) -> Decimal:
        try:
            value = Decimal(raw)
        except InvalidOperation:
            raise self.fail(f"invalid amount for '{name}': {raw!r}") from None
        if not value.is_finite():
            raise self.fail(f"invalid amount for '{name}': {raw!r}")
        return value


def _properties(f: _Fields, version: str) -> PropertiesRecord:
    return PropertiesRecord(title=f.text("title"), currency=f.ref("curr"), version=version)


def _currency(f: _Fields) -> CurrencyRecord:
    return CurrencyRecord(
        key=f.required_int("key"),
        iso=f.text("iso"),
        symbol=f.text("symb"),
        name=f.text("name"),
        frac=f.integer("frac", 2),
    )


def _account(f: _Fields) -> AccountRecord:
    return AccountRecord(
        key=f.required_int("key"),
        name=f.text("name"),
        currency=f.ref("curr"),
        type=f.integer("type", 0),
        flags=f.integer("flags", 0),
        initial=f.decimal("initial", Decimal(0)),
    )


def _payee(f: _Fields) -> PayeeRecord:
    return PayeeRecord(key=f.required_int("key"), name=f.text("name"))


def _category(f: _Fields) -> list[Record]:
    cat = CategoryRecord(
        key=f.required_int("key"),
        name=f.text("name"),
        parent=f.ref("parent"),
        flags=f.integer("flags", 0),
    )
    records: list[Record] = [cat]
    for month, attr in enumerate(BUDGET_ATTRS):
        amount = f.decimal(attr)
        if amount is not None:
            records.append(BudgetRecord(category=cat.key, month=month, amount=amount))
    return records


def _splits(f: _Fields) -> tuple[SplitRecord, ...]:
    if "scat" not in f.attrs and "samt" not in f.attrs:
        return ()
    cats = f.text("scat").split(SPLIT_SEPARATOR)
    amounts = f.text("samt").split(SPLIT_SEPARATOR)
    memos = f.text("smem").split(SPLIT_SEPARATOR) if "smem" in f.attrs else [""] * len(cats)
    if not (len(cats) == len(amounts) == len(memos)):
        raise f.fail(
            f"mismatched split lengths: {len(cats)} categories, "
            f"{len(amounts)} amounts, {len(memos)} memos"
        )

    splits = []
    for raw_cat, raw_amount, memo in zip(cats, amounts, memos):
        try:
            cat = int(raw_cat) if raw_cat else 0
        except ValueError:
            raise f.fail(f"invalid split category: {raw_cat!r}") from None
        splits.append(SplitRecord(
            category=cat or None,
            amount=f.parse_decimal("samt", raw_amount),
            memo=memo,
        ))
    return tuple(splits)


def _transaction(f: _Fields, index: int) -> TransactionRecord:
    amount = f.decimal("amount")
    if amount is None:
        raise f.fail("missing required field 'amount'")
    splits = _splits(f)
    return TransactionRecord(
        index=index,
        date=date_from_day_number(f.required_int("date")),
        amount=amount,
        account=f.ref("account"),
        # a split transaction's categories live on its splits
        category=None if splits else f.ref("category"),
        payee=f.ref("payee"),
        memo=f.text("wording"),
        info=f.text("info"),
        tags=tuple(f.text("tags").split()),
        status=f.integer("st", 0),
        paymode=f.integer("paymode", 0),
        transfer_account=f.ref("dst_account"),
        splits=splits,
    )


def _read_bytes(source: Source) -> bytes:
    if isinstance(source, bytes):
        return source
    if hasattr(source, "read"):
        return source.read()
    try:
        with open(source, "rb") as fh:
            return fh.read()
    except OSError as e:
        raise DecodeError(f"could not read file: {e.strerror or e}", path=os.fspath(source)) from e


def decode(source: Source) -> list[Record]:
    """Parse a HomeBank file into records, in file order.

    Raises DecodeError for unreadable input, malformed XML, a foreign root
    element, unknown record kinds, or unparseable field values. Attributes
    the decoder does not know are ignored.
    """
    path = None if isinstance(source, bytes) or hasattr(source, "read") else os.fspath(source)
    data = _read_bytes(source)

    records: list[Record] = []
    version = ""
    depth = 0
    n_transactions = 0
    try:
        for event, elem in ET.iterparse(io.BytesIO(data), events=("start", "end")):
            if event == "end":
                depth -= 1
                if depth == 1:
                    elem.clear()
                continue

            depth += 1
            kind = elem.tag
            if depth == 1:
                if kind != ROOT_TAG:
                    raise DecodeError(f"not a HomeBank file: root element is <{kind}>", path=path)
                version = elem.get("v", "")
                continue
            if depth > 2:
                continue

            f = _Fields(kind, dict(elem.attrib))
            if kind == "properties":
                records.append(_properties(f, version))
            elif kind == "cur":
                records.append(_currency(f))
            elif kind == "account":
                records.append(_account(f))
            elif kind == "pay":
                records.append(_payee(f))
            elif kind == "cat":
                records.extend(_category(f))
            elif kind == "ope":
                records.append(_transaction(f, n_transactions))
                n_transactions += 1
            elif kind not in IGNORED_KINDS:
                raise f.fail(f"unknown record kind <{kind}>")
    except ET.ParseError as e:
        raise DecodeError(f"malformed XML: {e}", path=path) from e
    except DecodeError as e:
        if e.path is None and path is not None:
            e.path = path
        raise
    return records
