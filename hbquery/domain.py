from dataclasses import dataclass, replace
from datetime import date
from enum import Enum, IntEnum
from typing import Iterator, Optional

# category flag bits as written by HomeBank
GF_SUB = 1 << 0
GF_INCOME = 1 << 1


class AccountType(IntEnum):
    NONE = 0
    BANK = 1
    CASH = 2
    ASSET = 3
    CREDIT_CARD = 4
    LIABILITY = 5
    CHECKING = 6
    SAVINGS = 7


class TransactionStatus(IntEnum):
    NONE = 0
    CLEARED = 1
    RECONCILED = 2
    REMIND = 3
    VOID = 4


class PayMode(IntEnum):
    NONE = 0
    CREDIT_CARD = 1
    CHEQUE = 2
    CASH = 3
    BANK_TRANSFER = 4
    DEBIT_CARD = 5
    STANDING_ORDER = 6
    ELECTRONIC_PAYMENT = 7
    DEPOSIT = 8
    FI_FEE = 9
    DIRECT_DEBIT = 10
    INTERNAL_TRANSFER = 11


class TransactionType(Enum):
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class Currency:
    key: int
    iso: str
    symbol: str = ""
    name: str = ""
    frac: int = 2    # digits after the decimal point


@dataclass(frozen=True)
class Account:
    key: int
    name: str
    currency: Optional[int] = None
    type: AccountType = AccountType.NONE
    initial: int = 0     # opening balance, minor units
    flags: int = 0


@dataclass(frozen=True)
class Category:
    key: int
    name: str
    parent: Optional[int] = None  # weak reference, resolved through the model
    flags: int = 0

    @property
    def is_income(self) -> bool:
        return bool(self.flags & GF_INCOME)


@dataclass(frozen=True)
class Payee:
    key: int
    name: str


@dataclass(frozen=True)
class Split:
    category: Optional[int]
    amount: int
    memo: str = ""


@dataclass(frozen=True)
class Transaction:
    index: int       # position in the file, HomeBank has no transaction key
    date: date
    amount: int      # signed, minor units; + income, - expense
    account: Optional[int] = None
    category: Optional[int] = None
    payee: Optional[int] = None
    memo: str = ""
    info: str = ""
    tags: tuple[str, ...] = ()
    status: TransactionStatus = TransactionStatus.NONE
    paymode: PayMode = PayMode.NONE
    transfer_account: Optional[int] = None
    splits: tuple[Split, ...] = ()

    @property
    def is_split(self) -> bool:
        return bool(self.splits)

    @property
    def type(self) -> TransactionType:
        """Transfer when a destination account is set, otherwise by sign; zero is an expense."""
        if self.transfer_account is not None:
            return TransactionType.TRANSFER
        return TransactionType.INCOME if self.amount > 0 else TransactionType.EXPENSE

    def lines(self) -> Iterator[tuple[Optional[int], int]]:
        """(category, amount) pairs: one per split, or the whole transaction."""
        if self.splits:
            for s in self.splits:
                yield s.category, s.amount
        else:
            yield self.category, self.amount

    def narrowed(self, keep: frozenset) -> Optional["Transaction"]:
        """Copy holding only the split lines whose category is in `keep`."""
        parts = tuple(s for s in self.splits if s.category in keep)
        if not parts:
            return None
        if len(parts) == len(self.splits):
            return self
        return replace(self, splits=parts, amount=sum(s.amount for s in parts))


@dataclass(frozen=True)
class BudgetEntry:
    category: int
    month: int       # 0 = every month, 1..12 = that month of any year
    amount: int      # signed, minor units

    @property
    def every_month(self) -> bool:
        return self.month == 0


@dataclass(frozen=True)
class Properties:
    title: str = ""
    currency: Optional[int] = None   # base currency of the file
    version: str = ""
