"""Optional values and checked results used while building the model.

`Maybe` wraps an entity lookup that may find nothing; `Either` carries a
validated foreign key (`Right`) or the `ReferenceWarning` explaining why it
was dropped (`Left`).
"""
from dataclasses import dataclass
from typing import Callable, Generic, Mapping, Optional, TypeVar

from hbquery.errors import ReferenceWarning

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')
K = TypeVar('K')


class Maybe(Generic[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self.value)) if self.is_some() else Nothing()

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return f(self.value) if self.is_some() else Nothing()

    def get_or_else(self, default: T) -> T:
        return self.value if self.is_some() else default

    def is_some(self) -> bool:
        return isinstance(self, Some)

    def is_none(self) -> bool:
        return not self.is_some()


@dataclass(frozen=True)
class Some(Maybe[T]):
    value: T


@dataclass(frozen=True)
class Nothing(Maybe[T]):
    pass


class Either(Generic[E, T]):

    def get_or_else(self, default: T) -> T:
        return self.value if self.is_right() else default

    def get_error(self) -> E:
        if self.is_right():
            raise ValueError("Cannot get error from Right")
        return self.error

    def is_right(self) -> bool:
        return isinstance(self, Right)

    def is_left(self) -> bool:
        return not self.is_right()


@dataclass(frozen=True)
class Right(Either[E, T]):
    value: T


@dataclass(frozen=True)
class Left(Either[E, T]):
    error: E


def lookup(table: Mapping[K, T], key: Optional[K]) -> Maybe[T]:
    if key is None or key not in table:
        return Nothing()
    return Some(table[key])


def check_reference(
    table: Mapping[int, object], key: Optional[int], kind: str, source: str
) -> Either[ReferenceWarning, Optional[int]]:
    """Validate a foreign key against the entities registered in the same load.

    An absent key is valid (`Right(None)`); a key naming a missing entity is a
    `Left` carrying the warning, and callers fall back to `None`.
    """
    if key is None:
        return Right(None)
    if lookup(table, key).is_none():
        return Left(ReferenceWarning(kind, key, source))
    return Right(key)
