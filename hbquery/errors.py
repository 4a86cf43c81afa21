from typing import Any, Mapping, Optional


class HBQueryError(Exception):
    """Base class for every error raised by hbquery."""


class DecodeError(HBQueryError):
    """The database file could not be parsed.

    `record` holds the kind and raw attributes of the offending element, when
    the failure is tied to one.
    """

    def __init__(self, message: str, record: Optional[Mapping[str, Any]] = None, path: Optional[str] = None):
        self.message = message
        self.record = dict(record) if record is not None else None
        self.path = path
        super().__init__(message, record, path)

    def __str__(self) -> str:
        text = self.message
        if self.record is not None:
            text = f"{text} in record {self.record}"
        if self.path is not None:
            text = f"{self.path}: {text}"
        return text


class ConfigError(HBQueryError):
    pass


class ReferenceWarning(UserWarning):
    """A record cites an entity missing from the same file.

    Never raised: the loader keeps these on `Model.warnings` and logs them.
    """

    def __init__(self, kind: str, key: int, source: str):
        self.kind = kind
        self.key = key
        self.source = source
        super().__init__(kind, key, source)

    def __str__(self) -> str:
        return f"{self.source} refers to missing {self.kind} {self.key}"

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, ReferenceWarning)
            and (self.kind, self.key, self.source) == (other.kind, other.key, other.source)
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.key, self.source))
