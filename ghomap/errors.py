"""Exception types raised by ghomap.

Every error derives from `GhomapError` and from the closest builtin
exception, so callers can catch either.
"""


class GhomapError(Exception):
    """Base class for all ghomap errors."""


class NotReady(GhomapError, RuntimeError):
    """An operation was attempted before `open()` or after `destroy()`."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"cannot call {operation!r}: the store is not ready, call open() first")


class InvalidKey(GhomapError, ValueError):
    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(f"provided key must be formatted in kebab-case: {key!r}")


class NotSerializable(GhomapError, TypeError):
    """The value cannot be encoded as JSON."""


class TargetTypeError(GhomapError, TypeError):
    """An array helper was called on a value that is not a list."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation}() requires the stored value to be a list")


class CorruptEntry(GhomapError, ValueError):
    def __init__(self, key: str | None = None, reason: str = "") -> None:
        self.key = key
        msg = "stored entry is not valid JSON"
        if key is not None:
            msg = f"stored entry {key!r} is not valid JSON"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
