"""
Special write values understood by the document stores.

- SERVER_TIMESTAMP: replaced by the store's clock when the write commits
- increment()/decrement(): add to the stored number (missing counts as 0)
- UNSET: marks a payload field that must not be written at all
"""

from typing import Union

Number = Union[int, float]


class FieldValue:
    """Base class for sentinels resolved by the store at write time."""

    __slots__ = ()


class ServerTimestamp(FieldValue):
    """Resolved to the store's current time at commit."""

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


class Increment(FieldValue):
    """Adds ``amount`` to the stored value of the field."""

    __slots__ = ("amount",)

    def __init__(self, amount: Number):
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise TypeError(f"Increment amount must be a number, got {type(amount).__name__}")
        self.amount = amount

    def __eq__(self, other) -> bool:
        return isinstance(other, Increment) and other.amount == self.amount

    def __hash__(self) -> int:
        return hash(("increment", self.amount))

    def __repr__(self) -> str:
        return f"Increment({self.amount!r})"


class Unset:
    """Marker for "leave this field alone"; dropped before writing."""

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


SERVER_TIMESTAMP = ServerTimestamp()
UNSET = Unset()


def server_timestamp() -> ServerTimestamp:
    """Return the server timestamp sentinel."""
    return SERVER_TIMESTAMP


def increment(n: Number = 1) -> Increment:
    """
    Increment a stored number.

    Args:
        n: Amount to add (default 1)

    Returns:
        Increment sentinel
    """
    return Increment(n)


def decrement(n: Number = 1) -> Increment:
    """
    Decrement a stored number.

    Args:
        n: Amount to subtract (default 1)

    Returns:
        Increment sentinel with the negated amount
    """
    return Increment(n * -1)
