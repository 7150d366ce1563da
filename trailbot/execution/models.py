"""
Position and ownership models.

These dataclasses represent what the engine reads back from the
execution venue.  The venue owns the positions; the engine only ever
holds a fresh copy for the duration of one tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


LONG = 'long'
SHORT = 'short'
DIRECTIONS = (LONG, SHORT)


@dataclass(frozen=True)
class OwnerTag:
    """Marks the positions managed by this engine.

    Wraps the magic number sent with every order.  Two tags are equal
    when their values are equal; zero is not a valid tag because
    terminals use it for manually opened positions.
    """
    value: int

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise ValueError(f"Owner tag must be a positive integer, got {self.value!r}")

    def owns(self, position: "Position") -> bool:
        return position.owner_tag == self


@dataclass
class Position:
    """Represents an open position on a given symbol."""
    ticket: int
    symbol: str
    direction: str  # 'long' or 'short'
    open_price: float
    volume: float
    stop_loss: Optional[float]  # None when no stop is attached
    take_profit: Optional[float]
    profit: float  # floating, account currency
    owner_tag: OwnerTag

    @property
    def is_long(self) -> bool:
        return self.direction == LONG
