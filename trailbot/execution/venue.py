"""
Interface of the execution venue.

The engine talks to the broker only through these calls.  All of them
block until the venue answers.  Rejected trade requests raise the
matching exception from `errors`; read failures raise `RuntimeError`.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Tuple

from ..data.snapshot import Quote, SymbolLimits
from .models import OwnerTag, Position


RSI = 'rsi'
SMA = 'sma'


class Venue(Protocol):

    def get_quote(self, symbol: str) -> Quote:
        ...

    def get_symbol_limits(self, symbol: str) -> SymbolLimits:
        ...

    def get_account_balance(self) -> float:
        ...

    def list_open_positions(self, symbol: str, owner_tag: OwnerTag) -> List[Position]:
        ...

    def open_position(
        self,
        symbol: str,
        direction: str,
        volume: float,
        price: float,
        slippage: int,
        owner_tag: OwnerTag,
    ) -> Tuple[int, float]:
        """Open a market position and return ``(ticket, fill_price)``.

        Raises `OpenFailure` when the request is rejected.
        """
        ...

    def modify_position(self, ticket: int, stop_loss: float, take_profit: Optional[float]) -> None:
        """Raises `ModifyFailure` when the request is rejected."""
        ...

    def close_position(self, ticket: int, volume: float, price: float, slippage: int) -> None:
        """Raises `CloseFailure` when the request is rejected."""
        ...

    def get_indicator_value(self, kind: str, symbol: str, period: int, shift: int = 0) -> float:
        """Value of indicator `kind` (``RSI`` or ``SMA``) on the current bar."""
        ...
