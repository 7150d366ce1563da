"""
Read-only market view for one instrument.

A `MarketSnapshot` is captured from the venue at the start of every
tick and shared by all components for the rest of that tick.  It is
never reused for the next one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..execution.venue import Venue


def normalize_price(price: float, digits: int) -> float:
    """Round a price to `digits` decimals, halves away from zero.

    Float noise is cut at 10 decimals first, so 1.1 + 0.000015 rounds to
    1.10002 rather than depending on its binary representation.
    """
    cleaned = Decimal(repr(round(price, 10)))
    return float(cleaned.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Quote:
    """Current prices as reported by the venue."""
    bid: float
    ask: float
    point: float
    digits: int
    spread_points: int


@dataclass(frozen=True)
class SymbolLimits:
    """Contract constraints for lot sizing."""
    tick_value: float
    min_lot: float
    max_lot: float
    lot_step: float


@dataclass(frozen=True)
class MarketSnapshot:
    """Quote and limits for one instrument at one point in time."""
    symbol: str
    bid: float
    ask: float
    point: float
    digits: int
    spread_points: int
    tick_value: float
    min_lot: float
    max_lot: float
    lot_step: float

    @classmethod
    def capture(cls, venue: "Venue", symbol: str) -> "MarketSnapshot":
        """Read a fresh quote and the symbol limits from `venue`."""
        quote = venue.get_quote(symbol)
        limits = venue.get_symbol_limits(symbol)
        return cls(
            symbol=symbol,
            bid=quote.bid,
            ask=quote.ask,
            point=quote.point,
            digits=quote.digits,
            spread_points=quote.spread_points,
            tick_value=limits.tick_value,
            min_lot=limits.min_lot,
            max_lot=limits.max_lot,
            lot_step=limits.lot_step,
        )

    def normalize(self, price: float) -> float:
        """Round a price to the instrument precision."""
        return normalize_price(price, self.digits)
