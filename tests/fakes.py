"""In-memory venue shared by the tests."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from trailbot.data.snapshot import MarketSnapshot, Quote, SymbolLimits
from trailbot.execution.errors import CloseFailure, ModifyFailure, OpenFailure
from trailbot.execution.models import OwnerTag, Position
from trailbot.execution.venue import RSI, SMA


def make_snapshot(**overrides) -> MarketSnapshot:
    values = dict(
        symbol="EURUSD",
        bid=1.1000,
        ask=1.1002,
        point=0.0001,
        digits=5,
        spread_points=2,
        tick_value=1.0,
        min_lot=0.01,
        max_lot=100.0,
        lot_step=0.01,
    )
    values.update(overrides)
    return MarketSnapshot(**values)


class FakeVenue:
    """Records every request and serves positions from a dictionary."""

    def __init__(self, snapshot: Optional[MarketSnapshot] = None, balance: float = 10_000.0) -> None:
        self.snapshot = snapshot or make_snapshot()
        self.balance = balance
        self.positions: Dict[int, Position] = {}
        self.indicators = {RSI: 50.0, SMA: 1.0990}
        self.requests: List[Tuple] = []
        self.fail_open = False
        self.fail_modify = False
        self.fail_close = False
        self._next_ticket = 1000

    def add_position(self, **fields) -> Position:
        values = dict(
            ticket=self._next_ticket,
            symbol=self.snapshot.symbol,
            direction="long",
            open_price=1.1000,
            volume=0.01,
            stop_loss=None,
            take_profit=None,
            profit=0.0,
            owner_tag=OwnerTag(20250101),
        )
        values.update(fields)
        position = Position(**values)
        self.positions[position.ticket] = position
        self._next_ticket = max(self._next_ticket, position.ticket) + 1
        return position

    def calls(self, name: str) -> List[Tuple]:
        return [r for r in self.requests if r[0] == name]

    def get_quote(self, symbol: str) -> Quote:
        s = self.snapshot
        return Quote(bid=s.bid, ask=s.ask, point=s.point, digits=s.digits, spread_points=s.spread_points)

    def get_symbol_limits(self, symbol: str) -> SymbolLimits:
        s = self.snapshot
        return SymbolLimits(tick_value=s.tick_value, min_lot=s.min_lot, max_lot=s.max_lot, lot_step=s.lot_step)

    def get_account_balance(self) -> float:
        return self.balance

    def list_open_positions(self, symbol: str, owner_tag: OwnerTag) -> List[Position]:
        return [
            replace(p) for p in self.positions.values()
            if p.symbol == symbol and p.owner_tag == owner_tag
        ]

    def open_position(self, symbol, direction, volume, price, slippage, owner_tag) -> Tuple[int, float]:
        self.requests.append(("open", symbol, direction, volume, price, slippage))
        if self.fail_open:
            raise OpenFailure("Request rejected", retcode=10019, comment="No money")
        position = self.add_position(
            symbol=symbol, direction=direction, open_price=price, volume=volume, owner_tag=owner_tag
        )
        return position.ticket, price

    def modify_position(self, ticket, stop_loss, take_profit) -> None:
        self.requests.append(("modify", ticket, stop_loss, take_profit))
        if self.fail_modify:
            raise ModifyFailure("Request rejected", retcode=10016, comment="Invalid stops")
        position = self.positions[ticket]
        position.stop_loss = stop_loss
        position.take_profit = take_profit

    def close_position(self, ticket, volume, price, slippage) -> None:
        self.requests.append(("close", ticket, volume, price, slippage))
        if self.fail_close:
            raise CloseFailure("Request rejected", retcode=10004, comment="Requote")
        del self.positions[ticket]

    def get_indicator_value(self, kind, symbol, period, shift=0) -> float:
        self.requests.append(("indicator", kind, period, shift))
        return self.indicators[kind]
