"""
MetaTrader 5 execution venue.

`MT5Venue` implements the `Venue` interface on top of a MetaTrader 5
terminal: market reads are delegated to `MT5DataFeed`, trade requests
go through `order_send`.  Every rejected request raises the matching
exception from `errors` so that the engine can log it and carry on.

**Note**: Running this venue requires the `MetaTrader5` package and a
locally installed MT5 terminal (Windows only).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..config.schema import Config
from ..data.mt5_data import MT5DataFeed, mt5
from ..data.snapshot import Quote, SymbolLimits
from .errors import CloseFailure, ModifyFailure, OpenFailure
from .models import LONG, SHORT, OwnerTag, Position


logger = logging.getLogger(__name__)


class MT5Venue:
    """Trade one symbol through a MetaTrader 5 terminal."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.feed = MT5DataFeed(config.mt5, config.timeframe)

    def connect(self) -> None:
        """Connect to the terminal and make the symbol visible.

        In ``paper`` mode only demo accounts are accepted.
        """
        self.feed.connect(demo_only=self.config.mode == 'paper')
        if not mt5.symbol_select(self.config.symbol, True):
            logger.warning("Could not select %s in Market Watch: %s", self.config.symbol, mt5.last_error())

    def shutdown(self) -> None:
        self.feed.shutdown()

    # Market data

    def get_quote(self, symbol: str) -> Quote:
        return self.feed.get_quote(symbol)

    def get_symbol_limits(self, symbol: str) -> SymbolLimits:
        return self.feed.get_symbol_limits(symbol)

    def get_indicator_value(self, kind: str, symbol: str, period: int, shift: int = 0) -> float:
        return self.feed.get_indicator_value(kind, symbol, period, shift)

    def get_account_balance(self) -> float:
        account = mt5.account_info()
        if account is None:
            raise RuntimeError(f"Account info unavailable: {mt5.last_error()}")
        return float(account.balance)

    # Positions

    def list_open_positions(self, symbol: str, owner_tag: OwnerTag) -> List[Position]:
        raw = mt5.positions_get(symbol=symbol)
        if raw is None:
            raise RuntimeError(f"positions_get failed for {symbol}: {mt5.last_error()}")
        positions = []
        for p in raw:
            if p.magic != owner_tag.value:
                continue
            positions.append(
                Position(
                    ticket=int(p.ticket),
                    symbol=p.symbol,
                    direction=LONG if p.type == mt5.POSITION_TYPE_BUY else SHORT,
                    open_price=float(p.price_open),
                    volume=float(p.volume),
                    stop_loss=float(p.sl) if p.sl else None,
                    take_profit=float(p.tp) if p.tp else None,
                    profit=float(p.profit),
                    owner_tag=owner_tag,
                )
            )
        return positions

    def _send(self, request: Dict[str, Any], failure: type) -> Any:
        logger.debug("order_send %s", request)
        result = mt5.order_send(request)
        if result is None:
            raise failure(f"order_send returned nothing: {mt5.last_error()}")
        if result.retcode != mt5.TRADE_RETCODE_DONE:
            raise failure("Request rejected", retcode=result.retcode, comment=result.comment)
        return result

    def open_position(
        self,
        symbol: str,
        direction: str,
        volume: float,
        price: float,
        slippage: int,
        owner_tag: OwnerTag,
    ) -> Tuple[int, float]:
        request = {
            'action': mt5.TRADE_ACTION_DEAL,
            'symbol': symbol,
            'volume': volume,
            'type': mt5.ORDER_TYPE_BUY if direction == LONG else mt5.ORDER_TYPE_SELL,
            'price': price,
            'deviation': slippage,
            'magic': owner_tag.value,
            'comment': self.config.execution.comment,
            'type_time': mt5.ORDER_TIME_GTC,
            'type_filling': mt5.ORDER_FILLING_IOC,
        }
        result = self._send(request, OpenFailure)
        fill_price = float(result.price) if result.price else price
        return int(result.order), fill_price

    def modify_position(self, ticket: int, stop_loss: float, take_profit: Optional[float]) -> None:
        request = {
            'action': mt5.TRADE_ACTION_SLTP,
            'symbol': self.config.symbol,
            'position': ticket,
            'sl': stop_loss or 0.0,
            'tp': take_profit or 0.0,
        }
        self._send(request, ModifyFailure)

    def close_position(self, ticket: int, volume: float, price: float, slippage: int) -> None:
        raw = mt5.positions_get(ticket=ticket)
        if not raw:
            raise CloseFailure(f"Position {ticket} not found: {mt5.last_error()}")
        position = raw[0]
        request = {
            'action': mt5.TRADE_ACTION_DEAL,
            'symbol': position.symbol,
            'position': ticket,
            'volume': volume,
            'type': mt5.ORDER_TYPE_SELL if position.type == mt5.POSITION_TYPE_BUY else mt5.ORDER_TYPE_BUY,
            'price': price,
            'deviation': slippage,
            'magic': position.magic,
            'comment': self.config.execution.comment,
            'type_time': mt5.ORDER_TIME_GTC,
            'type_filling': mt5.ORDER_FILLING_IOC,
        }
        self._send(request, CloseFailure)
