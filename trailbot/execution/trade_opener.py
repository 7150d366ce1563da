"""
Opening new positions.

A position is opened at market and then, in a second request, given
its stop-loss and take-profit.  The take-profit distance is derived
from a fixed monetary target and the tick value at open time, not from
a fixed number of points.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config.schema import Config
from ..data.snapshot import MarketSnapshot, normalize_price
from .errors import ModifyFailure
from .models import DIRECTIONS, LONG, OwnerTag
from .venue import Venue


logger = logging.getLogger(__name__)


def stop_loss_price(direction: str, entry_price: float, stop_loss_pips: float, point: float, digits: int) -> float:
    """Initial stop, `stop_loss_pips` points against the position."""
    distance = stop_loss_pips * point
    price = entry_price - distance if direction == LONG else entry_price + distance
    return normalize_price(price, digits)


def take_profit_price(
    direction: str,
    entry_price: float,
    target_profit_amount: float,
    tick_value: float,
    point: float,
    digits: int,
) -> float:
    """Take-profit placed where one lot would earn `target_profit_amount`.

    ``pips = target_profit_amount / tick_value``; doubling the tick value
    halves the distance.
    """
    pips_to_target = target_profit_amount / tick_value
    distance = pips_to_target * point
    price = entry_price + distance if direction == LONG else entry_price - distance
    return normalize_price(price, digits)


class TradeOpener:
    """Submit new positions while respecting the open-trade ceiling."""

    def __init__(self, venue: Venue) -> None:
        self.venue = venue

    def count_open_trades(self, symbol: str, owner_tag: OwnerTag) -> int:
        return len(self.venue.list_open_positions(symbol, owner_tag))

    def open(
        self,
        direction: str,
        lot_size: float,
        snapshot: MarketSnapshot,
        config: Config,
    ) -> Optional[int]:
        """Open a position and attach its protective levels.

        Returns
        -------
        int or None
            The ticket of the new position, or `None` when the ceiling on
            open trades blocked the request.

        Raises
        ------
        OpenFailure
            If the venue rejected the open request.  Nothing is retried.
        """
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {direction!r}")
        owner_tag = OwnerTag(config.execution.owner_tag)
        open_trades = self.count_open_trades(snapshot.symbol, owner_tag)
        if open_trades >= config.max_open_trades:
            logger.debug(
                "Not opening %s: %d open trades, limit %d", direction, open_trades, config.max_open_trades
            )
            return None

        price = snapshot.ask if direction == LONG else snapshot.bid
        logger.info("Opening %s %s lots on %s at %s", direction, lot_size, snapshot.symbol, price)
        ticket, fill_price = self.venue.open_position(
            snapshot.symbol,
            direction,
            lot_size,
            price,
            config.execution.slippage_points,
            owner_tag,
        )

        sl = stop_loss_price(direction, fill_price, config.stop_loss_pips, snapshot.point, snapshot.digits)
        tp = take_profit_price(
            direction,
            fill_price,
            config.target_profit_amount,
            snapshot.tick_value,
            snapshot.point,
            snapshot.digits,
        )
        try:
            self.venue.modify_position(ticket, sl, tp)
        except ModifyFailure as exc:
            # The position stays open; the trailing scan will protect it later
            logger.error("Position %s opened but SL/TP not attached: %s", ticket, exc)
        else:
            logger.info("Position %s opened at %s (SL=%s, TP=%s)", ticket, fill_price, sl, tp)
        return ticket
