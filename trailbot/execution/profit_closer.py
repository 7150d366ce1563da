"""
Closing positions at a fixed profit target.
"""

from __future__ import annotations

import logging

from ..config.schema import Config
from ..data.snapshot import MarketSnapshot
from .errors import CloseFailure
from .models import OwnerTag
from .venue import Venue


logger = logging.getLogger(__name__)


class ProfitTargetCloser:
    """Close every owned position whose floating profit reached the target.

    A rejected close is only logged: the position is still open on the
    next tick and is tried again then.
    """

    def __init__(self, venue: Venue) -> None:
        self.venue = venue

    def tick(self, snapshot: MarketSnapshot, config: Config) -> int:
        owner_tag = OwnerTag(config.execution.owner_tag)
        closed = 0
        for position in self.venue.list_open_positions(snapshot.symbol, owner_tag):
            if not owner_tag.owns(position) or position.profit < config.target_profit_amount:
                continue
            price = snapshot.bid if position.is_long else snapshot.ask
            try:
                self.venue.close_position(
                    position.ticket, position.volume, price, config.execution.slippage_points
                )
            except CloseFailure as exc:
                logger.error("Failed to close %s at %s: %s", position.ticket, price, exc)
                continue
            logger.info(
                "Closed %s %s at %s, profit %.2f", position.direction, position.ticket, price, position.profit
            )
            closed += 1
        return closed
