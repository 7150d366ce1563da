"""
Trailing stop management.

Every tick, each position owned by the engine is re-evaluated from its
current values: once in profit the stop moves to breakeven, and past
the trail start it is pushed beyond breakeven.  The stop is only ever
tightened.  No trailing state is kept besides the stop-loss the venue
reports.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config.schema import Config
from ..data.snapshot import MarketSnapshot
from .errors import ModifyFailure
from .models import OwnerTag, Position
from .venue import Venue


logger = logging.getLogger(__name__)


def is_more_favorable(position: Position, candidate: float) -> bool:
    """True if `candidate` is a strictly tighter stop than the current one."""
    if position.stop_loss is None:
        return True
    if position.is_long:
        return candidate > position.stop_loss
    return candidate < position.stop_loss


def candidate_stop(position: Position, snapshot: MarketSnapshot, config: Config) -> Optional[float]:
    """Stop level the position qualifies for, or `None` below breakeven.

    Floating profit (account currency) is compared with price distances
    as is.
    """
    breakeven_trigger = (2 + snapshot.spread_points) * snapshot.point
    if position.profit < breakeven_trigger:
        return None
    candidate = position.open_price
    if position.profit > config.trail_start_pips * snapshot.point:
        offset = config.trailing_stop_pips * snapshot.point
        candidate = candidate + offset if position.is_long else candidate - offset
    return snapshot.normalize(candidate)


class TrailingStopManager:
    """Ratchet stops of the engine's positions."""

    def __init__(self, venue: Venue) -> None:
        self.venue = venue

    def tick(self, snapshot: MarketSnapshot, config: Config) -> int:
        """Scan open positions and tighten stops.

        Returns
        -------
        int
            Number of stops successfully moved.
        """
        owner_tag = OwnerTag(config.execution.owner_tag)
        moved = 0
        for position in self.venue.list_open_positions(snapshot.symbol, owner_tag):
            if not owner_tag.owns(position):
                continue
            candidate = candidate_stop(position, snapshot, config)
            if candidate is None or not is_more_favorable(position, candidate):
                continue
            try:
                self.venue.modify_position(position.ticket, candidate, position.take_profit)
            except ModifyFailure as exc:
                logger.error(
                    "Failed to move stop of %s from %s to %s: %s",
                    position.ticket, position.stop_loss, candidate, exc,
                )
                continue
            logger.info(
                "Stop of %s %s moved %s -> %s (profit=%.2f)",
                position.direction, position.ticket, position.stop_loss, candidate, position.profit,
            )
            moved += 1
        return moved
