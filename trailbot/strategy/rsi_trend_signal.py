"""
RSI entry signal with a moving-average trend filter.

The entry condition reads the RSI against the overbought and oversold
levels; the direction comes from where the latest close sits relative
to a simple moving average.  The evaluator has no state and no side
effects.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config.schema import Config
from ..data.snapshot import MarketSnapshot
from ..execution.models import LONG, SHORT
from ..execution.venue import RSI, SMA, Venue


logger = logging.getLogger(__name__)


def entry_condition(oscillator: float, overbought: float, oversold: float) -> bool:
    """Return the raw entry condition.

    Holds whenever the oscillator is below the overbought level or above
    the oversold level, which covers almost every value when
    ``overbought > oversold``.
    """
    return oscillator < overbought or oscillator > oversold


class SignalEvaluator:
    """Decide whether to enter and in which direction."""

    def __init__(self, venue: Venue) -> None:
        self.venue = venue

    def evaluate(self, snapshot: MarketSnapshot, config: Config) -> Optional[str]:
        """Evaluate the entry signal for the current tick.

        Returns
        -------
        str or None
            `'long'`, `'short'`, or `None` if no trade should be taken.
        """
        oscillator = self.venue.get_indicator_value(
            RSI, snapshot.symbol, config.signal_indicator_period, 0
        )
        if not entry_condition(oscillator, config.overbought_level, config.oversold_level):
            logger.debug("No entry: RSI=%.2f", oscillator)
            return None

        trend = self.venue.get_indicator_value(
            SMA, snapshot.symbol, config.trend_filter_period, config.trend_filter_shift
        )
        # The forming bar's close is the current bid
        last_close = snapshot.bid
        direction = LONG if last_close > trend else SHORT
        logger.debug("Entry signal %s: RSI=%.2f close=%s SMA=%s", direction, oscillator, last_close, trend)
        return direction
