"""
Per-tick trade engine.

`TradeEngine` wires the components together.  The driver calls
`on_init()` once and then `on_tick()` for every price update, never
concurrently.  Within a tick the steps run strictly in order: signal,
optional open, trailing stops, profit targets.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config.schema import Config, ConfigError, validate_config
from .data.snapshot import MarketSnapshot
from .execution.errors import InitError, OpenFailure
from .execution.profit_closer import ProfitTargetCloser
from .execution.trade_opener import TradeOpener
from .execution.trailing_stop import TrailingStopManager
from .execution.venue import Venue
from .risk.position_sizer import PositionSizer
from .strategy.rsi_trend_signal import SignalEvaluator


logger = logging.getLogger(__name__)


class TradeEngine:
    """Decide entries and manage open positions for one symbol."""

    def __init__(self, config: Config, venue: Venue) -> None:
        self.config = config
        self.venue = venue
        self.signal = SignalEvaluator(venue)
        self.opener = TradeOpener(venue)
        self.trailing = TrailingStopManager(venue)
        self.closer = ProfitTargetCloser(venue)
        self.lot_size: Optional[float] = None

    def on_init(self) -> float:
        """Validate the configuration and derive the lot size.

        Raises
        ------
        InitError
            If the engine must not run.
        """
        try:
            validate_config(self.config)
        except ConfigError as exc:
            raise InitError(f"Invalid configuration: {exc}") from exc
        try:
            snapshot = MarketSnapshot.capture(self.venue, self.config.symbol)
            balance = self.venue.get_account_balance()
        except InitError:
            raise
        except RuntimeError as exc:
            raise InitError(f"Cannot read market or account state: {exc}") from exc

        sizer = PositionSizer(self.config.max_lot_size)
        self.lot_size = sizer.compute_lot_size(balance, self.config, snapshot)
        logger.info(
            "Engine ready on %s: balance=%.2f lot size=%s", self.config.symbol, balance, self.lot_size
        )
        return self.lot_size

    def on_tick(self) -> None:
        """Run one decision and management cycle."""
        if self.lot_size is None:
            raise RuntimeError("on_init() must succeed before on_tick()")
        snapshot = MarketSnapshot.capture(self.venue, self.config.symbol)

        try:
            self._enter(snapshot)
        except RuntimeError as exc:
            logger.error("Entry phase on %s aborted: %s", snapshot.symbol, exc)

        # Each management scan reads positions afresh; a failed read skips only that scan
        for phase in (self.trailing, self.closer):
            try:
                phase.tick(snapshot, self.config)
            except RuntimeError as exc:
                logger.error("%s on %s aborted: %s", type(phase).__name__, snapshot.symbol, exc)

    def _enter(self, snapshot: MarketSnapshot) -> None:
        direction = self.signal.evaluate(snapshot, self.config)
        if direction is None:
            return
        try:
            self.opener.open(direction, self.lot_size, snapshot, self.config)
        except OpenFailure as exc:
            logger.error("Open %s on %s rejected: %s", direction, snapshot.symbol, exc)
