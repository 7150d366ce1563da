"""
MetaTrader 5 data feed.

This module wraps the `MetaTrader5` Python package to read quotes,
symbol limits and recent rates for one terminal connection.  If the
package is not installed or initialisation fails, the code raises a
clear exception.
"""

from __future__ import annotations

import logging
import pandas as pd

from ..config.schema import MT5Config
from ..execution.errors import InitError
from ..execution.venue import RSI, SMA
from .indicators import rsi, sma
from .snapshot import Quote, SymbolLimits

# Attempt to import MetaTrader5.  If unavailable, mt5 will be None.
try:
    import MetaTrader5 as mt5  # type: ignore
except ImportError:
    mt5 = None  # Will be checked at runtime


logger = logging.getLogger(__name__)

# Extra bars fetched beyond the indicator period so Wilder smoothing settles
_WARMUP_BARS = 100


class MT5DataFeed:
    """Handle connection to MetaTrader 5 and retrieval of market data."""

    def __init__(self, config: MT5Config, timeframe: str = "M1") -> None:
        self.config = config
        self.timeframe = timeframe
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self, demo_only: bool = False) -> None:
        """Initialise the MetaTrader 5 terminal.

        Parameters
        ----------
        demo_only : bool
            Refuse to run against anything but a demo account.

        Raises
        ------
        InitError
            If the MetaTrader5 package is not installed, initialisation
            fails or the account type is not allowed.
        """
        if mt5 is None:
            raise InitError(
                "MetaTrader5 package is not installed.  Install it with 'pip install MetaTrader5' to trade."
            )
        kwargs = {}
        if self.config.path:
            kwargs['path'] = self.config.path
        if self.config.login:
            kwargs.update(login=self.config.login, password=self.config.password, server=self.config.server)
        if not mt5.initialize(**kwargs):
            raise InitError(f"MT5 initialisation failed: {mt5.last_error()}")
        self._connected = True
        if demo_only:
            account = mt5.account_info()
            if account is None or account.trade_mode != mt5.ACCOUNT_TRADE_MODE_DEMO:
                self.shutdown()
                raise InitError("Paper mode requires a demo account; switch accounts or use live mode.")
        logger.info("Connected to MetaTrader 5 (%s)", mt5.terminal_info().name if mt5.terminal_info() else "unknown")

    def shutdown(self) -> None:
        """Shutdown the MT5 connection if it was opened."""
        if mt5 and self._connected:
            mt5.shutdown()
            self._connected = False

    def _require_connection(self) -> None:
        if not self._connected:
            raise RuntimeError("MT5DataFeed is not connected.  Call connect() before requesting data.")

    def _get_mt5_timeframe(self) -> int:
        """Map a timeframe string to the MetaTrader5 timeframe constant."""
        if mt5 is None:
            raise RuntimeError("MetaTrader5 package is not installed.")
        timeframe_map = {
            'M1': mt5.TIMEFRAME_M1,
            'M5': mt5.TIMEFRAME_M5,
            'M15': mt5.TIMEFRAME_M15,
            'M30': mt5.TIMEFRAME_M30,
            'H1': mt5.TIMEFRAME_H1,
            'H4': mt5.TIMEFRAME_H4,
            'D1': mt5.TIMEFRAME_D1,
        }
        tf = timeframe_map.get(self.timeframe.upper())
        if tf is None:
            raise ValueError(f"Unsupported timeframe for MT5: {self.timeframe}")
        return tf

    def get_quote(self, symbol: str) -> Quote:
        self._require_connection()
        info = mt5.symbol_info(symbol)
        tick = mt5.symbol_info_tick(symbol)
        if info is None or tick is None:
            raise RuntimeError(f"No quote for {symbol}: {mt5.last_error()}")
        return Quote(
            bid=float(tick.bid),
            ask=float(tick.ask),
            point=float(info.point),
            digits=int(info.digits),
            spread_points=int(info.spread),
        )

    def get_symbol_limits(self, symbol: str) -> SymbolLimits:
        self._require_connection()
        info = mt5.symbol_info(symbol)
        if info is None:
            raise RuntimeError(f"No symbol info for {symbol}: {mt5.last_error()}")
        return SymbolLimits(
            tick_value=float(info.trade_tick_value),
            min_lot=float(info.volume_min),
            max_lot=float(info.volume_max),
            lot_step=float(info.volume_step),
        )

    def get_closes(self, symbol: str, count: int) -> pd.Series:
        """Close prices of the latest `count` bars, oldest first.

        The last element is the bar still forming, so its close is the
        current bid.
        """
        self._require_connection()
        rates = mt5.copy_rates_from_pos(symbol, self._get_mt5_timeframe(), 0, count)
        if rates is None or len(rates) == 0:
            logger.debug("No rates returned for %s: %s", symbol, mt5.last_error())
            return pd.Series(dtype=float)
        df = pd.DataFrame(rates)
        df['time'] = pd.to_datetime(df['time'], unit='s', utc=True)
        df = df.set_index('time').sort_index()
        return df['close'].astype(float)

    def get_indicator_value(self, kind: str, symbol: str, period: int, shift: int = 0) -> float:
        closes = self.get_closes(symbol, period + shift + _WARMUP_BARS)
        if kind == RSI:
            return rsi(closes, period)
        if kind == SMA:
            return sma(closes, period, shift)
        raise ValueError(f"Unknown indicator kind: {kind}")
