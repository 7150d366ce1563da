"""
Configuration schema and loader.

This module defines dataclasses that mirror the expected structure of
the YAML configuration file (`config.yaml`).  A helper function
`load_config()` reads a YAML file from disk and returns an instance
of `Config` populated with defaults for any missing fields.

The configuration is frozen: it is loaded once at startup and passed
into every component call unchanged.  Use `dataclasses.replace()` to
derive a variant (tests do this).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict
import yaml


TIMEFRAMES = ("M1", "M5", "M15", "M30", "H1", "H4", "D1")
MODES = ("paper", "live")


class ConfigError(ValueError):
    """Raised when a configuration value is out of range."""


@dataclass(frozen=True)
class MT5Config:
    """Holds parameters required to connect to a MetaTrader 5 terminal.

    Attributes
    ----------
    login : int
        Account login number.  `0` lets the terminal use the account it
        is already logged into.
    password : str
        Password for the account.
    server : str
        Broker server name (e.g. ``Bidget-MT5-Live``).
    path : str
        File system path to the MetaTrader 5 terminal executable
        (`terminal64.exe`).
    """

    login: int = 0
    password: str = ""
    server: str = ""
    path: str = ""


@dataclass(frozen=True)
class ExecutionConfig:
    """Order submission parameters.

    Attributes
    ----------
    slippage_points : int
        Maximum accepted deviation from the requested price, in points.
    owner_tag : int
        Magic number stamped on every order this engine sends.  Positions
        carrying another tag are never touched.
    comment : str
        Free text attached to each order.
    """

    slippage_points: int = 3
    owner_tag: int = 20250101
    comment: str = "trailbot"


@dataclass(frozen=True)
class Config:
    """Root configuration for the trade engine.

    Attributes
    ----------
    symbol : str
        The single instrument managed by the engine (e.g. ``"EURUSD"``).
    timeframe : str
        Bar timeframe used for the indicators.
    mode : str
        ``paper`` (demo accounts only) or ``live``.
    poll_interval : float
        Seconds between two ticks of the command-line driver.
    risk_percentage : float
        Share of the account balance risked per trade, in percent.
    stop_loss_pips : float
        Initial stop-loss distance in points.
    max_lot_size : float
        Hard ceiling on the derived lot size.  Independent of the risk
        formula and always wins over it.
    max_open_trades : int
        Maximum number of concurrently open positions owned by the engine.
    target_profit_amount : float
        Floating profit, in account currency, at which a position is
        closed.  Also used to place the take-profit.
    trailing_stop_pips : float
        Distance, in points, the stop is pushed beyond breakeven once the
        trail starts.
    trail_start_pips : float
        Profit threshold at which the trail beyond breakeven starts.
    signal_indicator_period : int
        RSI period.
    overbought_level, oversold_level : float
        RSI levels, between 0 and 100.
    trend_filter_period : int
        Simple moving average period.
    trend_filter_shift : int
        Number of bars the moving average is shifted back.
    execution : ExecutionConfig
        Order submission parameters.
    mt5 : MT5Config
        MetaTrader 5 connection configuration.
    """

    symbol: str = "EURUSD"
    timeframe: str = "M1"
    mode: str = "paper"
    poll_interval: float = 1.0
    risk_percentage: float = 1.0
    stop_loss_pips: float = 5.0
    max_lot_size: float = 0.01
    max_open_trades: int = 5
    target_profit_amount: float = 0.15
    trailing_stop_pips: float = 3.0
    trail_start_pips: float = 5.0
    signal_indicator_period: int = 14
    overbought_level: float = 70.0
    oversold_level: float = 30.0
    trend_filter_period: int = 50
    trend_filter_shift: int = 0
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    mt5: MT5Config = field(default_factory=MT5Config)


_POSITIVE_FIELDS = (
    'poll_interval',
    'risk_percentage',
    'stop_loss_pips',
    'max_lot_size',
    'max_open_trades',
    'target_profit_amount',
    'trailing_stop_pips',
    'trail_start_pips',
    'signal_indicator_period',
    'trend_filter_period',
)


def validate_config(cfg: Config) -> Config:
    """Check value ranges and return the configuration unchanged.

    Raises
    ------
    ConfigError
        On the first offending field.
    """
    for name in _POSITIVE_FIELDS:
        value = getattr(cfg, name)
        if value <= 0:
            raise ConfigError(f"{name} must be > 0, got {value!r}")
    for name in ('overbought_level', 'oversold_level'):
        value = getattr(cfg, name)
        if not 0.0 <= value <= 100.0:
            raise ConfigError(f"{name} must lie in [0, 100], got {value!r}")
    if cfg.trend_filter_shift < 0:
        raise ConfigError(f"trend_filter_shift must be >= 0, got {cfg.trend_filter_shift!r}")
    if cfg.execution.slippage_points < 0:
        raise ConfigError(f"slippage_points must be >= 0, got {cfg.execution.slippage_points!r}")
    if cfg.execution.owner_tag <= 0:
        raise ConfigError(f"owner_tag must be > 0, got {cfg.execution.owner_tag!r}")
    if cfg.timeframe.upper() not in TIMEFRAMES:
        raise ConfigError(f"Unsupported timeframe: {cfg.timeframe}")
    if cfg.mode not in MODES:
        raise ConfigError(f"Unsupported mode: {cfg.mode}")
    if not cfg.symbol:
        raise ConfigError("symbol must not be empty")
    return cfg


def _merge_dict(defaults: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries.

    The values in `override` take precedence over those in `defaults`.
    This helper is used when loading YAML into nested dataclasses.
    """
    result: Dict[str, Any] = defaults.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def _defaults(cls: type) -> Dict[str, Any]:
    """Default values of a config dataclass as a nested dictionary."""
    instance = cls()
    out: Dict[str, Any] = {}
    for f in fields(cls):
        value = getattr(instance, f.name)
        if f.name == 'execution':
            out[f.name] = _defaults(ExecutionConfig)
        elif f.name == 'mt5':
            out[f.name] = _defaults(MT5Config)
        else:
            out[f.name] = value
    return out


def load_config(path: str) -> Config:
    """Load a configuration file from the given YAML path.

    Parameters
    ----------
    path : str
        Path to the YAML file.

    Returns
    -------
    Config
        A validated configuration object.  Missing fields are filled with
        the defaults defined in the dataclasses.

    Raises
    ------
    ConfigError
        If a key is unknown or a value is out of range.
    """
    with open(path, "r", encoding="utf-8") as fh:
        raw: Dict[str, Any] = yaml.safe_load(fh) or {}

    defaults = _defaults(Config)
    unknown = sorted(set(raw) - set(defaults))
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {unknown}")

    merged = _merge_dict(defaults, raw)

    try:
        execution_cfg = ExecutionConfig(
            slippage_points=int(merged['execution']['slippage_points']),
            owner_tag=int(merged['execution']['owner_tag']),
            comment=str(merged['execution']['comment']),
        )
        mt5_cfg = MT5Config(**merged['mt5'])
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc

    cfg = Config(
        symbol=str(merged['symbol']),
        timeframe=str(merged['timeframe']).upper(),
        mode=str(merged['mode']).lower(),
        poll_interval=float(merged['poll_interval']),
        risk_percentage=float(merged['risk_percentage']),
        stop_loss_pips=float(merged['stop_loss_pips']),
        max_lot_size=float(merged['max_lot_size']),
        max_open_trades=int(merged['max_open_trades']),
        target_profit_amount=float(merged['target_profit_amount']),
        trailing_stop_pips=float(merged['trailing_stop_pips']),
        trail_start_pips=float(merged['trail_start_pips']),
        signal_indicator_period=int(merged['signal_indicator_period']),
        overbought_level=float(merged['overbought_level']),
        oversold_level=float(merged['oversold_level']),
        trend_filter_period=int(merged['trend_filter_period']),
        trend_filter_shift=int(merged['trend_filter_shift']),
        execution=execution_cfg,
        mt5=mt5_cfg,
    )
    return validate_config(cfg)
