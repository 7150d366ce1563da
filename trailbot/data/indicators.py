"""
Indicator calculations on close prices.

Both functions take a pandas Series of closes ordered oldest first and
return the value for the most recent bar.  With too little history
they return ``0.0`` instead of raising, so a freshly started terminal
never breaks the tick loop.
"""

from __future__ import annotations

import pandas as pd


def rsi(closes: pd.Series, period: int) -> float:
    """Relative Strength Index with Wilder smoothing, in [0, 100]."""
    if period <= 0 or len(closes) < period + 1:
        return 0.0
    delta = closes.astype(float).diff().dropna()
    gains = delta.clip(lower=0.0)
    losses = -delta.clip(upper=0.0)
    avg_gain = gains.ewm(alpha=1.0 / period, adjust=False, min_periods=period).mean().iloc[-1]
    avg_loss = losses.ewm(alpha=1.0 / period, adjust=False, min_periods=period).mean().iloc[-1]
    if pd.isna(avg_gain) or pd.isna(avg_loss):
        return 0.0
    if avg_loss == 0:
        # Flat series reads as neutral
        return 100.0 if avg_gain > 0 else 50.0
    rs = avg_gain / avg_loss
    return float(100.0 - 100.0 / (1.0 + rs))


def sma(closes: pd.Series, period: int, shift: int = 0) -> float:
    """Simple moving average ending `shift` bars before the latest one."""
    if period <= 0 or shift < 0 or len(closes) < period + shift:
        return 0.0
    end = len(closes) - shift
    window = closes.astype(float).iloc[end - period:end]
    return float(window.mean())
