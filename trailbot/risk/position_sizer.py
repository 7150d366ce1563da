"""
Risk-based position sizing.

The lot size is derived once, at engine start, from the account
balance and the configured risk share, then clamped to the broker's
limits and to a fixed safety ceiling.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_DOWN

from ..config.schema import Config
from ..data.snapshot import MarketSnapshot
from ..execution.errors import InitError


logger = logging.getLogger(__name__)


def _dec(value) -> Decimal:
    return Decimal(str(value))


def quantize_down(volume, step: float) -> float:
    """Round `volume` down to a multiple of `step`.

    `volume` may be a float or a Decimal.  Decimal arithmetic avoids
    results such as ``0.30000000000000004``.
    """
    step_dec = _dec(step)
    steps = (_dec(volume) / step_dec).quantize(Decimal('1'), rounding=ROUND_DOWN)
    return float(steps * step_dec)


class PositionSizer:
    """Convert a risk budget into a tradable lot size.

    Parameters
    ----------
    max_lot_size : float
        Hard ceiling applied after the broker limits.  Whatever the risk
        formula yields, the result never exceeds it.
    """

    def __init__(self, max_lot_size: float) -> None:
        if max_lot_size <= 0:
            raise InitError(f"Lot size ceiling must be positive, got {max_lot_size}")
        self.max_lot_size = max_lot_size

    def _risk_lots(self, balance: float, config: Config, snapshot: MarketSnapshot) -> Decimal:
        # Exact decimal math so a result on a step boundary is not rounded a step down
        risk = _dec(balance) * _dec(config.risk_percentage) / Decimal(100)
        return risk / (_dec(config.stop_loss_pips) * _dec(snapshot.tick_value))

    def raw_lot_size(self, balance: float, config: Config, snapshot: MarketSnapshot) -> float:
        """Lot size from the risk formula alone."""
        return float(self._risk_lots(balance, config, snapshot))

    def compute_lot_size(self, balance: float, config: Config, snapshot: MarketSnapshot) -> float:
        """Compute the lot size for every trade of this run.

        Raises
        ------
        InitError
            If the inputs are unusable or no valid lot size fits under
            the ceiling.
        """
        if balance <= 0:
            raise InitError(f"Account balance must be positive, got {balance}")
        if snapshot.tick_value <= 0:
            raise InitError(f"Tick value must be positive, got {snapshot.tick_value}")
        if snapshot.lot_step <= 0 or snapshot.min_lot <= 0 or snapshot.max_lot < snapshot.min_lot:
            raise InitError(
                f"Invalid lot limits: min={snapshot.min_lot} max={snapshot.max_lot} step={snapshot.lot_step}"
            )

        raw = self._risk_lots(balance, config, snapshot)
        clamped = min(max(raw, _dec(snapshot.min_lot)), _dec(snapshot.max_lot))
        capped = min(clamped, _dec(self.max_lot_size))
        lot_size = quantize_down(capped, snapshot.lot_step)

        logger.info(
            "Lot size: raw=%.4f clamped=%.4f ceiling=%s -> %s",
            raw, clamped, self.max_lot_size, lot_size,
        )
        if lot_size < snapshot.min_lot or lot_size <= 0:
            raise InitError(
                f"Derived lot size {lot_size} is below the broker minimum {snapshot.min_lot} "
                f"(ceiling {self.max_lot_size})"
            )
        return lot_size
