"""
Application entry point.

This module defines a simple command-line interface for running the
trade engine against a MetaTrader 5 terminal in paper (demo account)
or live mode.  It owns the process lifecycle: load the configuration,
connect, initialise the engine, then poll and tick until interrupted.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import time
from typing import Callable, List, Optional

from .config.schema import ConfigError, load_config
from .engine import TradeEngine
from .execution.errors import InitError
from .execution.mt5_exec import MT5Venue


logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def run_loop(
    engine: TradeEngine,
    poll_interval: float,
    sleep: Callable[[float], None] = time.sleep,
    max_ticks: Optional[int] = None,
) -> int:
    """Call `engine.on_tick()` every `poll_interval` seconds.

    A tick that fails to read market data is logged and skipped; the
    next poll tries again.  Returns the number of ticks attempted.
    """
    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        ticks += 1
        try:
            engine.on_tick()
        except RuntimeError as exc:
            logger.error("Tick %d aborted: %s", ticks, exc)
        sleep(poll_interval)
    return ticks


def main(argv: Optional[List[str]] = None) -> int:
    """Parse command-line arguments and run the engine."""
    parser = argparse.ArgumentParser(description="Single-symbol FX trade engine")
    parser.add_argument('mode', choices=['paper', 'live'], help="Operating mode")
    parser.add_argument('--config', default='config.yaml', help="Path to configuration YAML file")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ConfigError) as exc:
        logger.error("Cannot load configuration %s: %s", args.config, exc)
        return 2
    # Override mode from CLI
    config = dataclasses.replace(config, mode=args.mode)

    venue = MT5Venue(config)
    try:
        venue.connect()
        engine = TradeEngine(config, venue)
        engine.on_init()
    except InitError as exc:
        logger.error("Engine not started: %s", exc)
        venue.shutdown()
        return 1

    logger.info("Starting %s trading on %s", config.mode, config.symbol)
    try:
        run_loop(engine, config.poll_interval)
    except KeyboardInterrupt:
        logger.info("Shutting down trade engine...")
    finally:
        venue.shutdown()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
