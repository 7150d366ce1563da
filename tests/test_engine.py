import os
import sys
from dataclasses import replace

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
for path in (PROJECT_ROOT, CURRENT_DIR):
    if path not in sys.path:
        sys.path.insert(0, path)

from trailbot.config.schema import Config
from trailbot.engine import TradeEngine
from trailbot.execution.errors import InitError
from trailbot.execution.venue import RSI, SMA
from fakes import FakeVenue, make_snapshot

import unittest


class _FailingReadVenue(FakeVenue):
    """Fails the n-th position read with a terminal error."""

    def __init__(self, fail_on_call: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.fail_on_call = fail_on_call
        self.list_calls = 0

    def list_open_positions(self, symbol, owner_tag):
        self.list_calls += 1
        if self.list_calls == self.fail_on_call:
            raise RuntimeError("positions_get failed for EURUSD")
        return super().list_open_positions(symbol, owner_tag)


class TestTradeEngine(unittest.TestCase):
    def setUp(self) -> None:
        self.cfg = Config(
            risk_percentage=1.0,
            stop_loss_pips=5,
            max_lot_size=0.01,
            max_open_trades=5,
            target_profit_amount=0.15,
        )
        self.venue = FakeVenue(make_snapshot(bid=1.1000, ask=1.1002, tick_value=1.0), balance=10_000.0)
        self.venue.indicators = {RSI: 50.0, SMA: 1.0990}
        self.engine = TradeEngine(self.cfg, self.venue)

    def _request_names(self):
        return [r[0] for r in self.venue.requests if r[0] != "indicator"]

    def test_tick_requires_init(self) -> None:
        with self.assertRaises(RuntimeError):
            self.engine.on_tick()

    def test_init_derives_capped_lot_size(self) -> None:
        self.assertEqual(self.engine.on_init(), 0.01)
        self.assertEqual(self.engine.lot_size, 0.01)

    def test_init_failures(self) -> None:
        self.venue.balance = 0.0
        with self.assertRaises(InitError):
            self.engine.on_init()
        bad = TradeEngine(replace(self.cfg, risk_percentage=0), FakeVenue())
        with self.assertRaises(InitError):
            bad.on_init()

    def test_tick_opens_then_manages(self) -> None:
        self.engine.on_init()
        self.engine.on_tick()
        self.assertEqual(self._request_names(), ["open", "modify"])
        opened = self.venue.calls("open")[0]
        self.assertEqual(opened[2:5], ("long", 0.01, 1.1002))

    def test_open_failure_does_not_skip_management(self) -> None:
        self.engine.on_init()
        winner = self.venue.add_position(profit=1.0, stop_loss=1.0995, take_profit=1.1020)
        self.venue.fail_open = True
        with self.assertLogs('trailbot.engine', level='ERROR'):
            self.engine.on_tick()
        self.assertEqual(self._request_names(), ["open", "modify", "close"])
        self.assertNotIn(winner.ticket, self.venue.positions)

    def test_failed_trailing_read_does_not_skip_profit_target(self) -> None:
        # Reads: opener count, trailing scan (fails), profit-target scan
        venue = _FailingReadVenue(2, snapshot=make_snapshot(bid=1.1000, ask=1.1002))
        venue.indicators = {RSI: 50.0, SMA: 1.0990}
        engine = TradeEngine(self.cfg, venue)
        engine.on_init()
        winner = venue.add_position(profit=1.0, stop_loss=1.0995)
        with self.assertLogs('trailbot.engine', level='ERROR') as logs:
            engine.on_tick()
        self.assertIn("TrailingStopManager", logs.output[0])
        self.assertEqual([r[0] for r in venue.requests if r[0] != "indicator"], ["open", "modify", "close"])
        self.assertNotIn(winner.ticket, venue.positions)
        self.assertEqual(venue.positions[winner.ticket + 1].stop_loss, 1.0997)

    def test_failed_entry_read_still_manages(self) -> None:
        venue = _FailingReadVenue(1, snapshot=make_snapshot(bid=1.1000, ask=1.1002))
        venue.indicators = {RSI: 50.0, SMA: 1.0990}
        engine = TradeEngine(self.cfg, venue)
        engine.on_init()
        venue.add_position(profit=1.0, stop_loss=1.0995)
        with self.assertLogs('trailbot.engine', level='ERROR'):
            engine.on_tick()
        self.assertEqual([r[0] for r in venue.requests if r[0] != "indicator"], ["modify", "close"])

    def test_no_open_at_limit(self) -> None:
        self.engine.on_init()
        for _ in range(5):
            self.venue.add_position(stop_loss=1.0995)
        self.engine.on_tick()
        self.assertEqual(self.venue.calls("open"), [])
        self.assertEqual(len(self.venue.positions), 5)

    def test_open_trades_never_exceed_limit(self) -> None:
        self.engine.on_init()
        for _ in range(20):
            self.engine.on_tick()
            self.assertLessEqual(len(self.venue.positions), self.cfg.max_open_trades)
        self.assertEqual(len(self.venue.calls("open")), self.cfg.max_open_trades)


if __name__ == '__main__':
    unittest.main()
