import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
for path in (PROJECT_ROOT, CURRENT_DIR):
    if path not in sys.path:
        sys.path.insert(0, path)

from trailbot.config.schema import Config
from trailbot.execution.errors import OpenFailure
from trailbot.execution.models import OwnerTag
from trailbot.execution.trade_opener import TradeOpener
from fakes import FakeVenue, make_snapshot

import unittest


class TestTradeOpener(unittest.TestCase):
    def setUp(self) -> None:
        self.cfg = Config(max_open_trades=5, stop_loss_pips=5, target_profit_amount=10.0)
        self.snapshot = make_snapshot(bid=1.0998, ask=1.1000, point=0.0001, digits=5, tick_value=1.0)
        self.venue = FakeVenue(self.snapshot)
        self.opener = TradeOpener(self.venue)

    def test_no_request_at_open_trade_limit(self) -> None:
        for _ in range(5):
            self.venue.add_position()
        self.assertIsNone(self.opener.open("long", 0.01, self.snapshot, self.cfg))
        self.assertEqual(self.venue.calls("open"), [])

    def test_long_opens_at_ask_with_levels(self) -> None:
        for _ in range(4):
            self.venue.add_position()
        ticket = self.opener.open("long", 0.01, self.snapshot, self.cfg)
        self.assertIsNotNone(ticket)
        self.assertEqual(self.venue.calls("open"), [("open", "EURUSD", "long", 0.01, 1.1000, 3)])
        position = self.venue.positions[ticket]
        self.assertAlmostEqual(position.stop_loss, 1.0995, places=10)
        # 10 / 1.0 = 10 points above entry
        self.assertAlmostEqual(position.take_profit, 1.1010, places=10)

    def test_short_opens_at_bid(self) -> None:
        ticket = self.opener.open("short", 0.01, self.snapshot, self.cfg)
        position = self.venue.positions[ticket]
        self.assertEqual(position.open_price, 1.0998)
        self.assertAlmostEqual(position.stop_loss, 1.1003, places=10)
        self.assertAlmostEqual(position.take_profit, 1.0988, places=10)

    def test_positions_of_other_owners_do_not_count(self) -> None:
        for _ in range(5):
            self.venue.add_position(owner_tag=OwnerTag(99))
        self.assertIsNotNone(self.opener.open("long", 0.01, self.snapshot, self.cfg))

    def test_failed_modify_keeps_position_open(self) -> None:
        self.venue.fail_modify = True
        with self.assertLogs('trailbot.execution.trade_opener', level='ERROR'):
            ticket = self.opener.open("long", 0.01, self.snapshot, self.cfg)
        self.assertIn(ticket, self.venue.positions)
        self.assertIsNone(self.venue.positions[ticket].stop_loss)

    def test_failed_open_raises_without_retry(self) -> None:
        self.venue.fail_open = True
        with self.assertRaises(OpenFailure):
            self.opener.open("long", 0.01, self.snapshot, self.cfg)
        self.assertEqual(len(self.venue.calls("open")), 1)
        self.assertEqual(self.venue.calls("modify"), [])

    def test_unknown_direction(self) -> None:
        with self.assertRaises(ValueError):
            self.opener.open("sideways", 0.01, self.snapshot, self.cfg)


if __name__ == '__main__':
    unittest.main()
