"""
Exceptions raised by the execution venue and the engine.

Request rejections (`OpenFailure`, `ModifyFailure`, `CloseFailure`)
are never fatal: callers log them and move on, and the next tick
re-evaluates the position from a fresh read.  Only `InitError` stops
the engine from running.
"""

from __future__ import annotations

from typing import Optional


class TradeError(RuntimeError):
    """A trade request was rejected by the venue."""

    def __init__(self, message: str, retcode: Optional[int] = None, comment: str = "") -> None:
        super().__init__(message)
        self.retcode = retcode
        self.comment = comment

    def __str__(self) -> str:
        text = super().__str__()
        if self.retcode is not None:
            text = f"{text} (retcode={self.retcode}, comment={self.comment!r})"
        return text


class OpenFailure(TradeError):
    """A new position was rejected."""


class ModifyFailure(TradeError):
    """A stop-loss/take-profit update was rejected."""


class CloseFailure(TradeError):
    """A close request was rejected."""


class InitError(RuntimeError):
    """The engine cannot start (bad configuration, lot size or account)."""
