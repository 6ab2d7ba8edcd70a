"""
auth/clock.py -- Time source for token issuance and expiry checks.

Token timestamps are integer seconds since the Unix epoch (the JWT "NumericDate"
convention). Every token operation takes a clock argument instead of calling
time.time() directly, so tests can pin "now" and step it forward to exercise
expiry without sleeping.

Layer rule: stdlib only.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


@dataclass
class FixedClock:
    """A clock that only moves when told to.

    Usage:
        clock = FixedClock(1_700_000_000)
        token = encode_token(identity, secret, 60, clock=clock).unwrap()
        clock.advance(61)
        decode_token(token, secret, clock=clock)  # -> TokenExpired
    """

    current: int

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


SYSTEM_CLOCK = SystemClock()
