#!/usr/bin/env python3
"""
PteroGate Core Access — Rate Limit Ledger
==========================================
Per-identity minimum interval between accepted commands. The ledger only
advances on acceptance, so a burst of rejected commands never pushes the
window further out.

Import from: pterogate.core.access.rate_limiter
"""

import time
import threading
from typing import Callable, Dict, Optional


class RateLimitLedger:
    """Tracks the last accepted command time per normalized identity."""

    def __init__(self, min_interval: float, clock: Callable[[], float] = None):
        self.min_interval = min_interval
        self.clock = clock or time.monotonic
        self._last_accepted: Dict[str, float] = {}
        self.lock = threading.Lock()

    def try_acquire(self, identity: str) -> bool:
        """Check and record in one step. Returns False without recording."""
        with self.lock:
            now = self.clock()
            last = self._last_accepted.get(identity)
            if last is not None and (now - last) < self.min_interval:
                return False
            self._last_accepted[identity] = now
            return True

    def last_accepted(self, identity: str) -> Optional[float]:
        with self.lock:
            return self._last_accepted.get(identity)


__all__ = ['RateLimitLedger']
