#!/usr/bin/env python3
"""
PteroGate Core Access — Identity & Policy Guard
================================================
Decides whether an inbound command may run at all:

1. Sender must be the owner (checked first, so outsiders get one uniform
   denial whatever the gateway state is)
2. Panic mode blocks everything except `unpanic`
3. Rate limit, per normalized identity

Import from: pterogate.core.access.identity
"""

import re
from typing import Callable

from pterogate.core.types import PolicyDecision
from pterogate.core.constants import PANIC_EXEMPT_COMMANDS
from pterogate.core.access.rate_limiter import RateLimitLedger

# Device suffix some transports put between user and domain: 628123:17@s.whatsapp.net
_DEVICE_SUFFIX = re.compile(r':\d+@')


def normalize_identity(identity: str) -> str:
    """Strip whitespace and any `:<digits>` device segment before `@`."""
    if not identity:
        return ""
    return _DEVICE_SUFFIX.sub('@', identity.strip())


class PolicyGuard:
    """Owner / panic / rate-limit gate in front of the dispatcher."""

    def __init__(self, owner_identity: str, ledger: RateLimitLedger,
                 panic_engaged: Callable[[], bool]):
        self.owner = normalize_identity(owner_identity)
        self.ledger = ledger
        self.panic_engaged = panic_engaged

    def is_owner(self, identity: str) -> bool:
        return bool(self.owner) and normalize_identity(identity) == self.owner

    def evaluate(self, sender: str, command: str) -> PolicyDecision:
        identity = normalize_identity(sender)
        if not self.is_owner(identity):
            return PolicyDecision.REJECT_NOT_OWNER
        if self.panic_engaged() and command not in PANIC_EXEMPT_COMMANDS:
            return PolicyDecision.REJECT_PANIC
        if not self.ledger.try_acquire(identity):
            return PolicyDecision.REJECT_RATE_LIMITED
        return PolicyDecision.ACCEPT


__all__ = ['normalize_identity', 'PolicyGuard']
