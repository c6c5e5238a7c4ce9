"""
PteroGate Core Access — identity normalization, policy guard, rate
limiting and host policy (PIN, whitelist, host keys).
"""

from pterogate.core.access.identity import normalize_identity, PolicyGuard
from pterogate.core.access.rate_limiter import RateLimitLedger
from pterogate.core.access.host_policy import (
    check_pin, HostWhitelist, HostKeyVerifier, fingerprints,
)

__all__ = [
    'normalize_identity', 'PolicyGuard', 'RateLimitLedger',
    'check_pin', 'HostWhitelist', 'HostKeyVerifier', 'fingerprints',
]
