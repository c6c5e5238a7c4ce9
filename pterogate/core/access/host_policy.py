#!/usr/bin/env python3
"""
PteroGate Core Access — Host Policy
====================================
Checks applied before and during a connect:
- PIN comparison (constant time; an unset PIN matches nothing)
- Exact-match host whitelist
- Host key fingerprint verification, fail-closed unless the operator has
  explicitly allowed unverified keys

Import from: pterogate.core.access.host_policy
"""

import base64
import hashlib
import hmac
import logging
from typing import Dict, Iterable, Tuple

from pterogate.core.types import HostKeyDecision

logger = logging.getLogger('pterogate.core.access.host_policy')


def check_pin(expected: str, provided: str) -> bool:
    """Timing-safe PIN check. An empty configured PIN rejects everything."""
    if not expected:
        return False
    return hmac.compare_digest(expected.encode('utf-8'), (provided or '').encode('utf-8'))


class HostWhitelist:
    """Exact string match against configured hosts. Empty allows any host."""

    def __init__(self, hosts: Iterable[str] = ()):
        self.hosts = frozenset(h for h in hosts if h)

    def is_allowed(self, host: str) -> bool:
        if not self.hosts:
            return True
        return host in self.hosts


def fingerprints(key_blob: bytes) -> Tuple[str, str]:
    """Return (hex, OpenSSH 'SHA256:<b64>') fingerprints of a raw key blob."""
    digest = hashlib.sha256(key_blob).digest()
    b64 = base64.b64encode(digest).decode('ascii').rstrip('=')
    return digest.hex(), f"SHA256:{b64}"


def _normalize_expected(value: str) -> str:
    value = value.strip()
    if value.upper().startswith('SHA256:'):
        return 'SHA256:' + value[7:].rstrip('=')
    return value.replace(':', '').lower()


class HostKeyVerifier:
    """Decides whether a presented host key is acceptable for a host."""

    def __init__(self, expected: Dict[str, str] = None, allow_unverified: bool = False):
        self.expected = {h: _normalize_expected(fp) for h, fp in (expected or {}).items()}
        self.allow_unverified = allow_unverified

    def check(self, host: str, key_blob: bytes) -> HostKeyDecision:
        hex_fp, ssh_fp = fingerprints(key_blob)
        expected = self.expected.get(host)

        if expected is not None:
            presented = ssh_fp if expected.startswith('SHA256:') else hex_fp
            if hmac.compare_digest(expected.encode('utf-8'), presented.encode('utf-8')):
                return HostKeyDecision.MATCH
            logger.warning("Host key mismatch for %s: got %s", host, ssh_fp)
            return HostKeyDecision.REJECTED

        # Only hosts without a pinned fingerprint can be let through
        if self.allow_unverified:
            logger.warning("Accepting UNVERIFIED host key for %s (%s)", host, ssh_fp)
            return HostKeyDecision.UNVERIFIED_ALLOWED

        logger.warning("Refusing host key for %s (%s)", host, ssh_fp)
        return HostKeyDecision.REJECTED


__all__ = ['check_pin', 'HostWhitelist', 'HostKeyVerifier', 'fingerprints']
