#!/usr/bin/env python3
"""
Confirmation Workflow — two-step gate in front of every new connection.

`.connect` checks the PIN and the whitelist and parks a
PendingConfirmation for the sender; the next `.confirm` either consumes it
(CONFIRMED) or discards it (CANCELLED). At most one pending entry exists
per normalized identity and nothing is persisted.
"""

import threading
from typing import Dict, List, Tuple

from pterogate.core.types import (
    AlertSeverity, ConfirmationState, NoPendingConfirmation,
    PendingConfirmation, PolicyDenied, PolicyReason, UsageError,
)
from pterogate.core.config import GatewayConfig
from pterogate.core.audit.logger import GatewayEventLog
from pterogate.core.access.identity import normalize_identity
from pterogate.core.access.host_policy import HostWhitelist, check_pin
from pterogate.core.templates import USAGE

__all__ = ['ConfirmationWorkflow', 'parse_port']


def parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        raise UsageError(USAGE['port']) from None
    if not 1 <= port <= 65535:
        raise UsageError(USAGE['port'])
    return port


class ConfirmationWorkflow:
    """Pending connection requests keyed by normalized identity."""

    def __init__(self, config: GatewayConfig, logger: GatewayEventLog):
        self.config = config
        self.logger = logger
        self.whitelist = HostWhitelist(config.host_whitelist)
        self.pending: Dict[str, PendingConfirmation] = {}
        self.lock = threading.Lock()

    def state(self, identity: str) -> ConfirmationState:
        with self.lock:
            if normalize_identity(identity) in self.pending:
                return ConfirmationState.PENDING
            return ConfirmationState.NO_PENDING

    def request(self, identity: str, conversation: str, args: List[str]) -> PendingConfirmation:
        """Validate `.connect <pin> <host> [user] [port]` and park it.

        Raises UsageError or PolicyDenied. On rejection no state changes.
        """
        if len(args) < 2:
            raise UsageError(USAGE['connect'])

        pin, host = args[0], args[1]
        user = args[2] if len(args) > 2 else self.config.default_user
        port = parse_port(args[3]) if len(args) > 3 else self.config.default_port

        if not check_pin(self.config.owner_pin, pin):
            self.logger.log_event("CONNECT_REJECTED", AlertSeverity.HIGH,
                                  {'reason': PolicyReason.WRONG_PIN.value, 'host': host})
            raise PolicyDenied(PolicyReason.WRONG_PIN)

        if not self.whitelist.is_allowed(host):
            self.logger.log_event("CONNECT_REJECTED", AlertSeverity.WARNING,
                                  {'reason': PolicyReason.HOST_NOT_WHITELISTED.value, 'host': host})
            raise PolicyDenied(PolicyReason.HOST_NOT_WHITELISTED)

        pending = PendingConfirmation(host=host, user=user, port=port, conversation=conversation)
        with self.lock:
            self.pending[normalize_identity(identity)] = pending

        self.logger.log_event("CONNECT_REQUESTED", AlertSeverity.INFO,
                              {'host': host, 'user': user, 'port': port})
        return pending

    def resolve(self, identity: str, token: str) -> Tuple[ConfirmationState, PendingConfirmation]:
        """Consume the pending entry. Raises NoPendingConfirmation."""
        with self.lock:
            pending = self.pending.pop(normalize_identity(identity), None)
        if pending is None:
            raise NoPendingConfirmation()

        if token and token.strip().lower() == self.config.confirm_token.lower():
            return ConfirmationState.CONFIRMED, pending

        self.logger.log_event("CONFIRMATION_CANCELLED", AlertSeverity.INFO, {'host': pending.host})
        return ConfirmationState.CANCELLED, pending

    def clear(self) -> int:
        with self.lock:
            count = len(self.pending)
            self.pending.clear()
            return count
