#!/usr/bin/env python3
"""
Panic Control — process-wide emergency lockout.

engage() closes every session without delivering logs and forgets all
selection and pending state; release() only lowers the flag.
"""

import logging
import threading

from pterogate.core.types import AlertSeverity
from pterogate.core.audit.logger import GatewayEventLog

__all__ = ['PanicControl']

logger = logging.getLogger('pterogate.gateway.panic')


class PanicControl:
    """Holds the panic flag and performs the emergency teardown."""

    def __init__(self, event_log: GatewayEventLog):
        self.event_log = event_log
        self._flag = threading.Event()

    def is_engaged(self) -> bool:
        return self._flag.is_set()

    def engage(self, registry, confirmations) -> int:
        """Set the flag, then close and forget everything. Returns sessions closed."""
        self._flag.set()
        sessions = registry.clear()
        for session in sessions:
            session.close(deliver_log=False)
        dropped = confirmations.clear()

        self.event_log.log_event("PANIC_ENGAGED", AlertSeverity.CRITICAL,
                                 {'sessions_closed': len(sessions), 'pending_dropped': dropped})
        logger.warning("Panic engaged: %d session(s) closed", len(sessions))
        return len(sessions)

    def release(self) -> None:
        self._flag.clear()
        self.event_log.log_event("PANIC_RELEASED", AlertSeverity.WARNING)
