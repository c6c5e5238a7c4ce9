#!/usr/bin/env python3
"""
Command Dispatcher — inbound chat text → guard → handler → reply.

Messages not starting with `.` are ignored. Everything else is parsed,
run through the PolicyGuard and, if accepted, handed to the matching
handler. One message is processed at a time. No exception escapes
handle(): typed gateway errors become their short reply and anything
else is logged with its traceback and reported as a generic failure.
"""

import logging
import threading
from typing import Optional

from pterogate.core.types import (
    AlertSeverity, ErrorKind, GatewayError, InboundMessage, ParsedCommand,
    PolicyDecision, PolicyDenied, UsageError,
)
from pterogate.core.constants import COMMAND_ALIASES, COMMAND_PREFIX
from pterogate.core.access.identity import PolicyGuard, normalize_identity
from pterogate.core import templates
from pterogate.gateway.commands import CommandHandlers, GatewayContext, handler_for

__all__ = ['CommandDispatcher', 'parse_command']

logger = logging.getLogger('pterogate.gateway.dispatcher')

# Guard decision → event log entry
_REJECTION_EVENTS = {
    PolicyDecision.REJECT_NOT_OWNER: ("AUTH_DENIED", AlertSeverity.WARNING),
    PolicyDecision.REJECT_PANIC: ("PANIC_REJECTED", AlertSeverity.INFO),
    PolicyDecision.REJECT_RATE_LIMITED: ("RATE_LIMITED", AlertSeverity.INFO),
}


def parse_command(text: str) -> Optional[ParsedCommand]:
    """`.Install Panel` → ParsedCommand('install', ['Panel']). None if not a command."""
    text = (text or "").strip()
    if not text.startswith(COMMAND_PREFIX):
        return None
    parts = text[len(COMMAND_PREFIX):].split()
    if not parts:
        return None
    invoked = parts[0].lower()
    return ParsedCommand(name=COMMAND_ALIASES.get(invoked, invoked),
                         args=parts[1:], invoked_as=invoked)


class CommandDispatcher:
    """Serializes inbound commands through guard and handlers."""

    def __init__(self, ctx: GatewayContext, guard: PolicyGuard,
                 handlers: CommandHandlers = None):
        self.ctx = ctx
        self.guard = guard
        self.handlers = handlers or CommandHandlers(ctx)
        self.lock = threading.Lock()

    def handle(self, message: InboundMessage) -> Optional[PolicyDecision]:
        """Process one message. Returns the guard decision, None if ignored."""
        parsed = parse_command(message.text)
        if parsed is None:
            return None

        with self.lock:
            decision = self.guard.evaluate(message.sender, parsed.name)
            if decision != PolicyDecision.ACCEPT:
                event, severity = _REJECTION_EVENTS[decision]
                self.ctx.event_log.log_event(event, severity, {
                    'sender': normalize_identity(message.sender), 'command': parsed.name})
                self._reply(message, templates.POLICY_REPLIES[decision])
                return decision

            self.ctx.event_log.log_event("COMMAND_ACCEPTED", AlertSeverity.INFO,
                                         {'command': parsed.name, 'args': len(parsed.args)})
            self._invoke(message, parsed)
            return decision

    def _invoke(self, message: InboundMessage, parsed: ParsedCommand) -> None:
        handler = handler_for(self.handlers, parsed.name)
        if handler is None:
            self._reply(message, templates.UNKNOWN_COMMAND)
            return

        try:
            handler(message, parsed)
        except PolicyDenied as e:
            self._reply(message, templates.POLICY_REASON_REPLIES.get(
                e.reason, templates.ERROR_REPLIES[e.kind]))
        except UsageError as e:
            self._reply(message, e.message or templates.ERROR_REPLIES[ErrorKind.USAGE])
        except GatewayError as e:
            logger.info("%s failed: %s (%s)", parsed.name, e.kind.value, e)
            self._reply(message, templates.ERROR_REPLIES[e.kind])
        except Exception as e:
            logger.exception("Handler for .%s crashed", parsed.name)
            self.ctx.event_log.log_event("HANDLER_FAULT", AlertSeverity.HIGH,
                                         {'command': parsed.name, 'error': type(e).__name__})
            self._reply(message, templates.ERROR_REPLIES[ErrorKind.HANDLER_FAULT])

    def _reply(self, message: InboundMessage, text: str) -> None:
        self.ctx.outbox.send_text(message.conversation, text)
