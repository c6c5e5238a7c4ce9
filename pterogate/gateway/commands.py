#!/usr/bin/env python3
"""
Command Handlers — one method per `.`-command.

Handlers raise GatewayError subclasses for every expected failure; the
dispatcher turns those into replies. Handlers that operate on a session
resolve it through the registry and re-arm its idle timer.
"""

import time
import logging
from typing import Callable

from pterogate.core.types import (
    AlertSeverity, ConfirmationState, ConnectFailure, InboundMessage,
    ParsedCommand, PendingConfirmation, UsageError,
)
from pterogate.core.constants import (
    COMMAND_ALIASES, CTRL_C, ENTER, INSTALL_BOOTSTRAP_COMMAND, INSTALL_MODES,
    SAFE_CHECKSUM_COMMAND, SAFE_CHECKSUM_SETTLE, SAFE_DOWNLOAD_COMMAND,
    SAFE_DOWNLOAD_SETTLE, SAFE_INSTALL_MODES, SAFE_INSTALLER_PATH,
    SAFE_PREVIEW_COMMAND, SAFE_PREVIEW_SETTLE, SAFE_RUN_COMMAND, UFW_RULES,
)
from pterogate.core.access.identity import normalize_identity
from pterogate.core import templates
from pterogate.gateway.session import RemoteSession, daemon_timer
from pterogate.gateway.streaming import OutputStreamer, flush_output, schedule_drain

__all__ = ['GatewayContext', 'CommandHandlers', 'COMMAND_TABLE', 'handler_for']

logger = logging.getLogger('pterogate.gateway.commands')


class GatewayContext:
    """Bundles every collaborator the handlers need.

    The orchestrator creates one GatewayContext and wires it once.
    """
    __slots__ = (
        'config', 'event_log', 'outbox', 'registry', 'confirmations', 'panic',
        'connector', 'verifier', 'auth', 'timer_factory', 'sleeper',
        'streamer_factory',
    )

    def __init__(self, **kwargs):
        for slot in self.__slots__:
            setattr(self, slot, kwargs.get(slot))
        if self.timer_factory is None:
            self.timer_factory = daemon_timer
        if self.sleeper is None:
            self.sleeper = time.sleep
        if self.streamer_factory is None:
            self.streamer_factory = OutputStreamer


# Command name → handler method
COMMAND_TABLE = {
    'help': 'cmd_help',
    'connect': 'cmd_connect',
    'confirm': 'cmd_confirm',
    'install': 'cmd_install',
    'safeinstall': 'cmd_safeinstall',
    'dryrun': 'cmd_dryrun',
    'ufw': 'cmd_ufw',
    'send': 'cmd_send',
    'enter': 'cmd_enter',
    'ctrlc': 'cmd_ctrlc',
    'status': 'cmd_status',
    'switch': 'cmd_switch',
    'close': 'cmd_close',
    'panic': 'cmd_panic',
    'unpanic': 'cmd_unpanic',
}


class CommandHandlers:
    """Implementations behind COMMAND_TABLE."""

    def __init__(self, ctx: GatewayContext):
        self.ctx = ctx

    def reply(self, msg: InboundMessage, text: str) -> None:
        self.ctx.outbox.send_text(msg.conversation, text)

    def _session(self, msg: InboundMessage, touch: bool = True) -> RemoteSession:
        session = self.ctx.registry.resolve(msg.sender)
        if touch:
            session.reset_idle_timer()
        return session

    def _start_streamer(self, session: RemoteSession, conversation: str) -> None:
        cfg = self.ctx.config
        streamer = self.ctx.streamer_factory(
            session, self.ctx.outbox, conversation, cfg.stream_interval,
            cfg.chunk_size, cfg.chunk_pacing, self.ctx.sleeper)
        session.attach_streamer(streamer)

    # =========================================================================
    # HELP / DRYRUN
    # =========================================================================

    def cmd_help(self, msg: InboundMessage, cmd: ParsedCommand) -> None:
        self.reply(msg, templates.HELP_TEXT)

    def cmd_dryrun(self, msg, cmd):
        if not cmd.args:
            raise UsageError(templates.USAGE['dryrun'])
        self.reply(msg, templates.render_dryrun(cmd.args[0]))

    # =========================================================================
    # CONNECT / CONFIRM
    # =========================================================================

    def cmd_connect(self, msg, cmd):
        pending = self.ctx.confirmations.request(msg.sender, msg.conversation, cmd.args)
        self.reply(msg, templates.CONFIRM_PROMPT.format(
            host=pending.host, user=pending.user, port=pending.port,
            token=self.ctx.config.confirm_token))

    def cmd_confirm(self, msg, cmd):
        if cmd.args:
            token = cmd.args[0]
        elif cmd.invoked_as in COMMAND_ALIASES:
            # `.yes` on its own confirms whatever the configured token is
            token = self.ctx.config.confirm_token
        else:
            token = ""

        state, pending = self.ctx.confirmations.resolve(msg.sender, token)
        if state == ConfirmationState.CANCELLED:
            self.reply(msg, templates.CONFIRM_CANCELLED)
            return
        self._open_session(msg, pending)

    def _open_session(self, msg: InboundMessage, pending: PendingConfirmation) -> None:
        ctx = self.ctx
        self.reply(msg, templates.CONNECTING.format(host=pending.host))

        session = RemoteSession(
            pending.host, pending.user, pending.port, ctx.config, ctx.connector,
            outbox=ctx.outbox, conversation=pending.conversation,
            timer_factory=ctx.timer_factory, suppress_delivery=ctx.panic.is_engaged)
        try:
            session.open(ctx.auth, ctx.verifier)
        except ConnectFailure as e:
            ctx.event_log.log_event("CONNECT_FAILED", AlertSeverity.HIGH,
                                    {'host': pending.host, 'cause': e.cause.value})
            raise

        replaced = ctx.registry.put(pending.host, session)
        if replaced is not None:
            replaced.close()
        ctx.registry.set_current(msg.sender, pending.host)
        session.reset_idle_timer(self._on_idle_expired)

        ctx.event_log.log_event("SESSION_OPENED", AlertSeverity.INFO, {
            'host': pending.host, 'user': pending.user, 'port': pending.port,
            'auth': ctx.auth.method, 'identity': normalize_identity(msg.sender),
        })
        self.reply(msg, templates.CONNECTED.format(
            host=pending.host, user=pending.user, log_name=session.log_path.name,
            idle_minutes=int(ctx.config.session_idle_seconds // 60)))

    def _on_idle_expired(self, session: RemoteSession) -> None:
        self.ctx.registry.discard(session.host, session)
        self.ctx.event_log.log_event("SESSION_IDLE_EXPIRED", AlertSeverity.INFO, {'host': session.host})
        if session.conversation:
            self.ctx.outbox.send_text(session.conversation, templates.IDLE_CLOSED.format(
                host=session.host, minutes=int(self.ctx.config.session_idle_seconds // 60)))

    # =========================================================================
    # PROVISIONING
    # =========================================================================

    def cmd_install(self, msg, cmd):
        mode = cmd.args[0].lower() if cmd.args else ""
        if mode not in INSTALL_MODES:
            raise UsageError(templates.USAGE['install'])

        session = self._session(msg)
        session.send_input(INSTALL_BOOTSTRAP_COMMAND)
        self.reply(msg, templates.INSTALL_STARTED.format(mode=mode))
        self.ctx.sleeper(self.ctx.config.installer_settle)
        session.send_input(INSTALL_MODES[mode])
        self._start_streamer(session, msg.conversation)

    def cmd_safeinstall(self, msg, cmd):
        mode = cmd.args[0].lower() if cmd.args else ""
        if mode not in SAFE_INSTALL_MODES:
            raise UsageError(templates.USAGE['safeinstall'])

        cfg = self.ctx.config
        sleep = self.ctx.sleeper
        session = self._session(msg)

        self.reply(msg, templates.SAFE_DOWNLOADING.format(path=SAFE_INSTALLER_PATH))
        session.send_input(SAFE_DOWNLOAD_COMMAND)
        sleep(SAFE_DOWNLOAD_SETTLE)
        session.drain_text()

        session.send_input(SAFE_PREVIEW_COMMAND)
        sleep(SAFE_PREVIEW_SETTLE)
        preview = session.drain_text()
        if preview.strip():
            self.reply(msg, templates.SAFE_PREVIEW.format(output=preview[:cfg.chunk_size]))

        session.send_input(SAFE_CHECKSUM_COMMAND)
        sleep(SAFE_CHECKSUM_SETTLE)
        checksum = session.drain_text()
        if checksum.strip():
            self.reply(msg, templates.SAFE_CHECKSUM.format(output=checksum.strip()))

        self.reply(msg, templates.SAFE_RUNNING.format(mode=mode))
        session.send_input(SAFE_RUN_COMMAND)
        sleep(cfg.installer_settle)
        session.send_input(SAFE_INSTALL_MODES[mode])
        self._start_streamer(session, msg.conversation)

    def cmd_ufw(self, msg, cmd):
        args = [a.lower() for a in cmd.args]
        if len(args) != 2 or args[0] != 'open' or args[1] not in UFW_RULES:
            raise UsageError(templates.USAGE['ufw'])

        session = self._session(msg)
        session.send_input(UFW_RULES[args[1]])
        self.ctx.sleeper(self.ctx.config.ufw_settle)
        flush_output(session, self.ctx.outbox, msg.conversation, self.ctx.config.chunk_size)
        self.reply(msg, templates.UFW_DONE.format(target=args[1]))

    # =========================================================================
    # SHELL CONTROL
    # =========================================================================

    def cmd_send(self, msg, cmd):
        if not cmd.args:
            raise UsageError(templates.USAGE['send'])
        text = ' '.join(cmd.args)

        session = self._session(msg)
        session.send_input(text)
        self.reply(msg, templates.SENT.format(text=text))
        schedule_drain(session, self.ctx.outbox, msg.conversation,
                       self.ctx.config.send_settle, self.ctx.config.chunk_size)

    def cmd_enter(self, msg, cmd):
        self._session(msg).send_raw(ENTER, "ENTER")
        self.reply(msg, templates.ENTER_SENT)

    def cmd_ctrlc(self, msg, cmd):
        self._session(msg).send_raw(CTRL_C, "CTRL+C")
        self.reply(msg, templates.CTRLC_SENT)

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def cmd_status(self, msg, cmd):
        snap = self._session(msg).snapshot()
        self.reply(msg, templates.STATUS.format(
            host=snap.host, user=snap.user, port=snap.port,
            connected="yes" if snap.connected else "no",
            uptime=snap.uptime_seconds, count=len(self.ctx.registry)))

    def cmd_switch(self, msg, cmd):
        if not cmd.args:
            raise UsageError(templates.USAGE['switch'])
        session = self.ctx.registry.switch(msg.sender, cmd.args[0])
        self.reply(msg, templates.SWITCHED.format(host=session.host))

    def cmd_close(self, msg, cmd):
        session = self._session(msg, touch=False)
        self.ctx.registry.remove(session.host)
        session.close()
        self.ctx.event_log.log_event("SESSION_CLOSED", AlertSeverity.INFO, {'host': session.host})
        self.reply(msg, templates.CLOSED.format(host=session.host))

    # =========================================================================
    # PANIC
    # =========================================================================

    def cmd_panic(self, msg, cmd):
        closed = self.ctx.panic.engage(self.ctx.registry, self.ctx.confirmations)
        self.reply(msg, templates.PANIC_ENGAGED.format(count=closed))

    def cmd_unpanic(self, msg, cmd):
        self.ctx.panic.release()
        self.reply(msg, templates.PANIC_RELEASED)


def handler_for(handlers: CommandHandlers, name: str) -> Callable:
    method_name = COMMAND_TABLE.get(name)
    return getattr(handlers, method_name) if method_name else None
