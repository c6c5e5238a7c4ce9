#!/usr/bin/env python3
"""
Remote Session — one authenticated interactive shell on one host.

Owns the shell, the drain-on-read output buffer, the idle timer, the
attached output streamer and the per-session audit log. Every background
activity it starts (reader thread, idle timer, one-shot drain, streamer,
delayed log delivery) is cancelled or observes the closed state on close().
"""

import time
import codecs
import socket
import logging
import threading
from typing import Callable, Optional

from pterogate.core.types import ConnectFailure, HostKeyDecision, NotConnected, SessionSnapshot
from pterogate.core.config import GatewayConfig
from pterogate.core.constants import SHELL_RECV_BYTES
from pterogate.core.audit.session_log import SessionAuditLog
from pterogate.core.access.host_policy import HostKeyVerifier
from pterogate.core import templates
from pterogate.gateway.connector import AuthMaterial, ShellConnector

__all__ = ['RemoteSession', 'daemon_timer']

logger = logging.getLogger('pterogate.gateway.session')


def daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    t = threading.Timer(interval, function)
    t.daemon = True
    return t


class RemoteSession:
    """Live shell on one host plus its buffer, timers and audit trail."""

    def __init__(self, host: str, user: str, port: int, config: GatewayConfig,
                 connector: ShellConnector, outbox=None, conversation: str = "",
                 timer_factory: Callable = None,
                 suppress_delivery: Callable[[], bool] = None):
        self.host = host
        self.user = user
        self.port = port
        self.config = config
        self.connector = connector
        self.outbox = outbox
        self.conversation = conversation
        self.timer_factory = timer_factory or daemon_timer
        self.suppress_delivery = suppress_delivery

        self.created_at = time.time()
        self.audit = SessionAuditLog(config.log_dir, host, int(self.created_at * 1000))

        self._connection = None
        self._shell = None
        self._connected = False
        self._closed = False

        self._buffer = bytearray()
        self._buffer_lock = threading.Lock()
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self._write_lock = threading.Lock()
        self._state_lock = threading.RLock()

        self._reader: Optional[threading.Thread] = None
        self._idle_timer = None
        self._on_idle_expire: Optional[Callable] = None
        self._streamer = None
        self._drain_timer = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def log_path(self):
        return self.audit.path

    @property
    def streamer(self):
        return self._streamer

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            host=self.host, user=self.user, port=self.port,
            connected=self._connected,
            uptime_seconds=int(time.time() - self.created_at),
            log_path=str(self.audit.path),
        )

    # =========================================================================
    # OPEN
    # =========================================================================

    def open(self, auth: AuthMaterial, verifier: HostKeyVerifier) -> None:
        """Connect, verify the host key, open the shell and start reading.

        Raises ConnectFailure; the cause is written to the audit log first.
        """
        self.audit.write(f"CONNECT: {self.user}@{self.host}:{self.port} auth={auth.method}")
        try:
            connection = self.connector.connect(
                self.host, self.user, self.port, self.config.connect_timeout, auth, verifier)
        except ConnectFailure as e:
            self.audit.write(f"ERROR: connect failed ({e.cause.value}): {e}")
            raise

        self.audit.write(f"HOSTKEY: {connection.host_key_decision.value} {connection.fingerprint}".rstrip())
        if connection.host_key_decision == HostKeyDecision.UNVERIFIED_ALLOWED:
            self.audit.write("WARNING: host key accepted without verification")

        try:
            shell = self.connector.open_shell(connection)
        except ConnectFailure as e:
            self.audit.write(f"ERROR: shell failed ({e.cause.value}): {e}")
            connection.close()
            raise

        with self._state_lock:
            self._connection = connection
            self._shell = shell
            self._connected = True

        self.audit.write("SESSION: shell ready")
        self._reader = threading.Thread(
            target=self._read_loop, args=(shell,),
            name=f"reader-{self.host}", daemon=True)
        self._reader.start()

    def _read_loop(self, shell) -> None:
        reason = "remote shell closed"
        try:
            while not self._closed:
                try:
                    data = shell.recv(SHELL_RECV_BYTES)
                except socket.timeout:
                    continue
                if not data:
                    break
                with self._buffer_lock:
                    self._buffer.extend(data)
                self.audit.write("OUTPUT: " + data.decode('utf-8', errors='replace'))
        except Exception as e:
            reason = f"read error: {e}"
            if not self._closed:
                logger.warning("Reader for %s stopped: %s", self.host, e)
        finally:
            self._on_stream_end(reason)

    def _on_stream_end(self, reason: str) -> None:
        with self._state_lock:
            if self._closed or not self._connected:
                return
            self._connected = False
        self.audit.write(f"SESSION: {reason}")
        if self.outbox and self.conversation:
            self.outbox.send_text(self.conversation, templates.SESSION_ENDED.format(host=self.host))

    # =========================================================================
    # INPUT / OUTPUT
    # =========================================================================

    def send_input(self, text: str) -> None:
        """Write one line (text + newline) to the shell."""
        self._write(text + "\n", f"COMMAND: {text}")

    def send_raw(self, data: str, label: str = "") -> None:
        """Write control input (Ctrl+C, bare ENTER) as-is."""
        self._write(data, f"INPUT: {label or repr(data)}")

    def _write(self, data: str, audit_line: str) -> None:
        with self._write_lock:
            if not self._connected or self._shell is None:
                raise NotConnected(f"session {self.host} is not connected")
            try:
                self._shell.send(data.encode('utf-8'))
            except OSError as e:
                self.audit.write(f"ERROR: write failed: {e}")
                self._on_stream_end(f"write error: {e}")
                raise NotConnected(str(e)) from e
            self.audit.write(audit_line)

    def drain_output(self) -> bytes:
        """Return and clear everything buffered so far. Never blocks."""
        with self._buffer_lock:
            data = bytes(self._buffer)
            self._buffer.clear()
        return data

    def drain_text(self) -> str:
        """drain_output() decoded, keeping split multibyte sequences for later."""
        with self._buffer_lock:
            data = bytes(self._buffer)
            self._buffer.clear()
            return self._decoder.decode(data)

    # =========================================================================
    # TIMERS / STREAMER
    # =========================================================================

    def reset_idle_timer(self, on_expire: Callable = None) -> None:
        """(Re)arm the idle timer. Keeps the previous callback if none given."""
        with self._state_lock:
            if self._idle_timer is not None:
                self._idle_timer.cancel()
                self._idle_timer = None
            if self._closed:
                return
            if on_expire is not None:
                self._on_idle_expire = on_expire
            self._idle_timer = self.timer_factory(self.config.session_idle_seconds, self._idle_expired)
            self._idle_timer.start()

    def _idle_expired(self) -> None:
        with self._state_lock:
            if self._closed:
                return
            callback = self._on_idle_expire
        self.audit.write("SESSION: idle timeout")
        self.close()
        if callback is not None:
            callback(self)

    def schedule_once(self, delay: float, function: Callable[[], None]) -> None:
        """Run function after delay unless the session closes first.

        Replaces any one-shot still pending.
        """
        with self._state_lock:
            if self._drain_timer is not None:
                self._drain_timer.cancel()
                self._drain_timer = None
            if self._closed:
                return
            self._drain_timer = self.timer_factory(delay, function)
            self._drain_timer.start()

    def attach_streamer(self, streamer) -> None:
        """Start streamer as this session's only output loop."""
        with self._state_lock:
            previous = self._streamer
            self._streamer = streamer
        if previous is not None:
            previous.stop()
        streamer.start()

    # =========================================================================
    # CLOSE
    # =========================================================================

    def close(self, deliver_log: bool = True) -> bool:
        """Tear everything down. Returns False if already closed."""
        with self._state_lock:
            if self._closed:
                return False
            self._closed = True
            self._connected = False
            timer, self._idle_timer = self._idle_timer, None
            drain, self._drain_timer = self._drain_timer, None
            streamer, self._streamer = self._streamer, None
            shell, self._shell = self._shell, None
            connection, self._connection = self._connection, None

        for pending in (timer, drain):
            if pending is not None:
                pending.cancel()
        if streamer is not None:
            streamer.stop()
        for handle in (shell, connection):
            if handle is None:
                continue
            try:
                handle.close()
            except Exception as e:
                logger.debug("Error closing %s handle: %s", self.host, e)

        self.audit.write("SESSION: closed")
        logger.info("Session %s closed", self.host)

        if deliver_log and self.outbox and self.conversation:
            delivery = self.timer_factory(self.config.log_delivery_delay, self._deliver_log)
            delivery.start()
        return True

    def _deliver_log(self) -> None:
        if self.suppress_delivery is not None and self.suppress_delivery():
            self.audit.write("SESSION: log delivery suppressed")
            return
        self.outbox.send_file(self.conversation, self.audit.path,
                              templates.LOG_CAPTION.format(host=self.host))
