#!/usr/bin/env python3
"""
Output Streaming — moves buffered shell output to chat.

- chunk_output: split text into ordered pieces of at most N characters
- flush_output: drain a session once and send the chunks, paced
- OutputStreamer: periodic flush on a daemon thread until the session
  disconnects or the streamer is stopped
- schedule_drain: one-shot flush after a settle delay
"""

import time
import logging
import threading
from typing import Callable, List

from pterogate.core.templates import OUTPUT_BLOCK

__all__ = ['chunk_output', 'flush_output', 'OutputStreamer', 'schedule_drain']

logger = logging.getLogger('pterogate.gateway.streaming')


def chunk_output(text: str, size: int) -> List[str]:
    """Split text into ceil(len/size) ordered chunks. Lossless."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [text[i:i + size] for i in range(0, len(text), size)]


def flush_output(session, outbox, conversation: str, chunk_size: int,
                 pacing: float = 0.0, sleeper: Callable[[float], None] = time.sleep) -> int:
    """Drain session once and send non-blank output. Returns chunks sent.

    Redaction runs on the whole drain before chunking, so a secret cannot
    be split across two messages.
    """
    text = session.drain_text()
    if not text.strip():
        return 0
    text = outbox.redactor.redact(text)
    chunks = chunk_output(text, chunk_size)
    for i, chunk in enumerate(chunks):
        if i and pacing:
            sleeper(pacing)
        outbox.send_text(conversation, OUTPUT_BLOCK.format(output=chunk))
    return len(chunks)


def schedule_drain(session, outbox, conversation: str, delay: float, chunk_size: int):
    """Flush session once after delay. Cancelled if the session closes first."""
    session.schedule_once(
        delay, lambda: flush_output(session, outbox, conversation, chunk_size))


class OutputStreamer:
    """Periodic drain → chunk → send loop for one session."""

    def __init__(self, session, outbox, conversation: str, interval: float,
                 chunk_size: int, pacing: float = 0.0,
                 sleeper: Callable[[float], None] = time.sleep):
        self.session = session
        self.outbox = outbox
        self.conversation = conversation
        self.interval = interval
        self.chunk_size = chunk_size
        self.pacing = pacing
        self.sleeper = sleeper
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name=f"stream-{self.session.host}", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def tick(self) -> bool:
        """One drain/send pass. Returns False once the session is gone.

        The connected flag is read before draining so output that arrived
        just before the shell ended is still flushed on this pass.
        """
        still_connected = self.session.connected
        flush_output(self.session, self.outbox, self.conversation,
                     self.chunk_size, self.pacing, self.sleeper)
        return still_connected

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                if not self.tick():
                    break
            except Exception:
                logger.exception("Output streamer for %s failed", self.session.host)
                break
        self._stop.set()
