"""
Shared pytest fixtures for the PteroGate test suite.

Provides a GatewayConfig on a temp directory, a recording messenger,
an in-memory shell connector/channel, manual timers and a fake clock so
unit tests run without SSH, network or real waiting.
"""

import sys
import queue
import socket
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import after path fix
from pterogate.core.types import ConnectCause, ConnectFailure, HostKeyDecision
from pterogate.core.config import GatewayConfig
from pterogate.core.audit.logger import GatewayEventLog
from pterogate.gateway.connector import ShellConnection, ShellConnector
from pterogate.gateway.messenger import Messenger, Outbox
from pterogate.gateway.orchestrator import Gateway

OWNER = "628111222333@s.whatsapp.net"
OWNER_WITH_DEVICE = "628111222333:17@s.whatsapp.net"
STRANGER = "628999000111@s.whatsapp.net"
PIN = "4321"
HOST = "panel.example.com"
OTHER_HOST = "wings.example.com"
CHAT = "group-1@g.us"


def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class RecordingMessenger(Messenger):
    """Messenger that keeps everything it was asked to send."""

    def __init__(self):
        self.texts = []
        self.files = []

    def send_text(self, conversation, text):
        self.texts.append((conversation, text))

    def send_file(self, conversation, path, caption=""):
        self.files.append((conversation, Path(path), caption))

    @property
    def last(self) -> str:
        return self.texts[-1][1] if self.texts else ""

    def all_text(self) -> str:
        return "\n".join(t for _, t in self.texts)


class FakeChannel:
    """Shell channel backed by a queue. feed() data, end() to signal EOF."""

    def __init__(self, poll: float = 0.02):
        self.poll = poll
        self.sent = []
        self.closed = False
        self._incoming = queue.Queue()

    def feed(self, data):
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._incoming.put(data)

    def end(self):
        self._incoming.put(b'')

    def recv(self, n):
        try:
            return self._incoming.get(timeout=self.poll)
        except queue.Empty:
            raise socket.timeout()

    def send(self, data):
        if self.closed:
            raise OSError("channel closed")
        self.sent.append(data)
        return len(data)

    def sent_text(self) -> str:
        return b"".join(self.sent).decode('utf-8')

    def close(self):
        if not self.closed:
            self.closed = True
            self._incoming.put(b'')


class FakeConnector(ShellConnector):
    """Connector that hands out FakeChannels, or fails with a set cause."""

    def __init__(self):
        self.fail_cause = None
        self.shell_fail = False
        self.decision = HostKeyDecision.MATCH
        self.channels = []
        self.connections = []
        self.calls = []

    def connect(self, host, user, port, timeout, auth, verifier):
        self.calls.append((host, user, port, timeout, auth.method))
        if self.fail_cause is not None:
            raise ConnectFailure(self.fail_cause, "simulated")
        conn = ShellConnection(handle=MagicMock(), host_key_decision=self.decision,
                               fingerprint="SHA256:testfingerprint")
        self.connections.append(conn)
        return conn

    def open_shell(self, connection):
        if self.shell_fail:
            raise ConnectFailure(ConnectCause.CHANNEL_ERROR, "no shell")
        channel = FakeChannel()
        self.channels.append(channel)
        return channel

    @property
    def last_channel(self) -> FakeChannel:
        return self.channels[-1]


class ManualTimer:
    """threading.Timer stand-in that only runs when fire() is called."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    @property
    def active(self) -> bool:
        return self.started and not self.cancelled

    def fire(self):
        if self.active:
            self.cancelled = True
            self.function()


class ManualTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function):
        timer = ManualTimer(interval, function)
        self.timers.append(timer)
        return timer

    def active(self, interval=None):
        return [t for t in self.timers
                if t.active and (interval is None or t.interval == interval)]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingStreamer:
    """OutputStreamer stand-in that records start/stop only."""

    instances = []

    def __init__(self, session, outbox, conversation, interval, chunk_size,
                 pacing=0.0, sleeper=None):
        self.session = session
        self.conversation = conversation
        self.interval = interval
        self.chunk_size = chunk_size
        self.started = False
        self.stopped = False
        RecordingStreamer.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path):
    """A GatewayConfig pointing at the temp directory."""
    key = tmp_path / "id_test"
    key.write_text("not a real key\n")
    cfg = GatewayConfig(base_dir=tmp_path)
    cfg.owner_identity = OWNER
    cfg.owner_pin = PIN
    cfg.ssh_key_path = str(key)
    cfg.host_whitelist = [HOST, OTHER_HOST, "10.0.0.5"]
    cfg.rate_limit_seconds = 0.0
    cfg.session_idle_seconds = 600.0
    cfg.stream_interval = 5.0
    cfg.chunk_size = 3500
    cfg.chunk_pacing = 0.0
    return cfg


# ---------------------------------------------------------------------------
# Logger / messenger fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def event_log(config):
    """A real GatewayEventLog writing to temp logs."""
    return GatewayEventLog(config.log_dir)


@pytest.fixture
def silent_log():
    """A fully-mocked event log that records calls but writes nothing."""
    return MagicMock(spec=GatewayEventLog)


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def outbox(messenger):
    return Outbox(messenger)


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(config, messenger, connector, timers):
    """A fully wired Gateway with fakes at every external edge."""
    RecordingStreamer.instances = []
    gw = Gateway(config, messenger, connector=connector, timer_factory=timers,
                 sleeper=lambda seconds: None, streamer_factory=RecordingStreamer)
    yield gw
    gw.shutdown()


@pytest.fixture
def connected(gateway, connector, messenger):
    """Gateway with one confirmed session to HOST owned by OWNER."""
    gateway.handle(CHAT, OWNER, f".connect {PIN} {HOST}")
    gateway.handle(CHAT, OWNER, ".confirm YES")
    assert gateway.registry.get(HOST) is not None
    messenger.texts.clear()
    return gateway
