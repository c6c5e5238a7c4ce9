"""
PteroGate Core Types — Shared enums, dataclasses, and exceptions.

This module centralizes the type definitions used across the gateway.
Both layers (core and gateway) import types from here.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional


# =============================================================================
# ENUMS
# =============================================================================

class ErrorKind(Enum):
    """Closed set of failure categories reported back to the operator."""
    AUTH_DENIED = "auth_denied"
    POLICY_DENIED = "policy_denied"
    NO_ACTIVE_SESSION = "no_active_session"
    NO_SUCH_SESSION = "no_such_session"
    NO_PENDING_CONFIRMATION = "no_pending_confirmation"
    CONNECT_FAILURE = "connect_failure"
    NOT_CONNECTED = "not_connected"
    USAGE = "usage"
    HANDLER_FAULT = "handler_fault"
    CONFIG = "config"


class PolicyReason(Enum):
    """Why a PolicyDenied was raised."""
    PANIC = "panic"
    RATE_LIMITED = "rate_limited"
    HOST_NOT_WHITELISTED = "host_not_whitelisted"
    WRONG_PIN = "wrong_pin"


class ConnectCause(Enum):
    """Distinct causes behind a ConnectFailure."""
    AUTH_FAILURE = "auth_failure"
    HOST_KEY_MISMATCH = "host_key_mismatch"
    CONNECT_TIMEOUT = "connect_timeout"
    CHANNEL_ERROR = "channel_error"
    NETWORK_ERROR = "network_error"
    KEY_UNREADABLE = "key_unreadable"


class PolicyDecision(Enum):
    """Outcome of the identity/policy guard for one inbound command."""
    ACCEPT = auto()
    REJECT_NOT_OWNER = auto()
    REJECT_PANIC = auto()
    REJECT_RATE_LIMITED = auto()


class ConfirmationState(Enum):
    """States of the two-step connect gate."""
    NO_PENDING = auto()
    PENDING = auto()
    CONFIRMED = auto()
    CANCELLED = auto()


class HostKeyDecision(Enum):
    """Result of checking a presented host key."""
    MATCH = "match"
    UNVERIFIED_ALLOWED = "unverified_allowed"
    REJECTED = "rejected"


class AlertSeverity(Enum):
    """Severity levels for gateway events."""
    INFO = "info"
    WARNING = "warning"
    HIGH = "high"
    CRITICAL = "critical"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class GatewayError(Exception):
    """Base exception for all gateway errors. Subclasses fix `kind`."""

    kind = ErrorKind.HANDLER_FAULT

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message


class AuthDenied(GatewayError):
    """Sender is not the configured owner."""
    kind = ErrorKind.AUTH_DENIED


class PolicyDenied(GatewayError):
    """Sender is the owner but policy refuses the request."""
    kind = ErrorKind.POLICY_DENIED

    def __init__(self, reason: PolicyReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


class NoActiveSession(GatewayError):
    """Sender has no current session selected."""
    kind = ErrorKind.NO_ACTIVE_SESSION


class NoSuchSession(GatewayError):
    """No session is registered for the requested host."""
    kind = ErrorKind.NO_SUCH_SESSION

    def __init__(self, host: str):
        super().__init__(f"no session for {host}")
        self.host = host


class NoPendingConfirmation(GatewayError):
    """A confirm arrived without a preceding connect."""
    kind = ErrorKind.NO_PENDING_CONFIRMATION


class ConnectFailure(GatewayError):
    """Opening a remote session failed."""
    kind = ErrorKind.CONNECT_FAILURE

    def __init__(self, cause: ConnectCause, message: str = ""):
        super().__init__(message or cause.value)
        self.cause = cause


class NotConnected(GatewayError):
    """Input was sent to a session whose shell is gone."""
    kind = ErrorKind.NOT_CONNECTED


class UsageError(GatewayError):
    """Malformed command arguments. The message is the usage line."""
    kind = ErrorKind.USAGE


class ConfigError(GatewayError):
    """Required configuration is missing or invalid at startup."""
    kind = ErrorKind.CONFIG


# =============================================================================
# DATACLASSES
# =============================================================================

@dataclass(frozen=True)
class InboundMessage:
    """One chat message as handed over by the transport."""
    conversation: str
    sender: str
    text: str


@dataclass(frozen=True)
class ParsedCommand:
    """Command name (alias-resolved, lowercase) and its arguments."""
    name: str
    args: List[str] = field(default_factory=list)
    invoked_as: str = ""


@dataclass(frozen=True)
class PendingConfirmation:
    """Connection target awaiting the operator's confirm."""
    host: str
    user: str
    port: int
    conversation: str
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only status view of a remote session."""
    host: str
    user: str
    port: int
    connected: bool
    uptime_seconds: int
    log_path: Optional[str] = None


__all__ = [
    'ErrorKind', 'PolicyReason', 'ConnectCause', 'PolicyDecision',
    'ConfirmationState', 'HostKeyDecision', 'AlertSeverity',
    'GatewayError', 'AuthDenied', 'PolicyDenied', 'NoActiveSession',
    'NoSuchSession', 'NoPendingConfirmation', 'ConnectFailure',
    'NotConnected', 'UsageError', 'ConfigError',
    'InboundMessage', 'ParsedCommand', 'PendingConfirmation', 'SessionSnapshot',
]
