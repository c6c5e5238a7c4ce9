"""
PteroGate Core — policy, audit and configuration primitives

Everything here is independent of SSH and of the chat transport.

Submodules:
- version   : Version constants (single source of truth)
- types     : Shared enums, dataclasses, exceptions
- constants : Installer commands, timing defaults
- config    : GatewayConfig and its loaders
- templates : Chat replies and help text
- access/   : Identity normalization, policy guard, rate limiting, host policy
- analysis/ : Outbound text redaction
- audit/    : Gateway event log, per-session transcripts

Quick imports:
    from pterogate.core import GatewayConfig, PolicyGuard, CredentialRedactor
    from pterogate.core.version import __version__
"""

from pterogate.core.version import __version__

from pterogate.core.types import (
    # Exceptions
    GatewayError,
    AuthDenied,
    PolicyDenied,
    NoActiveSession,
    NoSuchSession,
    NoPendingConfirmation,
    ConnectFailure,
    NotConnected,
    UsageError,
    ConfigError,
    # Enums
    ErrorKind,
    PolicyReason,
    ConnectCause,
    PolicyDecision,
    ConfirmationState,
    HostKeyDecision,
    AlertSeverity,
    # Dataclasses
    InboundMessage,
    ParsedCommand,
    PendingConfirmation,
    SessionSnapshot,
)

from pterogate.core.config import GatewayConfig, load_config_file, apply_environment
from pterogate.core.access import (
    normalize_identity, PolicyGuard, RateLimitLedger,
    check_pin, HostWhitelist, HostKeyVerifier,
)
from pterogate.core.analysis import CredentialRedactor
from pterogate.core.audit import GatewayEventLog, SessionAuditLog

__all__ = [
    '__version__',
    'GatewayError', 'AuthDenied', 'PolicyDenied', 'NoActiveSession',
    'NoSuchSession', 'NoPendingConfirmation', 'ConnectFailure',
    'NotConnected', 'UsageError', 'ConfigError',
    'ErrorKind', 'PolicyReason', 'ConnectCause', 'PolicyDecision',
    'ConfirmationState', 'HostKeyDecision', 'AlertSeverity',
    'InboundMessage', 'ParsedCommand', 'PendingConfirmation', 'SessionSnapshot',
    'GatewayConfig', 'load_config_file', 'apply_environment',
    'normalize_identity', 'PolicyGuard', 'RateLimitLedger',
    'check_pin', 'HostWhitelist', 'HostKeyVerifier',
    'CredentialRedactor', 'GatewayEventLog', 'SessionAuditLog',
]
