#!/usr/bin/env python3
"""
Shell Connector — opens authenticated interactive shells on remote hosts.

The gateway only depends on the small ShellConnector interface; the
paramiko implementation below is the production one. Every paramiko or
socket failure is translated to a ConnectFailure with a distinct cause
at this boundary, so nothing above it needs to know about paramiko.
"""

import socket
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import paramiko
from paramiko.ssh_exception import (
    AuthenticationException, BadHostKeyException, NoValidConnectionsError,
    PasswordRequiredException, SSHException,
)

from pterogate.core.types import ConnectCause, ConnectFailure, HostKeyDecision
from pterogate.core.config import GatewayConfig
from pterogate.core.constants import SHELL_POLL_TIMEOUT
from pterogate.core.access.host_policy import HostKeyVerifier, fingerprints

__all__ = [
    'AuthMaterial', 'ShellConnection', 'ShellConnector', 'ParamikoConnector',
    'HostKeyRejected',
]

logger = logging.getLogger('pterogate.gateway.connector')

KEEPALIVE_INTERVAL = 30


@dataclass(frozen=True)
class AuthMaterial:
    """Credentials for one connect. Exactly one method is used."""
    use_password: bool = False
    password: str = ""
    key_path: Optional[Path] = None
    passphrase: str = ""

    @property
    def method(self) -> str:
        return "password" if self.use_password else "publickey"

    @classmethod
    def from_config(cls, config: GatewayConfig) -> 'AuthMaterial':
        return cls(
            use_password=config.ssh_use_password,
            password=config.ssh_password,
            key_path=config.key_path,
            passphrase=config.ssh_key_passphrase,
        )


@dataclass
class ShellConnection:
    """A live transport plus the outcome of its host key check."""
    handle: Any
    host_key_decision: HostKeyDecision
    fingerprint: str = ""

    def close(self) -> None:
        if self.handle is not None:
            self.handle.close()


class ShellConnector(ABC):
    """Remote-shell collaborator used by RemoteSession."""

    @abstractmethod
    def connect(self, host: str, user: str, port: int, timeout: float,
                auth: AuthMaterial, verifier: HostKeyVerifier) -> ShellConnection:
        """Authenticate to host. Raises ConnectFailure."""

    @abstractmethod
    def open_shell(self, connection: ShellConnection):
        """Open an interactive shell with stderr merged into stdout.

        The returned object must provide send(bytes), recv(n) -> bytes
        (b'' at end of stream, socket.timeout when idle) and close().
        Raises ConnectFailure.
        """


# =============================================================================
# PARAMIKO
# =============================================================================

class HostKeyRejected(SSHException):
    """Raised from the host key policy to abort the handshake."""


class _VerifyingHostKeyPolicy(paramiko.MissingHostKeyPolicy):
    """Routes every presented host key through the HostKeyVerifier."""

    def __init__(self, host: str, verifier: HostKeyVerifier):
        self.host = host
        self.verifier = verifier
        self.decision: Optional[HostKeyDecision] = None
        self.fingerprint = ""

    def missing_host_key(self, client, hostname, key):
        self.fingerprint = fingerprints(key.asbytes())[1]
        self.decision = self.verifier.check(self.host, key.asbytes())
        if self.decision == HostKeyDecision.REJECTED:
            raise HostKeyRejected(f"host key for {self.host} rejected ({self.fingerprint})")


class ParamikoConnector(ShellConnector):
    """paramiko-backed connector. Agent and ~/.ssh key discovery are off."""

    def connect(self, host, user, port, timeout, auth, verifier):
        if not auth.use_password:
            if auth.key_path is None or not Path(auth.key_path).is_file():
                raise ConnectFailure(ConnectCause.KEY_UNREADABLE,
                                     f"key file not found: {auth.key_path}")

        client = paramiko.SSHClient()
        policy = _VerifyingHostKeyPolicy(host, verifier)
        client.set_missing_host_key_policy(policy)

        connect_kwargs = {
            "hostname": host,
            "port": port,
            "username": user,
            "timeout": timeout,
            "banner_timeout": timeout,
            "auth_timeout": timeout,
            "allow_agent": False,
            "look_for_keys": False,
        }
        if auth.use_password:
            connect_kwargs["password"] = auth.password
        else:
            connect_kwargs["key_filename"] = str(auth.key_path)
            if auth.passphrase:
                connect_kwargs["passphrase"] = auth.passphrase

        logger.info("Opening SSH connection to %s@%s:%s (%s)", user, host, port, auth.method)
        try:
            client.connect(**connect_kwargs)
        except Exception as e:
            client.close()
            raise self._translate(e) from e

        transport = client.get_transport()
        if transport:
            transport.set_keepalive(KEEPALIVE_INTERVAL)

        return ShellConnection(
            handle=client,
            host_key_decision=policy.decision or HostKeyDecision.MATCH,
            fingerprint=policy.fingerprint,
        )

    def open_shell(self, connection):
        try:
            channel = connection.handle.invoke_shell(term="xterm", width=200, height=50)
            channel.set_combine_stderr(True)
            channel.settimeout(SHELL_POLL_TIMEOUT)
        except (SSHException, OSError) as e:
            raise ConnectFailure(ConnectCause.CHANNEL_ERROR, str(e)) from e
        return channel

    @staticmethod
    def _translate(error: Exception) -> ConnectFailure:
        """Map a paramiko/socket exception to a ConnectFailure cause."""
        if isinstance(error, (HostKeyRejected, BadHostKeyException)):
            cause = ConnectCause.HOST_KEY_MISMATCH
        elif isinstance(error, PasswordRequiredException):
            cause = ConnectCause.KEY_UNREADABLE
        elif isinstance(error, AuthenticationException):
            cause = ConnectCause.AUTH_FAILURE
        elif isinstance(error, (socket.timeout, TimeoutError)):
            cause = ConnectCause.CONNECT_TIMEOUT
        elif isinstance(error, NoValidConnectionsError):
            cause = ConnectCause.NETWORK_ERROR
        elif isinstance(error, (FileNotFoundError, PermissionError)):
            cause = ConnectCause.KEY_UNREADABLE
        elif isinstance(error, (SSHException, OSError)):
            cause = ConnectCause.NETWORK_ERROR
        else:
            raise error
        return ConnectFailure(cause, str(error) or cause.value)
