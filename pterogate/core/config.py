"""
PteroGate Configuration — GatewayConfig
========================================
Central configuration dataclass with defaults for all gateway settings,
plus the loaders that layer a JSON config file and the process
environment on top of those defaults.

Priority (lowest first): defaults → config.json → environment → CLI flags.
CLI flags are applied by the orchestrator.

Import from: pterogate.core.config
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass, field

from pterogate.core.types import ConfigError
from pterogate.core.constants import (
    DEFAULT_RATE_LIMIT_MS, DEFAULT_SESSION_IDLE_MS, DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_STREAM_INTERVAL, DEFAULT_CHUNK_SIZE, DEFAULT_CHUNK_PACING,
    DEFAULT_SEND_SETTLE, DEFAULT_INSTALLER_SETTLE, DEFAULT_UFW_SETTLE,
    DEFAULT_LOG_DELIVERY_DELAY, DEFAULT_SSH_USER, DEFAULT_SSH_PORT,
    DEFAULT_CONFIRM_TOKEN, DEFAULT_KEY_PATH, DEFAULT_WEBHOOK_HOST,
    DEFAULT_WEBHOOK_PORT, WHATSAPP_USER_DOMAIN,
)

logger = logging.getLogger('pterogate.core.config')

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


@dataclass
class GatewayConfig:
    # Operator
    owner_identity: str = ""
    owner_pin: str = ""  # Empty rejects every .connect

    # SSH
    ssh_key_path: str = DEFAULT_KEY_PATH
    ssh_key_passphrase: str = ""
    ssh_use_password: bool = False
    ssh_password: str = ""
    default_user: str = DEFAULT_SSH_USER
    default_port: int = DEFAULT_SSH_PORT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    allow_unverified_hostkey: bool = False
    hostkey_sha256_map: Dict[str, str] = field(default_factory=dict)

    # Policy
    host_whitelist: List[str] = field(default_factory=list)  # Empty allows all
    rate_limit_seconds: float = DEFAULT_RATE_LIMIT_MS / 1000.0
    session_idle_seconds: float = DEFAULT_SESSION_IDLE_MS / 1000.0
    confirm_token: str = DEFAULT_CONFIRM_TOKEN

    # Streaming
    stream_interval: float = DEFAULT_STREAM_INTERVAL
    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_pacing: float = DEFAULT_CHUNK_PACING
    send_settle: float = DEFAULT_SEND_SETTLE
    installer_settle: float = DEFAULT_INSTALLER_SETTLE
    ufw_settle: float = DEFAULT_UFW_SETTLE
    log_delivery_delay: float = DEFAULT_LOG_DELIVERY_DELAY

    # Paths
    base_dir: Path = field(default_factory=lambda: Path(os.environ.get('PTEROGATE_HOME', os.getcwd())))
    log_dir: Path = None

    # Webhook adapter
    webhook_host: str = DEFAULT_WEBHOOK_HOST
    webhook_port: int = DEFAULT_WEBHOOK_PORT
    webhook_secret: str = ""
    bridge_url: str = ""

    def __post_init__(self):
        if self.log_dir is None:
            self.log_dir = self.base_dir / "logs"

    def validate(self) -> None:
        """Raise ConfigError when a required option is missing."""
        if not self.owner_identity.strip():
            raise ConfigError("OWNER_IDENTITY (or OWNER_NUMBER) must be set")
        if self.chunk_size <= 0:
            raise ConfigError("chunk_size must be positive")

    @property
    def key_path(self) -> Path:
        return Path(self.ssh_key_path).expanduser()


# =============================================================================
# LOADERS
# =============================================================================

def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _number(env: Mapping[str, str], name: str, cast=int):
    try:
        return cast(env[name])
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {env[name]!r}") from e


def _owner_from_number(number: str) -> str:
    """Bare phone digits become a transport identity."""
    number = number.strip()
    if not number or '@' in number:
        return number
    return number + WHATSAPP_USER_DOMAIN


def _parse_hostkey_map(raw: str) -> Dict[str, str]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"HOSTKEY_SHA256_MAP is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ConfigError("HOSTKEY_SHA256_MAP must be a JSON object")
    return {str(k): str(v) for k, v in parsed.items()}


def parse_whitelist(raw: str) -> List[str]:
    return [h.strip() for h in raw.split(',') if h.strip()]


def load_config_file(config: GatewayConfig, config_path: Path) -> bool:
    """Merge config.json sections into the config. Returns True if read."""
    if not config_path.exists():
        return False

    try:
        with open(config_path, encoding='utf-8') as f:
            file_cfg = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning("Could not read %s: %s", config_path, e)
        return False

    own = file_cfg.get('owner', {})
    if 'identity' in own:
        config.owner_identity = own['identity']
    if 'pin' in own:
        config.owner_pin = str(own['pin'])

    ssh = file_cfg.get('ssh', {})
    if 'key_path' in ssh:
        config.ssh_key_path = ssh['key_path']
    if 'use_password' in ssh:
        config.ssh_use_password = bool(ssh['use_password'])
    if 'default_user' in ssh:
        config.default_user = ssh['default_user']
    if 'default_port' in ssh:
        config.default_port = int(ssh['default_port'])
    if 'connect_timeout' in ssh:
        config.connect_timeout = float(ssh['connect_timeout'])
    if 'allow_unverified_hostkey' in ssh:
        config.allow_unverified_hostkey = bool(ssh['allow_unverified_hostkey'])
    if 'hostkey_sha256_map' in ssh:
        config.hostkey_sha256_map = dict(ssh['hostkey_sha256_map'])

    pol = file_cfg.get('policy', {})
    if 'host_whitelist' in pol:
        config.host_whitelist = list(pol['host_whitelist'])
    if 'rate_limit_ms' in pol:
        config.rate_limit_seconds = pol['rate_limit_ms'] / 1000.0
    if 'session_idle_ms' in pol:
        config.session_idle_seconds = pol['session_idle_ms'] / 1000.0
    if 'confirm_token' in pol:
        config.confirm_token = pol['confirm_token']

    stream = file_cfg.get('streaming', {})
    if 'interval' in stream:
        config.stream_interval = float(stream['interval'])
    if 'chunk_size' in stream:
        config.chunk_size = int(stream['chunk_size'])
    if 'chunk_pacing' in stream:
        config.chunk_pacing = float(stream['chunk_pacing'])

    hook = file_cfg.get('webhook', {})
    if 'host' in hook:
        config.webhook_host = hook['host']
    if 'port' in hook:
        config.webhook_port = int(hook['port'])
    if 'bridge_url' in hook:
        config.bridge_url = hook['bridge_url']

    return True


def apply_environment(config: GatewayConfig, environ: Optional[Mapping[str, str]] = None) -> GatewayConfig:
    """Overlay recognized environment variables onto the config."""
    env = os.environ if environ is None else environ

    if env.get('OWNER_IDENTITY'):
        config.owner_identity = env['OWNER_IDENTITY'].strip()
    elif env.get('OWNER_NUMBER'):
        config.owner_identity = _owner_from_number(env['OWNER_NUMBER'])
    if 'OWNER_PIN' in env:
        config.owner_pin = env['OWNER_PIN']

    if env.get('SSH_KEY_PATH'):
        config.ssh_key_path = env['SSH_KEY_PATH']
    if 'SSH_KEY_PASSPHRASE' in env:
        config.ssh_key_passphrase = env['SSH_KEY_PASSPHRASE']
    if 'SSH_USE_PASSWORD' in env:
        config.ssh_use_password = _parse_bool(env['SSH_USE_PASSWORD'])
    if 'SSH_PASSWORD' in env:
        config.ssh_password = env['SSH_PASSWORD']
    if env.get('SSH_CONNECT_TIMEOUT'):
        config.connect_timeout = _number(env, 'SSH_CONNECT_TIMEOUT', float)

    if 'HOST_WHITELIST' in env:
        config.host_whitelist = parse_whitelist(env['HOST_WHITELIST'])
    if env.get('HOSTKEY_SHA256_MAP'):
        config.hostkey_sha256_map = _parse_hostkey_map(env['HOSTKEY_SHA256_MAP'])

    if env.get('RATE_LIMIT_MS'):
        config.rate_limit_seconds = _number(env, 'RATE_LIMIT_MS') / 1000.0
    if env.get('SESSION_IDLE_MS'):
        config.session_idle_seconds = _number(env, 'SESSION_IDLE_MS') / 1000.0

    # ALLOW_UNOFFICIAL is the older name for the same switch
    for name in ('ALLOW_UNOFFICIAL', 'ALLOW_UNVERIFIED_HOSTKEY'):
        if name in env:
            config.allow_unverified_hostkey = _parse_bool(env[name])

    if env.get('CONFIRM_TOKEN'):
        config.confirm_token = env['CONFIRM_TOKEN'].strip()

    if env.get('WEBHOOK_HOST'):
        config.webhook_host = env['WEBHOOK_HOST']
    if env.get('WEBHOOK_PORT'):
        config.webhook_port = _number(env, 'WEBHOOK_PORT')
    if 'WEBHOOK_SECRET' in env:
        config.webhook_secret = env['WEBHOOK_SECRET']
    if env.get('BRIDGE_URL'):
        config.bridge_url = env['BRIDGE_URL']

    return config


__all__ = ['GatewayConfig', 'load_config_file', 'apply_environment', 'parse_whitelist']
