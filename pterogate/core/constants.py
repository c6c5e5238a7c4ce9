"""
PteroGate Constants — Commands, Limits, and Defaults
=====================================================
Non-pattern constants used across the gateway. Installer commands, menu
options, firewall rules, timing defaults and chunk sizes.

Import from: pterogate.core.constants
"""

# =============================================================================
# COMMAND SURFACE
# =============================================================================

COMMAND_PREFIX = "."

# Alias → canonical command name
COMMAND_ALIASES = {
    'menu': 'help',
    'yes': 'confirm',
}

# Commands still accepted while panic mode is engaged
PANIC_EXEMPT_COMMANDS = frozenset({'unpanic'})

# =============================================================================
# PROVISIONING
# =============================================================================

INSTALLER_URL = "https://pterodactyl-installer.se"
SAFE_INSTALLER_PATH = "/tmp/ptero.sh"

INSTALL_BOOTSTRAP_COMMAND = (
    "set -e && apt-get update -y && apt-get install -y curl sudo && "
    f"bash <(curl -s {INSTALLER_URL})"
)
SAFE_DOWNLOAD_COMMAND = (
    f"curl -fsSL {INSTALLER_URL} -o {SAFE_INSTALLER_PATH} && "
    f"chmod +x {SAFE_INSTALLER_PATH}"
)
SAFE_PREVIEW_COMMAND = f"head -n 50 {SAFE_INSTALLER_PATH}"
SAFE_CHECKSUM_COMMAND = f"sha256sum {SAFE_INSTALLER_PATH}"
SAFE_RUN_COMMAND = f"bash {SAFE_INSTALLER_PATH}"

# Installer menu option per install mode
INSTALL_MODES = {
    'panel': '0',
    'wings': '1',
    'both': '2',
    'uninstall': '6',
}

# safeinstall does not offer uninstall
SAFE_INSTALL_MODES = {k: v for k, v in INSTALL_MODES.items() if k != 'uninstall'}

UFW_RULES = {
    'panel': "ufw allow 80/tcp && ufw allow 443/tcp && ufw reload",
    'wings': "ufw allow 8080/tcp && ufw allow 2022/tcp && ufw reload",
}

HEALTH_CHECK_COMMAND = "systemctl status nginx mariadb redis"

# =============================================================================
# CONTROL INPUT
# =============================================================================

CTRL_C = "\x03"
ENTER = "\n"

# =============================================================================
# STREAMING / TIMING DEFAULTS (seconds unless noted)
# =============================================================================

DEFAULT_RATE_LIMIT_MS = 1200
DEFAULT_SESSION_IDLE_MS = 600000
DEFAULT_CONNECT_TIMEOUT = 30
DEFAULT_STREAM_INTERVAL = 5.0
DEFAULT_CHUNK_SIZE = 3500       # characters per outbound chunk
DEFAULT_CHUNK_PACING = 0.6
DEFAULT_SEND_SETTLE = 2.0
DEFAULT_INSTALLER_SETTLE = 3.0
DEFAULT_UFW_SETTLE = 2.0
DEFAULT_LOG_DELIVERY_DELAY = 1.0

# safeinstall step delays
SAFE_DOWNLOAD_SETTLE = 2.0
SAFE_PREVIEW_SETTLE = 1.5
SAFE_CHECKSUM_SETTLE = 1.0

SHELL_RECV_BYTES = 4096
SHELL_POLL_TIMEOUT = 0.5

# =============================================================================
# SSH DEFAULTS
# =============================================================================

DEFAULT_SSH_USER = "root"
DEFAULT_SSH_PORT = 22
DEFAULT_CONFIRM_TOKEN = "YES"
DEFAULT_KEY_PATH = "~/.ssh/id_rsa"

# Suffix appended to bare OWNER_NUMBER digits
WHATSAPP_USER_DOMAIN = "@s.whatsapp.net"

# =============================================================================
# WEBHOOK ADAPTER
# =============================================================================

DEFAULT_WEBHOOK_HOST = "127.0.0.1"
DEFAULT_WEBHOOK_PORT = 8787
WEBHOOK_SECRET_HEADER = "X-Gateway-Secret"
RUN_ID_BYTES = 8                # 16 hex chars for event log run IDs
