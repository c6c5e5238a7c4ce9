"""
PteroGate Templates — Chat Replies and Help Text
=================================================
Every string the gateway sends to the operator lives here, so handlers
stay free of presentation text.

Import from: pterogate.core.templates
"""

from pterogate.core.types import ErrorKind, PolicyDecision, PolicyReason
from pterogate.core.constants import INSTALLER_URL, HEALTH_CHECK_COMMAND

# =============================================================================
# HELP
# =============================================================================

HELP_TEXT = """\
🤖 *PteroGate — Pterodactyl provisioning over SSH*

🔐 *CONNECTION*
• .connect <pin> <host> [user] [port]
  Request a connection (confirm afterwards)
• .confirm YES
  Confirm the pending connection
• .switch <host>
  Select another open session
• .status
  Show the current session
• .close
  Close the current session

📦 *INSTALL*
• .install <panel|wings|both|uninstall>
  Run the official installer
• .safeinstall <panel|wings|both>
  Download, preview and checksum the installer before running it
• .dryrun <host>
  Show the install steps without running anything

🔧 *SHELL*
• .send <text>
  Send a line to the remote shell
• .enter
  Press ENTER
• .ctrlc
  Send Ctrl+C

🔥 *FIREWALL*
• .ufw open panel
  Open ports 80, 443
• .ufw open wings
  Open ports 8080, 2022

🚨 *SAFETY*
• .panic
  Close every session and block all commands
• .unpanic
  Leave panic mode

Aliases: .menu = .help, .yes = .confirm YES
"""

DRYRUN_TEXT = """\
🔍 *DRY RUN — INSTALL PREVIEW*

Host: {host}

📋 *Steps that would run:*

1️⃣ Update package lists
   `apt-get update -y`

2️⃣ Install dependencies
   `apt-get install -y curl sudo`

3️⃣ Download installer
   `curl -s {url}`

4️⃣ Run installer
   `bash <(curl -s {url})`

5️⃣ Pick the install mode
   • 0 = Panel only
   • 1 = Wings only
   • 2 = Panel + Wings
   • 6 = Uninstall

6️⃣ The installer will ask for:
   - Database host, name, user and password
   - FQDN / domain
   - Email for SSL
   - Timezone
   - Panel admin user

7️⃣ Unattended installation runs

8️⃣ Health check afterwards
   `{health}`

⚠️ *Note:* nothing was executed. Use .connect to run it for real.
"""


def render_dryrun(host: str) -> str:
    return DRYRUN_TEXT.format(host=host, url=INSTALLER_URL, health=HEALTH_CHECK_COMMAND)


# =============================================================================
# USAGE LINES
# =============================================================================

USAGE = {
    'connect': "❌ Usage: .connect <pin> <host> [user] [port]",
    'install': "❌ Usage: .install <panel|wings|both|uninstall>",
    'safeinstall': "❌ Usage: .safeinstall <panel|wings|both>",
    'dryrun': "❌ Usage: .dryrun <host>",
    'ufw': "❌ Usage: .ufw open <panel|wings>",
    'send': "❌ Usage: .send <text>",
    'switch': "❌ Usage: .switch <host>",
    'port': "❌ Port must be a number between 1 and 65535",
}

# =============================================================================
# POLICY / ERROR REPLIES
# =============================================================================

POLICY_REPLIES = {
    PolicyDecision.REJECT_NOT_OWNER: "⛔ Access denied.",
    PolicyDecision.REJECT_PANIC: "🚨 Panic mode is active. Only .unpanic is accepted.",
    PolicyDecision.REJECT_RATE_LIMITED: "⏳ Too fast. Wait a moment and try again.",
}

POLICY_REASON_REPLIES = {
    PolicyReason.WRONG_PIN: "❌ Wrong PIN.",
    PolicyReason.HOST_NOT_WHITELISTED: "❌ Host is not whitelisted.",
    PolicyReason.PANIC: POLICY_REPLIES[PolicyDecision.REJECT_PANIC],
    PolicyReason.RATE_LIMITED: POLICY_REPLIES[PolicyDecision.REJECT_RATE_LIMITED],
}

ERROR_REPLIES = {
    ErrorKind.AUTH_DENIED: POLICY_REPLIES[PolicyDecision.REJECT_NOT_OWNER],
    ErrorKind.POLICY_DENIED: "❌ Not allowed.",
    ErrorKind.NO_ACTIVE_SESSION: "❌ No active session. Use .connect first.",
    ErrorKind.NO_SUCH_SESSION: "❌ No session for that host.",
    ErrorKind.NO_PENDING_CONFIRMATION: "❌ Nothing to confirm. Use .connect first.",
    ErrorKind.CONNECT_FAILURE: "❌ Connection failed. Details are in the audit log.",
    ErrorKind.NOT_CONNECTED: "❌ Session is not connected.",
    ErrorKind.USAGE: "❌ Invalid arguments.",
    ErrorKind.HANDLER_FAULT: "❌ Command failed. Details are in the gateway log.",
    ErrorKind.CONFIG: "❌ Gateway is misconfigured.",
}

UNKNOWN_COMMAND = "❓ Unknown command. Send .help for the list."

# =============================================================================
# FLOW MESSAGES
# =============================================================================

CONFIRM_PROMPT = """\
🔐 *Confirm connection*

Host: {host}
User: {user}
Port: {port}

Reply `.confirm {token}` to connect, anything else cancels."""

CONNECTING = "🔄 Connecting to {host}..."
CONNECTED = """\
✅ *Connected*

Host: {host}
User: {user}
Session log: {log_name}
Idle timeout: {idle_minutes} min"""
CONFIRM_CANCELLED = "❎ Connection cancelled."

INSTALL_STARTED = "📦 Starting installer ({mode}). Output follows every few seconds."
SAFE_DOWNLOADING = "⬇️ Downloading installer to {path}..."
SAFE_PREVIEW = "📄 *Installer preview (first 50 lines):*\n```\n{output}\n```"
SAFE_CHECKSUM = "🔐 *SHA256:*\n```{output}```"
SAFE_RUNNING = "✅ Verified. Running installer ({mode})..."

UFW_DONE = "🔥 Firewall rules for {target} applied."
SENT = "📤 Sent: `{text}`"
ENTER_SENT = "↩️ ENTER sent."
CTRLC_SENT = "🛑 Ctrl+C sent."

STATUS = """\
📊 *Session status*

Host: {host}
User: {user}
Port: {port}
Connected: {connected}
Uptime: {uptime}s
Open sessions: {count}"""

SWITCHED = "🔀 Current session: {host}"
CLOSED = "🔌 Session {host} closed. Log file follows."
IDLE_CLOSED = "⌛ Session {host} closed after {minutes} min idle."
SESSION_ENDED = "🔌 Remote shell on {host} ended."
LOG_CAPTION = "📄 Session log {host}"

PANIC_ENGAGED = "🚨 *PANIC MODE*\n\n{count} session(s) closed. All commands are blocked until .unpanic."
PANIC_RELEASED = "✅ Panic mode off. Nothing was restored; reconnect as needed."

OUTPUT_BLOCK = "```\n{output}\n```"


__all__ = [
    'HELP_TEXT', 'DRYRUN_TEXT', 'render_dryrun', 'USAGE', 'POLICY_REPLIES',
    'POLICY_REASON_REPLIES', 'ERROR_REPLIES',
    'UNKNOWN_COMMAND', 'CONFIRM_PROMPT', 'CONNECTING', 'CONNECTED',
    'CONFIRM_CANCELLED', 'INSTALL_STARTED', 'SAFE_DOWNLOADING', 'SAFE_PREVIEW',
    'SAFE_CHECKSUM', 'SAFE_RUNNING', 'UFW_DONE', 'SENT', 'ENTER_SENT',
    'CTRLC_SENT', 'STATUS', 'SWITCHED', 'CLOSED', 'IDLE_CLOSED',
    'SESSION_ENDED', 'LOG_CAPTION', 'PANIC_ENGAGED', 'PANIC_RELEASED',
    'OUTPUT_BLOCK',
]
