"""
PteroGate Core Audit — gateway event log (chain-hashed JSON lines) and
per-session plain-text transcripts.
"""

from pterogate.core.audit.logger import GatewayEventLog, verify_chain
from pterogate.core.audit.session_log import SessionAuditLog, safe_host_name

__all__ = ['GatewayEventLog', 'verify_chain', 'SessionAuditLog', 'safe_host_name']
