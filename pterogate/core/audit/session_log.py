#!/usr/bin/env python3
"""
PteroGate Core Audit — Per-Session Audit Log
=============================================
Append-only plain-text transcript of one remote session. Every line is
`[<ISO-8601 UTC>] <message>`. The file stays local and unredacted; only
text sent to chat goes through the redactor.

Import from: pterogate.core.audit.session_log
"""

import re
import threading
from pathlib import Path
from datetime import datetime, timezone

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]')


def safe_host_name(host: str) -> str:
    return _UNSAFE_CHARS.sub('_', host) or 'host'


class SessionAuditLog:
    """One log file per RemoteSession."""

    def __init__(self, log_dir: Path, host: str, started_ms: int):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.log_dir / f"{safe_host_name(host)}_{started_ms}.log"
        self._lock = threading.Lock()

    def write(self, message: str) -> None:
        """Append message; each of its lines gets its own timestamp."""
        stamp = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        lines = [ln for ln in message.replace('\r', '').split('\n') if ln.strip()]
        with self._lock:
            with open(self.path, 'a', encoding='utf-8') as f:
                for line in lines:
                    f.write(f"[{stamp}] {line}\n")

    def read(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding='utf-8')


__all__ = ['SessionAuditLog', 'safe_host_name']
