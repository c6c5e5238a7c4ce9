#!/usr/bin/env python3
"""
PteroGate Core Audit — Gateway Event Log
=========================================
Tamper-evident JSON-lines log of gateway decisions:
- Chain hashing for integrity (each entry hashes the previous one)
- Redaction of string details before they reach disk
- HIGH/CRITICAL events echoed to the process logger

Import from: pterogate.core.audit.logger
"""

import json
import hashlib
import secrets
import logging
import threading
from pathlib import Path
from datetime import datetime, timezone
from typing import Dict, Optional
from collections import defaultdict

from pterogate.core.types import AlertSeverity
from pterogate.core.constants import RUN_ID_BYTES
from pterogate.core.version import EVENT_LOG_FILENAME
from pterogate.core.analysis.redactor import CredentialRedactor

GENESIS_HASH = "0" * 64


def _chain_hash(previous_hash: str, entry: str) -> str:
    return hashlib.sha256(f"{previous_hash}:{entry}".encode()).hexdigest()


class GatewayEventLog:
    """Chain-hashed event log for the whole gateway process."""

    def __init__(self, log_dir: Path, redactor: CredentialRedactor = None):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.main_log = self.log_dir / EVENT_LOG_FILENAME

        self.run_id = secrets.token_hex(RUN_ID_BYTES)
        self.entry_counter = 0
        self.previous_hash = GENESIS_HASH
        self.stats = defaultdict(int)
        self.redactor = redactor or CredentialRedactor()
        self.lock = threading.Lock()

        self.logger = logging.getLogger('pterogate.core.audit')

    def _sanitize(self, details: Optional[Dict]) -> Dict:
        if not details:
            return {}
        return {k: self.redactor.redact(v) if isinstance(v, str) else v
                for k, v in details.items()}

    def _write(self, entry: Dict) -> Dict:
        with self.lock:
            self.entry_counter += 1
            entry.update({
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'run_id': self.run_id,
                'sequence': self.entry_counter,
            })
            entry_str = json.dumps(entry, sort_keys=True)
            entry['chain_hash'] = _chain_hash(self.previous_hash, entry_str)
            self.previous_hash = entry['chain_hash']

            with open(self.main_log, 'a', encoding='utf-8') as f:
                f.write(json.dumps(entry) + '\n')
        return entry

    def log_event(self, event: str, severity: AlertSeverity, details: Dict = None) -> None:
        self._write({'event': event, 'severity': severity.value,
                     'details': self._sanitize(details)})
        self.stats[f'{severity.value}_{event}'] += 1

        if severity in (AlertSeverity.HIGH, AlertSeverity.CRITICAL):
            self.logger.warning(f"[{severity.value.upper()}] {event}")
        else:
            self.logger.debug("%s %s", event, details or '')

    def get_stats(self) -> Dict[str, int]:
        return dict(self.stats)


def verify_chain(log_path: Path) -> Optional[int]:
    """Recompute the hash chain of a log file.

    Returns the sequence number of the first entry whose chain_hash does not
    match, or None when the whole file verifies. Chains restart at every new
    run_id, since each process starts from the genesis hash.
    """
    previous_hash = GENESIS_HASH
    current_run = None

    with open(log_path, encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            entry = json.loads(line)
            if entry.get('run_id') != current_run:
                current_run = entry.get('run_id')
                previous_hash = GENESIS_HASH
            recorded = entry.pop('chain_hash', '')
            expected = _chain_hash(previous_hash, json.dumps(entry, sort_keys=True))
            if expected != recorded:
                return entry.get('sequence', -1)
            previous_hash = recorded
    return None


__all__ = ['GatewayEventLog', 'verify_chain', 'GENESIS_HASH']
