#!/usr/bin/env python3
"""
PteroGate Core Analysis — Credential Redactor
==============================================
Masks sensitive substrings in any text bound for the chat transport:
- IPv4 addresses
- password / secret / token / key assignments
- PEM private key blocks
- credentials embedded in URLs

Redaction is idempotent: redacting already-redacted text changes nothing.

Import from: pterogate.core.analysis.redactor
"""

import re

IPV4_MASK = "***.***.***.**"


class CredentialRedactor:
    """Redacts sensitive values from text for safe display."""

    REDACTION_PATTERNS = [
        (r'-----BEGIN[^-]+PRIVATE KEY-----[\s\S]*?-----END[^-]+PRIVATE KEY-----', '[REDACTED PRIVATE KEY]'),
        (r'(ssh|sftp|http|https|mysql|redis)://([^:/\s]+):([^@\s]+)@', r'\1://\2:[REDACTED]@'),
        (r'\b(?:\d{1,3}\.){3}\d{1,3}\b', IPV4_MASK),
        (r'(?i)(?<![A-Za-z])(password|passwd|pwd|secret|token|api[_-]?key|key)\s*[:=]\s*(?!\[REDACTED\])["\']?[^\s"\']+["\']?',
         r'\1: [REDACTED]'),
    ]

    def __init__(self):
        self.compiled = [(re.compile(p, re.M), r) for p, r in self.REDACTION_PATTERNS]

    def redact(self, text: str) -> str:
        """Redact all sensitive values from text."""
        if not text:
            return text
        for pattern, replacement in self.compiled:
            text = pattern.sub(replacement, text)
        return text

    def redact_for_preview(self, text: str, max_length: int = 100) -> str:
        """Redact and truncate for a single-line preview."""
        redacted = self.redact(text)
        redacted = ' '.join(redacted.split())
        if len(redacted) > max_length:
            return redacted[:max_length] + '...'
        return redacted


_default = CredentialRedactor()


def redact(text: str) -> str:
    """Module-level shortcut using a shared redactor."""
    return _default.redact(text)


__all__ = ['CredentialRedactor', 'redact', 'IPV4_MASK']
