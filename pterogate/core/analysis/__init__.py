"""PteroGate Core Analysis — outbound text redaction."""

from pterogate.core.analysis.redactor import CredentialRedactor, redact, IPV4_MASK

__all__ = ['CredentialRedactor', 'redact', 'IPV4_MASK']
