#!/usr/bin/env python3
"""
Messenger — outbound side of the chat transport.

Messenger is the collaborator interface (send_text, send_file). Outbox
wraps one and is what the rest of the gateway talks to: every text and
caption is redacted, and a failed delivery is logged and reported as
False, never raised.
"""

import sys
import time
import base64
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import requests

from pterogate.core.analysis.redactor import CredentialRedactor
from pterogate.core.constants import WEBHOOK_SECRET_HEADER

__all__ = ['Messenger', 'Outbox', 'ConsoleMessenger', 'WebhookMessenger']

logger = logging.getLogger('pterogate.gateway.messenger')


class Messenger(ABC):
    """Chat transport as seen by the gateway."""

    @abstractmethod
    def send_text(self, conversation: str, text: str) -> None:
        ...

    @abstractmethod
    def send_file(self, conversation: str, path: Path, caption: str = "") -> None:
        ...


class Outbox:
    """Redacting, best-effort front of a Messenger."""

    def __init__(self, messenger: Messenger, redactor: CredentialRedactor = None):
        self.messenger = messenger
        self.redactor = redactor or CredentialRedactor()

    def send_text(self, conversation: str, text: str) -> bool:
        try:
            self.messenger.send_text(conversation, self.redactor.redact(text))
        except Exception as e:
            logger.warning("Delivery to %s failed: %s", conversation, e)
            return False
        return True

    def send_file(self, conversation: str, path: Path, caption: str = "") -> bool:
        try:
            self.messenger.send_file(conversation, Path(path), self.redactor.redact(caption))
        except Exception as e:
            logger.warning("File delivery of %s to %s failed: %s", path, conversation, e)
            return False
        return True


class ConsoleMessenger(Messenger):
    """Prints replies to a stream. Used by the console adapter."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def send_text(self, conversation, text):
        print(f"[{conversation}] {text}", file=self.stream, flush=True)

    def send_file(self, conversation, path, caption=""):
        print(f"[{conversation}] 📎 {caption} → {path}", file=self.stream, flush=True)


class WebhookMessenger(Messenger):
    """Posts replies to the chat bridge over HTTP."""

    MAX_RETRIES = 3
    RETRY_BACKOFF = 0.5  # seconds, doubles each retry

    def __init__(self, bridge_url: str, api_secret: str = "", timeout: float = 10):
        self.bridge_url = bridge_url.rstrip('/')
        self.api_secret = api_secret
        self.timeout = timeout

    def _post(self, path: str, payload: dict) -> requests.Response:
        """POST with retry and exponential backoff for transient failures."""
        headers = {}
        if self.api_secret:
            headers[WEBHOOK_SECRET_HEADER] = self.api_secret

        last_err = None
        for attempt in range(self.MAX_RETRIES):
            try:
                resp = requests.post(f"{self.bridge_url}{path}", json=payload,
                                     headers=headers, timeout=self.timeout)
                resp.raise_for_status()
                return resp
            except (requests.exceptions.ConnectionError,
                    requests.exceptions.Timeout) as e:
                last_err = e
                if attempt < self.MAX_RETRIES - 1:
                    time.sleep(self.RETRY_BACKOFF * (2 ** attempt))
        raise last_err

    def send_text(self, conversation, text):
        self._post('/send', {'conversation': conversation, 'text': text})

    def send_file(self, conversation, path, caption=""):
        path = Path(path)
        self._post('/send-file', {
            'conversation': conversation,
            'caption': caption,
            'filename': path.name,
            'content_b64': base64.b64encode(path.read_bytes()).decode('ascii'),
        })
