#!/usr/bin/env python3
"""
Webhook Server — inbound side of the chat bridge.

A small Flask app. The bridge POSTs each chat message to /inbound with
the shared secret in the X-Gateway-Secret header; the message is run
through the dispatcher synchronously and the guard decision is returned.
Replies travel back separately through the Outbox.
"""

import hmac
import logging
import threading

from flask import Flask, abort, jsonify, request as flask_request

from pterogate.core.types import ConfigError, InboundMessage
from pterogate.core.constants import WEBHOOK_SECRET_HEADER
from pterogate.core.version import __version__

__all__ = ['WebhookServer']

logger = logging.getLogger('pterogate.gateway.server')


class WebhookServer:
    """Flask endpoint feeding inbound chat messages to the dispatcher."""

    def __init__(self, dispatcher, registry, secret: str,
                 host: str = "127.0.0.1", port: int = 8787):
        if not secret:
            raise ConfigError("WEBHOOK_SECRET must be set to run the webhook server")
        self.dispatcher = dispatcher
        self.registry = registry
        self.host = host
        self.port = port
        self._secret = secret
        self.app = self._create_flask_app()

    def _verify_secret(self) -> bool:
        """Timing-safe verification of the shared secret header."""
        provided = flask_request.headers.get(WEBHOOK_SECRET_HEADER, '')
        return hmac.compare_digest(provided.encode('utf-8'), self._secret.encode('utf-8'))

    def _create_flask_app(self) -> Flask:
        """Create the Flask application with its routes."""
        app = Flask(__name__)

        @app.route('/inbound', methods=['POST'])
        def inbound():
            if not self._verify_secret():
                abort(403)
            data = flask_request.get_json(silent=True) or {}
            sender = data.get('sender')
            text = data.get('text')
            conversation = data.get('conversation') or sender
            if not isinstance(sender, str) or not isinstance(text, str) or not sender:
                return jsonify({'error': 'sender and text are required'}), 400

            decision = self.dispatcher.handle(InboundMessage(
                conversation=conversation, sender=sender, text=text))
            return jsonify({'status': 'ignored' if decision is None else decision.name.lower()})

        @app.route('/health')
        def health():
            return jsonify({'status': 'ok', 'version': __version__,
                            'sessions': len(self.registry)})

        return app

    def run(self, threaded: bool = False):
        """Start serving.

        Args:
            threaded: If True, start in a daemon thread and return it
        """
        print(f"\n  PteroGate webhook: http://{self.host}:{self.port}/inbound")
        if threaded:
            t = threading.Thread(
                target=self.app.run,
                kwargs={'host': self.host, 'port': self.port, 'debug': False,
                        'use_reloader': False, 'threaded': True},
                daemon=True)
            t.start()
            return t
        self.app.run(host=self.host, port=self.port, debug=False,
                     use_reloader=False, threaded=True)
