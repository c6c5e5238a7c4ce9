#!/usr/bin/env python3
"""
Orchestrator — builds the gateway from its config and runs an adapter.

Gateway wires every component once; main() layers configuration
(defaults → config.json → .env/environment → CLI flags), validates it and
starts either the console adapter or the webhook server.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Callable

from dotenv import load_dotenv

from pterogate.core.types import AlertSeverity, ConfigError, InboundMessage, PolicyDecision
from pterogate.core.config import GatewayConfig, apply_environment, load_config_file
from pterogate.core.version import __version__, CONFIG_FILENAME
from pterogate.core.analysis.redactor import CredentialRedactor
from pterogate.core.audit.logger import GatewayEventLog
from pterogate.core.access.identity import PolicyGuard
from pterogate.core.access.rate_limiter import RateLimitLedger
from pterogate.core.access.host_policy import HostKeyVerifier
from pterogate.gateway.connector import AuthMaterial, ParamikoConnector, ShellConnector
from pterogate.gateway.registry import SessionRegistry
from pterogate.gateway.confirmation import ConfirmationWorkflow
from pterogate.gateway.panic import PanicControl
from pterogate.gateway.messenger import ConsoleMessenger, Messenger, Outbox, WebhookMessenger
from pterogate.gateway.commands import GatewayContext
from pterogate.gateway.dispatcher import CommandDispatcher
from pterogate.gateway.server import WebhookServer

__all__ = ['Gateway', 'main']

logger = logging.getLogger('pterogate.gateway.orchestrator')


class Gateway:
    """All gateway components, wired together."""

    def __init__(self, config: GatewayConfig, messenger: Messenger,
                 connector: ShellConnector = None, timer_factory: Callable = None,
                 sleeper: Callable = None, clock: Callable = None,
                 streamer_factory: Callable = None):
        config.validate()
        self.config = config

        redactor = CredentialRedactor()
        self.event_log = GatewayEventLog(config.log_dir, redactor)
        self.outbox = Outbox(messenger, redactor)
        self.registry = SessionRegistry()
        self.confirmations = ConfirmationWorkflow(config, self.event_log)
        self.panic = PanicControl(self.event_log)
        self.ledger = RateLimitLedger(config.rate_limit_seconds, clock)
        self.guard = PolicyGuard(config.owner_identity, self.ledger, self.panic.is_engaged)

        self.ctx = GatewayContext(
            config=config,
            event_log=self.event_log,
            outbox=self.outbox,
            registry=self.registry,
            confirmations=self.confirmations,
            panic=self.panic,
            connector=connector or ParamikoConnector(),
            verifier=HostKeyVerifier(config.hostkey_sha256_map, config.allow_unverified_hostkey),
            auth=AuthMaterial.from_config(config),
            timer_factory=timer_factory,
            sleeper=sleeper,
            streamer_factory=streamer_factory,
        )
        self.dispatcher = CommandDispatcher(self.ctx, self.guard)

        if config.allow_unverified_hostkey:
            logger.warning("Unverified host keys are ALLOWED (ALLOW_UNVERIFIED_HOSTKEY)")
        self.event_log.log_event("GATEWAY_STARTED", AlertSeverity.INFO, {
            'version': __version__,
            'whitelist': len(config.host_whitelist),
            'pinned_hosts': len(config.hostkey_sha256_map),
            'allow_unverified_hostkey': config.allow_unverified_hostkey,
            'auth': self.ctx.auth.method,
        })

    def handle(self, conversation: str, sender: str, text: str) -> PolicyDecision:
        return self.dispatcher.handle(InboundMessage(conversation, sender, text))

    def shutdown(self) -> None:
        """Close every session and drop pending state."""
        sessions = self.registry.clear()
        for session in sessions:
            session.close(deliver_log=False)
        self.confirmations.clear()
        self.event_log.log_event("GATEWAY_STOPPED", AlertSeverity.INFO,
                                 {'sessions_closed': len(sessions)})


# =============================================================================
# ADAPTERS
# =============================================================================

def run_console(gateway: Gateway, sender: str, stream=None) -> None:
    """Read commands from stdin as `sender` until EOF or Ctrl+C."""
    stream = stream or sys.stdin
    print("  Console adapter ready. Type .help, Ctrl+D to quit.")
    try:
        for line in stream:
            gateway.handle("console", sender, line.rstrip('\n'))
    except KeyboardInterrupt:
        print("\n  Interrupted.")


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_config(args: argparse.Namespace) -> GatewayConfig:
    config = GatewayConfig()
    if args.base_dir:
        config.base_dir = Path(args.base_dir)
        config.log_dir = config.base_dir / "logs"

    config_path = Path(args.config) if args.config else config.base_dir / CONFIG_FILENAME
    load_config_file(config, config_path)
    apply_environment(config)

    # CLI overrides (highest priority)
    if args.listen_host:
        config.webhook_host = args.listen_host
    if args.listen_port is not None:
        config.webhook_port = args.listen_port
    if args.allow_unverified_hostkey:
        config.allow_unverified_hostkey = True
    return config


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description=f'PteroGate {__version__} — chat-driven SSH provisioning gateway')
    parser.add_argument('--base-dir', default=None,
                        help='Working directory for logs and config.json')
    parser.add_argument('--config', default=None, help='Path to a config.json')
    parser.add_argument('--env-file', default=None, help='Path to a .env file')
    parser.add_argument('--console', action='store_true',
                        help='Read commands from stdin instead of the webhook')
    parser.add_argument('--sender', default=None,
                        help='Sender identity for console mode (default: owner)')
    parser.add_argument('--listen-host', default=None)
    parser.add_argument('--listen-port', type=int, default=None)
    parser.add_argument('--allow-unverified-hostkey', action='store_true',
                        help='Accept hosts without a pinned fingerprint (INSECURE)')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='[%(asctime)s] %(levelname)s %(name)s: %(message)s')

    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    try:
        config = build_config(args)
        config.validate()
        if args.console:
            messenger = ConsoleMessenger()
        else:
            if not config.bridge_url:
                raise ConfigError("BRIDGE_URL must be set to run the webhook server")
            messenger = WebhookMessenger(config.bridge_url, config.webhook_secret)
        gateway = Gateway(config, messenger)
    except ConfigError as e:
        print(f"  ✗ Configuration error: {e.message or e}", file=sys.stderr)
        return 2

    print(f"\n  PteroGate {__version__}")
    print(f"  Logs: {config.log_dir}")

    try:
        if args.console:
            run_console(gateway, args.sender or config.owner_identity)
        else:
            server = WebhookServer(gateway.dispatcher, gateway.registry, config.webhook_secret,
                                   config.webhook_host, config.webhook_port)
            server.run()
    except ConfigError as e:
        print(f"  ✗ Configuration error: {e.message or e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        pass
    finally:
        gateway.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
