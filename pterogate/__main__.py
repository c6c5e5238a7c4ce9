"""
PteroGate Entry Point — Run with: python -m pterogate

Usage:
    python -m pterogate [OPTIONS]

Options:
    --console                   Read commands from stdin
    --env-file PATH             Load settings from a .env file
    --base-dir DIR              Directory for logs and config.json
    --allow-unverified-hostkey  Accept unpinned host keys (INSECURE)
"""

import sys


def main():
    """Main entry point for PteroGate."""
    from pterogate.gateway.orchestrator import main as gateway_main
    return gateway_main()


if __name__ == "__main__":
    sys.exit(main() or 0)
