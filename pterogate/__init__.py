"""
PteroGate — chat-driven SSH gateway for Pterodactyl provisioning.

A single authorized operator opens interactive shells on whitelisted hosts
from a chat conversation, runs the Pterodactyl installer and watches its
output, with PIN + confirmation gating, idle eviction, a panic switch and
an audit trail per session.

Layers:
- pterogate.core    : policy, audit and configuration primitives
- pterogate.gateway : sessions, dispatch and transport adapters
"""

from pterogate.core.version import __version__

__all__ = ['__version__']
