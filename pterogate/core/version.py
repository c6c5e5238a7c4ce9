"""
PteroGate Core — Version Constants

Single source of truth for version-related values.

Usage:
    from pterogate.core.version import __version__, EVENT_LOG_FILENAME
"""

# =============================================================================
# PACKAGE VERSION
# =============================================================================

__version__ = "1.0.0"

# =============================================================================
# FILE NAMES
# =============================================================================

EVENT_LOG_FILENAME = "gateway_events.log"
CONFIG_FILENAME = "config.json"

__all__ = ['__version__', 'EVENT_LOG_FILENAME', 'CONFIG_FILENAME']
