"""
Core module for DocVault.

Exports the main configuration component.
"""

from docvault.core.config import settings

__all__ = [
    # Config
    "settings",
]
