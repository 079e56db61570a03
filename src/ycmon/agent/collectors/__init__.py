"""
Host collectors.

Each collector turns a slice of host state into host metrics.
"""

from .system import SystemCollector

__all__ = [
    "SystemCollector",
]
