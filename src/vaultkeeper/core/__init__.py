"""Core package initializer for Vaultkeeper.

Downstream code imports the concrete modules directly, e.g.:
    from vaultkeeper.core.settings import settings, get_logger
    from vaultkeeper.core.guard import MutationGuard
"""

from __future__ import annotations

__all__ = ["__doc__"]
