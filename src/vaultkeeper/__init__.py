"""Vaultkeeper package bootstrap.

Snapshot-guarded storage for the school supervision dataset: a single live
document, a bounded archive of prior versions, validated imports and scoped
exports.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
