"""Client-side reconciliation of update-site indexes into a local file registry."""

from __future__ import annotations

__version__ = "0.1.0"
