"""Annals: a single-owner timeline backed by one versioned JSON document."""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
