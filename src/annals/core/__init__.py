"""Core package for Annals: settings, contracts, errors and the write path."""

from __future__ import annotations

__all__ = ["__doc__"]
