"""HTTP surface for Annals (FastAPI)."""

from __future__ import annotations

__all__ = ["__doc__"]
