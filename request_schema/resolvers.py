"""
resolvers.py - version lookup strategies.

A resolver receives the requested identifier and the declared identifiers (in
declaration order) and returns the identifier to use, or ``None`` when
nothing matches.
"""

from __future__ import annotations

from typing import Optional, Sequence

__all__ = ["exact", "downgrading"]


def exact(requested: str, identifiers: Sequence[str]) -> Optional[str]:
    """Only the identifier itself."""
    return requested if requested in identifiers else None


def downgrading(requested: str, identifiers: Sequence[str]) -> Optional[str]:
    """The latest identifier that sorts at or before *requested*.

    Useful with date-like identifiers (``2025-06``) when a referenced
    component did not change in every release.
    """
    candidates = sorted(i for i in identifiers if i <= requested)
    return candidates[-1] if candidates else None
