"""
result.py - return value of ``RequestSchema.process`` in ``result`` mode.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

__all__ = ["Result"]


@dataclass(frozen=True)
class Result:
    success: bool
    value: Optional[dict[str, Any]] = None
    errors: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def ok(cls, value: dict[str, Any]) -> "Result":
        return cls(True, value, [])

    @classmethod
    def fail(cls, errors: list[dict[str, Any]]) -> "Result":
        return cls(False, None, list(errors))

    @property
    def failure(self) -> bool:
        return not self.success

    def __bool__(self) -> bool:
        return self.success
