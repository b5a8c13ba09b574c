from __future__ import annotations
"""server/qualis/domain/outcomes.py
~~~~~~~~~~~~~~~~~~~~~~~~
Explicit result of a best-effort operation.

Recipient lookups, notification queueing and audit writes never raise to the
dispatcher: they return an Outcome instead, which the caller logs and then
ignores for control flow.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Outcome:
    ok: bool
    count: int = 0
    reason: Optional[str] = None
    skipped: bool = False

    @classmethod
    def success(cls, count: int = 0) -> "Outcome":
        return cls(ok=True, count=count)

    @classmethod
    def failure(cls, reason: str) -> "Outcome":
        return cls(ok=False, reason=reason)

    @classmethod
    def noop(cls, reason: str) -> "Outcome":
        """Nothing to do (not an error)."""
        return cls(ok=True, reason=reason, skipped=True)
