"""core/contracts/audit.py
======================

Audit trail contracts.

Audit events are written via `core.logging.logic.logger.AuditLogger`.
This interface keeps audit sinks replaceable (file, DB, remote) while keeping
a single place where audit semantics are defined.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class IAuditLogger(ABC):
    """Write-only audit trail logger."""

    @abstractmethod
    def log(
        self,
        feature: str,
        event: str,
        *,
        user_id: Optional[str] = None,
        username: Optional[str] = None,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: str = "",
        data: Mapping[str, Any] | None = None,
    ) -> None:
        """Write an audit event."""
