"""core/contracts/auth.py
=====================

Authentication context contract.

Account management lives outside this repository. The signing core only needs
a read-only lookup of the requesting principal for ownership checks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from core.models.user import User


class IAuthContext(ABC):
    """Read-only view on the authenticated principal."""

    @abstractmethod
    def current_principal(self) -> Optional[User]:
        """Return the principal of the current session, or None if anonymous."""
