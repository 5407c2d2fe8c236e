"""
user.py

Defines the principal model used for ownership checks.

Accounts themselves are managed outside this repository; this model only
carries what the signing core and the audit trail need.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class UserRole(Enum):
    """Roles known to the signing core."""
    USER = "User"
    ADMIN = "Admin"


class User:
    """
    Represents an authenticated principal.
    """

    def __init__(
        self,
        id: str,
        username: str,
        email: str = "",
        role: UserRole = UserRole.USER,
        full_name: Optional[str] = None,
        organization: Optional[str] = None,
        is_active: bool = True,
    ):
        """
        :param id: Unique principal id (string; UUIDs in practice)
        :param username: Login name
        :param email: Contact address
        :param role: Assigned role
        :param full_name: Legal name, default holder name for typed signatures
        :param organization: Company/organization used in signature metadata
        :param is_active: Account activation status
        """
        self.id = str(id)
        self.username = username
        self.email = email
        self.role = role
        self.full_name = full_name
        self.organization = organization
        self.is_active = is_active

    def __eq__(self, other: object) -> bool:
        return isinstance(other, User) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self):
        return (
            f"User({self.id}): {self.username} "
            f"[{self.full_name or 'n/a'}], "
            f"Role: {self.role.value}, "
            f"Active: {self.is_active}"
        )
