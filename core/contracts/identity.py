"""core/contracts/identity.py
=========================

Identity / access contracts.

Authentication happens outside the signing core. Every operation receives an
already verified :class:`Identity` and trusts it without re-checking
credentials. The :class:`IIdentityDirectory` resolves recipient e-mail
addresses to user ids (inviting unknown addresses as external users) and
provides contact data for notifications.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    """Global role supplied by the identity provider."""

    MANAGEMENT = "management"
    RECIPIENT = "recipient"


@dataclass(frozen=True, slots=True)
class Identity:
    """Verified caller of a core operation."""

    user_id: int
    role: UserRole
    email: str = ""
    full_name: str = ""

    @property
    def is_management(self) -> bool:
        return self.role == UserRole.MANAGEMENT


@dataclass(frozen=True, slots=True)
class ResolvedRecipient:
    """
    Result of resolving a recipient address.

    ``temporary_secret`` is only set when the directory had to create a new
    external account; it is handed to the notifier exactly once.
    """

    user_id: int
    email: str
    full_name: str
    temporary_secret: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Contact:
    user_id: int
    email: str
    full_name: str


class IIdentityDirectory(ABC):
    """Lookup of users by e-mail or id."""

    @abstractmethod
    def resolve_recipient(self, email: str) -> ResolvedRecipient:
        """Return the user for *email*, creating an external user if unknown."""

    @abstractmethod
    def contact_for(self, user_id: int) -> Optional[Contact]:
        """Return contact data for *user_id* or None if unknown."""
