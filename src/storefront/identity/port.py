"""Authentication provider port (abstract interface).

Sign-in itself happens elsewhere; the storefront only resolves a bearer token
to the signed-in buyer so checkout can be gated and pre-filled.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    phone_number: str | None = None
    institution_id: str | None = None
    hall_id: str | None = None


class AuthProvider(ABC):
    """Abstract session/auth provider interface."""

    @abstractmethod
    def authenticate(self, token: str) -> AuthenticatedUser | None:
        """Return the user behind a session token, or None if it is unknown or expired."""
        ...
