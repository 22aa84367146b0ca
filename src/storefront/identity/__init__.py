"""Auth provider factory.

Provides get_auth_provider() / set_auth_provider() to swap implementations:
- InMemoryAuthProvider for development and testing (default)
- an adapter for the campus auth service in deployments
"""

from storefront.identity.memory_adapter import InMemoryAuthProvider
from storefront.identity.port import AuthProvider

_current_provider: AuthProvider | None = None


def get_auth_provider() -> AuthProvider:
    """Return the current auth provider. Defaults to InMemoryAuthProvider."""
    global _current_provider
    if _current_provider is None:
        _current_provider = InMemoryAuthProvider()
    return _current_provider


def set_auth_provider(provider: AuthProvider) -> None:
    """Override the active auth provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_auth_provider() -> None:
    """Reset to default auth provider."""
    global _current_provider
    _current_provider = None
