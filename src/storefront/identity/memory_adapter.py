"""In-memory auth provider for development and testing."""

from storefront.identity.port import AuthenticatedUser, AuthProvider


class InMemoryAuthProvider(AuthProvider):
    """Maps opaque session tokens to users registered at runtime."""

    def __init__(self) -> None:
        self._sessions: dict[str, AuthenticatedUser] = {}

    def sign_in(self, token: str, user: AuthenticatedUser) -> None:
        self._sessions[token] = user

    def sign_out(self, token: str) -> None:
        self._sessions.pop(token, None)

    def authenticate(self, token: str) -> AuthenticatedUser | None:
        return self._sessions.get(token)
