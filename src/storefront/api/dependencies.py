"""Request dependencies — resolving the signed-in buyer from a bearer token."""

from urllib.parse import quote

from fastapi import Header, HTTPException, Request

from storefront.identity import get_auth_provider
from storefront.identity.port import AuthenticatedUser


def login_redirect(request: Request) -> str:
    """Login URL that returns the buyer to the page they were trying to reach."""
    return_path = request.url.path
    if request.url.query:
        return_path = f"{return_path}?{request.url.query}"
    return f"/login?redirect={quote(return_path, safe='')}"


def require_user(request: Request, authorization: str = Header(default="")) -> AuthenticatedUser:
    scheme, _, token = authorization.partition(" ")
    user = None
    if scheme.lower() == "bearer" and token:
        user = get_auth_provider().authenticate(token.strip())

    if user is None:
        raise HTTPException(
            status_code=401,
            detail={
                "message": "Please sign in to continue",
                "redirect": login_redirect(request),
            },
        )
    return user
