"""
FastAPI dependencies for authentication and authorization.

These are the glue between HTTP and the services. Services never read
headers or any ambient security context: the dependencies below resolve the
caller once and hand plain values (the User, its email) to the service
functions.

    get_current_user (Authorization header -> User)
        └── require_admin (User -> User)           [ADMIN role]

Authentication requires all of:
  - an "Authorization: Bearer <token>" header
  - a JWT whose signature and expiry verify
  - an existing user matching the token subject
  - a non-revoked access-token row in the token ledger

Any failure is an UnauthorizedError (401), mapped by the handlers
registered in exceptions.py.
"""

from fastapi import Depends, Header, Response
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import get_db
from bankcards.exceptions import ForbiddenError, UnauthorizedError
from bankcards.models.user import User
from bankcards.repositories import UserRepository
from bankcards.security import extract_bearer_token
from bankcards.services import token_service


AUTH_COOKIES = ("accessToken", "refreshToken")


async def get_current_user(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the authenticated User from the bearer access token.

    Raises:
        UnauthorizedError: If the header, token, user, or ledger row is
            missing or invalid.
    """
    token = extract_bearer_token(authorization)
    claims = token_service.parse(token)

    user = await UserRepository(db).find_by_email(claims["sub"])
    if user is None:
        raise UnauthorizedError()

    if not await token_service.is_valid_access(db, token, user):
        raise UnauthorizedError()

    return user


async def require_admin(
    user: User = Depends(get_current_user),
) -> User:
    """
    Require the authenticated user to have the ADMIN role.

    Raises:
        ForbiddenError: If the user is not an admin.
    """
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user


def clear_auth_cookies(response: Response) -> None:
    """Expire the client-side session cookies after a logout."""
    for name in AUTH_COOKIES:
        response.delete_cookie(name, path="/", secure=True, httponly=True)
