"""Bearer token verification and role checks.

Only verification lives in the API. Tokens are minted by
``scripts/provision_admin.py`` through :func:`create_access_token`.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cryptosignals.core.config import settings
from cryptosignals.core.database import get_db
from cryptosignals.models.user import User

# auto_error=False so a missing header is reported as 401 rather than 403
bearer_scheme = HTTPBearer(auto_error=False)


def unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``claims`` with an ``exp`` claim (default lifetime from settings)."""
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {**claims, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify a token's signature and expiry and return its claims.

    Raises:
        HTTPException: 401 for any invalid or expired token
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise unauthorized()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the bearer token to an active user.

    Raises:
        HTTPException: 401 when the token is missing, invalid or names an unknown
            user; 403 when the account is deactivated
    """
    if credentials is None or not credentials.credentials:
        raise unauthorized("No token provided")

    user_id = decode_access_token(credentials.credentials).get("sub")
    if not user_id:
        raise unauthorized()

    user = await db.get(User, user_id)
    if user is None:
        raise unauthorized("Invalid token")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
