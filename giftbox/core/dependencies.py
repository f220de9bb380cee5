from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.core.errors import NOT_AUTHENTICATED, PARENT_PROFILE_NOT_FOUND, PARENT_REQUIRED
from giftbox.core.redis_client import get_redis
from giftbox.core.security import decode_token
from giftbox.database import get_db
from giftbox.services.preference_store import PreferenceStore

# Child devices call most endpoints anonymously, so a missing token is not
# an error until a dependency below asks for a user.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Resolve the bearer access token to a User.

    Raises:
        HTTPException 401 ``not-authenticated``: missing, invalid or expired
            token, a refresh token, or a user that no longer exists.
    """
    unauthenticated = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=NOT_AUTHENTICATED,
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise unauthenticated

    try:
        claims = decode_token(token)
        user_id = UUID(claims["sub"])
    except (JWTError, KeyError, ValueError):
        raise unauthenticated
    if claims.get("type") != "access":
        raise unauthenticated

    # Import here to avoid circular imports (models -> database -> dependencies)
    from giftbox.models.user import User

    user = await db.get(User, user_id)
    if user is None:
        raise unauthenticated
    return user


async def require_parent(current_user=Depends(get_current_user)):
    """Raises 403 ``parent-required`` for non-parent accounts."""
    if current_user.role != "PARENT":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=PARENT_REQUIRED,
        )
    return current_user


async def get_current_parent(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user=Depends(require_parent),
):
    """The ``parents/{uid}`` profile of the authenticated parent.

    Raises:
        HTTPException 404 ``parent-profile-not-found``: onboarding never
            created the profile.
    """
    from giftbox.models.parent import ParentProfile

    parent = await db.get(ParentProfile, current_user.id)
    if parent is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=PARENT_PROFILE_NOT_FOUND,
        )
    return parent


async def get_preference_store() -> PreferenceStore:
    return PreferenceStore(await get_redis())


async def get_device_id(
    x_device_id: Annotated[str | None, Header()] = None,
) -> str | None:
    """Optional ``X-Device-Id`` header identifying the calling device."""
    if x_device_id is not None:
        x_device_id = x_device_id.strip() or None
    return x_device_id
