"""Parent accounts: sign-up, password login and refresh-token rotation.

Refresh tokens are stored as SHA-256 digests only. Each refresh revokes
the presented token and issues a new pair.
"""

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.config import settings
from giftbox.core.errors import (
    EMAIL_ALREADY_REGISTERED,
    INVALID_CREDENTIALS,
    INVALID_REFRESH_TOKEN,
)
from giftbox.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from giftbox.models.user import RefreshToken, User
from giftbox.schemas.auth import RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)


def token_digest(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


async def issue_tokens(db: AsyncSession, user: User) -> TokenResponse:
    """Mint an access/refresh pair; only the refresh digest is persisted."""
    subject = {"sub": str(user.id)}
    refresh_token = create_refresh_token(subject)

    db.add(RefreshToken(
        user_id=user.id,
        token_hash=token_digest(refresh_token),
        expires_at=datetime.now(timezone.utc)
        + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    ))
    await db.flush()

    return TokenResponse(
        access_token=create_access_token(subject),
        refresh_token=refresh_token,
    )


async def register_account(db: AsyncSession, body: RegisterRequest) -> User:
    """Create a password account with the parent role.

    Raises:
        HTTPException 409 ``email-already-registered``
    """
    taken = await db.scalar(select(User.id).where(User.email == body.email))
    if taken is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=EMAIL_ALREADY_REGISTERED,
        )

    user = User(
        email=body.email,
        password_hash=get_password_hash(body.password),
        display_name=body.display_name,
        role="PARENT",
        provider="password",
    )
    db.add(user)
    await db.flush()
    logger.info("Parent account %s registered", user.id)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Raises 401 ``invalid-credentials`` for an unknown email or a wrong password."""
    user = await db.scalar(select(User).where(User.email == email))
    if user is None or not user.password_hash or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )
    user.updated_at = datetime.now(timezone.utc)
    return user


async def _find_live_token(db: AsyncSession, raw_token: str) -> RefreshToken | None:
    return await db.scalar(
        select(RefreshToken).where(
            RefreshToken.token_hash == token_digest(raw_token),
            RefreshToken.revoked.is_(False),
        )
    )


async def rotate_refresh_token(db: AsyncSession, raw_token: str) -> TokenResponse:
    """Trade a live refresh token for a new pair.

    Raises:
        HTTPException 401 ``invalid-refresh-token``: bad signature, wrong
            token type, unknown, revoked or expired.
    """
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=INVALID_REFRESH_TOKEN,
    )
    try:
        claims = decode_token(raw_token)
        user_id = uuid.UUID(claims["sub"])
    except (JWTError, KeyError, ValueError):
        raise invalid
    if claims.get("type") != "refresh":
        raise invalid

    stored = await _find_live_token(db, raw_token)
    if stored is None:
        raise invalid

    expires_at = stored.expires_at
    if expires_at.tzinfo is None:
        # SQLite drops the offset
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < datetime.now(timezone.utc):
        raise invalid

    stored.revoked = True
    await db.flush()

    user = await db.get(User, user_id)
    if user is None:
        raise invalid
    return await issue_tokens(db, user)


async def revoke_refresh_token(db: AsyncSession, raw_token: str) -> None:
    """Revoke ``raw_token`` if it is live; unknown tokens are ignored."""
    stored = await _find_live_token(db, raw_token)
    if stored is not None:
        stored.revoked = True
        await db.flush()
