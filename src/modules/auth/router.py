"""Admin authentication routes."""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database import get_db
from src.core.deps import get_notifier, get_optional_user
from src.core.security import create_access_token, hash_password, verify_password
from src.modules.auth.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from src.modules.notifications.whatsapp import WhatsAppNotifier
from src.modules.users.models import User
from src.modules.users.schemas import UserPublic
from src.shared.enums import UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["auth"])


async def _get_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username.strip()))
    return result.scalar_one_or_none()


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Exchange admin credentials for a JWT."""
    user = await _get_by_username(db, payload.username)
    if user is None or not user.is_active or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(user.user_id, user.role)
    return TokenResponse(token=token, user_info=UserPublic.model_validate(user))


@router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> User:
    """Create an admin account. Open only until the first account exists."""
    existing_count = (await db.execute(select(func.count(User.user_id)))).scalar_one()
    if existing_count:
        if current_user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access denied")
        if current_user.role != UserRole.ADMIN:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")

    user = User(
        username=payload.username.strip(),
        password_hash=hash_password(payload.password),
        contact_number=payload.contact_number,
        role=UserRole.ADMIN,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists") from exc
    await db.refresh(user)
    logger.info("Registered admin %s", user.username)
    return user


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    notifier: WhatsAppNotifier | None = Depends(get_notifier),
) -> MessageResponse:
    user = await _get_by_username(db, payload.username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    code = f"{secrets.randbelow(900000) + 100000}"
    user.reset_code = code
    user.reset_code_expires = datetime.now(tz=timezone.utc) + timedelta(minutes=settings.reset_code_ttl_minutes)
    await db.commit()

    body = f"Your password reset code is {code}. It expires in {settings.reset_code_ttl_minutes} minutes."
    if notifier is not None and await notifier.send(user.contact_number, body):
        return MessageResponse(message="Reset code sent to your WhatsApp number")
    logger.warning("Reset code for %s generated but could not be delivered", user.username)
    return MessageResponse(message="Reset code generated but WhatsApp delivery is not available")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(payload: ResetPasswordRequest, db: AsyncSession = Depends(get_db)) -> MessageResponse:
    user = await _get_by_username(db, payload.username)
    expires = user.reset_code_expires if user else None
    if expires is not None and expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    if (
        user is None
        or not user.reset_code
        or not secrets.compare_digest(user.reset_code, payload.code.strip())
        or expires is None
        or expires < datetime.now(tz=timezone.utc)
    ):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset code")

    user.password_hash = hash_password(payload.new_password)
    user.reset_code = None
    user.reset_code_expires = None
    await db.commit()
    return MessageResponse(message="Password reset successfully")
