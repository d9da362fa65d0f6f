"""Issue and redeem single-use password reset tokens."""

import logging
import uuid
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from reddit_clone.config import get_settings
from reddit_clone.database import utcnow
from reddit_clone.models.password_reset import PasswordResetToken
from reddit_clone.models.user import User
from reddit_clone.services.errors import MailError
from reddit_clone.services.mailer import Mailer

logger = logging.getLogger(__name__)


def reset_link(token: str) -> str:
    """Front-end URL at which a reset token is redeemed."""
    return f"{get_settings().frontend_url.rstrip('/')}/change-password/{token}"


async def issue_reset_token(db: AsyncSession, user: User) -> str:
    """Create a reset token for ``user`` that expires after the configured window."""
    settings = get_settings()
    token = str(uuid.uuid4())
    db.add(
        PasswordResetToken(
            token=token,
            user_id=user.id,
            expires_at=utcnow() + timedelta(hours=settings.password_reset_token_expire_hours),
        )
    )
    await db.flush()
    return token


async def request_password_reset(db: AsyncSession, mailer: Mailer, email: str) -> None:
    """Email a reset link if ``email`` belongs to an account.

    Unknown addresses and delivery failures are logged but never raised, so
    callers cannot tell which emails are registered.
    """
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Password reset requested for unknown email")
        return

    token = await issue_reset_token(db, user)
    try:
        await mailer.send(
            user.email,
            "Recover your password",
            f'<a href="{reset_link(token)}">Reset password</a>',
        )
    except MailError as e:
        # The caller sees the same answer as for an unknown address
        logger.error("Could not send password reset email to user %d: %s", user.id, e)


async def consume_reset_token(db: AsyncSession, token: str) -> int | None:
    """Redeem ``token`` and return the user id it was issued for.

    The token is deleted whether or not it has expired. Returns None for
    unknown or expired tokens.
    """
    result = await db.execute(select(PasswordResetToken).where(PasswordResetToken.token == token))
    reset_token = result.scalar_one_or_none()
    if reset_token is None:
        return None

    user_id = reset_token.user_id
    expired = reset_token.expires_at <= utcnow()
    await db.execute(delete(PasswordResetToken).where(PasswordResetToken.token == token))
    return None if expired else user_id
