import enum
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from . import config
from .mail import Mailer
from .models import EmailVerificationToken, User
from .repositories import EmailVerificationTokenRepository, UserRepository


class VerificationStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    EXPIRED = "EXPIRED"
    NOT_FOUND = "NOT_FOUND"


def is_expired(token: EmailVerificationToken, now: Optional[datetime] = None) -> bool:
    if token.expires_at is None:
        return True
    expires_at = token.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < (now or datetime.now(timezone.utc))


class EmailVerificationService:
    """Issues single-use tokens and resolves them back to users.

    One live token per user: issuing a new one removes the previous ones.
    The same tokens back password-reset links.
    """

    def __init__(
        self,
        tokens: EmailVerificationTokenRepository,
        users: UserRepository,
        mailer: Mailer,
        verify_url: str = config.EMAIL_VERIFY_URL,
    ):
        self.tokens = tokens
        self.users = users
        self.mailer = mailer
        self.verify_url = verify_url

    async def create_token_for_user(self, user: User, ttl: Optional[timedelta] = None) -> EmailVerificationToken:
        if ttl is None:
            ttl = timedelta(hours=config.EMAIL_VERIFICATION_TTL_HOURS)
        await self.tokens.delete_by_user_id(user.id)
        token = EmailVerificationToken(
            id=str(uuid4()),
            user_id=user.id,
            token=str(uuid4()),
            expires_at=datetime.now(timezone.utc) + ttl,
        )
        return await self.tokens.save(token)

    async def find_by_token(self, token: str) -> Optional[EmailVerificationToken]:
        return await self.tokens.find_by_token(token)

    async def send_verification_email(self, user: User, token: EmailVerificationToken) -> None:
        link = f"{self.verify_url}?token={token.token}"
        body = (
            f"Hello {user.name or ''},\n\n"
            f"Click the link below to confirm your email:\n{link}\n\n"
            "If this wasn't you, ignore this message."
        )
        await self.mailer.send_async(user.email, "Confirm your email", body)

    async def verify_token(self, token_str: str) -> VerificationStatus:
        token = await self.tokens.find_by_token(token_str)
        if token is None:
            return VerificationStatus.NOT_FOUND
        if is_expired(token):
            await self.tokens.delete(token.id)
            return VerificationStatus.EXPIRED

        user = await self.users.get(token.user_id)
        if user is None:
            return VerificationStatus.NOT_FOUND
        if not user.email_verified:
            user.email_verified = True
            await self.users.save(user)
        await self.tokens.delete_by_user_id(user.id)
        return VerificationStatus.SUCCESS
