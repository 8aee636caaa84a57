from datetime import datetime, timedelta, timezone
from urllib.parse import quote
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query

from .. import config
from ..dependencies import get_mailer, get_token_repository, get_user_repository
from ..logger import logger
from ..mail import Mailer
from ..models import EmailVerificationToken
from ..repositories import EmailVerificationTokenRepository, UserRepository
from ..schemas import ResponseJSON

router = APIRouter(prefix="/api/mail", tags=["mail"])


def ensure_configured(mailer: Mailer) -> None:
    if not mailer.configured:
        raise HTTPException(status_code=503, detail="Mail service not configured")


@router.get("/public", response_model=ResponseJSON[str])
async def public():
    return ResponseJSON(status="success", data="ok")


@router.post("/test", response_model=ResponseJSON[str])
async def send_test(to: str = Query(...), mailer: Mailer = Depends(get_mailer)):
    ensure_configured(mailer)
    await mailer.send_async(to, "Welcome to V-disk!", "Your request has been validated.")
    return ResponseJSON(status="success", data="OK")


@router.post("/send", response_model=ResponseJSON[str])
async def send_email(
    to: str = Query(...),
    subject: str = Query(...),
    body: str = Query(...),
    mailer: Mailer = Depends(get_mailer),
):
    ensure_configured(mailer)
    try:
        await mailer.send_async(to, subject, body)
    except Exception as e:
        logger.error(f"Error sending email to {to}: {e}")
        raise HTTPException(status_code=500, detail=f"Error sending email: {e}") from e
    return ResponseJSON(status="success", data=None)


@router.post("/change-password", response_model=ResponseJSON[str])
async def send_password_reset(
    to: str = Query(...),
    mailer: Mailer = Depends(get_mailer),
    users: UserRepository = Depends(get_user_repository),
    tokens: EmailVerificationTokenRepository = Depends(get_token_repository),
):
    ensure_configured(mailer)
    user = await users.find_by_email(to)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    await tokens.delete_by_user_id(user.id)
    token = EmailVerificationToken(
        id=str(uuid4()),
        user_id=user.id,
        token=str(uuid4()),
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=config.PASSWORD_RESET_TTL_SECONDS),
    )
    await tokens.save(token)

    link = f"{config.FRONTEND_BASE_URL}?token={quote(token.token)}"
    await mailer.send_async(
        user.email,
        "Password change",
        f"Click on the link below to change your current password:\n\n{link}\n\n"
        "If you haven't requested it, please ignore this email.",
    )
    return ResponseJSON(status="success", data="Changing email has been sent")
