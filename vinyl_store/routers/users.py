from datetime import datetime, timezone
from typing import List, Optional, Set
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_user_repository, get_verification_service
from ..email_verification import EmailVerificationService, VerificationStatus
from ..logger import logger
from ..models import Role, User
from ..repositories import UserRepository
from ..schemas import ResponseJSON, UserCreate, UserRead, UserUpdate
from ..security import hash_password, require_admin

router = APIRouter(prefix="/api/users", tags=["users"])

VERIFICATION_RESPONSES = {
    VerificationStatus.SUCCESS: (200, "success", "verified"),
    VerificationStatus.EXPIRED: (410, "error", "expired"),
    VerificationStatus.NOT_FOUND: (404, "error", "invalid_or_not_found"),
}


def choose_roles(requested: Optional[Set[str]]) -> List[str]:
    """Self-registration grants USER, or ADMIN alone when ADMIN is asked for."""
    if requested and Role.ADMIN.value in requested:
        return [Role.ADMIN.value]
    return [Role.USER.value]


def to_read(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        name=user.name,
        email=user.email,
        roles=sorted(user.roles or []),
        email_verified=bool(user.email_verified),
    )


@router.get("", response_model=ResponseJSON[List[UserRead]], dependencies=[Depends(require_admin)])
async def list_users(users: UserRepository = Depends(get_user_repository)):
    found = await users.find_all()
    return ResponseJSON(status="Listed successfully", data=[to_read(u) for u in found])


@router.get("/verify", response_model=ResponseJSON[str])
async def verify(token: str = Query(...), verification: EmailVerificationService = Depends(get_verification_service)):
    status = await verification.verify_token(token)
    code, tag, message = VERIFICATION_RESPONSES[status]
    if code != 200:
        raise HTTPException(status_code=code, detail=message)
    return ResponseJSON(status=tag, data=message)


@router.get("/{user_id}", response_model=ResponseJSON[UserRead], dependencies=[Depends(require_admin)])
async def get_user(user_id: str, users: UserRepository = Depends(get_user_repository)):
    user = await users.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return ResponseJSON(status="Listed one successfully", data=to_read(user))


@router.post("", response_model=ResponseJSON[UserRead], status_code=201)
async def create_user(
    user_data: UserCreate,
    users: UserRepository = Depends(get_user_repository),
    verification: EmailVerificationService = Depends(get_verification_service),
):
    if await users.exists_by_email(user_data.email):
        raise HTTPException(status_code=409, detail="Email already in use")

    user = User(
        id=str(uuid4()),
        name=user_data.name,
        email=user_data.email,
        password=hash_password(user_data.password),
        roles=choose_roles(user_data.roles),
        email_verified=False,
        created_at=datetime.now(timezone.utc),
    )
    saved = await users.save(user)

    try:
        token = await verification.create_token_for_user(saved)
        await verification.send_verification_email(saved, token)
    except Exception as e:
        logger.error(f"Failed to send verification email to user {saved.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to send verification email") from e

    return ResponseJSON(status="Created Successfully", data=to_read(saved))


@router.post(
    "/resend-verification/{user_id}",
    response_model=ResponseJSON[str],
    dependencies=[Depends(require_admin)],
)
async def resend_verification(
    user_id: str,
    users: UserRepository = Depends(get_user_repository),
    verification: EmailVerificationService = Depends(get_verification_service),
):
    user = await users.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.email_verified:
        raise HTTPException(status_code=400, detail="already_verified")
    token = await verification.create_token_for_user(user)
    await verification.send_verification_email(user, token)
    return ResponseJSON(status="success", data="sent")


@router.patch("/{user_id}", response_model=ResponseJSON[UserRead], dependencies=[Depends(require_admin)])
async def update_user(user_id: str, user_data: UserUpdate, users: UserRepository = Depends(get_user_repository)):
    user = await users.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user_data.name is not None:
        user.name = user_data.name
    if user_data.email is not None:
        user.email = user_data.email
    if user_data.password is not None:
        user.password = hash_password(user_data.password)
    if user_data.roles is not None:
        user.roles = sorted(user_data.roles)
    if user_data.email_verified is not None:
        user.email_verified = user_data.email_verified
    saved = await users.save(user)
    return ResponseJSON(status="Edited Successfully", data=to_read(saved))


@router.delete("/{user_id}", response_model=ResponseJSON[str], dependencies=[Depends(require_admin)])
async def delete_user(user_id: str, users: UserRepository = Depends(get_user_repository)):
    if not await users.exists(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    await users.delete(user_id)
    return ResponseJSON(status="Deleted Successfully", data=user_id)
