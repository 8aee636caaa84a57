from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ..dependencies import get_token_repository, get_user_repository, get_verification_service
from ..email_verification import EmailVerificationService, is_expired
from ..logger import logger
from ..repositories import EmailVerificationTokenRepository, UserRepository
from ..schemas import ChangePasswordRequest, LoginRequest, ResponseJSON, TokenResponse, UserPublic
from ..security import JwtService, get_jwt_service, hash_password, verify_password
from .users import VERIFICATION_RESPONSES

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=ResponseJSON[TokenResponse])
async def login(
    credentials: LoginRequest,
    users: UserRepository = Depends(get_user_repository),
    jwt_service: JwtService = Depends(get_jwt_service),
):
    logger.info(f"Login attempt for {credentials.email}")
    user = await users.find_by_email(credentials.email)
    if user is None or not verify_password(credentials.password, user.password):
        logger.warning(f"Bad credentials for {credentials.email}")
        return JSONResponse(status_code=401, content={"status": "invalid_credentials", "data": None})

    roles = sorted(user.roles or [])
    token = jwt_service.generate_token(user.email, {"userId": user.id, "roles": roles, "name": user.name})
    logger.info(f"JWT generated for user {user.email}")
    public = UserPublic(id=user.id, email=user.email, name=user.name, roles=roles)
    return ResponseJSON(status="success", data=TokenResponse(token=token, user=public))


@router.api_route("/verify-email", methods=["GET", "POST"], response_model=ResponseJSON[str])
async def verify_email(
    token: Optional[str] = Query(None),
    body: Optional[dict] = Body(None),
    verification: EmailVerificationService = Depends(get_verification_service),
):
    if not (token and token.strip()) and body:
        token = body.get("token")
    if not (token and token.strip()):
        raise HTTPException(status_code=400, detail="token_required")

    status = await verification.verify_token(token)
    code, tag, message = VERIFICATION_RESPONSES[status]
    if code != 200:
        raise HTTPException(status_code=code, detail=message)
    return ResponseJSON(status=tag, data=message)


@router.post("/change-password", response_model=ResponseJSON[str])
async def change_password(
    token: Optional[str] = Query(None),
    body: Optional[ChangePasswordRequest] = None,
    users: UserRepository = Depends(get_user_repository),
    tokens: EmailVerificationTokenRepository = Depends(get_token_repository),
):
    if not (token and token.strip()) and body is not None:
        token = body.token
    if not (token and token.strip()):
        raise HTTPException(status_code=400, detail="token_required")

    new_password = body.new_password if body is not None else None
    if not (new_password and new_password.strip()):
        raise HTTPException(status_code=400, detail="password_required")

    found = await tokens.find_by_token(token)
    if found is None:
        raise HTTPException(status_code=404, detail="invalid_or_not_found")
    if is_expired(found, datetime.now(timezone.utc)):
        await tokens.delete(found.id)
        raise HTTPException(status_code=410, detail="expired")

    user = await users.get(found.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="user_not_found")

    user.password = hash_password(new_password)
    await users.save(user)
    await tokens.delete_by_user_id(user.id)
    return ResponseJSON(status="success", data="password_changed")
