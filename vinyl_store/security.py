"""Token issuance, password hashing and the per-request caller context."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, FrozenSet, Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request

from . import config
from .logger import logger

ALGORITHM = "HS256"


class InvalidToken(Exception):
    pass


class JwtService:
    def __init__(
        self,
        secret: str = config.JWT_SECRET,
        ttl_seconds: int = config.JWT_TTL_SECONDS,
        issuer: str = config.JWT_ISSUER,
    ):
        self.secret = secret
        self.ttl_seconds = ttl_seconds
        self.issuer = issuer

    def generate_token(self, subject: str, extras: Optional[Dict[str, Any]] = None) -> str:
        now = datetime.now(timezone.utc)
        claims = dict(extras or {})
        claims.update(
            {
                "sub": subject,
                "iat": now,
                "iss": self.issuer,
                "exp": now + timedelta(seconds=self.ttl_seconds),
            }
        )
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

    def validate_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                options={"require": ["exp", "iss", "sub"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidToken(f"Invalid token: {e}") from e


def hash_password(raw: str) -> str:
    return bcrypt.hashpw(raw.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(raw: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


@dataclass(frozen=True)
class RequestContext:
    """Who is calling. Built once per request from the bearer token."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def authenticated(self) -> bool:
        return self.email is not None

    def has_role(self, role: str) -> bool:
        return role in self.roles


ANONYMOUS = RequestContext()


def get_jwt_service() -> JwtService:
    return JwtService()


def extract_bearer(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if header and header.startswith("Bearer "):
        return header[7:].strip() or None
    return None


def get_request_context(request: Request, jwt_service: JwtService = Depends(get_jwt_service)) -> RequestContext:
    token = extract_bearer(request)
    if token is None:
        return ANONYMOUS
    try:
        claims = jwt_service.validate_token(token)
    except InvalidToken as e:
        logger.warning(f"Invalid JWT token on {request.url.path}: {e}")
        return ANONYMOUS
    roles = claims.get("roles") or []
    return RequestContext(user_id=claims.get("userId"), email=claims.get("sub"), roles=frozenset(roles))


def require_user(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    if not ctx.authenticated:
        raise HTTPException(status_code=401, detail="Authentication required")
    return ctx


def require_role(role: str):
    def dependency(ctx: RequestContext = Depends(require_user)) -> RequestContext:
        if not ctx.has_role(role):
            raise HTTPException(status_code=403, detail="Forbidden")
        return ctx

    return dependency


require_admin = require_role("ADMIN")
