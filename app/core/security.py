"""
Security module — password hashing, session tokens, role guard.

Auth Flow:
1. Staff log in with email + password, students with hall ticket + password
2. Backend verifies the bcrypt hash and resolves the role's scope
   (class for class_teacher/faculty, department for hod)
3. Backend issues a signed JWT carrying id, role and that scope, valid 7 days
4. Frontend sends the JWT as a Bearer token on every protected request
5. get_current_user decodes it; require_role checks the route's allow-list

Scope is not enforced here. Routers filter by the claims themselves.
"""

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.schemas.auth import TokenClaims, token_claims_adapter

logger = logging.getLogger(__name__)

security_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except (ValueError, TypeError, AttributeError):
        return False


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------
def create_access_token(claims: TokenClaims) -> str:
    now = datetime.now(timezone.utc)
    payload = claims.model_dump()
    payload.update({
        "iat": now,
        "exp": now + timedelta(days=settings.TOKEN_EXPIRE_DAYS),
    })
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """Verify signature and expiry, then parse the payload into its role variant."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except InvalidTokenError:
        raise AuthenticationError("Invalid or expired token.")

    try:
        return token_claims_adapter.validate_python(payload)
    except PydanticValidationError:
        raise AuthenticationError("Malformed token payload.")


# ---------------------------------------------------------------------------
# Request dependencies
# ---------------------------------------------------------------------------
async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> TokenClaims:
    """Validate the Bearer token and return the caller's claims."""
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")
    if credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Access denied. Bearer token required.")
    return decode_access_token(credentials.credentials)


def require_role(allowed_roles: list[str]):
    """
    Usage:
        @router.get("/departments")
        async def endpoint(user=Depends(require_role(["director"]))):
    """

    async def role_checker(
        user: TokenClaims = Depends(get_current_user),
    ) -> TokenClaims:
        if user.role not in allowed_roles:
            logger.info("Role %s refused for user %s (allowed: %s)", user.role, user.id, allowed_roles)
            raise AuthorizationError(
                f"Access denied. Role '{user.role}' not authorized. Required: {allowed_roles}"
            )
        return user

    return role_checker
