"""
Authentication dependencies for FastAPI.
Provides bearer token verification and role-based access control.
"""
from fastapi import Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from bson import ObjectId
from typing import Optional, List

from mentora.core.logging import audit_log
from mentora.core.security import IdentityVerifier, InvalidCredentialError, get_identity_verifier
from mentora.db.mongodb import get_mongodb
from mentora.models.mongo_models import UserRole, parse_object_id
from mentora.schemas.api_schemas import CurrentUser
from mentora.services.user_service import UserService


# auto_error is off so a missing header maps to 401 with our own message
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    verifier: IdentityVerifier = Depends(get_identity_verifier)
) -> CurrentUser:
    """
    Verify the bearer token with the identity provider and return the caller.
    Raises HTTPException if the header is missing or the token is rejected.
    """
    if credentials is None or not credentials.credentials:
        audit_log.log_auth_rejected("missing_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized access: missing or invalid token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        claims = await run_in_threadpool(verifier.verify, credentials.credentials)
    except InvalidCredentialError as e:
        audit_log.log_auth_rejected(f"invalid_token: {e}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token"
        )

    email = claims.get("email")
    if not email:
        audit_log.log_auth_rejected("token_without_email")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token"
        )

    return CurrentUser(email=email, uid=claims.get("uid"))


def require_roles(allowed_roles: List[str]):
    """
    Dependency factory for role-based access control.
    The role is read from the users collection on every call; it is never taken from the token.
    """
    async def role_checker(
        current_user: CurrentUser = Depends(get_current_user),
        db: AsyncIOMotorDatabase = Depends(get_mongodb)
    ) -> CurrentUser:
        try:
            role = await UserService(db).get_role(current_user.email)
        except PyMongoError as e:
            audit_log.log_failure("auth.role.lookup_failed", e, email=current_user.email)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Role verification failed"
            )

        if role not in allowed_roles:
            audit_log.log_auth_rejected(f"role {role!r} not in {allowed_roles}", current_user.email)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Unauthorized access: invalid role"
            )
        return current_user

    return role_checker


# Convenience dependencies for specific roles
require_student = require_roles([UserRole.STUDENT.value])
require_teacher = require_roles([UserRole.TEACHER.value])
require_admin = require_roles([UserRole.ADMIN.value])


def object_id_or_400(value: str) -> ObjectId:
    """Convert a path identifier to an ObjectId, rejecting malformed ids."""
    try:
        return parse_object_id(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid id"
        )
