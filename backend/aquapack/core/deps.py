"""FastAPI dependencies for auth, caller context, and RBAC."""

import uuid
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aquapack.core.context import CallerContext
from aquapack.core.security import decode_access_token
from aquapack.database import get_db
from aquapack.models.enums import UserRole
from aquapack.models.organization import ProjectAssignment, User

security_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Extract and validate JWT, return the authenticated user."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = uuid.UUID(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please log in again.",
        )
    except (jwt.PyJWTError, KeyError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token.",
        )

    result = await db.execute(
        select(User).where(
            User.id == user_id,
            User.is_active == True,  # noqa: E712
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found or deactivated.",
        )

    request.state.user_id = user.id
    return user


def require_role(*allowed_roles: UserRole):
    """Dependency factory: restrict endpoint to specific roles."""
    async def role_checker(
        user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action.",
            )
        return user
    return role_checker


async def load_caller(db: AsyncSession, user: User) -> CallerContext:
    """Build the caller context: identity, organization, and assigned projects."""
    result = await db.execute(
        select(ProjectAssignment.project_id).where(ProjectAssignment.user_id == user.id)
    )
    return CallerContext(
        user_id=user.id,
        organization_id=user.organization_id,
        project_ids=frozenset(result.scalars().all()),
        role=user.role,
    )


def require_caller(*allowed_roles: UserRole):
    """Dependency factory: role check, then the caller context for the sync engine."""
    async def caller_loader(
        user: Annotated[User, Depends(require_role(*allowed_roles))],
        db: Annotated[AsyncSession, Depends(get_db)],
    ) -> CallerContext:
        return await load_caller(db, user)
    return caller_loader
