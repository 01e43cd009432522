"""
FastAPI dependencies for authentication and authorization.

  get_current_user (JWT -> User)
      └── get_current_principal (User -> Principal: ledger account + role)
              ├── require_authority   [ADMIN or RESELLER]
              └── require_admin       [ADMIN]

Every protected endpoint declares one of these as a parameter. If the
token is missing or invalid the request is rejected with 401; a role that
is not allowed, or a frozen account, gets 403 before the route handler
runs.

Scoping:
  Routes act on behalf of `principal.account_id`. The payer of a campaign
  and the sender of a credit/debit are always the caller's own ledger
  account, never an ID taken from the request body.
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.database import get_db
from bulkreach.models.ledger_account import AccountRole, AccountStatus, LedgerAccount
from bulkreach.models.user import User
from bulkreach.security import decode_access_token


# "Authorization: Bearer <token>"; tokenUrl drives Swagger UI's Authorize button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, resolved to a ledger account."""
    user_id: uuid.UUID
    account_id: uuid.UUID
    role: AccountRole

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Extract and validate the JWT token, then return the corresponding User.

    Raises:
        HTTPException 401: If the token is invalid or the user doesn't exist
                           or was deactivated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
        user_id_str: str | None = payload.get("sub")
        if user_id_str is None:
            raise credentials_exception
        user_id = uuid.UUID(user_id_str)
    except (JWTError, ValueError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


async def get_current_principal(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """
    Resolve the authenticated user to their ledger account.

    Raises:
        HTTPException 404: If the user has no (non-deleted) ledger account.
        HTTPException 403: If an admin froze the account.
    """
    result = await db.execute(
        select(LedgerAccount).where(LedgerAccount.user_id == user.id)
    )
    account = result.scalar_one_or_none()

    if account is None or account.status == AccountStatus.DELETED:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ledger account not found",
        )

    if account.status == AccountStatus.INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is frozen. Contact support.",
        )

    return Principal(user_id=user.id, account_id=account.id, role=account.role)


async def require_authority(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Require an admin or reseller: the roles that provision and fund others."""
    if principal.role not in (AccountRole.ADMIN, AccountRole.RESELLER):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or reseller access required",
        )
    return principal


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Require the ADMIN role (platform-wide oversight endpoints)."""
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal
