"""
Authentication router — the login endpoint.

This is the only public endpoint besides /health. Accounts are created by
an admin or reseller through POST /accounts, so there is no signup.

Endpoints:
  POST /auth/login   — Authenticate and get a token

Plaintext passwords exist only in memory during request processing and
are never logged; SQL echo (DEBUG=True) only ever shows the Argon2 hash.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.database import get_db
from bulkreach.schemas.auth import UserLoginRequest, TokenResponse
from bulkreach.services import auth_service

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: UserLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with email and password.

    Returns a JWT bearer token that must be included in the Authorization
    header for all subsequent requests:

        Authorization: Bearer <token>

    The token expires after ACCESS_TOKEN_EXPIRE_MINUTES (default: 60).
    """
    user, token = await auth_service.login(
        db=db,
        email=request.email,
        password=request.password,
    )
    return TokenResponse(token=token, user_id=user.id)
