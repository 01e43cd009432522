"""
Authentication service — login business logic.

There is no public signup: accounts are provisioned by an admin or
reseller (see account_service.provision_account), and the root admin is
bootstrapped with demo/create_admin.py.

Login flow:
  1. Look up user by email (case-insensitive; stored emails are lowercase)
  2. Verify password against stored hash
  3. Return a JWT token whose "sub" claim is the user ID

Login returns the same error for "wrong password", "email not found" and
"deactivated login" so valid emails cannot be enumerated.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bulkreach.exceptions import InvalidCredentialsError
from bulkreach.models.user import User
from bulkreach.services.account_service import normalize_email
from bulkreach.security import verify_password, create_access_token

logger = logging.getLogger(__name__)


async def login(
    db: AsyncSession,
    email: str,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate a user and return a JWT token.

    Returns:
        Tuple of (User instance, JWT token string).

    Raises:
        InvalidCredentialsError: If the email is unknown, the password is
                                 wrong, or the login was deactivated.
    """
    email = normalize_email(email)
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.hashed_password):
        logger.info(f"Failed login attempt for {email}")
        raise InvalidCredentialsError()

    if not user.is_active:
        logger.info(f"Login refused for deactivated user {user.id}")
        raise InvalidCredentialsError()

    token = create_access_token(data={"sub": str(user.id)})
    return user, token
