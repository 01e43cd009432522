"""
Pydantic schemas for the login endpoint.

Pydantic validates incoming data automatically; a missing field or a
malformed email is rejected with 422 before any service code runs.
"""

import uuid

from pydantic import BaseModel, EmailStr

from bulkreach.schemas.common import CamelModel


class UserLoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: EmailStr
    password: str


class TokenResponse(CamelModel):
    """Response body for a successful login: the JWT plus who it belongs to."""
    token: str
    token_type: str = "bearer"
    user_id: uuid.UUID
