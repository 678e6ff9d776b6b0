"""Pydantic schemas for login and registration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Login payload. Fields are optional so missing values get a 400, not a 422."""

    username: str | None = Field(default=None, description="Account username.")
    password: str | None = Field(default=None, description="Account password.")


class RegisterRequest(Credentials):
    type: str = Field(
        default="free",
        description="Requested tier: 'free' or 'premium'. Anything else becomes 'free'.",
    )


class UserOut(BaseModel):
    id: int
    username: str
    type: str = Field(..., description="Tier the account is rate limited under.")


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    token: str = Field(..., description="Bearer token for the Authorization header.")
    user: UserOut


class DemoUser(BaseModel):
    username: str
    password: str
    type: str
    limit: str


class DemoUsersResponse(BaseModel):
    success: bool = True
    message: str
    users: list[DemoUser]
    note: str
