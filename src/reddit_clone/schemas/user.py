"""Pydantic schemas for user and authentication API endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FieldError(BaseModel):
    """A validation problem attached to a single input field."""

    field: str = Field(description="Name of the offending input field")
    message: str = Field(description="Human readable explanation")


class UserCreate(BaseModel):
    """Schema for user registration.

    Field rules are checked by ``validate_register`` so that problems come
    back as a list of field errors rather than a 422.
    """

    username: str = Field(description="Unique username (3-50 characters)")
    email: str = Field(description="Valid email address")
    password: str = Field(description="Password (8-100 characters)")


class UserLogin(BaseModel):
    """Schema for user login request."""

    username_or_email: str = Field(description="Username or email")
    password: str = Field(description="Password")


class ForgotPassword(BaseModel):
    """Schema for requesting a password reset email."""

    email: str = Field(description="Email address of the account")


class ChangePassword(BaseModel):
    """Schema for completing a password reset."""

    token: str = Field(description="Token from the reset email")
    new_password: str = Field(description="New password (8-100 characters)")


class UserResponse(BaseModel):
    """Response schema for user data (excludes password)."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    email: str = Field(description="Email address")
    is_active: bool = Field(description="Whether the user account is active")
    created_at: datetime = Field(description="When the user was created")


class AuthResponse(BaseModel):
    """Result of an account operation.

    Callers must check ``errors`` before trusting ``user``.
    """

    errors: list[FieldError] | None = Field(default=None, description="Field errors, if any")
    user: UserResponse | None = Field(default=None, description="The authenticated user")
    access_token: str | None = Field(default=None, description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
