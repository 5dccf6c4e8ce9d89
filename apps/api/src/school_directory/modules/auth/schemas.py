"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Registration request schema."""

    name: str = Field(..., max_length=255)
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class RegisterResponse(BaseModel):
    """Registration response schema."""

    message: str
    requires_verification: bool = Field(True, serialization_alias="requiresVerification")
    email: str
    expires_in: int | None = Field(None, serialization_alias="expiresIn")


class SendOTPRequest(BaseModel):
    """Request a new verification code."""

    email: str = Field(..., max_length=255)
    name: str | None = Field(None, max_length=255)


class SendOTPResponse(BaseModel):
    message: str
    email: str
    expires_in: int = Field(..., serialization_alias="expiresIn")


class VerifyOTPRequest(BaseModel):
    """Verify an email with a one-time code."""

    email: str = Field(..., max_length=255)
    otp: str = Field(..., max_length=16)


class VerifyOTPResponse(BaseModel):
    message: str
    verified: bool


class LoginRequest(BaseModel):
    """Login request schema."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class UserProfile(BaseModel):
    """Public profile of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class UserResponse(BaseModel):
    """Response wrapping the current user's profile (login and /me)."""

    user: UserProfile


class MessageResponse(BaseModel):
    message: str
