from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import date, datetime
from uuid import UUID

from social_auth.models.user import UserRole


# ============================================================
# Request Schemas (What client sends)
# ============================================================

class SignupRequest(BaseModel):
    """Schema for user signup request"""

    email: EmailStr
    username: str = Field(
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.]+$",
        description="Letters, digits, underscores and dots"
    )
    password: str = Field(min_length=4, max_length=128)
    password_confirm: str = Field(max_length=128)

    # Profile fields
    name: Optional[str] = Field(default=None, max_length=100)
    gender: Optional[str] = Field(default=None, max_length=20)
    status: Optional[str] = Field(default=None, max_length=255)
    birthdate: Optional[date] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        """Remove extra whitespace from name"""
        if v is None:
            return v
        return " ".join(v.split()) or None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "alice@example.com",
                "username": "alice",
                "password": "Pw1!",
                "password_confirm": "Pw1!",
                "name": "Alice Doe"
            }
        }


class IdentifierRequest(BaseModel):
    """Base for requests that name an account by email or username"""

    email: Optional[str] = Field(default=None, max_length=255)
    username: Optional[str] = Field(default=None, max_length=50)


class LoginRequest(IdentifierRequest):
    """Schema for user login request"""

    password: Optional[str] = Field(default=None, max_length=128)

    class Config:
        json_schema_extra = {
            "example": {
                "email": "alice@example.com",
                "password": "Pw1!"
            }
        }


class ForgotPasswordRequest(IdentifierRequest):
    """Schema for requesting a reset code"""
    pass


class ResetPasswordRequest(IdentifierRequest):
    """Schema for setting a new password with an emailed code"""

    code: str = Field(
        min_length=1,
        max_length=6,
        description="6-digit reset code"
    )
    password: str = Field(min_length=4, max_length=128)
    password_confirm: str = Field(max_length=128)

    @field_validator("code", mode="before")
    @classmethod
    def code_as_text(cls, v):
        """Codes are all digits, so clients may send them as JSON numbers"""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "email": "alice@example.com",
                "code": "123456",
                "password": "NewPw1!",
                "password_confirm": "NewPw1!"
            }
        }


class UpdatePasswordRequest(BaseModel):
    """Schema for changing the password of the logged-in user"""

    current_password: Optional[str] = Field(default=None, max_length=128)
    new_password: Optional[str] = Field(default=None, max_length=128)


# ============================================================
# Response Schemas (What server sends back)
# ============================================================

class MessageResponse(BaseModel):
    """Schema for simple message responses"""
    status: str = "success"
    message: str


class UserResponse(BaseModel):
    """Schema for user data in responses (NO password, NO reset code!)"""

    id: UUID
    email: str
    username: str
    role: UserRole
    name: Optional[str] = None
    gender: Optional[str] = None
    status: Optional[str] = None
    birthdate: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # Allow creating from ORM model


class TokenResponse(BaseModel):
    """Schema for authentication token response"""

    status: str = "success"
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until the token expires
    user: UserResponse


class ProfileResponse(BaseModel):
    """Public profile, flagged when the viewer is looking at themselves"""

    user: UserResponse
    is_me: bool = False


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Schema for error responses"""

    status: str = "fail"
    detail: str

    class Config:
        json_schema_extra = {
            "example": {
                "status": "fail",
                "detail": "Incorrect email or password"
            }
        }
