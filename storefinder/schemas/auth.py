from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID


# ============================================================
# Request Schemas (What the forms send)
# ============================================================

class UserRegister(BaseModel):
    """Schema for the registration form"""

    name: str = Field(
        min_length=1,
        max_length=100,
        description="You must supply a name!"
    )
    email: EmailStr = Field(description="That Email is not valid!")
    password: str = Field(
        min_length=1,
        max_length=100,
        description="Password cannot be blank!"
    )
    password_confirm: str = Field(
        min_length=1,
        max_length=100,
        alias="password-confirm",
        description="Confirmed password cannot be blank!"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Remove extra whitespace from name"""
        normalized = " ".join(v.split())
        if not normalized:
            raise ValueError("You must supply a name!")
        return normalized

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are matched case-insensitively"""
        return v.lower()


class UserLogin(BaseModel):
    """Schema for the login form"""

    email: EmailStr = Field(description="That Email is not valid!")
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class PasswordForgotRequest(BaseModel):
    """
    Schema for the forgot-password form.

    Not an EmailStr: malformed and unknown addresses must get the same
    answer as known ones.
    """
    email: str = Field(default="", max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class PasswordResetConfirm(BaseModel):
    """Schema for setting a new password from a reset link"""
    password: str = Field(
        min_length=1,
        max_length=100,
        description="Password cannot be blank!"
    )
    password_confirm: str = Field(
        min_length=1,
        max_length=100,
        alias="password-confirm",
    )


class AccountUpdate(BaseModel):
    """Schema for the account form"""

    name: str = Field(min_length=1, max_length=100, description="You must supply a name!")
    email: EmailStr = Field(description="That Email is not valid!")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        normalized = " ".join(v.split())
        if not normalized:
            raise ValueError("You must supply a name!")
        return normalized

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


# ============================================================
# Response Schemas (What server sends back)
# ============================================================

class UserResponse(BaseModel):
    """Schema for user data in responses (NO password!)"""

    id: UUID
    email: str
    name: str
    hearts: List[UUID] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # Allow creating from ORM model


class ErrorResponse(BaseModel):
    """Schema for error responses"""

    detail: str

    class Config:
        json_schema_extra = {
            "example": {
                "detail": "Not authenticated"
            }
        }
