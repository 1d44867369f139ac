"""Auth module schemas."""

from pydantic import BaseModel, Field

from src.modules.users.schemas import UserPublic

ADMIN_CONTACT_PATTERN = r"^\+[0-9]{10,15}$"
USERNAME_PATTERN = r"^\S+@\S+\.\S+$"


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str
    user_info: UserPublic


class RegisterRequest(BaseModel):
    username: str = Field(..., pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=6)
    contact_number: str = Field(..., alias="contactNumber", pattern=ADMIN_CONTACT_PATTERN)


class ForgotPasswordRequest(BaseModel):
    username: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    username: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=6)


class MessageResponse(BaseModel):
    message: str
