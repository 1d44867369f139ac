"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.shared.enums import UserRole


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(serialization_alias="id")
    username: str
    contact_number: str = Field(serialization_alias="contactNumber")
    role: UserRole
    is_active: bool = Field(serialization_alias="isActive")
    created_at: datetime | None = Field(None, serialization_alias="createdAt")
