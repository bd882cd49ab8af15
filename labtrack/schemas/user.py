from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from labtrack.models.user import Role


class UserBase(BaseModel):
    username: str = Field(..., min_length=2, max_length=64)
    email: EmailStr
    role: Role = Role.user
    is_active: bool = True


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class UserResponse(BaseModel):
    id: int
    username: str
    # uložené adresy se znovu nevalidují
    email: str
    role: Role
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
