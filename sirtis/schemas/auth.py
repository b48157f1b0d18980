from pydantic import BaseModel, EmailStr, ConfigDict
from typing import Optional
from sirtis.models.user import UserRole
from datetime import datetime

class UserBase(BaseModel):
    email: str
    role: UserRole
    department: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool
    created_at: Optional[datetime] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str
    user: Optional[UserResponse] = None

class TokenData(BaseModel):
    email: Optional[str] = None
    role: Optional[str] = None
