from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from typing import List, Literal, Optional

from taskflow.models.user import ROLES

Role = Literal[ROLES]
PASSWORD_MIN_LENGTH = 6


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    role: Role = "user"


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    password: Optional[str] = Field(None, min_length=PASSWORD_MIN_LENGTH)


class UserResponse(BaseModel):
    id: int
    email: str
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class UserDeleteResponse(BaseModel):
    message: str
    affected_tasks: int
    # tâches restées sans assigné, visibles des seuls admins
    unassigned_tasks: List[int] = []
