from datetime import datetime
from enum import Enum
from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class User(BaseModel):
    """A registered user."""

    table_name: ClassVar[str] = "users"

    id: str
    email: str
    name: Optional[str] = None
    role: Literal["admin", "member"] = "member"
    created_at: datetime
    tags: list[str] = Field(default_factory=list)


class CreateUserDto(BaseModel):
    email: str
    name: str = Field(..., min_length=1)
    password: str


class UpdateUserDto(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class AdminUser(User):
    permissions: list[Role]


UserList = list[User]
