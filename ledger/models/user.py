from typing import List, Optional
from datetime import datetime
from uuid import UUID
from sqlmodel import SQLModel, Field
from pydantic import EmailStr, StringConstraints
from typing_extensions import Annotated

from ledger.models.role import RoleBrief


class UserBrief(SQLModel):
    id: UUID
    name: str
    email: str


class UserRead(SQLModel):
    id: UUID
    name: str
    email: str
    role_id: UUID
    is_active: bool
    version: int
    created_at: datetime
    updated_at: datetime
    role: Optional[RoleBrief] = None


class UserCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    email: Annotated[EmailStr, StringConstraints(to_lower=True)] = Field(
        description="Unique email address for signin.",
        max_length=255
    )
    password: str = Field(
        min_length=8,
        max_length=128,
        description="Plain text password."
    )
    role_id: UUID
    is_active: bool = True


class UserUpdate(SQLModel):
    """
    Partial update. Only the fields sent are changed; `version` must be the
    value the client last read.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[Annotated[EmailStr, StringConstraints(to_lower=True)]] = Field(
        default=None, max_length=255)
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    role_id: Optional[UUID] = None
    is_active: Optional[bool] = None
    version: int = Field(description="The version the client last read.")


class CurrentUser(UserRead):
    """The authenticated user with the permissions granted by the role."""
    permissions: List[str] = []
