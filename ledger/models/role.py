from typing import List, Optional
from datetime import datetime
from uuid import UUID
from sqlmodel import SQLModel, Field
from pydantic import field_validator

from ledger.core.permissions import PERMISSIONS


def _check_permissions(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    unknown = [p for p in value if p not in PERMISSIONS]
    if unknown:
        raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
    # Keep order, drop duplicates
    return list(dict.fromkeys(value))


class RoleBase(SQLModel):
    name: str = Field(
        min_length=2,
        max_length=255,
        description="Technical slug. Example: 'manager'"
    )
    display_name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)


class RoleCreate(RoleBase):
    @field_validator("permissions")
    @classmethod
    def validate_permissions(cls, v):
        return _check_permissions(v)


class RoleUpdate(SQLModel):
    name: Optional[str] = Field(
        default=None, min_length=2, max_length=255)
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    permissions: Optional[List[str]] = None
    version: int = Field(description="The version the client last read.")

    @field_validator("permissions")
    @classmethod
    def validate_permissions(cls, v):
        return _check_permissions(v)


class RoleBrief(SQLModel):
    id: UUID
    name: str
    display_name: str
    permissions: List[str] = []


class RoleRead(RoleBase):
    id: UUID
    version: int
    created_at: datetime
    updated_at: datetime
    users_count: int = 0
