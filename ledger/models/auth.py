from typing import Optional
from uuid import UUID
from sqlmodel import SQLModel, Field
from pydantic import EmailStr, StringConstraints
from typing_extensions import Annotated

from ledger.models.user import UserRead


class Token(SQLModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int = Field(description="Access token lifetime in seconds.")
    user: Optional[UserRead] = None


class TokenAccess(SQLModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenRefresh(SQLModel):
    refresh_token: str


class TokenData(SQLModel):
    user_id: UUID
    jti: Optional[str] = None


class UserSignin(SQLModel):
    email: Annotated[EmailStr, StringConstraints(to_lower=True)] = Field(
        description="Registered email address of the user.",
        max_length=255
    )
    password: str = Field(
        min_length=1,
        max_length=128,
        description="Plain text password."
    )


class RegisterRequest(SQLModel):
    """
    Self registration. The account receives the configured default role;
    administrators assign other roles through the users endpoints.
    """
    name: str = Field(
        min_length=1,
        max_length=255,
        description="Full name of the user."
    )
    email: Annotated[EmailStr, StringConstraints(to_lower=True)] = Field(
        description="Unique email address for signin.",
        max_length=255
    )
    password: str = Field(
        min_length=8,
        max_length=128,
        description="Plain text password."
    )
