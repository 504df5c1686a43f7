from typing import Optional
from uuid import UUID
from sqlmodel import Field
from pydantic import EmailStr, StringConstraints
from typing_extensions import Annotated

from app.db.schema import UserRole
from app.models.base import CamelModel, NonEmptyStr


class UserRead(CamelModel):
    id: UUID
    email: str
    name: str
    role: UserRole


class UserSignin(CamelModel):
    email: Annotated[EmailStr, StringConstraints(to_lower=True)] = Field(
        description="Registered email address of the user.",
        max_length=255
    )
    password: str = Field(
        min_length=1,
        max_length=128,
        description="Plain text password."
    )


class UserCreate(CamelModel):
    """
    DTO for User Registration.
    """
    email: Annotated[EmailStr, StringConstraints(to_lower=True)] = Field(
        description="Unique email address for signin.",
        max_length=255
    )
    password: str = Field(
        min_length=6,
        max_length=128,
        description="Plain text password."
    )
    name: NonEmptyStr = Field(
        max_length=100,
        description="User's full name."
    )


class AuthResponse(CamelModel):
    success: bool = True
    user: UserRead


class RegisterResponse(CamelModel):
    success: bool = True
    message: str = "User registered successfully"
    user: UserRead


class AuthCheck(CamelModel):
    is_authenticated: bool
    user: Optional[UserRead] = None
