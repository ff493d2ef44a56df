"""
Pydantic models for user accounts and authentication payloads.

Passwords only ever appear in request models; ``UserRead`` and
``ProfileRead`` never carry the stored hash.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["user", "service_provider", "admin"]


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Jane Doe"])
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$", examples=["jane@example.com"])


class UserCreate(UserBase):
    """Sign-up payload.

    A ``service_provider`` gets a company row created alongside the
    account, named after ``company_name`` when given.
    """

    password: str = Field(..., min_length=6, examples=["strongpassword"])
    role: Role = "user"
    company_name: Optional[str] = None


class UserLogin(BaseModel):
    email: str
    password: str
    # The login form asks which portal the user is signing into; it must
    # match the account's role.
    role: Optional[Role] = None


class UserRead(UserBase):
    id: int
    role: Role
    status: str = "active"
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class AdminUserRead(UserRead):
    """User row as shown on the admin dashboard."""

    last_login: Optional[datetime] = None


class AdminUserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+$")
    role: Optional[Role] = None
    status: Optional[Literal["active", "disabled"]] = None


class ProfileUpdate(BaseModel):
    """Profile fields a user may change on their own account.

    Only non-empty fields are written.
    """

    name: Optional[str] = None
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: Optional[str] = None
    address: Optional[str] = None
    company_name: Optional[str] = Field(None, alias="companyName")
    website: Optional[str] = None
    business_license: Optional[str] = Field(None, alias="businessLicense")
    description: Optional[str] = None

    model_config = {
        "populate_by_name": True,
    }


class ProfileRead(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    company_name: Optional[str] = None
    website: Optional[str] = None
    business_license: Optional[str] = None
    description: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=16)
    new_password: str = Field(..., min_length=6, alias="newPassword")

    model_config = {
        "populate_by_name": True,
    }
