"""Accounts: Admins, Instructors, Students."""
from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AccountRole(str, Enum):
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class Account(Document):
    """Account document keyed by the school ID number."""

    id_number: Indexed(str, unique=True)
    full_name: str
    hashed_password: str
    role: AccountRole
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "accounts"
        use_state_management = True


class AccountCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id_number: str = Field(min_length=1)
    full_name: str = Field(min_length=1)
    password: str = Field(min_length=4)


class AccountOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    id_number: str
    full_name: str
    role: AccountRole
    is_active: bool
    created_at: Optional[datetime] = None
