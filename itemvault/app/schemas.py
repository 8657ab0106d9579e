from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator

from itemvault.app.security import MAX_PASSWORD_BYTES, check_password
from itemvault.db import ItemStatus

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Password = Annotated[str, Field(min_length=6, max_length=MAX_PASSWORD_BYTES), AfterValidator(check_password)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]


def normalize_email(value: str) -> str:
    return value.strip().lower()


class UserCreate(BaseModel):
    name: Name
    email: EmailStr
    password: Password

    @field_validator('email')
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return normalize_email(value)


class UserCredentials(BaseModel):
    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    password: Annotated[str, Field(min_length=1, max_length=128)]

    @field_validator('email')
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return normalize_email(value)


class UserUpdate(BaseModel):
    name: Name | None = None
    email: EmailStr | None = None
    password: Password | None = None

    @field_validator('email')
    @classmethod
    def _lower_email(cls, value: str | None) -> str | None:
        return normalize_email(value) if value is not None else None


class UserRead(BaseModel):
    """Public view of a user; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    token: str
    token_type: str = 'bearer'
    expires_in: int
    user: UserRead


class ItemCreate(BaseModel):
    title: Title
    description: Description = ''


class ItemUpdate(BaseModel):
    title: Title | None = None
    description: Description | None = None
    status: ItemStatus | None = None

    @field_validator('status')
    @classmethod
    def _no_deleted_status(cls, value: ItemStatus | None) -> ItemStatus | None:
        if value is ItemStatus.deleted:
            msg = 'use DELETE to remove an item'
            raise ValueError(msg)
        return value


class ItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    status: ItemStatus
    owner_id: int
    created_at: datetime
    updated_at: datetime


class Deleted(BaseModel):
    id: int
    deleted: bool = True
    hard: bool = False
