from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# largest value an INTEGER primary key can hold
MAX_ROW_ID = 2**63 - 1


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ItemStatus(str, enum.Enum):
    active = 'active'
    archived = 'archived'
    deleted = 'deleted'


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class SoftDeleteMixin:
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class User(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f'<User id={self.id} email={self.email!r}>'


class Item(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = 'items'
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default='')
    status = Column(Enum(ItemStatus, name='item_status'), nullable=False, default=ItemStatus.active, index=True)
    owner_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    def soft_delete(self) -> None:
        self.status = ItemStatus.deleted
        self.deleted_at = utcnow()

    def __repr__(self) -> str:
        return f'<Item id={self.id} owner_id={self.owner_id} status={self.status}>'
