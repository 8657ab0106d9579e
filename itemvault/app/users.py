"""Credential store: user records and the password lifecycle."""

from __future__ import annotations

import logging

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from itemvault.app.errors import DuplicateEmailError
from itemvault.app.schemas import UserCreate, UserUpdate, normalize_email
from itemvault.app.security import PasswordHasher
from itemvault.db import MAX_ROW_ID, Item, User, utcnow

logger = logging.getLogger(__name__)


class UserStore:
    def __init__(self, session: AsyncSession, hasher: PasswordHasher) -> None:
        self.session = session
        self.hasher = hasher

    async def register(self, name: str, email: str, password: str) -> User:
        data = UserCreate(name=name, email=email, password=password)
        if await self._email_taken(data.email):
            raise DuplicateEmailError

        user = User(name=data.name, is_active=True)
        await self._prepare_write(user, email=data.email, password=data.password)
        await self._commit(user)
        logger.info('Registered user id=%s', user.id)
        return user

    async def find_by_email(self, email: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.email == normalize_email(email), User.deleted_at.is_(None))
        )
        return result.scalars().first()

    async def find_by_id(self, user_id: int) -> User | None:
        if not 0 < user_id <= MAX_ROW_ID:
            return None
        result = await self.session.execute(select(User).where(User.id == user_id, User.deleted_at.is_(None)))
        return result.scalars().first()

    async def authenticate(self, email: str, password: str) -> User | None:
        user = await self.find_by_email(email)
        if user is None:
            await run_in_threadpool(self.hasher.dummy_verify)
            return None

        ok, new_hash = await run_in_threadpool(self.hasher.verify_and_update, password, user.hashed_password)
        if not ok or not user.is_active:
            return None
        if new_hash is not None:
            user.hashed_password = new_hash
        user.last_login_at = utcnow()
        await self._commit(user)
        return user

    async def update(
        self,
        user: User,
        *,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> User:
        changes = UserUpdate(name=name, email=email, password=password)
        if changes.email is not None and changes.email != user.email and await self._email_taken(changes.email):
            raise DuplicateEmailError
        if changes.name is not None:
            user.name = changes.name

        await self._prepare_write(user, email=changes.email, password=changes.password)
        await self._commit(user)
        return user

    async def delete(self, user: User, *, hard: bool = False) -> None:
        if hard:
            await self.session.execute(delete(Item).where(Item.owner_id == user.id))
            await self.session.delete(user)
            await self.session.commit()
            logger.info('Removed user id=%s', user.id)
            return

        user.is_active = False
        user.deleted_at = utcnow()
        await self.session.commit()
        logger.info('Deactivated user id=%s', user.id)

    async def _prepare_write(self, user: User, *, email: str | None = None, password: str | None = None) -> None:
        # every write path funnels through here so a plaintext password never reaches the session
        if email is not None:
            user.email = normalize_email(email)
        if password is not None:
            user.hashed_password = await run_in_threadpool(self.hasher.hash, password)
            user.password_changed_at = utcnow()

    async def _email_taken(self, email: str) -> bool:
        result = await self.session.execute(select(func.count()).select_from(User).where(User.email == email))
        return result.scalar_one() > 0

    async def _commit(self, user: User) -> None:
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateEmailError from exc
        await self.session.refresh(user)
