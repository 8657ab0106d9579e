from __future__ import annotations

import logging

from fastapi import APIRouter, status

from itemvault.app.deps import CurrentUser, TokenServiceDep, UserStoreDep
from itemvault.app.errors import InvalidCredentialsError
from itemvault.app.schemas import Deleted, LoginResponse, UserCreate, UserCredentials, UserRead, UserUpdate
from itemvault.db import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/auth', tags=['auth'])


@router.post('/register', response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(user_in: UserCreate, users: UserStoreDep) -> User:
    return await users.register(user_in.name, user_in.email, user_in.password)


@router.post('/login', response_model=LoginResponse)
async def login_user(credentials: UserCredentials, users: UserStoreDep, tokens: TokenServiceDep) -> LoginResponse:
    user = await users.authenticate(credentials.email, credentials.password)
    if user is None:
        logger.info('Rejected login attempt')
        raise InvalidCredentialsError
    return LoginResponse(
        token=tokens.issue(user.id),
        expires_in=int(tokens.ttl.total_seconds()),
        user=UserRead.model_validate(user),
    )


@router.get('/me', response_model=UserRead)
async def read_me(user: CurrentUser) -> User:
    return user


@router.patch('/me', response_model=UserRead)
async def update_me(changes: UserUpdate, user: CurrentUser, users: UserStoreDep) -> User:
    return await users.update(user, name=changes.name, email=changes.email, password=changes.password)


@router.delete('/me', response_model=Deleted)
async def delete_me(user: CurrentUser, users: UserStoreDep, hard: bool = False) -> Deleted:
    user_id = user.id
    await users.delete(user, hard=hard)
    return Deleted(id=user_id, hard=hard)


__all__ = ['router']
