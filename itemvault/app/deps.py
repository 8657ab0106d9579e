from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from itemvault.app.database import get_session
from itemvault.app.errors import AuthenticationError
from itemvault.app.security import TokenService
from itemvault.app.users import UserStore
from itemvault.db import User

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_user_store(request: Request, session: SessionDep) -> UserStore:
    return UserStore(session, request.app.state.hasher)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


UserStoreDep = Annotated[UserStore, Depends(get_user_store)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]


async def get_current_user(request: Request, users: UserStoreDep) -> User:
    """Resolve the identity the guard middleware attached to this request."""
    user_id = getattr(request.state, 'user_id', None)
    if user_id is None:
        raise AuthenticationError
    user = await users.find_by_id(user_id)
    if user is None or not user.is_active:
        raise AuthenticationError
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
