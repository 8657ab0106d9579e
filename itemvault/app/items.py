from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from itemvault.app.deps import CurrentUser, SessionDep
from itemvault.app.errors import NotFoundError
from itemvault.app.schemas import Deleted, ItemCreate, ItemRead, ItemUpdate
from itemvault.db import MAX_ROW_ID, Item, ItemStatus

router = APIRouter(prefix='/items', tags=['items'])
health_router = APIRouter(tags=['health'])


class ItemStore:
    """Item persistence scoped to a single owner.

    Every lookup filters on ``owner_id``, so another user's item and a missing
    item both surface as :class:`NotFoundError`.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list(self, owner_id: int, status: ItemStatus = ItemStatus.active) -> list[Item]:
        result = await self.session.execute(
            select(Item)
            .where(Item.owner_id == owner_id, Item.status == status, Item.deleted_at.is_(None))
            .order_by(Item.id)
        )
        return list(result.scalars().all())

    async def get(self, owner_id: int, item_id: int) -> Item:
        if not 0 < item_id <= MAX_ROW_ID:
            raise NotFoundError
        result = await self.session.execute(
            select(Item).where(Item.id == item_id, Item.owner_id == owner_id, Item.deleted_at.is_(None))
        )
        item = result.scalars().first()
        if item is None:
            raise NotFoundError
        return item

    async def create(self, owner_id: int, fields: ItemCreate) -> Item:
        item = Item(title=fields.title, description=fields.description, status=ItemStatus.active, owner_id=owner_id)
        self.session.add(item)
        await self.session.commit()
        await self.session.refresh(item)
        return item

    async def update(self, owner_id: int, item_id: int, fields: ItemUpdate) -> Item:
        item = await self.get(owner_id, item_id)
        for name, value in fields.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(item, name, value)
        await self.session.commit()
        await self.session.refresh(item)
        return item

    async def delete(self, owner_id: int, item_id: int, *, hard: bool = False) -> None:
        item = await self.get(owner_id, item_id)
        if hard:
            await self.session.delete(item)
        else:
            item.soft_delete()
        await self.session.commit()


def get_item_store(session: SessionDep) -> ItemStore:
    return ItemStore(session)


ItemStoreDep = Annotated[ItemStore, Depends(get_item_store)]


@health_router.get('/healthz', include_in_schema=False)
async def healthz() -> dict[str, str]:
    return {'status': 'ok'}


@router.get('', response_model=list[ItemRead])
async def list_items(
    user: CurrentUser,
    items: ItemStoreDep,
    status_filter: Annotated[Literal['active', 'archived'], Query(alias='status')] = 'active',
) -> list[Item]:
    return await items.list(user.id, ItemStatus(status_filter))


@router.post('', response_model=ItemRead, status_code=status.HTTP_201_CREATED)
async def create_item(item_in: ItemCreate, user: CurrentUser, items: ItemStoreDep) -> Item:
    return await items.create(user.id, item_in)


@router.get('/{item_id}', response_model=ItemRead)
async def read_item(item_id: int, user: CurrentUser, items: ItemStoreDep) -> Item:
    return await items.get(user.id, item_id)


@router.api_route('/{item_id}', methods=['PUT', 'PATCH'], response_model=ItemRead)
async def update_item(item_id: int, item_in: ItemUpdate, user: CurrentUser, items: ItemStoreDep) -> Item:
    return await items.update(user.id, item_id, item_in)


@router.delete('/{item_id}', response_model=Deleted)
async def delete_item(item_id: int, user: CurrentUser, items: ItemStoreDep, hard: bool = False) -> Deleted:
    await items.delete(user.id, item_id, hard=hard)
    return Deleted(id=item_id, hard=hard)


__all__ = ['ItemStore', 'health_router', 'router']
