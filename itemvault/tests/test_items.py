from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import select

from itemvault.app.errors import NotFoundError
from itemvault.app.items import ItemStore
from itemvault.app.schemas import ItemCreate, ItemUpdate
from itemvault.app.users import UserStore
from itemvault.db import Item, ItemStatus


async def _two_users(session, hasher):
    users = UserStore(session, hasher)
    ann = await users.register('Ann', 'ann@example.com', 'secret1')
    bob = await users.register('Bob', 'bob@example.com', 'secret1')
    return ann, bob


def test_items_are_isolated_between_owners(session_scope, hasher) -> None:
    async def scenario() -> None:
        async with session_scope() as session:
            ann, bob = await _two_users(session, hasher)
            store = ItemStore(session)
            item = await store.create(ann.id, ItemCreate(title='T', description='D'))

            assert [i.id for i in await store.list(ann.id)] == [item.id]
            assert await store.list(bob.id) == []

            with pytest.raises(NotFoundError):
                await store.get(bob.id, item.id)
            with pytest.raises(NotFoundError):
                await store.update(bob.id, item.id, ItemUpdate(title='hijacked'))
            with pytest.raises(NotFoundError):
                await store.delete(bob.id, item.id)

            untouched = await store.get(ann.id, item.id)
            assert untouched.title == 'T'
            assert untouched.status is ItemStatus.active

    asyncio.run(scenario())


def test_missing_and_foreign_items_look_the_same(session_scope, hasher) -> None:
    async def scenario() -> None:
        async with session_scope() as session:
            ann, bob = await _two_users(session, hasher)
            store = ItemStore(session)
            item = await store.create(ann.id, ItemCreate(title='T'))

            with pytest.raises(NotFoundError) as foreign:
                await store.get(bob.id, item.id)
            with pytest.raises(NotFoundError) as missing:
                await store.get(bob.id, item.id + 1000)
            assert str(foreign.value) == str(missing.value)

    asyncio.run(scenario())


def test_update_merges_partial_fields(session_scope, hasher) -> None:
    async def scenario() -> None:
        async with session_scope() as session:
            ann, _ = await _two_users(session, hasher)
            store = ItemStore(session)
            item = await store.create(ann.id, ItemCreate(title='T', description='D'))

            await store.update(ann.id, item.id, ItemUpdate(description='new description'))
            assert (item.title, item.description) == ('T', 'new description')

            await store.update(ann.id, item.id, ItemUpdate(status=ItemStatus.archived))
            assert item.status is ItemStatus.archived
            assert item.owner_id == ann.id

    asyncio.run(scenario())


def test_list_filters_by_status(session_scope, hasher) -> None:
    async def scenario() -> None:
        async with session_scope() as session:
            ann, _ = await _two_users(session, hasher)
            store = ItemStore(session)
            first = await store.create(ann.id, ItemCreate(title='first'))
            second = await store.create(ann.id, ItemCreate(title='second'))
            await store.update(ann.id, second.id, ItemUpdate(status=ItemStatus.archived))

            assert [i.id for i in await store.list(ann.id)] == [first.id]
            assert [i.id for i in await store.list(ann.id, ItemStatus.archived)] == [second.id]

    asyncio.run(scenario())


def test_soft_delete_hides_item_but_keeps_row(session_scope, hasher) -> None:
    async def scenario() -> None:
        async with session_scope() as session:
            ann, _ = await _two_users(session, hasher)
            store = ItemStore(session)
            item = await store.create(ann.id, ItemCreate(title='T'))

            await store.delete(ann.id, item.id)
            assert await store.list(ann.id) == []
            with pytest.raises(NotFoundError):
                await store.get(ann.id, item.id)
            with pytest.raises(NotFoundError):
                await store.delete(ann.id, item.id)

            row = (await session.execute(select(Item).where(Item.id == item.id))).scalar_one()
            assert row.status is ItemStatus.deleted
            assert row.deleted_at is not None

    asyncio.run(scenario())


def test_hard_delete_removes_row(session_scope, hasher) -> None:
    async def scenario() -> None:
        async with session_scope() as session:
            ann, _ = await _two_users(session, hasher)
            store = ItemStore(session)
            item = await store.create(ann.id, ItemCreate(title='T'))

            await store.delete(ann.id, item.id, hard=True)
            assert (await session.execute(select(Item))).scalars().all() == []

    asyncio.run(scenario())


def test_item_update_rejects_deleted_status() -> None:
    with pytest.raises(ValueError, match='use DELETE'):
        ItemUpdate(status='deleted')


def test_ids_beyond_integer_range_are_not_found(session_scope, hasher) -> None:
    async def scenario() -> None:
        async with session_scope() as session:
            ann, _ = await _two_users(session, hasher)
            with pytest.raises(NotFoundError):
                await ItemStore(session).get(ann.id, 10**25)
            assert await UserStore(session, hasher).find_by_id(10**25) is None

    asyncio.run(scenario())
