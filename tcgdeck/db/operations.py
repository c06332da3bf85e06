"""
Database CRUD operations.

Provides async functions for reading and writing key-value entries.
Entries are scoped by namespace (one namespace per user).
"""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tcgdeck.models.db import KeyValueEntryDB


async def get_entry(session: AsyncSession, namespace: str, key: str) -> KeyValueEntryDB | None:
    """
    Get a single entry.

    Returns None if the key has never been written.
    """
    result = await session.execute(
        select(KeyValueEntryDB).where(
            KeyValueEntryDB.namespace == namespace,
            KeyValueEntryDB.key == key,
        )
    )
    return result.scalar_one_or_none()


async def upsert_entry(session: AsyncSession, namespace: str, key: str, value: str) -> KeyValueEntryDB:
    """Create the entry or overwrite its value."""
    entry = await get_entry(session, namespace, key)
    if entry is None:
        entry = KeyValueEntryDB(namespace=namespace, key=key, value=value)
        session.add(entry)
    else:
        entry.value = value
    await session.flush()
    return entry


async def delete_entry(session: AsyncSession, namespace: str, key: str) -> bool:
    """
    Delete an entry.

    Returns True if an entry was deleted.
    """
    result = await session.execute(
        delete(KeyValueEntryDB).where(
            KeyValueEntryDB.namespace == namespace,
            KeyValueEntryDB.key == key,
        )
    )
    return bool(result.rowcount)  # type: ignore[attr-defined]


async def namespace_usage(session: AsyncSession, namespace: str, exclude_key: str | None = None) -> int:
    """
    Characters used by a namespace (keys plus values).

    Args:
        exclude_key: Leave this key out, e.g. the key about to be overwritten
    """
    query = select(
        func.coalesce(func.sum(func.length(KeyValueEntryDB.key) + func.length(KeyValueEntryDB.value)), 0)
    ).where(KeyValueEntryDB.namespace == namespace)
    if exclude_key is not None:
        query = query.where(KeyValueEntryDB.key != exclude_key)
    result = await session.execute(query)
    return int(result.scalar_one())


async def list_keys(session: AsyncSession, namespace: str) -> list[str]:
    """All keys stored in a namespace, sorted."""
    result = await session.execute(
        select(KeyValueEntryDB.key).where(KeyValueEntryDB.namespace == namespace).order_by(KeyValueEntryDB.key)
    )
    return list(result.scalars().all())
