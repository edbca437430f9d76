import logging
from typing import Any, Dict, Type

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def _key_filter(model: Type, key: Dict[str, Any]):
    return [getattr(model, column) == value for column, value in key.items()]


async def upsert_by_natural_key(
    session: AsyncSession, model: Type, key: Dict[str, Any], values: Dict[str, Any]
):
    """
    Updates the row identified by ``key`` or inserts it when missing.

    Any extra rows sharing the same key are removed, so at most one live row
    remains per natural key even if the table lacks the unique constraint.

    Args:
        session: open session
        model: mapped table class
        key: natural key columns, e.g. {"store_id": ..., "date": ...}
        values: remaining columns to write

    Returns:
        the written row
    """
    result = await session.execute(select(model).where(*_key_filter(model, key)))
    row = result.scalars().first()
    if row:
        for column, value in values.items():
            setattr(row, column, value)
    else:
        row = model(**key, **values)
        session.add(row)
    await session.flush()

    await session.execute(
        delete(model).where(*_key_filter(model, key), model.id != row.id)
    )
    await session.commit()
    await session.refresh(row)
    return row


async def next_display_order(session: AsyncSession, model: Type) -> int:
    """One past the current maximum display order, 0 for an empty table."""
    result = await session.execute(select(func.max(model.display_order)))
    current = result.scalar()
    return (current if current is not None else -1) + 1


async def rewrite_display_order(session: AsyncSession, model: Type, ordered_ids) -> None:
    positions = {record_id: index for index, record_id in enumerate(ordered_ids)}
    result = await session.execute(select(model).where(model.id.in_(list(positions))))
    for row in result.scalars().all():
        row.display_order = positions[row.id]
    await session.commit()
