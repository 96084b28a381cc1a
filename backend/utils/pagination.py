"""
Offset pagination over SQLAlchemy select() statements.
"""
from typing import Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def fetch_page(
    db: AsyncSession,
    stmt: Select,
    *,
    limit: int,
    offset: int,
    options: Sequence = (),
) -> tuple[list, int]:
    """
    Run `stmt` for one page and count every matching row.

    Loader options are applied to the page query only; the count runs over
    the bare filtered statement.
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    page_stmt = stmt.limit(limit).offset(offset)
    if options:
        page_stmt = page_stmt.options(*options)
    res = await db.execute(page_stmt)
    return list(res.scalars().all()), total
