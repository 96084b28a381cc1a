"""
Digital product service — catalog CRUD for downloadable products.
"""

import logging

from sqlalchemy import or_, select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import DigitalProduct, Purchase
from domain.errors import ConflictError, NotFoundError
from utils.clock import utcnow
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)


async def list_products(
    db: AsyncSession,
    *,
    include_private: bool,
    category: str | None = None,
    search: str | None = None,
    active: bool | None = None,
    public: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[DigitalProduct], int]:
    stmt = select(DigitalProduct)
    if not include_private:
        stmt = stmt.where(DigitalProduct.is_public == True)  # noqa: E712
    elif public is not None:
        stmt = stmt.where(DigitalProduct.is_public == public)
    if category:
        stmt = stmt.where(DigitalProduct.category == category)
    if active is not None:
        stmt = stmt.where(DigitalProduct.is_active == active)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                DigitalProduct.title.ilike(pattern),
                DigitalProduct.description.ilike(pattern),
                DigitalProduct.short_description.ilike(pattern),
            )
        )
    stmt = stmt.order_by(DigitalProduct.created_at.desc())
    return await fetch_page(db, stmt, limit=limit, offset=offset)


async def get_product(db: AsyncSession, *, product_id: str, include_private: bool = True) -> DigitalProduct:
    product = await db.get(DigitalProduct, product_id)
    if not product or (not include_private and not product.is_public):
        raise NotFoundError("Digital product", product_id)
    return product


async def create_product(db: AsyncSession, *, created_by: str, fields: dict) -> DigitalProduct:
    product = DigitalProduct(created_by=created_by, **fields)
    db.add(product)
    await db.flush()
    logger.info(f"Digital product created: {product.id} ({product.title})")
    return product


async def update_product(db: AsyncSession, *, product_id: str, fields: dict) -> DigitalProduct:
    """Only provided fields are updated."""
    product = await get_product(db, product_id=product_id)
    for key, value in fields.items():
        setattr(product, key, value)
    product.updated_at = utcnow()
    await db.flush()
    return product


async def delete_product(db: AsyncSession, *, product_id: str) -> None:
    product = await get_product(db, product_id=product_id)

    res = await db.execute(
        select(func.count()).select_from(Purchase).where(Purchase.product_id == product_id)
    )
    purchase_count = res.scalar_one()
    if purchase_count:
        raise ConflictError(
            f"Cannot delete product {product.title}: {purchase_count} purchase(s) exist. "
            f"Deactivate it instead."
        )
    await db.delete(product)
    await db.flush()


async def increment_sales(db: AsyncSession, *, product_id: str) -> None:
    """Atomic salesCount += 1."""
    await db.execute(
        update(DigitalProduct)
        .where(DigitalProduct.id == product_id)
        .values(sales_count=DigitalProduct.sales_count + 1)
        .execution_options(synchronize_session="fetch")
    )
