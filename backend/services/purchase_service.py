"""
Purchase service — digital product acquisitions and downloads.

A purchase is created unpaid; webhook_service marks it paid once the gateway
settles, which issues the license key and bumps the product's sales count.
"""

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Purchase
from domain.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from services import product_service
from utils.clock import utcnow
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)


def generate_license_key() -> str:
    """Five dash-separated groups of four uppercase hex chars."""
    raw = secrets.token_hex(10).upper()
    return "-".join(raw[i:i + 4] for i in range(0, 20, 4))


async def create_purchase(
    db: AsyncSession,
    *,
    user_id: str,
    product_id: str,
    license_type: str,
    notes: str | None = None,
) -> Purchase:
    try:
        product = await product_service.get_product(db, product_id=product_id, include_private=False)
    except NotFoundError:
        raise ValidationError(f"Unknown product {product_id}", field="productId")
    if not product.is_active:
        raise ValidationError("Product is not available for purchase", field="productId")

    purchase = Purchase(
        user_id=user_id,
        product_id=product.id,
        license_type=license_type,
        amount=product.price,
        currency=product.currency,
        download_limit=product.download_limit,
        notes=notes,
    )
    db.add(purchase)
    await db.flush()
    logger.info(f"Purchase created: {purchase.id} for product {product.id} by {user_id}")
    return purchase


async def list_purchases(
    db: AsyncSession,
    *,
    viewer_id: str,
    is_admin: bool,
    user_id: str | None = None,
    product_id: str | None = None,
    is_refunded: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Purchase], int]:
    stmt = select(Purchase)
    if not is_admin:
        stmt = stmt.where(Purchase.user_id == viewer_id)
    elif user_id:
        stmt = stmt.where(Purchase.user_id == user_id)
    if product_id:
        stmt = stmt.where(Purchase.product_id == product_id)
    if is_refunded is not None:
        stmt = stmt.where(Purchase.is_refunded == is_refunded)
    stmt = stmt.order_by(Purchase.created_at.desc())
    return await fetch_page(
        db, stmt, limit=limit, offset=offset, options=[selectinload(Purchase.product)]
    )


async def get_purchase(db: AsyncSession, *, purchase_id: str) -> Purchase:
    res = await db.execute(
        select(Purchase).options(selectinload(Purchase.product)).where(Purchase.id == purchase_id)
    )
    purchase = res.scalar_one_or_none()
    if not purchase:
        raise NotFoundError("Purchase", purchase_id)
    return purchase


async def get_visible_purchase(db: AsyncSession, *, purchase_id: str, viewer_id: str, is_admin: bool) -> Purchase:
    purchase = await get_purchase(db, purchase_id=purchase_id)
    if not is_admin and purchase.user_id != viewer_id:
        raise NotFoundError("Purchase", purchase_id)
    return purchase


async def register_download(db: AsyncSession, *, purchase_id: str, user_id: str) -> tuple[Purchase, str]:
    """
    Count one download against the purchase's quota.

    Returns (purchase, download_url).
    """
    purchase = await get_purchase(db, purchase_id=purchase_id)
    if purchase.user_id != user_id:
        raise PermissionDeniedError("Only the buyer can download this product")
    if not purchase.is_paid:
        raise ConflictError("Purchase has not been paid yet")
    if purchase.is_refunded:
        raise ConflictError("Purchase was refunded")
    if purchase.license_expiry and purchase.license_expiry < utcnow():
        raise ConflictError("License has expired")
    if purchase.download_limit is not None and purchase.download_count >= purchase.download_limit:
        raise ConflictError(
            "Download limit reached",
            details={"downloadLimit": purchase.download_limit},
        )

    purchase.download_count += 1
    purchase.updated_at = utcnow()
    await db.flush()
    return purchase, purchase.product.download_url


# ════════════════════════════════════════════════════════════════════
# Payment-driven transitions
# ════════════════════════════════════════════════════════════════════


async def mark_paid(db: AsyncSession, purchase: Purchase) -> bool:
    """
    Idempotent: a purchase already paid is left alone. Returns True if it changed.

    purchased_at records when the purchase was confirmed here, not the
    gateway settlement time (that one lives on the payment).
    """
    if purchase.is_paid:
        return False
    purchase.is_paid = True
    purchase.purchased_at = utcnow()
    if not purchase.license_key:
        purchase.license_key = generate_license_key()
    purchase.updated_at = utcnow()
    await product_service.increment_sales(db, product_id=purchase.product_id)
    return True


def mark_refunded(purchase: Purchase, *, reason: str | None, refunded_by: str | None = None) -> bool:
    if purchase.is_refunded:
        return False
    purchase.is_refunded = True
    purchase.refunded_at = utcnow()
    purchase.refunded_reason = reason
    purchase.refunded_by = refunded_by
    purchase.updated_at = utcnow()
    return True
