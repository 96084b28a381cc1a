"""
SQLAlchemy ORM models for the Marketplace API.

Tables:
    users                    — login accounts (email + password hash)
    profiles                 — one per user; carries the role (admin | client)
    service_categories       — groupings for bookable services
    services                 — bookable freelance services
    digital_products         — downloadable products sold with a license
    orders                   — a client's booking of a service
    purchases                — a client's acquisition of a digital product
    payments                 — gateway transactions for an order or a purchase
    announcements            — site-wide notices with an audience
    notifications            — per-user inbox entries
    skills                   — skills shown on the portfolio
    portfolio_projects       — showcase projects
    portfolio_project_skills — project <-> skill association
"""
import uuid

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, DateTime, Text, JSON, ForeignKey,
    Table, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base
from utils.clock import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Authentication identity."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False)


class Profile(Base):
    """Personal details and role for a user."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default="client")  # "admin" | "client"
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    social_links = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="profile")


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)


class Service(Base):
    """A bookable freelance service."""
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    short_description = Column(String(500), nullable=True)
    category_id = Column(String(36), ForeignKey("service_categories.id"), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    duration = Column(String(100), nullable=True)  # free text, e.g. "2-3 weeks"
    delivery_time = Column(Integer, nullable=True)  # days
    features = Column(JSON, nullable=False, default=list)
    revisions = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    is_public = Column(Boolean, nullable=False, default=True)
    thumbnail_url = Column(String(500), nullable=True)
    faqs = Column(JSON, nullable=False, default=list)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    category = relationship("ServiceCategory")


class DigitalProduct(Base):
    """A downloadable product (template, script, plugin, ...)."""
    __tablename__ = "digital_products"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    short_description = Column(String(500), nullable=True)
    category = Column(String(20), nullable=False, default="other", index=True)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    thumbnail_url = Column(String(500), nullable=True)
    demo_url = Column(String(500), nullable=True)
    download_url = Column(String(500), nullable=False)
    source_code_url = Column(String(500), nullable=True)
    preview_code = Column(Text, nullable=True)
    documentation_url = Column(String(500), nullable=True)
    tech_stack = Column(JSON, nullable=False, default=list)
    features = Column(JSON, nullable=False, default=list)
    license_type = Column(String(20), nullable=False, default="personal")
    license_terms = Column(Text, nullable=True)
    file_size = Column(String(50), nullable=True)
    download_limit = Column(Integer, nullable=True)  # None = unlimited
    sales_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    is_public = Column(Boolean, nullable=False, default=True)
    tags = Column(JSON, nullable=False, default=list)
    version = Column(String(50), nullable=False, default="1.0.0")
    changelog = Column(JSON, nullable=False, default=list)
    support_email = Column(String(255), nullable=True)
    demo_credentials = Column(JSON, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)


class Order(Base):
    """A client's booking of a service."""
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_orders_rating"),
        Index("ix_orders_user_status", "user_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    requirements = Column(JSON, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    assigned_to = Column(String(36), ForeignKey("users.id"), nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    estimated_delivery = Column(DateTime, nullable=True)
    actual_delivery = Column(DateTime, nullable=True)
    rating = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_reason = Column(Text, nullable=True)
    cancellation_fee = Column(Numeric(10, 2), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow)

    service = relationship("Service")
    user = relationship("User", foreign_keys=[user_id])


class Purchase(Base):
    """A client's acquisition of a digital product."""
    __tablename__ = "purchases"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("digital_products.id"), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True)
    license_type = Column(String(20), nullable=False, default="personal")
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    download_count = Column(Integer, nullable=False, default=0)
    download_limit = Column(Integer, nullable=True)
    license_key = Column(String(64), nullable=True, unique=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    is_refunded = Column(Boolean, nullable=False, default=False)
    refunded_at = Column(DateTime, nullable=True)
    refunded_reason = Column(Text, nullable=True)
    refunded_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    purchased_at = Column(DateTime, nullable=True)
    license_expiry = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow)

    product = relationship("DigitalProduct")


class Payment(Base):
    """A gateway transaction, linked to at most one order or purchase."""
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "NOT (order_id IS NOT NULL AND purchase_id IS NOT NULL)",
            name="ck_payments_single_target",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True, index=True)
    purchase_id = Column(String(36), ForeignKey("purchases.id"), nullable=True, index=True)
    transaction_id = Column(String(100), unique=True, nullable=False, index=True)
    payment_method = Column(String(20), nullable=False, default="other")
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default="pending")
    gateway_response = Column(JSON, nullable=True)
    payment_url = Column(String(500), nullable=True)
    expiry_time = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    refunded_at = Column(DateTime, nullable=True)
    refunded_amount = Column(Numeric(10, 2), nullable=True)
    refunded_reason = Column(Text, nullable=True)
    fraud_status = Column(String(20), nullable=False, default="accept")
    signature_key = Column(String(255), nullable=True)
    billing_details = Column(JSON, nullable=True)
    shipping_details = Column(JSON, nullable=True)
    custom_field1 = Column(String(255), nullable=True)
    custom_field2 = Column(String(255), nullable=True)
    custom_field3 = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    processed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow)


class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="info")
    priority = Column(String(20), nullable=False, default="medium")
    is_published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    target_url = Column(String(500), nullable=True)
    cta_text = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    audience = Column(String(20), nullable=False, default="all")
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(30), nullable=False)
    priority = Column(String(20), nullable=False, default="normal")
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    action_url = Column(String(500), nullable=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    purchase_id = Column(String(36), ForeignKey("purchases.id", ondelete="SET NULL"), nullable=True)
    # "metadata" is reserved on declarative classes
    extra = Column("metadata", JSON, nullable=True)
    sent_via = Column(JSON, nullable=False, default=list)
    scheduled_at = Column(DateTime, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow)


portfolio_project_skills = Table(
    "portfolio_project_skills",
    Base.metadata,
    Column("project_id", String(36), ForeignKey("portfolio_projects.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", String(36), ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)


class Skill(Base):
    __tablename__ = "skills"
    __table_args__ = (
        CheckConstraint("level >= 1 AND level <= 100", name="ck_skills_level"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    category = Column(String(100), nullable=False)
    level = Column(Integer, nullable=False, default=50)
    icon = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    years_of_experience = Column(Integer, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)


class PortfolioProject(Base):
    __tablename__ = "portfolio_projects"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    short_description = Column(String(500), nullable=True)
    image_url = Column(String(500), nullable=True)
    demo_url = Column(String(500), nullable=True)
    source_code_url = Column(String(500), nullable=True)
    technologies = Column(JSON, nullable=False, default=list)
    category = Column(String(20), nullable=False, default="web")
    featured = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="completed")
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    client = Column(String(200), nullable=True)
    project_type = Column(String(100), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    slug = Column(String(200), unique=True, nullable=False, index=True)
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)
    is_public = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow)

    skills = relationship("Skill", secondary=portfolio_project_skills)
