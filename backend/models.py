"""
Pydantic models for request/response validation.

API field names are camelCase; every model also accepts snake_case so
services and tests can build them by Python name. Update models are applied
with model_dump(exclude_unset=True) so omitted fields are left untouched.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, ClassVar, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from config import settings
from domain.enums import (
    AnnouncementPriority, AnnouncementType, Audience, FraudStatus, NotificationPriority,
    NotificationType, OrderStatus, PaymentMethod, PaymentStatus, ProductCategory,
    ProductLicenseType, ProjectCategory, ProjectStatus, PurchaseLicenseType,
)


class ApiModel(BaseModel):
    """Shared base — camelCase aliases, construction by name or alias, ORM reads."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


Money = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]
Currency = Annotated[str, Field(min_length=3, max_length=3)]
Url = Annotated[str, Field(max_length=500)]


def _default_currency() -> str:
    return settings.default_currency


class PatchModel(ApiModel):
    """
    Base for partial updates.

    Omitted fields are left untouched. An explicit null is only accepted for
    fields whose column may be cleared; `not_null` lists the ones that may not.
    """
    not_null: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_null(self):
        cleared = sorted(
            name for name in self.model_fields_set & self.not_null if getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"Cannot be null: {', '.join(to_camel(name) for name in cleared)}")
        return self


# ── Auth ────────────────────────────────────────────────────────────

class RegisterRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(ApiModel):
    user_id: str
    role: str
    access_token: str
    token_type: str = "Bearer"
    expires_in_seconds: int


class MeResponse(ApiModel):
    id: str
    email: str
    name: str
    role: str


class UserSummary(ApiModel):
    id: str
    name: str
    email: str


# ── Profiles ────────────────────────────────────────────────────────

class ProfileCreateRequest(ApiModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=2000)
    avatar: Optional[Url] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)
    is_public: bool = False
    social_links: Optional[dict[str, str]] = None


class ProfileUpdateRequest(ProfileCreateRequest, PatchModel):
    not_null = frozenset({"is_public"})

    is_public: Optional[bool] = None


class ProfileOut(ApiModel):
    id: str
    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    is_public: bool
    social_links: Optional[dict[str, str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


# ── Service categories ──────────────────────────────────────────────

class CategoryCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    icon: Optional[str] = Field(default=None, max_length=100)
    is_active: bool = True
    sort_order: int = Field(0, ge=0)


class CategoryUpdateRequest(PatchModel):
    not_null = frozenset({"name", "is_active", "sort_order"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    icon: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(default=None, ge=0)


class CategoryOut(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    is_active: bool
    sort_order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Services ────────────────────────────────────────────────────────

class Faq(ApiModel):
    question: str = Field(..., min_length=1, max_length=500)
    answer: str = Field(..., min_length=1, max_length=2000)


class ServiceCreateRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    short_description: Optional[str] = Field(default=None, max_length=500)
    category_id: str
    price: Money
    currency: Currency = Field(default_factory=_default_currency)
    duration: Optional[str] = Field(default=None, max_length=100)
    delivery_time: Optional[int] = Field(default=None, ge=1)
    features: List[str] = Field(default_factory=list)
    revisions: int = Field(0, ge=0)
    is_active: bool = True
    is_public: bool = True
    thumbnail_url: Optional[Url] = None
    faqs: List[Faq] = Field(default_factory=list)


class ServiceUpdateRequest(PatchModel):
    not_null = frozenset({
        "title", "description", "category_id", "price", "currency", "features",
        "revisions", "is_active", "is_public", "faqs",
    })

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    short_description: Optional[str] = Field(default=None, max_length=500)
    category_id: Optional[str] = None
    price: Optional[Money] = None
    currency: Optional[Currency] = None
    duration: Optional[str] = Field(default=None, max_length=100)
    delivery_time: Optional[int] = Field(default=None, ge=1)
    features: Optional[List[str]] = None
    revisions: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None
    thumbnail_url: Optional[Url] = None
    faqs: Optional[List[Faq]] = None


class ServiceSummary(ApiModel):
    id: str
    title: str
    thumbnail_url: Optional[str] = None
    price: Decimal
    currency: str


class ServiceOut(ApiModel):
    id: str
    title: str
    description: str
    short_description: Optional[str] = None
    category_id: str
    price: Decimal
    currency: str
    duration: Optional[str] = None
    delivery_time: Optional[int] = None
    features: List[str] = Field(default_factory=list)
    revisions: int
    is_active: bool
    is_public: bool
    thumbnail_url: Optional[str] = None
    faqs: List[Faq] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category: Optional[CategoryOut] = None


# ── Digital products ────────────────────────────────────────────────

class ProductCreateRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    short_description: Optional[str] = Field(default=None, max_length=500)
    category: ProductCategory = ProductCategory.OTHER
    price: Money
    currency: Currency = Field(default_factory=_default_currency)
    thumbnail_url: Optional[Url] = None
    demo_url: Optional[Url] = None
    download_url: Url = Field(..., min_length=1)
    source_code_url: Optional[Url] = None
    preview_code: Optional[str] = None
    documentation_url: Optional[Url] = None
    tech_stack: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    license_type: ProductLicenseType = ProductLicenseType.PERSONAL
    license_terms: Optional[str] = None
    file_size: Optional[str] = Field(default=None, max_length=50)
    download_limit: Optional[int] = Field(default=None, ge=1)
    is_active: bool = True
    is_public: bool = True
    tags: List[str] = Field(default_factory=list)
    version: str = Field("1.0.0", max_length=50)
    changelog: List[dict[str, Any]] = Field(default_factory=list)
    support_email: Optional[EmailStr] = None
    demo_credentials: Optional[dict[str, Any]] = None


class ProductUpdateRequest(PatchModel):
    not_null = frozenset({
        "title", "description", "category", "price", "currency", "download_url", "tech_stack",
        "features", "license_type", "is_active", "is_public", "tags", "version", "changelog",
    })

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    short_description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[ProductCategory] = None
    price: Optional[Money] = None
    currency: Optional[Currency] = None
    thumbnail_url: Optional[Url] = None
    demo_url: Optional[Url] = None
    download_url: Optional[Url] = None
    source_code_url: Optional[Url] = None
    preview_code: Optional[str] = None
    documentation_url: Optional[Url] = None
    tech_stack: Optional[List[str]] = None
    features: Optional[List[str]] = None
    license_type: Optional[ProductLicenseType] = None
    license_terms: Optional[str] = None
    file_size: Optional[str] = Field(default=None, max_length=50)
    download_limit: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    version: Optional[str] = Field(default=None, max_length=50)
    changelog: Optional[List[dict[str, Any]]] = None
    support_email: Optional[EmailStr] = None
    demo_credentials: Optional[dict[str, Any]] = None


class ProductSummary(ApiModel):
    id: str
    title: str
    category: str
    thumbnail_url: Optional[str] = None
    price: Decimal
    currency: str
    sales_count: int = 0


class ProductOut(ApiModel):
    """Catalog view; never carries the download URL."""
    id: str
    title: str
    description: str
    short_description: Optional[str] = None
    category: str
    price: Decimal
    currency: str
    thumbnail_url: Optional[str] = None
    demo_url: Optional[str] = None
    source_code_url: Optional[str] = None
    preview_code: Optional[str] = None
    documentation_url: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    license_type: str
    license_terms: Optional[str] = None
    file_size: Optional[str] = None
    download_limit: Optional[int] = None
    sales_count: int
    is_active: bool
    is_public: bool
    tags: List[str] = Field(default_factory=list)
    version: str
    changelog: List[dict[str, Any]] = Field(default_factory=list)
    support_email: Optional[str] = None
    demo_credentials: Optional[dict[str, Any]] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductAdminOut(ProductOut):
    download_url: str


# ── Orders ──────────────────────────────────────────────────────────

class OrderCreateRequest(ApiModel):
    service_id: str
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    amount: Optional[Money] = None
    currency: Optional[Currency] = None
    requirements: Optional[dict[str, Any]] = None
    attachments: List[Url] = Field(default_factory=list)
    estimated_delivery: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class OrderUpdateRequest(PatchModel):
    not_null = frozenset({"attachments", "status", "amount"})

    description: Optional[str] = Field(default=None, max_length=5000)
    requirements: Optional[dict[str, Any]] = None
    attachments: Optional[List[Url]] = None
    status: Optional[OrderStatus] = None
    cancelled_reason: Optional[str] = Field(default=None, max_length=1000)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=5000)
    # admin-only fields
    assigned_to: Optional[str] = None
    amount: Optional[Money] = None
    estimated_delivery: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    cancellation_fee: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class OrderOut(ApiModel):
    id: str
    user_id: str
    service_id: str
    title: str
    description: Optional[str] = None
    status: str
    amount: Decimal
    currency: str
    requirements: Optional[dict[str, Any]] = None
    attachments: List[str] = Field(default_factory=list)
    assigned_to: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    rating: Optional[int] = None
    review: Optional[str] = None
    is_paid: bool
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_reason: Optional[str] = None
    cancellation_fee: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderWithServiceOut(OrderOut):
    service: Optional[ServiceSummary] = None


class OrderWithUserOut(OrderOut):
    user: Optional[UserSummary] = None


# ── Purchases ───────────────────────────────────────────────────────

class PurchaseCreateRequest(ApiModel):
    product_id: str
    license_type: PurchaseLicenseType = PurchaseLicenseType.PERSONAL
    notes: Optional[str] = Field(default=None, max_length=2000)


class PurchaseOut(ApiModel):
    id: str
    user_id: str
    product_id: str
    order_id: Optional[str] = None
    license_type: str
    amount: Decimal
    currency: str
    download_count: int
    download_limit: Optional[int] = None
    license_key: Optional[str] = None
    is_paid: bool
    is_refunded: bool
    refunded_at: Optional[datetime] = None
    refunded_reason: Optional[str] = None
    purchased_at: Optional[datetime] = None
    license_expiry: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PurchaseWithProductOut(PurchaseOut):
    product: Optional[ProductSummary] = None


class DownloadOut(ApiModel):
    purchase_id: str
    download_url: str
    download_count: int
    downloads_remaining: Optional[int] = None


# ── Payments ────────────────────────────────────────────────────────

class PaymentCreateRequest(ApiModel):
    order_id: Optional[str] = None
    purchase_id: Optional[str] = None
    transaction_id: str = Field(..., min_length=1, max_length=100)
    payment_method: PaymentMethod
    amount: Money
    currency: Currency = Field(default_factory=_default_currency)
    status: PaymentStatus
    fraud_status: FraudStatus = FraudStatus.ACCEPT
    payment_url: Optional[Url] = None
    expiry_time: Optional[datetime] = None
    billing_details: Optional[dict[str, Any]] = None
    shipping_details: Optional[dict[str, Any]] = None
    custom_field1: Optional[str] = Field(default=None, max_length=255)
    custom_field2: Optional[str] = Field(default=None, max_length=255)
    custom_field3: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)


class PaymentUpdateRequest(PatchModel):
    not_null = frozenset({"status", "fraud_status", "payment_method"})

    status: Optional[PaymentStatus] = None
    fraud_status: Optional[FraudStatus] = None
    payment_method: Optional[PaymentMethod] = None
    payment_url: Optional[Url] = None
    expiry_time: Optional[datetime] = None
    billing_details: Optional[dict[str, Any]] = None
    shipping_details: Optional[dict[str, Any]] = None
    custom_field1: Optional[str] = Field(default=None, max_length=255)
    custom_field2: Optional[str] = Field(default=None, max_length=255)
    custom_field3: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)


class PaymentOut(ApiModel):
    id: str
    user_id: str
    order_id: Optional[str] = None
    purchase_id: Optional[str] = None
    transaction_id: str
    payment_method: str
    amount: Decimal
    currency: str
    status: str
    fraud_status: str
    gateway_response: Optional[dict[str, Any]] = None
    payment_url: Optional[str] = None
    expiry_time: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    refunded_amount: Optional[Decimal] = None
    refunded_reason: Optional[str] = None
    billing_details: Optional[dict[str, Any]] = None
    shipping_details: Optional[dict[str, Any]] = None
    custom_field1: Optional[str] = None
    custom_field2: Optional[str] = None
    custom_field3: Optional[str] = None
    notes: Optional[str] = None
    processed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RefundRequest(ApiModel):
    amount: Optional[Money] = None
    reason: str = Field(..., min_length=1, max_length=1000)


class CheckoutServiceRequest(ApiModel):
    order_id: str


class CheckoutProductRequest(ApiModel):
    purchase_id: str


class CheckoutOut(ApiModel):
    payment: PaymentOut
    redirect_url: str
    token: str


class GatewayNotification(BaseModel):
    """Gateway HTTP notification body; field names are the gateway's own."""
    model_config = ConfigDict(extra="allow")

    transaction_id: str = Field(..., min_length=1)
    order_id: str = ""
    transaction_status: str = Field(..., min_length=1)
    fraud_status: Optional[str] = None
    payment_type: Optional[str] = None
    status_code: str = ""
    gross_amount: str = ""
    signature_key: str = ""
    settlement_time: Optional[str] = None
    status_message: Optional[str] = None


class SimulatePaymentRequest(ApiModel):
    transaction_status: Literal[
        "settlement", "capture", "pending", "deny", "cancel", "expire", "failure",
    ] = "settlement"
    fraud_status: FraudStatus = FraudStatus.ACCEPT
    payment_type: str = Field("credit_card", max_length=50)


class WorkflowResultOut(ApiModel):
    payment_id: str
    transaction_id: str
    previous_status: str
    status: str
    applied: bool
    reason: Optional[str] = None
    order_status: Optional[str] = None
    purchase_paid: Optional[bool] = None


class ExpireStaleOut(ApiModel):
    expired: int
    payment_ids: List[str]


# ── Announcements ───────────────────────────────────────────────────

class AnnouncementCreateRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    type: AnnouncementType = AnnouncementType.INFO
    priority: AnnouncementPriority = AnnouncementPriority.MEDIUM
    is_published: bool = False
    expires_at: Optional[datetime] = None
    target_url: Optional[Url] = None
    cta_text: Optional[str] = Field(default=None, max_length=100)
    image_url: Optional[Url] = None
    tags: List[str] = Field(default_factory=list)
    audience: Audience = Audience.ALL


class AnnouncementUpdateRequest(PatchModel):
    not_null = frozenset({"title", "content", "type", "priority", "is_published", "tags", "audience"})

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    type: Optional[AnnouncementType] = None
    priority: Optional[AnnouncementPriority] = None
    is_published: Optional[bool] = None
    expires_at: Optional[datetime] = None
    target_url: Optional[Url] = None
    cta_text: Optional[str] = Field(default=None, max_length=100)
    image_url: Optional[Url] = None
    tags: Optional[List[str]] = None
    audience: Optional[Audience] = None


class AnnouncementOut(ApiModel):
    id: str
    title: str
    content: str
    type: str
    priority: str
    is_published: bool
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    target_url: Optional[str] = None
    cta_text: Optional[str] = None
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    audience: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Notifications ───────────────────────────────────────────────────

class NotificationCreateRequest(ApiModel):
    user_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_url: Optional[Url] = None
    order_id: Optional[str] = None
    purchase_id: Optional[str] = None
    extra: Optional[dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("metadata", "extra"),
        serialization_alias="metadata",
    )
    sent_via: Optional[List[str]] = None
    scheduled_at: Optional[datetime] = None


class NotificationUpdateRequest(ApiModel):
    is_read: bool


class NotificationOut(ApiModel):
    id: str
    user_id: str
    title: str
    message: str
    type: str
    priority: str
    is_read: bool
    read_at: Optional[datetime] = None
    action_url: Optional[str] = None
    order_id: Optional[str] = None
    purchase_id: Optional[str] = None
    extra: Optional[dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("extra", "metadata"),
        serialization_alias="metadata",
    )
    sent_via: List[str] = Field(default_factory=list)
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ReadAllOut(ApiModel):
    updated: int


# ── Portfolio ───────────────────────────────────────────────────────

class SkillCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    level: int = Field(50, ge=1, le=100)
    icon: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    years_of_experience: Optional[int] = Field(default=None, ge=0, le=80)
    is_public: bool = True


class SkillOut(ApiModel):
    id: str
    name: str
    category: str
    level: int
    icon: Optional[str] = None
    description: Optional[str] = None
    years_of_experience: Optional[int] = None
    is_public: bool


Slug = Annotated[str, Field(min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")]


class ProjectCreateRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    short_description: Optional[str] = Field(default=None, max_length=500)
    image_url: Optional[Url] = None
    demo_url: Optional[Url] = None
    source_code_url: Optional[Url] = None
    technologies: List[str] = Field(default_factory=list)
    category: ProjectCategory = ProjectCategory.WEB
    featured: bool = False
    status: ProjectStatus = ProjectStatus.COMPLETED
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    client: Optional[str] = Field(default=None, max_length=200)
    project_type: Optional[str] = Field(default=None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    slug: Slug
    is_public: bool = True
    skill_ids: List[str] = Field(default_factory=list)


class ProjectUpdateRequest(PatchModel):
    not_null = frozenset({
        "title", "description", "technologies", "category", "featured", "status", "tags",
        "slug", "is_public", "skill_ids",
    })

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    short_description: Optional[str] = Field(default=None, max_length=500)
    image_url: Optional[Url] = None
    demo_url: Optional[Url] = None
    source_code_url: Optional[Url] = None
    technologies: Optional[List[str]] = None
    category: Optional[ProjectCategory] = None
    featured: Optional[bool] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    client: Optional[str] = Field(default=None, max_length=200)
    project_type: Optional[str] = Field(default=None, max_length=100)
    tags: Optional[List[str]] = None
    slug: Optional[Slug] = None
    is_public: Optional[bool] = None
    skill_ids: Optional[List[str]] = None


class ProjectOut(ApiModel):
    id: str
    title: str
    description: str
    short_description: Optional[str] = None
    image_url: Optional[str] = None
    demo_url: Optional[str] = None
    source_code_url: Optional[str] = None
    technologies: List[str] = Field(default_factory=list)
    category: str
    featured: bool
    status: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    client: Optional[str] = None
    project_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    slug: str
    views: int
    likes: int
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    skills: List[SkillOut] = Field(default_factory=list)


# ── Dashboards ──────────────────────────────────────────────────────

class ClientDashboardOut(ApiModel):
    orders: List[OrderWithServiceOut]
    purchases: List[PurchaseWithProductOut]
    unread_notifications: int
    notifications: List[NotificationOut]


class AdminStats(ApiModel):
    total_users: int
    total_orders: int
    total_revenue: Decimal
    total_products: int
    pending_orders: int
    processing_orders: int


class MonthlyRevenue(ApiModel):
    month: str
    total: Decimal
    count: int


class AdminDashboardOut(ApiModel):
    stats: AdminStats
    recent_orders: List[OrderWithUserOut]
    top_products: List[ProductSummary]
    monthly_revenue: List[MonthlyRevenue]
