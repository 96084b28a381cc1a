"""
Domain enums for the marketplace.

Values are stored verbatim in the database and exposed verbatim in the API.
"""

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    CLIENT = "client"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    IN_REVIEW = "in_review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SETTLEMENT = "settlement"
    CAPTURE = "capture"
    CANCEL = "cancel"
    EXPIRE = "expire"
    FAIL = "fail"
    DENY = "deny"
    REFUND = "refund"
    PARTIAL_REFUND = "partial_refund"


class FraudStatus(str, Enum):
    ACCEPT = "accept"
    PENDING = "pending"
    CHALLENGE = "challenge"
    DENY = "deny"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    QRIS = "qris"
    OVO = "ovo"
    DANA = "dana"
    GOPAY = "gopay"
    SHOPEEPAY = "shopeepay"
    OTHER = "other"


class ProductCategory(str, Enum):
    TEMPLATE = "template"
    SCRIPT = "script"
    FULL_PROJECT = "full_project"
    PLUGIN = "plugin"
    THEME = "theme"
    OTHER = "other"


class ProductLicenseType(str, Enum):
    PERSONAL = "personal"
    COMMERCIAL = "commercial"
    EXTENDED = "extended"
    OPEN_SOURCE = "open_source"


class PurchaseLicenseType(str, Enum):
    PERSONAL = "personal"
    COMMERCIAL = "commercial"
    EXTENDED = "extended"


class AnnouncementType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"
    PROMOTION = "promotion"
    MAINTENANCE = "maintenance"
    UPDATE = "update"


class AnnouncementPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Audience(str, Enum):
    ALL = "all"
    CLIENTS = "clients"
    ADMINS = "admins"
    UNREGISTERED = "unregistered"


class NotificationType(str, Enum):
    ORDER_UPDATE = "order_update"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    NEW_SERVICE = "new_service"
    PROMOTION = "promotion"
    SYSTEM = "system"
    REMINDER = "reminder"
    REVIEW_REQUEST = "review_request"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class ProjectCategory(str, Enum):
    WEB = "web"
    MOBILE = "mobile"
    DESKTOP = "desktop"
    OTHER = "other"


class ProjectStatus(str, Enum):
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PLANNED = "planned"
