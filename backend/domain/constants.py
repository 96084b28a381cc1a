"""
Domain constants used across services/routers.
"""

from domain.enums import OrderStatus, PaymentStatus, FraudStatus

# ── Payment statuses ────────────────────────────────────────────────

PAYMENT_SUCCESS_STATUSES = frozenset({PaymentStatus.SETTLEMENT.value, PaymentStatus.CAPTURE.value})
PAYMENT_FAILURE_STATUSES = frozenset({
    PaymentStatus.CANCEL.value,
    PaymentStatus.EXPIRE.value,
    PaymentStatus.DENY.value,
    PaymentStatus.FAIL.value,
})
PAYMENT_REFUND_STATUSES = frozenset({PaymentStatus.REFUND.value, PaymentStatus.PARTIAL_REFUND.value})

# pending may move anywhere; statuses missing from this map are terminal
PAYMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    PaymentStatus.PENDING.value: frozenset(s.value for s in PaymentStatus if s != PaymentStatus.PENDING),
    PaymentStatus.CAPTURE.value: frozenset({
        PaymentStatus.SETTLEMENT.value,
        PaymentStatus.CANCEL.value,
        PaymentStatus.DENY.value,
        PaymentStatus.REFUND.value,
        PaymentStatus.PARTIAL_REFUND.value,
    }),
    PaymentStatus.SETTLEMENT.value: frozenset({PaymentStatus.REFUND.value, PaymentStatus.PARTIAL_REFUND.value}),
    PaymentStatus.PARTIAL_REFUND.value: frozenset({PaymentStatus.REFUND.value, PaymentStatus.PARTIAL_REFUND.value}),
}

# Gateway transaction_status spellings that differ from ours
GATEWAY_STATUS_ALIASES = {
    "failure": PaymentStatus.FAIL.value,
}

# Gateway payment_type -> PaymentMethod
GATEWAY_PAYMENT_TYPES = {
    "credit_card": "credit_card",
    "bank_transfer": "bank_transfer",
    "echannel": "bank_transfer",
    "permata": "bank_transfer",
    "qris": "qris",
    "ovo": "ovo",
    "dana": "dana",
    "gopay": "gopay",
    "shopeepay": "shopeepay",
}

FRAUD_ACCEPT = FraudStatus.ACCEPT.value

# ── Order statuses ──────────────────────────────────────────────────

ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING.value: frozenset({OrderStatus.CONFIRMED.value, OrderStatus.CANCELLED.value}),
    OrderStatus.CONFIRMED.value: frozenset({OrderStatus.PROCESSING.value, OrderStatus.CANCELLED.value}),
    OrderStatus.PROCESSING.value: frozenset({
        OrderStatus.IN_REVIEW.value,
        OrderStatus.COMPLETED.value,
        OrderStatus.CANCELLED.value,
    }),
    OrderStatus.IN_REVIEW.value: frozenset({
        OrderStatus.PROCESSING.value,
        OrderStatus.COMPLETED.value,
        OrderStatus.CANCELLED.value,
    }),
    OrderStatus.COMPLETED.value: frozenset({OrderStatus.REFUNDED.value}),
    # cancelled -> refunded is only valid for paid orders (checked in order_service)
    OrderStatus.CANCELLED.value: frozenset({OrderStatus.REFUNDED.value}),
    OrderStatus.REFUNDED.value: frozenset(),
}

# Statuses in which an order can no longer be paid for
ORDER_UNPAYABLE_STATUSES = frozenset({OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value})

# Statuses a client may cancel from
ORDER_CLIENT_CANCELLABLE = frozenset({OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value})

# ── Misc ────────────────────────────────────────────────────────────

DASHBOARD_RECENT_LIMIT = 10
DASHBOARD_NOTIFICATION_LIMIT = 5
DASHBOARD_TOP_PRODUCTS = 5
DEFAULT_SENT_VIA = ["in_app"]
