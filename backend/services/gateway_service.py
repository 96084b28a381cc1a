"""
Payment gateway client (Midtrans Snap style), simulated.

In SIMULATION_MODE transactions, tokens and refunds are generated locally and
nothing leaves the process. Outside simulation mode every call raises
PaymentGatewayError: only the simulator ships with this service.

Notification signature (Midtrans):
    sha512(order_id + status_code + gross_amount + server_key), hex encoded
"""

import hashlib
import hmac
import logging
import secrets
import uuid
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP

from config import settings
from domain.errors import PaymentGatewayError
from utils.clock import utcnow

logger = logging.getLogger(__name__)

# transaction_status -> HTTP-ish status_code the gateway reports with it
STATUS_CODES = {
    "capture": "200",
    "settlement": "200",
    "pending": "201",
    "deny": "202",
    "cancel": "202",
    "expire": "407",
    "failure": "202",
    "refund": "200",
    "partial_refund": "200",
}


@dataclass
class GatewayTransaction:
    transaction_id: str
    order_id: str
    token: str
    redirect_url: str
    gross_amount: str
    currency: str

    def to_dict(self) -> dict:
        return asdict(self)


def format_gross_amount(amount: Decimal) -> str:
    """Gateway amounts are strings with two decimals, e.g. '150000.00'."""
    return str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def signature_for(order_id: str, status_code: str, gross_amount: str, server_key: str | None = None) -> str:
    key = server_key if server_key is not None else settings.midtrans_server_key
    raw = f"{order_id}{status_code}{gross_amount}{key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_signature(notification: dict) -> bool:
    """
    Check a notification's signature_key.

    Fails closed when no server key is configured.
    """
    if not settings.midtrans_server_key:
        logger.error(
            "MIDTRANS_SERVER_KEY not configured, rejecting notification. "
            "Set MIDTRANS_SERVER_KEY in .env to accept gateway webhooks."
        )
        return False

    signature = notification.get("signature_key") or ""
    if not signature:
        logger.warning("Gateway notification received without signature_key")
        return False

    expected = signature_for(
        str(notification.get("order_id", "")),
        str(notification.get("status_code", "")),
        str(notification.get("gross_amount", "")),
    )
    return hmac.compare_digest(expected, signature)


def _require_simulation(action: str) -> None:
    if not settings.simulation_mode:
        raise PaymentGatewayError(
            f"Cannot {action}: live gateway integration is not available, "
            f"enable SIMULATION_MODE"
        )


def gateway_order_id(prefix: str, reference_id: str) -> str:
    """Merchant order id sent to the gateway; unique per checkout attempt."""
    return f"{prefix}-{reference_id[:8]}-{secrets.token_hex(4)}"


async def create_transaction(
    *,
    order_id: str,
    amount: Decimal,
    currency: str,
    customer: dict | None = None,
    item_name: str | None = None,
) -> GatewayTransaction:
    """Open a Snap transaction and return its token and redirect URL."""
    _require_simulation("create transaction")

    token = secrets.token_hex(16)
    tx = GatewayTransaction(
        transaction_id=str(uuid.uuid4()),
        order_id=order_id,
        token=token,
        redirect_url=f"{settings.midtrans_snap_url}/{token}",
        gross_amount=format_gross_amount(amount),
        currency=currency,
    )
    logger.info(
        f"[simulated] gateway transaction {tx.transaction_id} for {order_id} "
        f"({tx.gross_amount} {currency}, item={item_name or '-'}, "
        f"customer={(customer or {}).get('email', '-')})"
    )
    return tx


async def refund(*, transaction_id: str, amount: Decimal, reason: str) -> dict:
    _require_simulation("refund transaction")
    refund_key = f"refund-{secrets.token_hex(6)}"
    logger.info(f"[simulated] refund {refund_key} of {format_gross_amount(amount)} on {transaction_id}: {reason}")
    return {
        "status_code": "200",
        "transaction_id": transaction_id,
        "refund_key": refund_key,
        "refund_amount": format_gross_amount(amount),
        "reason": reason,
    }


def build_notification(
    *,
    transaction_id: str,
    order_id: str,
    gross_amount: str,
    transaction_status: str,
    fraud_status: str = "accept",
    payment_type: str = "credit_card",
) -> dict:
    """Build a notification body the way the gateway would post it, signed when a key is set."""
    status_code = STATUS_CODES.get(transaction_status, "200")
    notification = {
        "transaction_id": transaction_id,
        "order_id": order_id,
        "transaction_status": transaction_status,
        "fraud_status": fraud_status,
        "payment_type": payment_type,
        "status_code": status_code,
        "gross_amount": gross_amount,
        "transaction_time": utcnow().strftime("%Y-%m-%d %H:%M:%S"),
        "signature_key": "",
    }
    if transaction_status in ("settlement", "capture"):
        notification["settlement_time"] = notification["transaction_time"]
    if settings.midtrans_server_key:
        notification["signature_key"] = signature_for(order_id, status_code, gross_amount)
    return notification
