"""
Tests for the payment workflow (webhook_service + payment_service).

Tests: status normalisation, transition rules, effects on orders and
purchases, duplicate/stale notifications, refunds and expiry.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from db_models import DigitalProduct, Notification, Payment
from domain.errors import ConflictError, ValidationError
from services import gateway_service, payment_service, webhook_service
from utils.clock import utcnow


async def _checkout_order(db, order, user):
    payment, _ = await payment_service.checkout_order(
        db, order_id=order.id, user_id=user.id, is_admin=False
    )
    await db.commit()
    return payment


async def _checkout_purchase(db, purchase, user):
    payment, _ = await payment_service.checkout_purchase(
        db, purchase_id=purchase.id, user_id=user.id, is_admin=False
    )
    await db.commit()
    return payment


class TestNormalisation:

    @pytest.mark.unit
    def test_failure_alias(self):
        assert webhook_service.normalize_status("failure") == "fail"

    @pytest.mark.unit
    def test_status_case_insensitive(self):
        assert webhook_service.normalize_status(" Settlement ") == "settlement"

    @pytest.mark.unit
    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            webhook_service.normalize_status("authorize")

    @pytest.mark.unit
    def test_unknown_payment_type_maps_to_other(self):
        assert webhook_service.normalize_method("cstore") == "other"
        assert webhook_service.normalize_method("echannel") == "bank_transfer"
        assert webhook_service.normalize_method(None) is None

    @pytest.mark.unit
    def test_capture_success_depends_on_fraud(self):
        assert webhook_service.is_success("capture", "accept") is True
        assert webhook_service.is_success("capture", "challenge") is False
        assert webhook_service.is_success("settlement", None) is True
        assert webhook_service.is_success("pending", None) is False

    @pytest.mark.unit
    def test_terminal_statuses_have_no_transitions(self):
        for status in ("cancel", "expire", "fail", "deny", "refund"):
            assert webhook_service.can_transition(status, "settlement") is False
        assert webhook_service.can_transition("settlement", "refund") is True
        assert webhook_service.can_transition("settlement", "pending") is False


class TestOrderPayments:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_checkout_opens_pending_payment(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        assert payment.status == "pending"
        assert payment.user_id == client_user.id
        assert payment.order_id == sample_order.id
        assert Decimal(payment.amount) == Decimal("150.00")
        assert payment.gateway_response["order_id"].startswith("ORD-")
        assert payment.expiry_time > utcnow()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_settlement_pays_and_confirms_order(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)

        result = await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")
        await db_session.commit()

        assert result.applied is True
        assert result.previous_status == "pending"
        assert result.status == "settlement"
        assert result.order_status == "confirmed"
        assert payment.paid_at is not None
        assert sample_order.is_paid is True
        assert sample_order.paid_at == payment.paid_at

        res = await db_session.execute(
            select(Notification).where(Notification.user_id == client_user.id)
        )
        notes = res.scalars().all()
        assert [n.type for n in notes] == ["payment_confirmation"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_duplicate_settlement_is_noop(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")
        paid_at = payment.paid_at

        result = await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")
        assert result.applied is False
        assert result.reason == "duplicate notification"
        assert payment.paid_at == paid_at

        res = await db_session.execute(select(Notification))
        assert len(res.scalars().all()) == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_late_failure_after_settlement_is_ignored(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")

        result = await webhook_service.simulate_notification(db_session, payment, transaction_status="expire")
        assert result.applied is False
        assert payment.status == "settlement"
        assert sample_order.status == "confirmed"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_failure_cancels_pending_order(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)

        result = await webhook_service.simulate_notification(db_session, payment, transaction_status="failure")
        assert result.status == "fail"
        assert sample_order.status == "cancelled"
        assert sample_order.cancelled_at is not None
        assert sample_order.is_paid is False

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_failure_keeps_order_when_retry_pending(self, db_session, sample_order, client_user):
        first = await _checkout_order(db_session, sample_order, client_user)
        await _checkout_order(db_session, sample_order, client_user)

        await webhook_service.simulate_notification(db_session, first, transaction_status="expire")
        assert first.status == "expire"
        assert sample_order.status == "pending"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_capture_under_challenge_only_updates_payment(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)

        result = await webhook_service.simulate_notification(
            db_session, payment, transaction_status="capture", fraud_status="challenge"
        )
        assert result.applied is True
        assert payment.status == "capture"
        assert payment.fraud_status == "challenge"
        assert payment.paid_at is None
        assert sample_order.is_paid is False

        # gateway later accepts the challenged capture
        result = await webhook_service.simulate_notification(
            db_session, payment, transaction_status="capture", fraud_status="accept"
        )
        assert result.applied is True
        assert sample_order.is_paid is True

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_gross_amount_mismatch_rejected(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        body = gateway_service.build_notification(
            transaction_id=payment.transaction_id,
            order_id=payment.gateway_response["order_id"],
            gross_amount="1.00",
            transaction_status="settlement",
        )
        with pytest.raises(ValidationError):
            await webhook_service.handle_notification(db_session, body)
        assert payment.status == "pending"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_order_id_mismatch_rejected(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        body = gateway_service.build_notification(
            transaction_id=payment.transaction_id,
            order_id="ORD-someone-else",
            gross_amount="150.00",
            transaction_status="settlement",
        )
        with pytest.raises(ValidationError):
            await webhook_service.handle_notification(db_session, body)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_checkout_of_paid_order_conflicts(self, db_session, sample_order, client_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")
        with pytest.raises(ConflictError):
            await payment_service.checkout_order(
                db_session, order_id=sample_order.id, user_id=client_user.id, is_admin=False
            )


class TestPurchasePayments:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_settlement_issues_license_and_counts_sale(self, db_session, sample_purchase, sample_product, client_user):
        payment = await _checkout_purchase(db_session, sample_purchase, client_user)
        assert Decimal(payment.amount) == Decimal("49.00")

        result = await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")
        assert result.purchase_paid is True
        assert sample_purchase.is_paid is True
        assert sample_purchase.purchased_at is not None
        # confirmation time, not the gateway settlement time
        assert sample_purchase.purchased_at >= payment.paid_at
        assert len(sample_purchase.license_key.split("-")) == 5

        product = await db_session.get(DigitalProduct, sample_product.id)
        assert product.sales_count == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_failure_notifies_buyer_with_order_update(self, db_session, sample_purchase, client_user):
        payment = await _checkout_purchase(db_session, sample_purchase, client_user)

        await webhook_service.simulate_notification(db_session, payment, transaction_status="deny")
        assert sample_purchase.is_paid is False
        assert sample_purchase.purchased_at is None

        notes = (
            await db_session.execute(select(Notification).where(Notification.purchase_id == sample_purchase.id))
        ).scalars().all()
        assert [(n.type, n.title) for n in notes] == [("order_update", "Payment failed")]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_full_refund_revokes_purchase(self, db_session, sample_purchase, client_user, admin_user):
        payment = await _checkout_purchase(db_session, sample_purchase, client_user)
        await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")

        result = await payment_service.refund_payment(
            db_session, payment_id=payment.id, actor_id=admin_user.id, amount=None, reason="Customer request"
        )
        assert result.status == "refund"
        assert Decimal(payment.refunded_amount) == Decimal("49.00")
        assert sample_purchase.is_refunded is True
        assert sample_purchase.refunded_by == admin_user.id
        assert payment.gateway_response["refunds"][0]["refund_amount"] == "49.00"


class TestRefunds:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_partial_then_full_refund(self, db_session, sample_order, client_user, admin_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")

        result = await payment_service.refund_payment(
            db_session, payment_id=payment.id, actor_id=admin_user.id, amount=Decimal("50"), reason="Partial"
        )
        assert result.status == "partial_refund"
        assert Decimal(payment.refunded_amount) == Decimal("50")
        # partial refunds leave the order alone
        assert sample_order.status == "confirmed"
        notes = (
            await db_session.execute(
                select(Notification).where(Notification.title == "Partial refund")
            )
        ).scalars().all()
        assert [(n.user_id, n.type, n.order_id) for n in notes] == [
            (client_user.id, "order_update", sample_order.id)
        ]
        assert "50" in notes[0].message

        result = await payment_service.refund_payment(
            db_session, payment_id=payment.id, actor_id=admin_user.id, amount=None, reason="Rest"
        )
        assert result.status == "refund"
        assert Decimal(payment.refunded_amount) == Decimal("150.00")
        assert sample_order.status == "refunded"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_refund_more_than_remaining_rejected(self, db_session, sample_order, client_user, admin_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        await webhook_service.simulate_notification(db_session, payment, transaction_status="settlement")
        with pytest.raises(ValidationError):
            await payment_service.refund_payment(
                db_session, payment_id=payment.id, actor_id=admin_user.id, amount=Decimal("151"), reason="Too much"
            )

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_refund_of_pending_payment_conflicts(self, db_session, sample_order, client_user, admin_user):
        payment = await _checkout_order(db_session, sample_order, client_user)
        with pytest.raises(ConflictError):
            await payment_service.refund_payment(
                db_session, payment_id=payment.id, actor_id=admin_user.id, amount=None, reason="Nope"
            )


class TestExpireStale:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_expires_only_overdue_pending(self, db_session, sample_order, sample_purchase, client_user):
        overdue = await _checkout_order(db_session, sample_order, client_user)
        fresh = await _checkout_purchase(db_session, sample_purchase, client_user)
        overdue.expiry_time = utcnow() - timedelta(minutes=1)
        await db_session.commit()

        expired = await payment_service.expire_stale(db_session)
        assert expired == [overdue.id]
        assert overdue.status == "expire"
        assert fresh.status == "pending"
        assert sample_order.status == "cancelled"

        res = await db_session.execute(select(Payment).where(Payment.status == "pending"))
        assert [p.id for p in res.scalars().all()] == [fresh.id]
