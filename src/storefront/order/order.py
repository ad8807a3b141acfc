"""Order aggregate — an immutable priced snapshot of a checked-out cart.

Prices, items and billing details are frozen at checkout. Only the lifecycle
moves afterwards, and every move appends an ``OrderNote`` instead of rewriting
history.

State Machine:
    CREATED → PAID → IN_PROGRESS ⇄ REVISIONS → COMPLETED → DELIVERED
    CREATED/PAID → CANCELLED
    PAID → REFUNDED

CREATED → PAID happens only through payment reconciliation
(``record_payment``); nothing leads back to CREATED.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.order.events import (
    EditorAssigned,
    OrderCancelled,
    OrderDelivered,
    OrderPaid,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    CREATED = "created"
    PAID = "paid"
    IN_PROGRESS = "in_progress"
    REVISIONS = "revisions"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    RAZORPAY = "razorpay"


_VALID_TRANSITIONS = {
    OrderStatus.CREATED: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.IN_PROGRESS: {OrderStatus.REVISIONS, OrderStatus.COMPLETED},
    OrderStatus.REVISIONS: {OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

# Editors can be (re)assigned while work is possible
_ASSIGNABLE_STATES = {OrderStatus.PAID, OrderStatus.IN_PROGRESS, OrderStatus.REVISIONS}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class BillingDetails:
    """Who is paying, captured at checkout and never updated afterwards."""

    name = String(required=True, max_length=255)
    email = String(required=True, max_length=255)
    phone = String(max_length=50)
    company = String(max_length=255)
    address = String(max_length=500)
    city = String(max_length=100)
    state = String(max_length=100)
    country = String(max_length=100)
    postal_code = String(max_length=20)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A purchased variant with the price it had at checkout."""

    variant_id = Identifier(required=True)
    service_title = String(max_length=255)
    variant_title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    subtotal = Float(required=True, min_value=0.0)
    item_meta = Text()  # JSON: turnaround tier and add-ons chosen in the cart


@storefront.entity(part_of="Order")
class OrderNote:
    recorded_at = DateTime(required=True)
    actor = String(required=True, max_length=100)
    event = String(required=True, max_length=50)
    message = Text()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier()
    guest_email = String(max_length=255)
    session_key = String(max_length=255)
    status = String(choices=OrderStatus, default=OrderStatus.CREATED.value)
    subtotal = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount_amount = Float(default=0.0)
    total_amount = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    coupon_code = String(max_length=50)
    billing_details = ValueObject(BillingDetails)
    requirements = Text()  # JSON
    payment_method = String(choices=PaymentMethod)
    paid_payment_id = Identifier()
    assigned_editor_id = Identifier()
    estimated_delivery_at = DateTime()
    delivered_at = DateTime()
    items = HasMany(OrderItem)
    notes = HasMany(OrderNote)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.guest_email):
            raise ValidationError({"order": ["An order belongs to either a user or a guest email"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        lines,
        totals,
        billing_details,
        payment_method,
        user_id=None,
        guest_email=None,
        session_key=None,
        requirements=None,
        estimated_delivery_at=None,
    ):
        """Create an order from priced cart lines and computed totals.

        Args:
            lines: Dicts with variant_id, service_title, variant_title,
                   quantity, unit_price, subtotal, item_meta.
            totals: Dict with subtotal, discount_amount, tax_amount, total,
                    coupon_code, currency.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            guest_email=None if user_id else guest_email,
            session_key=session_key,
            status=OrderStatus.CREATED.value,
            subtotal=totals["subtotal"],
            discount_amount=totals["discount_amount"],
            tax_amount=totals["tax_amount"],
            total_amount=totals["total"],
            currency=totals["currency"],
            coupon_code=totals.get("coupon_code"),
            billing_details=BillingDetails(**billing_details),
            requirements=json.dumps(requirements or {}),
            payment_method=payment_method,
            estimated_delivery_at=estimated_delivery_at,
            created_at=now,
            updated_at=now,
        )

        for line in lines:
            order.add_items(
                OrderItem(
                    variant_id=line["variant_id"],
                    service_title=line.get("service_title"),
                    variant_title=line.get("variant_title"),
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    subtotal=line["subtotal"],
                    item_meta=json.dumps(line.get("item_meta") or {}),
                )
            )

        order._note(user_id or guest_email, "placed", f"Order {order_number} placed", now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                user_id=str(user_id) if user_id else None,
                guest_email=order.guest_email,
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                tax_amount=order.tax_amount,
                total_amount=order.total_amount,
                currency=order.currency,
                item_count=len(lines),
                coupon_code=order.coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _note(self, actor, event, message=None, at=None):
        self.add_notes(
            OrderNote(
                recorded_at=at or datetime.now(UTC),
                actor=str(actor or "system"),
                event=event,
                message=message,
            )
        )

    def _move(self, target_status, actor, message=None):
        self._assert_can_transition(target_status)
        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        self._note(actor, target_status.value, message, now)
        return previous, now

    @property
    def item_subtotal(self):
        return round(sum(item.subtotal for item in self.items), 2)

    def is_owned_by(self, caller):
        if caller.user_id and self.user_id:
            return str(self.user_id) == str(caller.user_id)
        return bool(caller.session_key) and not self.user_id and self.session_key == caller.session_key

    def is_accessible_to(self, caller):
        """Owner, guest session that placed it, admin, or the assigned editor."""
        if caller.is_admin or self.is_owned_by(caller):
            return True
        return bool(caller.user_id) and str(self.assigned_editor_id or "") == str(caller.user_id)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment(self, payment_id, amount):
        """Settle the order from a completed payment.

        Returns False when the order is already paid, so a replayed gateway
        event changes nothing.
        """
        if self.paid_payment_id is not None:
            return False

        self._move(OrderStatus.PAID, "payment-gateway", f"Payment {payment_id} completed")
        self.paid_payment_id = str(payment_id)

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_id=str(payment_id),
                amount=amount,
                paid_at=self.updated_at,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def _status_changed(self, previous, actor, at):
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=self.status,
                actor=str(actor),
                changed_at=at,
            )
        )

    def start_work(self, actor, editor_id=None):
        if editor_id:
            self.assign_editor(editor_id, actor)
        previous, now = self._move(OrderStatus.IN_PROGRESS, actor, "Work started")
        self._status_changed(previous, actor, now)

    def request_revisions(self, actor, message=None):
        previous, now = self._move(OrderStatus.REVISIONS, actor, message or "Revisions requested")
        self._status_changed(previous, actor, now)

    def resume_work(self, actor, message=None):
        previous, now = self._move(OrderStatus.IN_PROGRESS, actor, message or "Revisions addressed")
        self._status_changed(previous, actor, now)

    def complete(self, actor, message=None):
        previous, now = self._move(OrderStatus.COMPLETED, actor, message or "Work completed")
        self._status_changed(previous, actor, now)

    def deliver(self, actor, message=None):
        _, now = self._move(OrderStatus.DELIVERED, actor, message or "Deliverables sent")
        self.delivered_at = now
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    def cancel(self, actor, reason=None):
        _, now = self._move(OrderStatus.CANCELLED, actor, reason or "Order cancelled")
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                total_amount=self.total_amount,
                reason=reason,
                cancelled_at=now,
            )
        )

    def refund(self, actor, refund_reference=None):
        _, now = self._move(OrderStatus.REFUNDED, actor, f"Refunded ({refund_reference})" if refund_reference else None)
        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                refund_amount=self.total_amount,
                refunded_at=now,
            )
        )

    def assign_editor(self, editor_id, actor):
        if OrderStatus(self.status) not in _ASSIGNABLE_STATES:
            raise ValidationError({"status": [f"Cannot assign an editor to a {self.status} order"]})
        now = datetime.now(UTC)
        self.assigned_editor_id = str(editor_id)
        self.updated_at = now
        self._note(actor, "editor_assigned", f"Editor {editor_id} assigned", now)
        self.raise_(EditorAssigned(order_id=str(self.id), editor_id=str(editor_id), assigned_at=now))

    def add_message(self, actor, message):
        if not message or not message.strip():
            raise ValidationError({"message": ["Message cannot be empty"]})
        self.updated_at = datetime.now(UTC)
        self._note(actor, "message", message.strip(), self.updated_at)


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number):
        return self._dao.query.filter(order_number=order_number).all().first

    def for_user(self, user_id):
        orders = self._dao.query.filter(user_id=str(user_id)).limit(None).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def for_session(self, session_key):
        orders = self._dao.query.filter(session_key=session_key).limit(None).all().items
        return sorted((o for o in orders if not o.user_id), key=lambda o: o.created_at, reverse=True)

    def everything(self):
        return self._dao.query.limit(None).all().items

    def for_editor(self, editor_id):
        orders = self._dao.query.filter(assigned_editor_id=str(editor_id)).limit(None).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)
