"""Checkout — convert the caller's cart into an Order.

Everything happens in the PlaceOrder handler's unit of work: the order with
its item snapshots, the coupon redemption and clearing the cart. A failure
anywhere rolls all of it back and leaves the cart as it was. A second checkout
of the same cart finds it empty and fails with ``EmptyCartError``.
"""

import json
from datetime import UTC, datetime

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.store import compute_totals, priced_lines, resolve_cart
from storefront.coupon.coupon import Coupon
from storefront.coupon.evaluator import load_coupon
from storefront.domain import logger, storefront
from storefront.exceptions import EmptyCartError
from storefront.order.numbering import generate_order_number
from storefront.order.order import Order
from storefront.settings import setting


@storefront.command(part_of="Order")
class PlaceOrder:
    cart_id = Identifier(required=True)
    user_id = Identifier()
    session_key = String(max_length=255)
    billing_details = Text(required=True)  # JSON
    requirements = Text()  # JSON
    coupon_code = String(max_length=50)
    payment_method = String(required=True, max_length=20)


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(ShoppingCart)
        order_repo = current_domain.repository_for(Order)

        cart = cart_repo.get(command.cart_id)
        if not cart.items:
            raise EmptyCartError()

        now = datetime.now(UTC)
        lines = priced_lines(cart, strict=True, now=now)
        subtotal = round(sum(line["subtotal"] for line in lines), 2)
        totals = compute_totals(subtotal, command.coupon_code, now=now)

        billing_details = json.loads(command.billing_details)
        order_number = generate_order_number(
            setting("ORDER_NUMBER_PREFIX"),
            lambda number: order_repo.find_by_number(number) is not None,
            now,
        )

        order = Order.place(
            order_number=order_number,
            lines=lines,
            totals=totals,
            billing_details=billing_details,
            payment_method=command.payment_method,
            user_id=command.user_id,
            guest_email=None if command.user_id else billing_details.get("email"),
            session_key=command.session_key,
            requirements=json.loads(command.requirements) if command.requirements else None,
            estimated_delivery_at=max(line["estimated_delivery"] for line in lines),
        )

        if totals["coupon_code"]:
            coupon = load_coupon(totals["coupon_code"])
            coupon.redeem(order.id)
            current_domain.repository_for(Coupon).add(coupon)

        order_repo.add(order)

        cart.clear()
        cart_repo.add(cart)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=order.total_amount,
            coupon_code=order.coupon_code,
        )

        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "total_amount": order.total_amount,
            "payment_required": True,
        }


def place_order(caller, billing_details, payment_method, requirements=None, coupon_code=None):
    """Check out the caller's cart. Payment is requested separately."""
    cart = resolve_cart(caller, create=False)
    if cart is None or not cart.items:
        raise EmptyCartError()

    return current_domain.process(
        PlaceOrder(
            cart_id=str(cart.id),
            user_id=caller.user_id,
            session_key=caller.session_key,
            billing_details=json.dumps(billing_details),
            requirements=json.dumps(requirements) if requirements else None,
            coupon_code=coupon_code or None,
            payment_method=payment_method,
        ),
        asynchronous=False,
    )
