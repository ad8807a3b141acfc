"""Read-side helpers for orders."""

import json

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.exceptions import AccessDeniedError
from storefront.order.order import Order


def get_order_for(caller, order_id):
    """Load an order the caller may see. Anything else looks missing."""
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise ObjectNotFoundError(f"Order {order_id} does not exist") from None

    if not order.is_accessible_to(caller):
        raise ObjectNotFoundError(f"Order {order_id} does not exist")
    return order


def list_orders_for(caller, status=None):
    repo = current_domain.repository_for(Order)
    if caller.user_id:
        orders = repo.for_user(caller.user_id)
    else:
        orders = repo.for_session(caller.session_key)
    if status:
        orders = [o for o in orders if o.status == status]
    return orders


def list_assigned_orders(caller, status=None):
    """Orders assigned to the calling editor, newest first."""
    if not caller.user_id or not (caller.is_editor or caller.is_admin):
        raise AccessDeniedError("Editor access required")
    orders = current_domain.repository_for(Order).for_editor(caller.user_id)
    if status:
        orders = [o for o in orders if o.status == status]
    return orders


def list_all_orders(status=None, user_id=None):
    """Every order, newest first, optionally narrowed by status or customer."""
    orders = current_domain.repository_for(Order).everything()
    if status:
        orders = [o for o in orders if o.status == status]
    if user_id:
        orders = [o for o in orders if str(o.user_id or "") == str(user_id)]
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


def _iso(moment):
    return moment.isoformat() if moment else None


def order_payload(order, include_history=True):
    payload = {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "user_id": str(order.user_id) if order.user_id else None,
        "guest_email": order.guest_email,
        "subtotal": order.subtotal,
        "discount_amount": order.discount_amount,
        "tax_amount": order.tax_amount,
        "total_amount": order.total_amount,
        "currency": order.currency,
        "coupon_code": order.coupon_code,
        "payment_method": order.payment_method,
        "assigned_editor_id": str(order.assigned_editor_id) if order.assigned_editor_id else None,
        "estimated_delivery_at": _iso(order.estimated_delivery_at),
        "delivered_at": _iso(order.delivered_at),
        "created_at": _iso(order.created_at),
        "items": [
            {
                "variant_id": str(item.variant_id),
                "service_title": item.service_title,
                "variant_title": item.variant_title,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "subtotal": item.subtotal,
                "item_meta": json.loads(item.item_meta) if item.item_meta else {},
            }
            for item in order.items
        ],
    }
    if order.billing_details:
        payload["billing_details"] = order.billing_details.to_dict()
    if include_history:
        payload["requirements"] = json.loads(order.requirements) if order.requirements else {}
        payload["history"] = [
            {
                "recorded_at": _iso(note.recorded_at),
                "actor": note.actor,
                "event": note.event,
                "message": note.message,
            }
            for note in sorted(order.notes, key=lambda n: n.recorded_at)
        ]
    return payload
