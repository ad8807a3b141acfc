"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into a priced order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier()
    guest_email = String()
    subtotal = Float(required=True)
    discount_amount = Float(required=True)
    tax_amount = Float(required=True)
    total_amount = Float(required=True)
    currency = String(required=True)
    item_count = Integer(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaid:
    """A completed gateway payment settled the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """Any lifecycle move after payment: work started, revisions, completion."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    actor = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    __version__ = "v1"

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = "v1"

    order_id = Identifier(required=True)
    total_amount = Float(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderRefunded:
    __version__ = "v1"

    order_id = Identifier(required=True)
    refund_amount = Float(required=True)
    refunded_at = DateTime(required=True)


@storefront.event(part_of="Order")
class EditorAssigned:
    __version__ = "v1"

    order_id = Identifier(required=True)
    editor_id = Identifier(required=True)
    assigned_at = DateTime(required=True)
