"""Domain events for the Coupon aggregate."""

from protean.fields import Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Coupon")
class CouponCreated:
    __version__ = "v1"

    coupon_id = Identifier(required=True)
    code = String(required=True)
    coupon_type = String(required=True)


@storefront.event(part_of="Coupon")
class CouponRedeemed:
    """A coupon was consumed by a successful checkout."""

    __version__ = "v1"

    coupon_id = Identifier(required=True)
    code = String(required=True)
    order_id = Identifier(required=True)
    used_count = Integer(required=True)


@storefront.event(part_of="Coupon")
class CouponDeactivated:
    __version__ = "v1"

    coupon_id = Identifier(required=True)
    code = String(required=True)
