"""Coupon administration — commands and handler."""

from protean import handle
from protean.fields import DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon
from storefront.coupon.evaluator import load_coupon
from storefront.domain import storefront


@storefront.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    coupon_type = String(required=True, max_length=20)
    value = Float(required=True, min_value=0.0)
    valid_from = DateTime(required=True)
    valid_to = DateTime(required=True)
    name = String(max_length=255)
    description = Text()
    minimum_amount = Float(min_value=0.0)
    maximum_discount = Float(min_value=0.0)
    usage_limit = Integer(min_value=1)


@storefront.command(part_of="Coupon")
class DeactivateCoupon:
    code = String(required=True, max_length=50)


@storefront.command_handler(part_of=Coupon)
class ManageCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        coupon = Coupon.create(
            code=command.code,
            coupon_type=command.coupon_type,
            value=command.value,
            valid_from=command.valid_from,
            valid_to=command.valid_to,
            name=command.name,
            description=command.description,
            minimum_amount=command.minimum_amount,
            maximum_discount=command.maximum_discount,
            usage_limit=command.usage_limit,
        )
        current_domain.repository_for(Coupon).add(coupon)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = load_coupon(command.code)
        coupon.deactivate()
        repo.add(coupon)
