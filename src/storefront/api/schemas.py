"""Pydantic request/response schemas for the storefront API.

These are the external contracts. They are kept apart from the Protean
commands they are translated into.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

GatewayName = Literal["stripe", "paypal", "razorpay"]


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class BillingDetailsSchema(BaseModel):
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None


class ItemMetaSchema(BaseModel):
    turnaround_tier: Literal["standard", "rush", "express"] = "standard"
    add_ons: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Catalogue / pricing
# ---------------------------------------------------------------------------
class CalculatePriceRequest(BaseModel):
    variant_id: str
    quantity: int = Field(ge=1)
    turnaround_tier: Literal["standard", "rush", "express"] = "standard"
    add_ons: list[str] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "variant_id": "var-001",
                    "quantity": 80000,
                    "turnaround_tier": "rush",
                    "add_ons": ["additional_revision"],
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    variant_id: str
    quantity: int = Field(ge=1, default=1)
    item_meta: ItemMetaSchema | None = None


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=0)


class WishlistRequest(BaseModel):
    variant_id: str


class MoveToCartRequest(BaseModel):
    quantity: int | None = Field(ge=1, default=None)


class CartTotalsRequest(BaseModel):
    coupon_code: str | None = None


class MergeCartResponse(BaseModel):
    merged_items: int


# ---------------------------------------------------------------------------
# Checkout / orders
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    billing_details: BillingDetailsSchema
    payment_method: GatewayName
    requirements: dict | None = None
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "billing_details": {"name": "Ada Writer", "email": "ada@example.com", "country": "US"},
                    "payment_method": "stripe",
                    "requirements": {"genre": "literary fiction", "style_guide": "Chicago"},
                    "coupon_code": "WELCOME10",
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str
    total_amount: float
    payment_required: bool = True


class OrderMessageRequest(BaseModel):
    message: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Payments / webhooks
# ---------------------------------------------------------------------------
class PaymentIntentRequest(BaseModel):
    order_id: str


class WebhookAcceptedResponse(BaseModel):
    status: str = "received"
    outcome: str


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
class CreateServiceRequest(BaseModel):
    title: str
    service_type: Literal["editing", "formatting", "design", "illustration"]
    base_price: float = Field(ge=0)
    slug: str | None = None
    description: str | None = None
    is_featured: bool = False
    sort_order: int = 0


class UpdateServiceRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    base_price: float | None = Field(default=None, ge=0)
    sort_order: int | None = None
    is_active: bool | None = None
    is_featured: bool | None = None


class CreateVariantRequest(BaseModel):
    title: str
    price: float = Field(ge=0)
    unit_type: Literal["fixed", "per_word", "per_page", "per_hour"]
    turnaround_days: int = Field(ge=1)
    min_quantity: int = Field(ge=1, default=1)
    max_quantity: int | None = None
    description: str | None = None
    sort_order: int = 0


class UpdateVariantRequest(BaseModel):
    title: str | None = None
    price: float | None = Field(default=None, ge=0)
    unit_type: Literal["fixed", "per_word", "per_page", "per_hour"] | None = None
    turnaround_days: int | None = Field(default=None, ge=1)
    min_quantity: int | None = Field(default=None, ge=1)
    max_quantity: int | None = None
    is_active: bool | None = None


class CreateCouponRequest(BaseModel):
    code: str
    coupon_type: Literal["fixed", "percentage"]
    value: float = Field(ge=0)
    valid_from: datetime
    valid_to: datetime
    name: str | None = None
    description: str | None = None
    minimum_amount: float | None = Field(default=None, ge=0)
    maximum_discount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=1)


class OrderStatusRequest(BaseModel):
    status: str
    message: str | None = None


class AssignEditorRequest(BaseModel):
    editor_id: str


class RefundRequest(BaseModel):
    reason: str | None = None


class RefundResponse(BaseModel):
    order_id: str
    gateway_refund_id: str


# ---------------------------------------------------------------------------
# Generic responses
# ---------------------------------------------------------------------------
class IdResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: str = "ok"
