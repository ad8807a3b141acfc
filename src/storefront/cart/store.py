"""Cart store — caller-facing cart operations.

Every function takes an explicit ``CallerIdentity``. Mutations go through the
cart commands so each one commits in its own unit of work; reads build a
priced view without touching the cart.
"""

import json

from protean.exceptions import (
    DatabaseError,
    ExpectedVersionError,
    ObjectNotFoundError,
    TransactionError,
    ValidationError,
)
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from storefront.cart.management import MergeGuestCart, OpenCart
from storefront.catalogue.service import Service
from storefront.catalogue.variant import ServiceVariant
from storefront.coupon.coupon import normalize_code
from storefront.coupon.evaluator import evaluate_coupon
from storefront.domain import logger
from storefront.identity import CallerIdentity
from storefront.pricing.engine import quote
from storefront.settings import currency, tax_rate

_MAX_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------
def resolve_cart(caller, create=True):
    """Find the caller's cart, creating it when asked.

    Two requests may race to create the same cart. The unique identity columns
    reject the loser, either up front (``ValidationError``) or when its unit of
    work commits (``TransactionError``/``DatabaseError``); it then reads the
    winner's cart.
    """
    repo = current_domain.repository_for(ShoppingCart)
    cart = repo.find_for(caller)
    if cart is not None or not create:
        return cart

    try:
        cart_id = current_domain.process(
            OpenCart(user_id=caller.user_id, session_key=None if caller.user_id else caller.session_key),
            asynchronous=False,
        )
    except (ValidationError, TransactionError, DatabaseError) as exc:
        cart = repo.find_for(caller)
        if cart is None:
            raise
        logger.info("cart_create_race_lost", cart_id=str(cart.id), error=exc.__class__.__name__)
        return cart

    return repo.get(cart_id)


def _process_with_retry(command):
    for attempt in range(1, _MAX_ATTEMPTS + 1):
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            if attempt == _MAX_ATTEMPTS:
                raise
            logger.warning("cart_version_conflict", cart_id=str(command.cart_id), attempt=attempt)


# ---------------------------------------------------------------------------
# Pricing views
# ---------------------------------------------------------------------------
def priced_lines(cart, strict=False, now=None):
    """Price every cart line with the pricing engine.

    With ``strict`` a line whose variant is gone, retired, or out of bounds
    raises ``ValidationError``; otherwise it is reported as unavailable.
    """
    variant_repo = current_domain.repository_for(ServiceVariant)
    service_repo = current_domain.repository_for(Service)

    lines = []
    for item in cart.items:
        meta = item.meta
        try:
            variant = variant_repo.get(item.variant_id)
            service = service_repo.get(variant.service_id)
            if not (variant.is_active and service.is_active):
                raise ObjectNotFoundError(f"Service variant {item.variant_id} is no longer offered")
            breakdown = quote(
                variant,
                item.quantity,
                turnaround_tier=meta.get("turnaround_tier", "standard"),
                add_ons=meta.get("add_ons", ()),
                now=now,
            )
        except (ObjectNotFoundError, ValidationError) as exc:
            if strict:
                raise ValidationError({"items": [f"Variant {item.variant_id} cannot be purchased: {exc}"]}) from exc
            lines.append(
                {
                    "variant_id": str(item.variant_id),
                    "quantity": item.quantity,
                    "item_meta": meta,
                    "available": False,
                    "subtotal": 0.0,
                }
            )
            continue

        lines.append(
            {
                "variant_id": str(item.variant_id),
                "service_title": service.title,
                "variant_title": variant.title,
                "unit_price": breakdown.unit_price,
                "quantity": item.quantity,
                "item_meta": meta,
                "subtotal": breakdown.subtotal,
                "turnaround_days": breakdown.turnaround_days,
                "estimated_delivery": breakdown.estimated_delivery,
                "available": True,
            }
        )
    return lines


def _serialize_line(line):
    line = dict(line)
    if line.get("estimated_delivery") is not None:
        line["estimated_delivery"] = line["estimated_delivery"].isoformat()
    return line


def summarize(cart):
    if cart is None:
        return {"cart_id": None, "items": [], "item_count": 0, "subtotal": 0.0}

    lines = priced_lines(cart)
    return {
        "cart_id": str(cart.id),
        "items": [_serialize_line(line) for line in lines],
        "item_count": cart.item_count,
        "subtotal": round(sum(line["subtotal"] for line in lines), 2),
    }


def compute_totals(subtotal, coupon_code=None, now=None):
    """Totals for a subtotal. Tax applies after the discount."""
    discount = evaluate_coupon(coupon_code, subtotal, now=now) if coupon_code else 0.0
    taxable = subtotal - discount
    tax = round(taxable * tax_rate(), 2)
    return {
        "subtotal": round(subtotal, 2),
        "discount_amount": discount,
        "tax_amount": tax,
        "total": round(taxable + tax, 2),
        "coupon_code": normalize_code(coupon_code) if coupon_code else None,
        "currency": currency(),
    }


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------
def get_cart_summary(caller):
    return summarize(resolve_cart(caller, create=False))


def add_item(caller, variant_id, quantity, meta=None):
    cart = resolve_cart(caller)
    _process_with_retry(
        AddToCart(
            cart_id=str(cart.id),
            variant_id=variant_id,
            quantity=quantity,
            item_meta=json.dumps(meta) if meta is not None else None,
        )
    )
    return get_cart_summary(caller)


def update_item(caller, variant_id, quantity):
    cart = resolve_cart(caller, create=False)
    if cart is None:
        raise ObjectNotFoundError(f"Variant {variant_id} is not in the cart")
    _process_with_retry(UpdateCartItem(cart_id=str(cart.id), variant_id=variant_id, quantity=quantity))
    return get_cart_summary(caller)


def remove_item(caller, variant_id):
    cart = resolve_cart(caller, create=False)
    if cart is not None:
        _process_with_retry(RemoveFromCart(cart_id=str(cart.id), variant_id=variant_id))
    return get_cart_summary(caller)


def clear_cart(caller):
    cart = resolve_cart(caller, create=False)
    if cart is not None:
        _process_with_retry(ClearCart(cart_id=str(cart.id)))
    return get_cart_summary(caller)


def calculate_cart_totals(caller, coupon_code=None):
    summary = get_cart_summary(caller)
    return {**compute_totals(summary["subtotal"], coupon_code), "item_count": summary["item_count"]}


def merge_guest_cart(session_key, user_id):
    """Fold the guest session's cart into the user's cart after login."""
    repo = current_domain.repository_for(ShoppingCart)
    guest_cart = repo.find_for_session(session_key)
    if guest_cart is None:
        return 0

    user_cart = resolve_cart(CallerIdentity.user(user_id))
    return current_domain.process(
        MergeGuestCart(cart_id=str(user_cart.id), guest_cart_id=str(guest_cart.id)),
        asynchronous=False,
    )
