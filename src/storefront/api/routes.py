"""FastAPI routes for the storefront: catalogue, cart, wishlist, checkout, orders, payments and files."""

from urllib.parse import quote as url_quote

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import StreamingResponse
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from fastapi.concurrency import run_in_threadpool

from storefront.api.dependencies import get_caller
from storefront.api.schemas import (
    AddCartItemRequest,
    CalculatePriceRequest,
    CartTotalsRequest,
    CheckoutRequest,
    CheckoutResponse,
    MergeCartResponse,
    MoveToCartRequest,
    OrderMessageRequest,
    PaymentIntentRequest,
    StatusResponse,
    UpdateCartItemRequest,
    WebhookAcceptedResponse,
    WishlistRequest,
)
from storefront.cart import store as cart_store
from storefront.catalogue.queries import find_active_variant, get_service_by_slug, list_services
from storefront.checkout.placement import place_order
from storefront.domain import logger
from storefront.exceptions import AccessDeniedError
from storefront.files import service as files
from storefront.identity import CallerIdentity
from storefront.order.lifecycle import AddOrderMessage
from storefront.order.queries import get_order_for, list_orders_for, order_payload
from storefront.payment.initiation import create_payment_intent
from storefront.payment.payment import Payment
from storefront.payment.queries import payment_payload
from storefront.payment.reconciliation import handle_webhook
from storefront.pricing.engine import quote
from storefront.wishlist import service as wishlist
from storefront.settings import setting


def actor_of(caller: CallerIdentity) -> str:
    return str(caller.user_id or caller.email or f"guest:{caller.session_key}")


def _chunks(stream, size=64 * 1024):
    with stream:
        while chunk := stream.read(size):
            yield chunk


# ---------------------------------------------------------------------------
# Catalogue Router
# ---------------------------------------------------------------------------
catalogue_router = APIRouter(tags=["catalogue"])


@catalogue_router.get("/services")
async def browse_services(service_type: str | None = None, featured: bool | None = None) -> list[dict]:
    return list_services(service_type=service_type, featured=featured)


@catalogue_router.get("/services/{slug}")
async def service_detail(slug: str) -> dict:
    return get_service_by_slug(slug)


@catalogue_router.get("/services/{slug}/variants")
async def service_variants(slug: str) -> list[dict]:
    return get_service_by_slug(slug)["variants"]


@catalogue_router.post("/calculate-price")
async def calculate_price(body: CalculatePriceRequest) -> dict:
    """Price one selection without touching a cart."""
    service, variant = find_active_variant(body.variant_id)
    breakdown = quote(variant, body.quantity, turnaround_tier=body.turnaround_tier, add_ons=body.add_ons)
    return {"variant_id": str(variant.id), "service_title": service.title, **breakdown.to_dict()}


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
async def view_cart(caller: CallerIdentity = Depends(get_caller)) -> dict:
    return cart_store.get_cart_summary(caller)


@cart_router.post("/items", status_code=201)
async def add_cart_item(body: AddCartItemRequest, caller: CallerIdentity = Depends(get_caller)) -> dict:
    find_active_variant(body.variant_id)
    meta = body.item_meta.model_dump() if body.item_meta else None
    return cart_store.add_item(caller, body.variant_id, body.quantity, meta)


@cart_router.put("/items/{variant_id}")
async def update_cart_item(
    variant_id: str, body: UpdateCartItemRequest, caller: CallerIdentity = Depends(get_caller)
) -> dict:
    return cart_store.update_item(caller, variant_id, body.quantity)


@cart_router.delete("/items/{variant_id}")
async def remove_cart_item(variant_id: str, caller: CallerIdentity = Depends(get_caller)) -> dict:
    return cart_store.remove_item(caller, variant_id)


@cart_router.delete("")
async def clear_cart(caller: CallerIdentity = Depends(get_caller)) -> dict:
    return cart_store.clear_cart(caller)


@cart_router.post("/calculate")
async def calculate_cart(body: CartTotalsRequest, caller: CallerIdentity = Depends(get_caller)) -> dict:
    return cart_store.calculate_cart_totals(caller, coupon_code=body.coupon_code)


@cart_router.post("/merge", response_model=MergeCartResponse)
async def merge_cart(caller: CallerIdentity = Depends(get_caller)) -> MergeCartResponse:
    """Fold the session's guest cart into the signed-in user's cart."""
    if not caller.user_id or not caller.session_key:
        raise AccessDeniedError("Merging needs a signed-in user and a guest session")
    merged = cart_store.merge_guest_cart(caller.session_key, caller.user_id)
    return MergeCartResponse(merged_items=merged)


# ---------------------------------------------------------------------------
# Wishlist Router
# ---------------------------------------------------------------------------
wishlist_router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@wishlist_router.get("")
async def view_wishlist(caller: CallerIdentity = Depends(get_caller)) -> list[dict]:
    return wishlist.list_wishlist(caller)


@wishlist_router.post("", status_code=201)
async def save_to_wishlist(body: WishlistRequest, caller: CallerIdentity = Depends(get_caller)) -> dict:
    return wishlist.save_to_wishlist(caller, body.variant_id)


@wishlist_router.delete("/{entry_id}", response_model=StatusResponse)
async def remove_from_wishlist(entry_id: str, caller: CallerIdentity = Depends(get_caller)) -> StatusResponse:
    wishlist.remove_from_wishlist(caller, entry_id)
    return StatusResponse(status="removed")


@wishlist_router.post("/{entry_id}/move-to-cart")
async def move_to_cart(
    entry_id: str, body: MoveToCartRequest | None = None, caller: CallerIdentity = Depends(get_caller)
) -> dict:
    return wishlist.move_to_cart(caller, entry_id, quantity=body.quantity if body else None)


# ---------------------------------------------------------------------------
# Checkout / Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(tags=["orders"])


@order_router.post("/checkout", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest, caller: CallerIdentity = Depends(get_caller)) -> CheckoutResponse:
    result = place_order(
        caller,
        billing_details=body.billing_details.model_dump(exclude_none=True),
        payment_method=body.payment_method,
        requirements=body.requirements,
        coupon_code=body.coupon_code,
    )
    return CheckoutResponse(**result)


@order_router.get("/orders")
async def my_orders(status: str | None = None, caller: CallerIdentity = Depends(get_caller)) -> list[dict]:
    orders = sorted(list_orders_for(caller, status=status), key=lambda o: o.created_at, reverse=True)
    return [order_payload(order, include_history=False) for order in orders]


@order_router.get("/orders/{order_id}")
async def order_detail(order_id: str, caller: CallerIdentity = Depends(get_caller)) -> dict:
    return order_payload(get_order_for(caller, order_id))


@order_router.post("/orders/{order_id}/messages", status_code=201, response_model=StatusResponse)
async def post_order_message(
    order_id: str, body: OrderMessageRequest, caller: CallerIdentity = Depends(get_caller)
) -> StatusResponse:
    get_order_for(caller, order_id)
    current_domain.process(
        AddOrderMessage(order_id=order_id, actor=actor_of(caller), message=body.message),
        asynchronous=False,
    )
    return StatusResponse(status="recorded")


@order_router.get("/orders/{order_id}/files")
async def order_files(order_id: str, caller: CallerIdentity = Depends(get_caller)) -> list[dict]:
    return [files.file_payload(record) for record in files.files_for_order(caller, order_id)]


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/{gateway}/intent", status_code=201)
def create_intent(
    gateway: str, body: PaymentIntentRequest, caller: CallerIdentity = Depends(get_caller)
) -> dict:
    return create_payment_intent(caller, body.order_id, gateway)


@payment_router.get("/{payment_id}")
async def payment_status(payment_id: str, caller: CallerIdentity = Depends(get_caller)) -> dict:
    payment = current_domain.repository_for(Payment).get(payment_id)
    get_order_for(caller, payment.order_id)
    return payment_payload(payment)


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/{gateway}", response_model=WebhookAcceptedResponse)
async def gateway_webhook(gateway: str, request: Request) -> WebhookAcceptedResponse:
    """Receive a gateway notification.

    Answers 200 for every structurally valid delivery, including duplicates
    and events the storefront does not act on, so the gateway stops retrying.
    """
    payload = await request.body()
    outcome = await run_in_threadpool(handle_webhook, gateway, payload, dict(request.headers))
    logger.info("webhook_processed", gateway=gateway, outcome=outcome)
    return WebhookAcceptedResponse(outcome=outcome)


# ---------------------------------------------------------------------------
# File Router
# ---------------------------------------------------------------------------
file_router = APIRouter(prefix="/files", tags=["files"])


@file_router.post("", status_code=201)
def upload(
    file: UploadFile = File(...),
    file_type: str = Form(...),
    order_id: str | None = Form(default=None),
    description: str | None = Form(default=None),
    caller: CallerIdentity = Depends(get_caller),
) -> dict:
    limit = setting("MAX_UPLOAD_BYTES")
    if file.size is not None and file.size > limit:
        raise ValidationError({"file": [f"File exceeds the {limit // (1024 * 1024)}MB limit"]})
    # One byte past the limit is enough for validate_upload to reject it
    data = file.file.read(limit + 1)
    record = files.upload_file(
        caller,
        data,
        original_name=file.filename or "",
        mime_type=file.content_type or "application/octet-stream",
        file_type=file_type,
        order_id=order_id or None,
        description=description,
    )
    return files.file_payload(record)


@file_router.get("")
async def my_files(
    file_type: str | None = None, order_id: str | None = None, caller: CallerIdentity = Depends(get_caller)
) -> list[dict]:
    return [files.file_payload(r) for r in files.list_files(caller, file_type=file_type, order_id=order_id)]


@file_router.get("/usage")
async def usage(caller: CallerIdentity = Depends(get_caller)) -> dict:
    return files.storage_usage(caller)


@file_router.get("/{file_id}")
async def file_detail(file_id: str, caller: CallerIdentity = Depends(get_caller)) -> dict:
    return files.file_payload(files.get_file(caller, file_id))


@file_router.get("/{file_id}/download")
async def download(file_id: str, caller: CallerIdentity = Depends(get_caller)) -> StreamingResponse:
    record, stream = files.open_file(caller, file_id)
    disposition = f"attachment; filename*=UTF-8''{url_quote(record.original_name)}"
    return StreamingResponse(
        _chunks(stream),
        media_type=record.mime_type,
        headers={"Content-Disposition": disposition, "Content-Length": str(record.size)},
    )


@file_router.delete("/{file_id}", response_model=StatusResponse)
async def delete(file_id: str, caller: CallerIdentity = Depends(get_caller)) -> StatusResponse:
    files.delete_file(caller, file_id)
    return StatusResponse(status="deleted")
