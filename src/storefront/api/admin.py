"""Admin routes — catalogue, coupons, order lifecycle, refunds and statistics.

Every route requires ``X-User-Role: admin``.
"""

from datetime import UTC, date, datetime, time

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import require_admin
from storefront.api.schemas import (
    AssignEditorRequest,
    CreateCouponRequest,
    CreateServiceRequest,
    CreateVariantRequest,
    IdResponse,
    OrderStatusRequest,
    RefundRequest,
    RefundResponse,
    StatusResponse,
    UpdateServiceRequest,
    UpdateVariantRequest,
)
from storefront.catalogue.management import (
    AddVariant,
    CreateService,
    SetServiceVisibility,
    SetVariantActive,
    UpdateService,
    UpdateVariant,
)
from storefront.coupon.management import CreateCoupon, DeactivateCoupon
from storefront.identity import CallerIdentity
from storefront.order.lifecycle import AssignEditor, command_for_status
from storefront.order.order import Order
from storefront.order.queries import list_all_orders, order_payload
from storefront.order.statistics import order_statistics
from storefront.payment.refund import RefundOrder
from storefront.projections.daily_order_stats import daily_stats

admin_router = APIRouter(prefix="/admin", tags=["admin"])


def _process(command):
    return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
@admin_router.post("/services", status_code=201, response_model=IdResponse)
async def create_service(body: CreateServiceRequest, caller: CallerIdentity = Depends(require_admin)) -> IdResponse:
    return IdResponse(id=_process(CreateService(**body.model_dump(exclude_none=True))))


@admin_router.put("/services/{service_id}", response_model=StatusResponse)
async def update_service(
    service_id: str, body: UpdateServiceRequest, caller: CallerIdentity = Depends(require_admin)
) -> StatusResponse:
    details = body.model_dump(include={"title", "description", "base_price", "sort_order"}, exclude_none=True)
    if details:
        _process(UpdateService(service_id=service_id, **details))
    visibility = body.model_dump(include={"is_active", "is_featured"}, exclude_none=True)
    if visibility:
        _process(SetServiceVisibility(service_id=service_id, **visibility))
    return StatusResponse(status="updated")


@admin_router.post("/services/{service_id}/variants", status_code=201, response_model=IdResponse)
async def add_variant(
    service_id: str, body: CreateVariantRequest, caller: CallerIdentity = Depends(require_admin)
) -> IdResponse:
    return IdResponse(id=_process(AddVariant(service_id=service_id, **body.model_dump(exclude_none=True))))


@admin_router.put("/variants/{variant_id}", response_model=StatusResponse)
async def update_variant(
    variant_id: str, body: UpdateVariantRequest, caller: CallerIdentity = Depends(require_admin)
) -> StatusResponse:
    terms = body.model_dump(exclude={"is_active"}, exclude_none=True)
    if terms:
        _process(UpdateVariant(variant_id=variant_id, **terms))
    if body.is_active is not None:
        _process(SetVariantActive(variant_id=variant_id, is_active=body.is_active))
    return StatusResponse(status="updated")


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
@admin_router.post("/coupons", status_code=201, response_model=IdResponse)
async def create_coupon(body: CreateCouponRequest, caller: CallerIdentity = Depends(require_admin)) -> IdResponse:
    return IdResponse(id=_process(CreateCoupon(**body.model_dump(exclude_none=True))))


@admin_router.put("/coupons/{code}/deactivate", response_model=StatusResponse)
async def deactivate_coupon(code: str, caller: CallerIdentity = Depends(require_admin)) -> StatusResponse:
    _process(DeactivateCoupon(code=code))
    return StatusResponse(status="deactivated")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@admin_router.get("/orders")
async def all_orders(
    status: str | None = None, user_id: str | None = None, caller: CallerIdentity = Depends(require_admin)
) -> list[dict]:
    return [order_payload(order, include_history=False) for order in list_all_orders(status=status, user_id=user_id)]


@admin_router.get("/orders/{order_id}")
async def admin_order_detail(order_id: str, caller: CallerIdentity = Depends(require_admin)) -> dict:
    return order_payload(current_domain.repository_for(Order).get(order_id))


@admin_router.put("/orders/{order_id}/status")
async def change_order_status(
    order_id: str, body: OrderStatusRequest, caller: CallerIdentity = Depends(require_admin)
) -> dict:
    _process(command_for_status(order_id, body.status, actor=str(caller.user_id), message=body.message))
    return order_payload(current_domain.repository_for(Order).get(order_id))


@admin_router.post("/orders/{order_id}/assign-editor")
async def assign_editor(
    order_id: str, body: AssignEditorRequest, caller: CallerIdentity = Depends(require_admin)
) -> dict:
    _process(AssignEditor(order_id=order_id, editor_id=body.editor_id, actor=str(caller.user_id)))
    return order_payload(current_domain.repository_for(Order).get(order_id))


@admin_router.post("/orders/{order_id}/refund", response_model=RefundResponse)
def refund_order(
    order_id: str, body: RefundRequest, caller: CallerIdentity = Depends(require_admin)
) -> RefundResponse:
    refund_id = _process(RefundOrder(order_id=order_id, actor=str(caller.user_id), reason=body.reason))
    return RefundResponse(order_id=order_id, gateway_refund_id=refund_id)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------
@admin_router.get("/statistics")
async def statistics(
    start_date: date | None = None, end_date: date | None = None, caller: CallerIdentity = Depends(require_admin)
) -> dict:
    start = datetime.combine(start_date, time.min, tzinfo=UTC) if start_date else None
    end = datetime.combine(end_date, time.max, tzinfo=UTC) if end_date else None
    return order_statistics(start, end)


@admin_router.get("/statistics/daily")
async def daily_statistics(
    start_date: date | None = None, end_date: date | None = None, caller: CallerIdentity = Depends(require_admin)
) -> list[dict]:
    return daily_stats(start_date, end_date)
