"""Editor routes: the orders assigned to the calling editor.

Every route requires ``X-User-Role: editor`` (or admin).
"""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import require_editor
from storefront.api.routes import actor_of
from storefront.api.schemas import OrderMessageRequest, OrderStatusRequest, StatusResponse
from storefront.identity import CallerIdentity
from storefront.order.lifecycle import AddOrderMessage, editor_status_command
from storefront.order.order import Order
from storefront.order.queries import get_order_for, list_assigned_orders, order_payload

editor_router = APIRouter(prefix="/editor", tags=["editor"])


@editor_router.get("/orders")
async def assigned_orders(status: str | None = None, caller: CallerIdentity = Depends(require_editor)) -> list[dict]:
    return [order_payload(order, include_history=False) for order in list_assigned_orders(caller, status=status)]


@editor_router.get("/orders/{order_id}")
async def assigned_order_detail(order_id: str, caller: CallerIdentity = Depends(require_editor)) -> dict:
    return order_payload(get_order_for(caller, order_id))


@editor_router.put("/orders/{order_id}/status")
async def update_status(
    order_id: str, body: OrderStatusRequest, caller: CallerIdentity = Depends(require_editor)
) -> dict:
    command = editor_status_command(caller, order_id, body.status, message=body.message)
    current_domain.process(command, asynchronous=False)
    return order_payload(current_domain.repository_for(Order).get(order_id))


@editor_router.post("/orders/{order_id}/messages", status_code=201, response_model=StatusResponse)
async def post_message(
    order_id: str, body: OrderMessageRequest, caller: CallerIdentity = Depends(require_editor)
) -> StatusResponse:
    get_order_for(caller, order_id)
    current_domain.process(
        AddOrderMessage(order_id=order_id, actor=actor_of(caller), message=body.message),
        asynchronous=False,
    )
    return StatusResponse(status="recorded")
