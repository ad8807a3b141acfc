"""Order lifecycle after payment — commands and handler.

Every command carries the ``actor`` recorded on the resulting order note.
Payment (CREATED → PAID) and refunds are driven from the payment package.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.exceptions import AccessDeniedError
from storefront.order.order import Order, OrderStatus


@storefront.command(part_of="Order")
class StartWork:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    editor_id = Identifier()


@storefront.command(part_of="Order")
class RequestRevisions:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    message = Text()


@storefront.command(part_of="Order")
class ResumeWork:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    message = Text()


@storefront.command(part_of="Order")
class CompleteOrder:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    message = Text()


@storefront.command(part_of="Order")
class DeliverOrder:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    message = Text()


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    reason = String(max_length=500)


@storefront.command(part_of="Order")
class AssignEditor:
    order_id = Identifier(required=True)
    editor_id = Identifier(required=True)
    actor = String(required=True, max_length=100)


@storefront.command(part_of="Order")
class AddOrderMessage:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    message = Text(required=True)


@storefront.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(StartWork)
    def start_work(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.start_work(command.actor, editor_id=command.editor_id)
        repo.add(order)

    @handle(RequestRevisions)
    def request_revisions(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_revisions(command.actor, command.message)
        repo.add(order)

    @handle(ResumeWork)
    def resume_work(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.resume_work(command.actor, command.message)
        repo.add(order)

    @handle(CompleteOrder)
    def complete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.complete(command.actor, command.message)
        repo.add(order)

    @handle(DeliverOrder)
    def deliver_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.deliver(command.actor, command.message)
        repo.add(order)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(command.actor, command.reason)
        repo.add(order)
        logger.info("order_cancelled", order_id=str(order.id), actor=command.actor)

    @handle(AssignEditor)
    def assign_editor(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assign_editor(command.editor_id, command.actor)
        repo.add(order)

    @handle(AddOrderMessage)
    def add_message(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.add_message(command.actor, command.message)
        repo.add(order)


def command_for_status(order_id, target_status, actor, message=None):
    """Build the command that moves an order to ``target_status``.

    Used by the admin and editor status endpoints. ``paid`` and ``refunded`` have their
    own flows (reconciliation and gateway refunds) and are rejected here.
    """
    try:
        target = OrderStatus(target_status)
    except ValueError:
        raise ValidationError({"status": [f"Unknown status: {target_status}"]}) from None

    order = current_domain.repository_for(Order).get(order_id)
    current = OrderStatus(order.status)

    if target == OrderStatus.IN_PROGRESS:
        if current == OrderStatus.REVISIONS:
            return ResumeWork(order_id=order_id, actor=actor, message=message)
        return StartWork(order_id=order_id, actor=actor)
    if target == OrderStatus.REVISIONS:
        return RequestRevisions(order_id=order_id, actor=actor, message=message)
    if target == OrderStatus.COMPLETED:
        return CompleteOrder(order_id=order_id, actor=actor, message=message)
    if target == OrderStatus.DELIVERED:
        return DeliverOrder(order_id=order_id, actor=actor, message=message)
    if target == OrderStatus.CANCELLED:
        return CancelOrder(order_id=order_id, actor=actor, reason=message)

    raise ValidationError({"status": [f"Orders cannot be moved to {target.value} directly"]})


EDITOR_STATUSES = frozenset({OrderStatus.IN_PROGRESS, OrderStatus.REVISIONS, OrderStatus.COMPLETED})


def editor_status_command(caller, order_id, target_status, message=None):
    """Status change requested through the editor endpoints.

    Admins may pick any status ``command_for_status`` accepts. The assigned
    editor may only start or resume work, request revisions or complete.
    """
    if caller.is_admin:
        return command_for_status(order_id, target_status, actor=str(caller.user_id), message=message)

    order = current_domain.repository_for(Order).get(order_id)
    if not caller.user_id or str(order.assigned_editor_id or "") != str(caller.user_id):
        raise AccessDeniedError("Only the assigned editor can update this order")
    if target_status not in {status.value for status in EDITOR_STATUSES}:
        raise ValidationError({"status": [f"Editors cannot move orders to {target_status}"]})
    return command_for_status(order_id, target_status, actor=str(caller.user_id), message=message)
