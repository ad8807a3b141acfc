"""Admin dashboard figures computed from the order table."""

from datetime import UTC

from protean.utils.globals import current_domain

from storefront.order.order import Order, OrderStatus

# Statuses reached only after a completed payment
_REVENUE_STATUSES = {
    OrderStatus.PAID.value,
    OrderStatus.IN_PROGRESS.value,
    OrderStatus.REVISIONS.value,
    OrderStatus.COMPLETED.value,
    OrderStatus.DELIVERED.value,
}


def _in_window(order, start, end):
    created = order.created_at
    if created is not None and created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    if start and created < start:
        return False
    if end and created > end:
        return False
    return True


def order_statistics(start=None, end=None):
    orders = [o for o in current_domain.repository_for(Order).everything() if _in_window(o, start, end)]

    total = len(orders)
    paid = [o for o in orders if o.status in _REVENUE_STATUSES]
    revenue = round(sum(o.total_amount for o in paid), 2)

    breakdown = {status.value: 0 for status in OrderStatus}
    for order in orders:
        breakdown[order.status] += 1

    return {
        "total_orders": total,
        "paid_orders": len(paid),
        "pending_orders": breakdown[OrderStatus.CREATED.value],
        "completed_orders": breakdown[OrderStatus.COMPLETED.value] + breakdown[OrderStatus.DELIVERED.value],
        "total_revenue": revenue,
        "average_order_value": round(revenue / len(paid), 2) if paid else 0.0,
        "conversion_rate": round(len(paid) / total * 100, 2) if total else 0.0,
        "status_breakdown": breakdown,
    }
