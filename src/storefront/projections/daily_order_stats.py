"""Daily order stats projection — counters behind the admin dashboard.

One row per day (YYYY-MM-DD) with orders placed, paid, cancelled and refunded,
plus revenue collected and refunded that day.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import OrderCancelled, OrderPaid, OrderPlaced, OrderRefunded
from storefront.order.order import Order


@storefront.projection
class DailyOrderStats:
    date = String(identifier=True, required=True, max_length=10)  # YYYY-MM-DD
    orders_placed = Integer(default=0)
    orders_paid = Integer(default=0)
    orders_cancelled = Integer(default=0)
    orders_refunded = Integer(default=0)
    revenue = Float(default=0.0)
    refunds = Float(default=0.0)


def _get_or_create(date_key):
    repo = current_domain.repository_for(DailyOrderStats)
    try:
        return repo.get(date_key)
    except ObjectNotFoundError:
        return DailyOrderStats(
            date=date_key,
            orders_placed=0,
            orders_paid=0,
            orders_cancelled=0,
            orders_refunded=0,
            revenue=0.0,
            refunds=0.0,
        )


@storefront.projector(projector_for=DailyOrderStats, aggregates=[Order])
class DailyOrderStatsProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        record = _get_or_create(event.placed_at.date().isoformat())
        record.orders_placed = (record.orders_placed or 0) + 1
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(OrderPaid)
    def on_order_paid(self, event):
        record = _get_or_create(event.paid_at.date().isoformat())
        record.orders_paid = (record.orders_paid or 0) + 1
        record.revenue = round((record.revenue or 0.0) + (event.amount or 0.0), 2)
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        record = _get_or_create(event.cancelled_at.date().isoformat())
        record.orders_cancelled = (record.orders_cancelled or 0) + 1
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(OrderRefunded)
    def on_order_refunded(self, event):
        record = _get_or_create(event.refunded_at.date().isoformat())
        record.orders_refunded = (record.orders_refunded or 0) + 1
        record.refunds = round((record.refunds or 0.0) + (event.refund_amount or 0.0), 2)
        current_domain.repository_for(DailyOrderStats).add(record)


def daily_stats(start_date=None, end_date=None):
    """Rows between two ISO dates (inclusive), oldest first."""
    rows = current_domain.repository_for(DailyOrderStats)._dao.query.limit(None).all().items
    if start_date:
        rows = [r for r in rows if r.date >= start_date.isoformat()]
    if end_date:
        rows = [r for r in rows if r.date <= end_date.isoformat()]
    return [
        {
            "date": r.date,
            "orders_placed": r.orders_placed,
            "orders_paid": r.orders_paid,
            "orders_cancelled": r.orders_cancelled,
            "orders_refunded": r.orders_refunded,
            "revenue": r.revenue,
            "refunds": r.refunds,
        }
        for r in sorted(rows, key=lambda r: r.date)
    ]
