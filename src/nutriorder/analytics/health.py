"""
Health and spending analytics over a principal's orders.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import timedelta
from decimal import Decimal

from nutriorder.db.models import Order, utcnow
from nutriorder.orders.history import fetch_order_records

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
DEFAULT_THRESHOLD = 60

JUNK_HEAVY_MESSAGE = (
    "Your recent orders have been high in calories. Consider exploring our "
    "'Fresh & Fit' collection for healthier options!"
)
HEALTHY_MESSAGE = "Great job! You're making healthy choices. Keep up the good work!"
BALANCED_MESSAGE = "You have a balanced diet! Continue making informed choices."


@dataclass(frozen=True)
class HealthStats:
    total_calories: int
    healthy_spending: Decimal
    junk_spending: Decimal
    total_spending: Decimal
    healthy_percentage: float
    junk_percentage: float
    healthy_items: int
    junk_items: int
    total_orders: int

    def to_dict(self):
        return asdict(self)


def _percentage(part, whole):
    if whole <= 0:
        return 0.0
    return float(part / whole * 100)


def compute_health_stats(records):
    """
    Fold order records into calorie and spending totals.

    Only the *_at_time snapshots are read, so later menu edits never
    change the result.
    """
    total_calories = 0
    healthy_spending = Decimal('0.00')
    junk_spending = Decimal('0.00')
    healthy_items = 0
    junk_items = 0

    for record in records:
        for item in record.items:
            item_total = Decimal(str(item.price_at_time)) * item.quantity
            total_calories += item.calories_at_time * item.quantity
            if item.is_healthy_at_time:
                healthy_spending += item_total
                healthy_items += 1
            else:
                junk_spending += item_total
                junk_items += 1

    total_spending = healthy_spending + junk_spending
    return HealthStats(
        total_calories=total_calories,
        healthy_spending=healthy_spending,
        junk_spending=junk_spending,
        total_spending=total_spending,
        healthy_percentage=_percentage(healthy_spending, total_spending),
        junk_percentage=_percentage(junk_spending, total_spending),
        healthy_items=healthy_items,
        junk_items=junk_items,
        total_orders=len(records),
    )


def recommendation(stats, threshold=DEFAULT_THRESHOLD):
    if stats.junk_percentage > threshold:
        return JUNK_HEAVY_MESSAGE
    if stats.healthy_percentage > threshold:
        return HEALTHY_MESSAGE
    return BALANCED_MESSAGE


def trailing_window(days=DEFAULT_WINDOW_DAYS, now=None):
    now = now or utcnow()
    return now - timedelta(days=days), now


def fetch_health_report(store, days=DEFAULT_WINDOW_DAYS, now=None, threshold=DEFAULT_THRESHOLD):
    """
    Health stats and a recommendation for the current principal's own
    orders over the trailing ``days``.
    """
    since, _ = trailing_window(days, now)
    records = fetch_order_records(
        store,
        Order.customer_id == store.principal_id,
        Order.created_at >= since,
    )
    stats = compute_health_stats(records)
    logger.info(f"Health report over {days} days: {stats.total_orders} orders, {stats.total_calories} kcal")
    return {
        'stats': stats,
        'recommendation': recommendation(stats, threshold),
    }
