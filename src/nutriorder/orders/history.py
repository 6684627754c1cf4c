"""
Order history reads for the current principal.
"""
import calendar
import logging
from collections import namedtuple
from datetime import datetime
from decimal import Decimal

from nutriorder.db.models import Order, OrderItem, Restaurant

logger = logging.getLogger(__name__)

OrderRecord = namedtuple('OrderRecord', ['order', 'items', 'restaurant'])


def fetch_order_records(store, *criteria):
    """
    Orders matching ``criteria`` (newest first) with their items and
    restaurant, each read through the store.
    """
    orders = store.query(Order, *criteria, order_by=Order.created_at.desc())
    if not orders:
        return []

    order_ids = [order.id for order in orders]
    items_by_order = {}
    for item in store.query(OrderItem, OrderItem.order_id.in_(order_ids)):
        items_by_order.setdefault(item.order_id, []).append(item)

    restaurants = {}
    for restaurant_id in {order.restaurant_id for order in orders}:
        restaurants[restaurant_id] = store.get(Restaurant, restaurant_id)

    return [
        OrderRecord(order, items_by_order.get(order.id, []), restaurants.get(order.restaurant_id))
        for order in orders
    ]


def month_window(year, month):
    """First and last instant of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day, 23, 59, 59, 999999)
    return start, end


def list_orders_for_month(store, year, month):
    start, end = month_window(year, month)
    records = fetch_order_records(
        store,
        Order.customer_id == store.principal_id,
        Order.created_at >= start,
        Order.created_at <= end,
    )
    logger.info(f"Loaded {len(records)} orders for {year}-{month:02d}")
    return records


def order_calories(items):
    return sum(item.calories_at_time * item.quantity for item in items)


def monthly_stats(records):
    total_spent = sum((Decimal(str(r.order.total_amount)) for r in records), Decimal('0.00'))
    return {
        'total_spent': total_spent,
        'total_calories': sum(order_calories(r.items) for r in records),
        'total_orders': len(records),
    }
