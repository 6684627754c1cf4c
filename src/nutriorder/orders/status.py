"""
Order status lifecycle.
"""
import enum
import logging

from nutriorder.db.models import Order
from nutriorder.errors import AccessDenied, InvalidStatusTransition

logger = logging.getLogger(__name__)


class OrderStatus(str, enum.Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    PREPARING = 'preparing'
    ON_THE_WAY = 'on_the_way'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'

    @property
    def label(self):
        return self.value.replace('_', ' ').upper()


_FORWARD = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.ON_THE_WAY,
    OrderStatus.ON_THE_WAY: OrderStatus.DELIVERED,
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def parse_status(value):
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatusTransition(f"Unknown order status: {value!r}")


def allowed_transitions(status):
    status = parse_status(status)
    if status in TERMINAL_STATUSES:
        return set()
    return {_FORWARD[status], OrderStatus.CANCELLED}


def can_transition(current, new):
    return parse_status(new) in allowed_transitions(current)


def update_order_status(store, order_id, new_status):
    """
    Move an order to ``new_status``. Only the owner of the order's
    restaurant passes the update policy; concurrent updates are
    last-write-wins.
    """
    order = store.get(Order, order_id)
    if order is None:
        raise AccessDenied()

    new_status = parse_status(new_status)
    if not can_transition(order.status, new_status):
        raise InvalidStatusTransition(
            f"Cannot move order from {order.status} to {new_status.value}"
        )

    with store.transaction():
        store.update(order, status=new_status.value)
    logger.info(f"Order {order.id} moved to {new_status.value}")
    return order
