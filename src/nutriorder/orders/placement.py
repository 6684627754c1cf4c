"""
Order placement: one order row plus its item rows, written atomically.
"""
import logging
import traceback
from decimal import Decimal

from nutriorder.db.models import Order, OrderItem, new_id
from nutriorder.errors import NutriOrderError, OrderPlacementError, ValidationError
from nutriorder.orders.cart import CENTS
from nutriorder.orders.status import OrderStatus

logger = logging.getLogger(__name__)


def validate_checkout(cart, delivery_address):
    if cart is None or cart.is_empty():
        raise ValidationError("No items in cart")
    if not (delivery_address or '').strip():
        raise ValidationError("Please enter delivery address")
    for line in cart.lines:
        if line.quantity < 1:
            raise ValidationError(f"Invalid quantity for {line.name}")


def compute_total(lines):
    """Sum of price x quantity in fixed-point currency."""
    total = sum((line.price * line.quantity for line in lines), Decimal('0'))
    return total.quantize(CENTS)


def place_order(store, cart, delivery_address, delivery_instructions=None):
    """
    Persist ``cart`` as an order for the current principal.

    The order and all of its items commit together or not at all, so no
    reader ever sees an order without its items.
    """
    validate_checkout(cart, delivery_address)
    lines = cart.lines
    total = compute_total(lines)
    instructions = (delivery_instructions or '').strip() or None

    try:
        logger.info(f"Placing order at restaurant {cart.restaurant_id} with {len(lines)} lines, total={total}")
        with store.transaction():
            order = store.add(Order(
                id=new_id(),
                customer_id=store.principal_id,
                restaurant_id=cart.restaurant_id,
                delivery_address=delivery_address.strip(),
                delivery_instructions=instructions,
                total_amount=total,
                status=OrderStatus.PENDING.value,
            ))
            store.add_all(
                OrderItem(
                    order_id=order.id,
                    menu_item_id=line.menu_item_id,
                    quantity=line.quantity,
                    price_at_time=line.price,
                    calories_at_time=line.calories,
                    is_healthy_at_time=line.is_healthy,
                )
                for line in lines
            )
        logger.info(f"Order {order.id} placed")
        return order
    except NutriOrderError:
        raise
    except Exception as e:
        logger.error(f"Error placing order: {str(e)}")
        logger.error(traceback.format_exc())
        raise OrderPlacementError("Failed to place order") from e
