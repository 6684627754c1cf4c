"""
Menu reads and owner-side menu management.
"""
import logging
from decimal import Decimal

from nutriorder.db.models import MenuItem
from nutriorder.errors import ValidationError

logger = logging.getLogger(__name__)

MENU_ITEM_FIELDS = (
    'name', 'description', 'image_url', 'price', 'calories', 'is_healthy',
    'category', 'is_available'
)


def get_menu(store, restaurant_id):
    """
    Available items of a restaurant, ordered by category.
    """
    return store.query(
        MenuItem,
        MenuItem.restaurant_id == restaurant_id,
        MenuItem.is_available.is_(True),
        order_by=[MenuItem.category, MenuItem.name]
    )


def group_menu_by_category(items):
    grouped = {}
    for item in items:
        grouped.setdefault(item.category, []).append(item)
    return grouped


def _validate(fields):
    unknown = set(fields) - set(MENU_ITEM_FIELDS)
    if unknown:
        raise TypeError(f"Unknown menu item fields: {sorted(unknown)}")
    if 'price' in fields:
        fields['price'] = Decimal(str(fields['price'])).quantize(Decimal('0.01'))
        if fields['price'] < 0:
            raise ValidationError("Price cannot be negative")
    if 'calories' in fields and fields['calories'] < 0:
        raise ValidationError("Calories cannot be negative")
    return fields


def add_menu_item(store, restaurant_id, **fields):
    fields = _validate(dict(fields))
    with store.transaction():
        item = store.add(MenuItem(restaurant_id=restaurant_id, **fields))
    logger.info(f"Added menu item {item.id} to restaurant {restaurant_id}")
    return item


def update_menu_item(store, item, **changes):
    changes = _validate(dict(changes))
    with store.transaction():
        store.update(item, **changes)
    return item


def remove_menu_item(store, item):
    """
    Delete ``item``. Order lines that reference it are deleted with it, so
    orders that contained it lose those lines. Set ``is_available=False``
    to take an item off the menu while keeping order history intact.
    """
    with store.transaction():
        store.delete(item)
    logger.info(f"Removed menu item {item.id}")
