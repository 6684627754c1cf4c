"""
In-memory cart. Lines snapshot the menu item when it is added.
"""
from dataclasses import dataclass
from decimal import Decimal

from nutriorder.errors import ValidationError

CENTS = Decimal('0.01')


@dataclass
class CartLine:
    menu_item_id: str
    name: str
    price: Decimal
    calories: int
    is_healthy: bool
    quantity: int = 1

    @classmethod
    def from_menu_item(cls, item, quantity=1):
        return cls(
            menu_item_id=item.id,
            name=item.name,
            price=Decimal(str(item.price)).quantize(CENTS),
            calories=int(item.calories),
            is_healthy=bool(item.is_healthy),
            quantity=quantity,
        )

    @property
    def line_total(self):
        return (self.price * self.quantity).quantize(CENTS)


class Cart:
    """Lines keyed by menu item id, all from one restaurant."""

    def __init__(self, restaurant_id):
        self.restaurant_id = restaurant_id
        self._lines = {}

    def add(self, item, quantity=1):
        if item.restaurant_id != self.restaurant_id:
            raise ValidationError("Cart can only hold items from one restaurant")
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        line = self._lines.get(item.id)
        if line is None:
            self._lines[item.id] = CartLine.from_menu_item(item, quantity)
        else:
            line.quantity += quantity
        return self._lines[item.id]

    def update_quantity(self, menu_item_id, change):
        line = self._lines.get(menu_item_id)
        if line is None:
            return None
        new_quantity = line.quantity + change
        if new_quantity <= 0:
            del self._lines[menu_item_id]
            return None
        line.quantity = new_quantity
        return line

    def remove(self, menu_item_id):
        self._lines.pop(menu_item_id, None)

    def clear(self):
        self._lines.clear()

    @property
    def lines(self):
        return list(self._lines.values())

    def total_amount(self):
        return sum((line.line_total for line in self._lines.values()), Decimal('0.00'))

    def total_calories(self):
        return sum(line.calories * line.quantity for line in self._lines.values())

    def item_count(self):
        return sum(line.quantity for line in self._lines.values())

    def is_empty(self):
        return not self._lines

    def __len__(self):
        return len(self._lines)
