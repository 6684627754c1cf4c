"""
Row-level access predicates.

Every predicate has the signature ``(ctx, principal_id, row) -> bool`` and
is free of side effects. ``ctx`` answers the lookups a predicate needs
(role membership, restaurant ownership, parent orders); rows only need
attribute access, so ORM instances and plain namespaces both work.
"""
import enum

from nutriorder.db.models import AppRole, Order, Restaurant, UserRole


class Operation(str, enum.Enum):
    SELECT = 'select'
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'
    ALL = 'all'


class Policy:
    """
    A named predicate bound to one table and one operation kind.

    ``using`` is evaluated against existing rows, ``check`` against
    proposed rows. Without an explicit ``check`` the ``using`` predicate
    is used for both.
    """

    def __init__(self, name, table, operation, using=None, check=None):
        self.name = name
        self.table = table
        self.operation = Operation(operation)
        self.using = using
        self.check = check if check is not None else using

    def applies_to(self, operation):
        return self.operation == Operation.ALL or self.operation == operation

    def __repr__(self):
        return f"Policy({self.name!r}, {self.table!r}, {self.operation.value!r})"


class SessionPolicyContext:
    """Lookups backed by a SQLAlchemy session, bypassing the policies."""

    def __init__(self, db_session):
        self.db_session = db_session

    def has_role(self, user_id, role):
        if user_id is None:
            return False
        with self.db_session.no_autoflush:
            return self.db_session.query(UserRole.id).filter(
                UserRole.user_id == user_id,
                UserRole.role == AppRole(role)
            ).first() is not None

    def restaurant_owner_id(self, restaurant_id):
        with self.db_session.no_autoflush:
            restaurant = self.db_session.get(Restaurant, restaurant_id)
        return restaurant.owner_id if restaurant is not None else None

    def get_order(self, order_id):
        with self.db_session.no_autoflush:
            return self.db_session.get(Order, order_id)


def _is(principal_id, user_id):
    return principal_id is not None and principal_id == user_id


def always(ctx, principal_id, row):
    return True


def is_self(ctx, principal_id, row):
    return _is(principal_id, row.id)


def owns_role_row(ctx, principal_id, row):
    return _is(principal_id, row.user_id)


def restaurant_is_active(ctx, principal_id, row):
    return bool(row.is_active)


def owns_restaurant(ctx, principal_id, row):
    return _is(principal_id, row.owner_id)


def can_open_restaurant(ctx, principal_id, row):
    return (ctx.has_role(principal_id, AppRole.RESTAURANT_OWNER)
            and _is(principal_id, row.owner_id))


def menu_item_is_available(ctx, principal_id, row):
    return bool(row.is_available)


def owns_parent_restaurant(ctx, principal_id, row):
    return _is(principal_id, ctx.restaurant_owner_id(row.restaurant_id))


def placed_order(ctx, principal_id, row):
    return _is(principal_id, row.customer_id)


def can_place_order(ctx, principal_id, row):
    return (ctx.has_role(principal_id, AppRole.CUSTOMER)
            and _is(principal_id, row.customer_id))


def placed_parent_order(ctx, principal_id, row):
    order = ctx.get_order(row.order_id)
    return order is not None and _is(principal_id, order.customer_id)


def party_to_parent_order(ctx, principal_id, row):
    order = ctx.get_order(row.order_id)
    if order is None:
        return False
    return (_is(principal_id, order.customer_id)
            or _is(principal_id, ctx.restaurant_owner_id(order.restaurant_id)))


POLICIES = [
    Policy("Users can view all profiles", 'profiles', Operation.SELECT, using=always),
    Policy("Users can update own profile", 'profiles', Operation.UPDATE, using=is_self),
    Policy("Users can insert own profile", 'profiles', Operation.INSERT, check=is_self),

    Policy("Users can view own roles", 'user_roles', Operation.SELECT, using=owns_role_row),

    Policy("Anyone can view active restaurants", 'restaurants', Operation.SELECT, using=restaurant_is_active),
    Policy("Restaurant owners can view their restaurants", 'restaurants', Operation.SELECT, using=owns_restaurant),
    Policy("Restaurant owners can insert restaurants", 'restaurants', Operation.INSERT, check=can_open_restaurant),
    Policy("Restaurant owners can update own restaurants", 'restaurants', Operation.UPDATE, using=owns_restaurant),

    Policy("Anyone can view available menu items", 'menu_items', Operation.SELECT, using=menu_item_is_available),
    Policy("Restaurant owners can manage menu items", 'menu_items', Operation.ALL, using=owns_parent_restaurant),

    Policy("Customers can view own orders", 'orders', Operation.SELECT, using=placed_order),
    Policy("Restaurant owners can view their restaurant orders", 'orders', Operation.SELECT, using=owns_parent_restaurant),
    Policy("Customers can create orders", 'orders', Operation.INSERT, check=can_place_order),
    Policy("Restaurant owners can update their orders", 'orders', Operation.UPDATE, using=owns_parent_restaurant),

    Policy("Users can view order items of their orders", 'order_items', Operation.SELECT, using=party_to_parent_order),
    Policy("Customers can insert order items", 'order_items', Operation.INSERT, check=placed_parent_order),
]
