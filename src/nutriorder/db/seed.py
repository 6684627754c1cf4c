"""
Demo data: one owner with a restaurant and menu, one customer with an order.
"""
import logging
from decimal import Decimal

from nutriorder.auth.identity import IdentityProvider, grant_role
from nutriorder.catalog.menu import add_menu_item
from nutriorder.catalog.restaurants import create_restaurant
from nutriorder.db.models import AppRole
from nutriorder.orders.cart import Cart
from nutriorder.orders.placement import place_order
from nutriorder.policy.store import SecureStore

logger = logging.getLogger(__name__)

DEMO_OWNER = 'owner@example.com'
DEMO_CUSTOMER = 'customer@example.com'

DEMO_MENU = [
    {'name': 'Quinoa Power Bowl', 'price': Decimal('150.00'), 'calories': 300, 'is_healthy': True, 'category': 'Bowls'},
    {'name': 'Grilled Paneer Salad', 'price': Decimal('180.00'), 'calories': 250, 'is_healthy': True, 'category': 'Salads'},
    {'name': 'Loaded Fries', 'price': Decimal('80.00'), 'calories': 500, 'is_healthy': False, 'category': 'Sides'},
    {'name': 'Chocolate Shake', 'price': Decimal('120.00'), 'calories': 650, 'is_healthy': False, 'category': 'Drinks'},
]


def seed_demo_data(db_session, session_ttl=3600):
    """
    Create the demo principals, restaurant, menu and a first order.
    Returns None when the demo owner already exists.
    """
    identity = IdentityProvider(db_session, session_ttl)
    if identity.find_user(DEMO_OWNER) is not None:
        logger.info("Demo data already present")
        return None

    owner = identity.sign_up(DEMO_OWNER, {'full_name': 'Demo Owner'})
    grant_role(db_session, owner.id, AppRole.RESTAURANT_OWNER)
    owner_store = SecureStore(db_session, identity.open_session(owner))

    restaurant = create_restaurant(
        owner_store,
        name='Fresh & Fit Kitchen',
        description='Bowls, salads and the occasional treat',
        cuisine_type='Healthy',
        rating=Decimal('4.5'),
        delivery_time_minutes=30,
    )
    items = [add_menu_item(owner_store, restaurant.id, **fields) for fields in DEMO_MENU]

    customer = identity.sign_up(DEMO_CUSTOMER, {'full_name': 'Demo Customer'})
    customer_store = SecureStore(db_session, identity.open_session(customer))

    cart = Cart(restaurant.id)
    cart.add(items[0], quantity=2)
    cart.add(items[2])
    order = place_order(customer_store, cart, '221B Baker Street')

    logger.info("Demo data seeded")
    return {
        'owner': owner,
        'customer': customer,
        'restaurant': restaurant,
        'menu_items': items,
        'order': order,
    }
