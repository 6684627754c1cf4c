"""
Restaurant catalog reads and owner-side restaurant management.
"""
import logging

from nutriorder.db.models import Restaurant

logger = logging.getLogger(__name__)

ALL_CUISINES = 'all'

RESTAURANT_FIELDS = (
    'name', 'description', 'image_url', 'cuisine_type', 'rating',
    'delivery_time_minutes', 'is_active'
)


def list_active_restaurants(store):
    """
    Active restaurants, best rated first.
    """
    restaurants = store.query(
        Restaurant,
        Restaurant.is_active.is_(True),
        order_by=Restaurant.rating.desc()
    )
    logger.info(f"Loaded {len(restaurants)} active restaurants")
    return restaurants


def filter_restaurants(restaurants, search_query='', cuisine=ALL_CUISINES):
    """
    Narrow an already-fetched restaurant list by a case-insensitive
    substring of the name or description and by cuisine.
    """
    needle = (search_query or '').strip().lower()
    cuisine = (cuisine or ALL_CUISINES).lower()

    filtered = list(restaurants)
    if needle:
        filtered = [
            r for r in filtered
            if needle in r.name.lower() or needle in (r.description or '').lower()
        ]
    if cuisine != ALL_CUISINES:
        filtered = [r for r in filtered if r.cuisine_type.lower() == cuisine]
    return filtered


def cuisine_options(restaurants):
    options = [ALL_CUISINES]
    for restaurant in restaurants:
        if restaurant.cuisine_type not in options:
            options.append(restaurant.cuisine_type)
    return options


def get_restaurant(store, restaurant_id):
    return store.get(Restaurant, restaurant_id)


def get_owned_restaurant(store):
    """The current principal's restaurant, or None when they have none."""
    principal_id = store.principal_id
    if principal_id is None:
        return None
    return store.first(
        Restaurant,
        Restaurant.owner_id == principal_id,
        order_by=Restaurant.created_at
    )


def create_restaurant(store, **fields):
    unknown = set(fields) - set(RESTAURANT_FIELDS)
    if unknown:
        raise TypeError(f"Unknown restaurant fields: {sorted(unknown)}")

    with store.transaction():
        restaurant = store.add(Restaurant(owner_id=store.principal_id, **fields))
    logger.info(f"Created restaurant {restaurant.id}")
    return restaurant


def update_restaurant(store, restaurant, **changes):
    unknown = set(changes) - set(RESTAURANT_FIELDS)
    if unknown:
        raise TypeError(f"Unknown restaurant fields: {sorted(unknown)}")

    with store.transaction():
        store.update(restaurant, **changes)
    return restaurant
