"""
Restaurant owner dashboard calculations.
"""
import logging
import traceback
from decimal import Decimal

import pandas as pd

from nutriorder.catalog.restaurants import get_owned_restaurant
from nutriorder.db.models import AppRole, MenuItem, Order, UserRole
from nutriorder.errors import AccessDenied
from nutriorder.orders.history import fetch_order_records

logger = logging.getLogger(__name__)

ORDER_COLUMNS = ['order_id', 'order_date', 'status', 'total_cents']
ITEM_COLUMNS = ['order_id', 'menu_item_id', 'quantity', 'price_cents', 'calories', 'is_healthy']


def to_cents(amount):
    return int((Decimal(str(amount)) * 100).to_integral_value())


def from_cents(cents):
    return (Decimal(int(cents)) / 100).quantize(Decimal('0.01'))


def records_to_frames(records):
    """
    Flatten order records into an orders frame and an items frame.
    Money is carried as integer cents so sums stay exact.
    """
    orders = pd.DataFrame(
        [
            {
                'order_id': r.order.id,
                'order_date': r.order.created_at,
                'status': r.order.status,
                'total_cents': to_cents(r.order.total_amount),
            }
            for r in records
        ],
        columns=ORDER_COLUMNS
    )
    items = pd.DataFrame(
        [
            {
                'order_id': item.order_id,
                'menu_item_id': item.menu_item_id,
                'quantity': item.quantity,
                'price_cents': to_cents(item.price_at_time),
                'calories': item.calories_at_time,
                'is_healthy': bool(item.is_healthy_at_time),
            }
            for r in records for item in r.items
        ],
        columns=ITEM_COLUMNS
    )
    return orders, items


def calculate_revenue_by_day(orders_df):
    """
    Calculate revenue and order count per calendar day.
    """
    if orders_df.empty:
        return pd.DataFrame(columns=['date', 'total_revenue', 'order_count'])

    daily = orders_df.assign(order_date=pd.to_datetime(orders_df['order_date'])).groupby(
        pd.Grouper(key='order_date', freq='D')
    ).agg(
        total_cents=('total_cents', 'sum'),
        order_count=('order_id', 'nunique')
    ).reset_index()
    daily = daily[daily['order_count'] > 0].copy()

    daily['date'] = daily['order_date'].dt.date
    daily['total_revenue'] = daily['total_cents'].apply(from_cents)
    return daily[['date', 'total_revenue', 'order_count']].reset_index(drop=True)


def calculate_status_breakdown(orders_df):
    if orders_df.empty:
        return {}
    return {status: int(count) for status, count in orders_df['status'].value_counts().items()}


def identify_top_selling_items(items_df, menu_names=None, top_n=5):
    """
    Identify top selling items based on quantity and revenue.
    """
    if items_df.empty:
        return pd.DataFrame(columns=['menu_item_id', 'item_name', 'total_quantity_sold', 'total_revenue'])

    items_df = items_df.assign(line_cents=items_df['quantity'] * items_df['price_cents'])
    top_items = items_df.groupby('menu_item_id').agg(
        total_quantity_sold=('quantity', 'sum'),
        line_cents=('line_cents', 'sum')
    ).reset_index()

    top_items['item_name'] = top_items['menu_item_id'].map(menu_names or {}).fillna('Unknown Item')
    top_items['total_revenue'] = top_items['line_cents'].apply(from_cents)
    top_items = top_items.sort_values(
        ['total_quantity_sold', 'line_cents'], ascending=[False, False]
    )

    if top_n is not None and top_n > 0:
        top_items = top_items.head(top_n)

    return top_items[['menu_item_id', 'item_name', 'total_quantity_sold', 'total_revenue']].reset_index(drop=True)


def restaurant_dashboard(store, top_n=5):
    """
    Orders and revenue for the current principal's restaurant.

    Returns None when the owner has not opened a restaurant yet.
    """
    principal_id = store.principal_id
    roles = {grant.role for grant in store.query(UserRole, UserRole.user_id == principal_id)}
    if AppRole.RESTAURANT_OWNER not in roles:
        raise AccessDenied("Access denied. Restaurant owner role required.")

    restaurant = get_owned_restaurant(store)
    if restaurant is None:
        logger.info(f"Principal {principal_id} has no restaurant yet")
        return None

    try:
        records = fetch_order_records(store, Order.restaurant_id == restaurant.id)
        menu_items = store.query(MenuItem, MenuItem.restaurant_id == restaurant.id)
        orders_df, items_df = records_to_frames(records)

        stats = {
            'restaurant': restaurant,
            'total_orders': len(orders_df),
            'total_revenue': from_cents(orders_df['total_cents'].sum()) if not orders_df.empty else Decimal('0.00'),
            'menu_items': len(menu_items),
            'revenue_by_day': calculate_revenue_by_day(orders_df),
            'status_breakdown': calculate_status_breakdown(orders_df),
            'top_selling_items': identify_top_selling_items(
                items_df, {item.id: item.name for item in menu_items}, top_n
            ),
        }
        logger.info(f"Dashboard for restaurant {restaurant.id}: {stats['total_orders']} orders")
        return stats
    except Exception as e:
        logger.error(f"Error building restaurant dashboard: {str(e)}")
        logger.error(traceback.format_exc())
        raise
