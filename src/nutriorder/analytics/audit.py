"""
Integrity checks over persisted orders.

Runs with system privilege: it reads every order and item directly from
the session instead of through the policy store.
"""
import logging
import traceback

import pandas as pd

from nutriorder.analytics.dashboard import from_cents, to_cents
from nutriorder.db.models import Order, OrderItem

logger = logging.getLogger(__name__)

DISCREPANCY_COLUMNS = ['order_id', 'total_amount', 'calculated_total', 'difference']


def load_order_frames(db_session):
    orders = pd.DataFrame(
        [(o.id, to_cents(o.total_amount)) for o in db_session.query(Order).all()],
        columns=['order_id', 'total_cents']
    )
    items = pd.DataFrame(
        [(i.order_id, i.quantity, to_cents(i.price_at_time)) for i in db_session.query(OrderItem).all()],
        columns=['order_id', 'quantity', 'price_cents']
    )
    return orders, items


def verify_order_totals(orders_df, items_df):
    """
    Verify that stored order totals equal the sum of their items'
    price_at_time x quantity. Comparison is exact, in cents.
    """
    try:
        logger.info("Verifying order total amounts")

        if orders_df.empty or items_df.empty:
            return pd.DataFrame(columns=DISCREPANCY_COLUMNS)

        order_totals = items_df.assign(
            line_cents=items_df['quantity'] * items_df['price_cents']
        ).groupby('order_id')['line_cents'].sum().reset_index(name='calculated_cents')

        merged = pd.merge(orders_df, order_totals, on='order_id', how='inner')
        merged['difference_cents'] = (merged['total_cents'] - merged['calculated_cents']).abs()

        discrepancies = merged[merged['difference_cents'] > 0]
        if len(discrepancies) > 0:
            logger.warning(f"Found {len(discrepancies)} orders with total amount discrepancies")
        else:
            logger.info("All order total amounts match calculated totals")

        return pd.DataFrame({
            'order_id': discrepancies['order_id'],
            'total_amount': discrepancies['total_cents'].apply(from_cents),
            'calculated_total': discrepancies['calculated_cents'].apply(from_cents),
            'difference': discrepancies['difference_cents'].apply(from_cents),
        }, columns=DISCREPANCY_COLUMNS).reset_index(drop=True)
    except Exception as e:
        logger.error(f"Error verifying order totals: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def find_orders_without_items(orders_df, items_df):
    """
    Order ids that have no items at all.
    """
    orphans = sorted(set(orders_df['order_id']) - set(items_df['order_id']))
    if orphans:
        logger.warning(f"Found {len(orphans)} orders with no items")
    return orphans


def run_order_audit(db_session):
    orders_df, items_df = load_order_frames(db_session)
    discrepancies = verify_order_totals(orders_df, items_df)
    orphans = find_orders_without_items(orders_df, items_df)
    return {
        'orders_checked': len(orders_df),
        'total_amount_discrepancies': discrepancies,
        'orders_without_items': orphans,
    }
