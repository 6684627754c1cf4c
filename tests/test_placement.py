from decimal import Decimal

import pytest

from conftest import make_menu_item, make_restaurant
from nutriorder.analytics.health import compute_health_stats
from nutriorder.catalog.menu import update_menu_item
from nutriorder.db.models import Order, OrderItem
from nutriorder.errors import AccessDenied, OrderPlacementError, ValidationError
from nutriorder.orders.cart import Cart
from nutriorder.orders.history import fetch_order_records
from nutriorder.orders.placement import compute_total, place_order
from nutriorder.policy.store import SecureStore


def build_cart(restaurant, *lines):
    cart = Cart(restaurant.id)
    for item, quantity in lines:
        cart.add(item, quantity)
    return cart


def test_scenario_two_bowls_and_fries(store_for, customer, restaurant, item_a, item_b):
    store = store_for(customer)
    cart = build_cart(restaurant, (item_a, 2), (item_b, 1))

    order = place_order(store, cart, '42 Elm Street', 'Ring twice')

    assert order.total_amount == Decimal('380.00')
    assert order.status == 'pending'
    assert order.delivery_instructions == 'Ring twice'

    records = fetch_order_records(store, Order.customer_id == customer.id)
    stats = compute_health_stats(records)
    assert stats.total_calories == 1100
    assert stats.healthy_spending == Decimal('300.00')
    assert stats.junk_spending == Decimal('80.00')
    assert stats.healthy_percentage == pytest.approx(78.9, abs=0.05)
    assert stats.junk_percentage == pytest.approx(21.1, abs=0.05)


def test_total_equals_sum_of_item_snapshots(db_session, store_for, customer, restaurant, item_a, item_b):
    order = place_order(
        store_for(customer), build_cart(restaurant, (item_a, 3), (item_b, 2)), '1 Main St'
    )

    items = db_session.query(OrderItem).filter(OrderItem.order_id == order.id).all()
    assert len(items) == 2
    assert sum(i.price_at_time * i.quantity for i in items) == db_session.get(Order, order.id).total_amount


def test_snapshots_survive_menu_edits(db_session, store_for, owner, customer, restaurant, item_a):
    order = place_order(store_for(customer), build_cart(restaurant, (item_a, 1)), '1 Main St')

    update_menu_item(store_for(owner), item_a, price=Decimal('999.99'), calories=1, is_healthy=False)

    snapshot = db_session.query(OrderItem).filter(OrderItem.order_id == order.id).one()
    assert snapshot.price_at_time == Decimal('150.00')
    assert snapshot.calories_at_time == 300
    assert snapshot.is_healthy_at_time is True


def test_blank_instructions_stored_as_null(store_for, customer, restaurant, item_a):
    order = place_order(store_for(customer), build_cart(restaurant, (item_a, 1)), '1 Main St', '   ')

    assert order.delivery_instructions is None


def test_empty_cart_is_rejected(store_for, customer, restaurant):
    with pytest.raises(ValidationError):
        place_order(store_for(customer), Cart(restaurant.id), '1 Main St')


def test_blank_address_is_rejected(db_session, store_for, customer, restaurant, item_a):
    with pytest.raises(ValidationError):
        place_order(store_for(customer), build_cart(restaurant, (item_a, 1)), '  ')
    assert db_session.query(Order).count() == 0


def test_failed_item_insert_leaves_no_order(db_session, engine, store_for, customer, restaurant, item_a, monkeypatch):
    store = store_for(customer)

    def broken_add_all(rows):
        raise RuntimeError('connection lost')

    monkeypatch.setattr(store, 'add_all', broken_add_all)

    with pytest.raises(OrderPlacementError):
        place_order(store, build_cart(restaurant, (item_a, 1)), '1 Main St')

    assert db_session.query(Order).count() == 0
    assert db_session.query(OrderItem).count() == 0


def test_dangling_menu_item_rolls_back_whole_order(db_session, store_for, customer, restaurant, item_a):
    cart = build_cart(restaurant, (item_a, 1))
    ghost = make_menu_item(db_session, restaurant, name='Ghost')
    cart.add(ghost)
    db_session.delete(ghost)
    db_session.commit()

    with pytest.raises(OrderPlacementError):
        place_order(store_for(customer), cart, '1 Main St')

    assert db_session.query(Order).count() == 0


def test_principal_without_customer_role_cannot_order(db_session, store_for, customer, restaurant, item_a):
    from nutriorder.db.models import AppRole, UserRole
    db_session.query(UserRole).filter(
        UserRole.user_id == customer.id, UserRole.role == AppRole.CUSTOMER
    ).delete()
    db_session.commit()

    with pytest.raises(AccessDenied):
        place_order(store_for(customer), build_cart(restaurant, (item_a, 1)), '1 Main St')
    assert db_session.query(Order).count() == 0


def test_anonymous_cannot_order(db_session, restaurant, item_a):
    with pytest.raises(AccessDenied):
        place_order(SecureStore(db_session), build_cart(restaurant, (item_a, 1)), '1 Main St')


def test_owner_sees_orders_for_own_restaurant_only(db_session, store_for, owner, other_owner, customer, restaurant, item_a):
    elsewhere = make_restaurant(db_session, other_owner, name='Elsewhere')
    elsewhere_item = make_menu_item(db_session, elsewhere, name='Soup')
    mine = place_order(store_for(customer), build_cart(restaurant, (item_a, 1)), '1 Main St')
    theirs = place_order(store_for(customer), build_cart(elsewhere, (elsewhere_item, 1)), '1 Main St')

    owner_store = store_for(owner)
    assert {o.id for o in owner_store.query(Order)} == {mine.id}
    assert owner_store.get(Order, theirs.id) is None
    assert {i.order_id for i in owner_store.query(OrderItem)} == {mine.id}
    assert {o.id for o in store_for(customer).query(Order)} == {mine.id, theirs.id}


def test_compute_total_is_exact():
    cart = Cart('r')
    line = type('Item', (), {
        'id': 'm', 'restaurant_id': 'r', 'name': 'Tea', 'price': Decimal('0.10'),
        'calories': 0, 'is_healthy': True
    })()
    cart.add(line, 3)

    assert compute_total(cart.lines) == Decimal('0.30')
