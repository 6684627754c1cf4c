import pytest

from nutriorder.db.models import Order
from nutriorder.errors import AccessDenied, InvalidStatusTransition
from nutriorder.orders.cart import Cart
from nutriorder.orders.placement import place_order
from nutriorder.orders.status import (
    OrderStatus, allowed_transitions, can_transition, update_order_status
)


def test_forward_path_and_cancellation():
    assert allowed_transitions('pending') == {OrderStatus.CONFIRMED, OrderStatus.CANCELLED}
    assert allowed_transitions('on_the_way') == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
    assert can_transition('preparing', 'on_the_way')
    assert not can_transition('pending', 'delivered')
    assert not can_transition('confirmed', 'pending')


@pytest.mark.parametrize('terminal', ['delivered', 'cancelled'])
def test_terminal_states_have_no_exits(terminal):
    assert allowed_transitions(terminal) == set()


def test_unknown_status_is_rejected():
    with pytest.raises(InvalidStatusTransition):
        can_transition('pending', 'teleported')


def test_status_label():
    assert OrderStatus.ON_THE_WAY.label == 'ON THE WAY'


@pytest.fixture
def order(store_for, customer, restaurant, item_a):
    cart = Cart(restaurant.id)
    cart.add(item_a)
    return place_order(store_for(customer), cart, '1 Main St')


def test_owner_moves_order_through_lifecycle(db_session, store_for, owner, order):
    store = store_for(owner)
    for status in ('confirmed', 'preparing', 'on_the_way', 'delivered'):
        update_order_status(store, order.id, status)

    assert db_session.get(Order, order.id).status == 'delivered'


def test_illegal_jump_is_rejected(store_for, owner, order):
    with pytest.raises(InvalidStatusTransition):
        update_order_status(store_for(owner), order.id, 'delivered')


def test_customer_cannot_change_status(db_session, store_for, customer, order):
    with pytest.raises(AccessDenied):
        update_order_status(store_for(customer), order.id, 'cancelled')
    assert db_session.get(Order, order.id).status == 'pending'


def test_other_owner_cannot_see_order(store_for, other_owner, order):
    with pytest.raises(AccessDenied):
        update_order_status(store_for(other_owner), order.id, 'confirmed')
