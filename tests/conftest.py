from decimal import Decimal

import pytest

from nutriorder.auth.identity import IdentityProvider, grant_role
from nutriorder.config import Config
from nutriorder.db.engine import create_db_engine, create_session, init_db
from nutriorder.db.models import AppRole, Base, MenuItem, Restaurant
from nutriorder.policy.store import SecureStore


@pytest.fixture
def config(tmp_path):
    config = Config(str(tmp_path / 'missing.ini'))
    config.config['DATABASE']['type'] = 'sqlite'
    config.config['DATABASE']['name'] = ':memory:'
    config.config['PATHS']['output_dir'] = str(tmp_path / 'output')
    return config


@pytest.fixture
def engine(config):
    engine = create_db_engine(config)
    init_db(engine, Base)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = create_session(engine)
    yield session
    session.close()


@pytest.fixture
def identity(db_session):
    return IdentityProvider(db_session)


@pytest.fixture
def store_for(db_session, identity):
    def _store_for(user):
        if user is None:
            return SecureStore(db_session)
        return SecureStore(db_session, identity.open_session(user))
    return _store_for


@pytest.fixture
def customer(identity):
    return identity.sign_up('carol@example.com', {'full_name': 'Carol'})


@pytest.fixture
def owner(identity, db_session):
    user = identity.sign_up('oscar@example.com', {'full_name': 'Oscar'})
    grant_role(db_session, user.id, AppRole.RESTAURANT_OWNER)
    return user


@pytest.fixture
def other_owner(identity, db_session):
    user = identity.sign_up('olga@example.com', {'full_name': 'Olga'})
    grant_role(db_session, user.id, AppRole.RESTAURANT_OWNER)
    return user


def make_restaurant(db_session, owner, **overrides):
    fields = {
        'owner_id': owner.id,
        'name': 'Green Fork',
        'description': 'Salads and bowls',
        'cuisine_type': 'Healthy',
        'rating': Decimal('4.5'),
        'delivery_time_minutes': 25,
        'is_active': True,
    }
    fields.update(overrides)
    restaurant = Restaurant(**fields)
    db_session.add(restaurant)
    db_session.commit()
    return restaurant


def make_menu_item(db_session, restaurant, **overrides):
    fields = {
        'restaurant_id': restaurant.id,
        'name': 'Item',
        'price': Decimal('100.00'),
        'calories': 400,
        'is_healthy': False,
        'category': 'Mains',
        'is_available': True,
    }
    fields.update(overrides)
    item = MenuItem(**fields)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def restaurant(db_session, owner):
    return make_restaurant(db_session, owner)


@pytest.fixture
def item_a(db_session, restaurant):
    return make_menu_item(
        db_session, restaurant,
        name='Quinoa Bowl', price=Decimal('150.00'), calories=300, is_healthy=True, category='Bowls'
    )


@pytest.fixture
def item_b(db_session, restaurant):
    return make_menu_item(
        db_session, restaurant,
        name='Loaded Fries', price=Decimal('80.00'), calories=500, is_healthy=False, category='Sides'
    )
