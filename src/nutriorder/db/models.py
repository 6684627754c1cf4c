"""
Database models for the food ordering back end.
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric,
    String, Text, UniqueConstraint, event
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def new_id():
    return str(uuid.uuid4())


def utcnow():
    """Naive UTC timestamp, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AppRole(str, enum.Enum):
    CUSTOMER = 'customer'
    RESTAURANT_OWNER = 'restaurant_owner'


class User(Base):
    """Principal record kept by the identity provider."""
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    raw_user_meta_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    profile = relationship('Profile', uselist=False, cascade='all, delete-orphan', passive_deletes=True)
    roles = relationship('UserRole', cascade='all, delete-orphan', passive_deletes=True)


class Profile(Base):
    """Public profile, one per principal."""
    __tablename__ = 'profiles'

    id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    full_name = Column(Text, nullable=False)
    phone = Column(Text)
    avatar_url = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class UserRole(Base):
    """Role grant; a principal holds each role at most once."""
    __tablename__ = 'user_roles'
    __table_args__ = (
        UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    role = Column(
        Enum(AppRole, name='app_role', values_callable=lambda roles: [r.value for r in roles]),
        nullable=False
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)


class Restaurant(Base):
    __tablename__ = 'restaurants'

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text)
    image_url = Column(Text)
    cuisine_type = Column(Text, nullable=False)
    rating = Column(Numeric(2, 1), default=0)
    delivery_time_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    menu_items = relationship('MenuItem', back_populates='restaurant', cascade='all, delete-orphan', passive_deletes=True)
    orders = relationship('Order', back_populates='restaurant', cascade='all, delete-orphan', passive_deletes=True)


class MenuItem(Base):
    """Menu entry with nutritional data."""
    __tablename__ = 'menu_items'

    id = Column(String(36), primary_key=True, default=new_id)
    restaurant_id = Column(String(36), ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text)
    image_url = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    calories = Column(Integer, nullable=False)
    is_healthy = Column(Boolean, nullable=False, default=False)
    category = Column(Text, nullable=False)
    is_available = Column(Boolean, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    restaurant = relationship('Restaurant', back_populates='menu_items')


class Order(Base):
    __tablename__ = 'orders'

    id = Column(String(36), primary_key=True, default=new_id)
    customer_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    restaurant_id = Column(String(36), ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    delivery_address = Column(Text, nullable=False)
    delivery_instructions = Column(Text)
    status = Column(Text, nullable=False, default='pending')
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    restaurant = relationship('Restaurant', back_populates='orders')
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan', passive_deletes=True)


class OrderItem(Base):
    """Order line; the *_at_time columns are snapshots taken when the order was placed."""
    __tablename__ = 'order_items'

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    menu_item_id = Column(String(36), ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_at_time = Column(Numeric(10, 2), nullable=False)
    calories_at_time = Column(Integer, nullable=False)
    is_healthy_at_time = Column(Boolean, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship('Order', back_populates='items')


TIMESTAMPED_MODELS = (Profile, Restaurant, MenuItem, Order)


def _touch_updated_at(mapper, connection, target):
    target.updated_at = utcnow()


for _model in TIMESTAMPED_MODELS:
    event.listen(_model, 'before_update', _touch_updated_at)
