from datetime import timedelta

import pytest

from nutriorder.auth.identity import grant_role, resolve_persona, user_roles
from nutriorder.auth.session import AuthSession, Principal
from nutriorder.db.models import AppRole, Profile, User, UserRole, utcnow
from nutriorder.errors import SessionExpired, ValidationError


def test_sign_up_creates_profile_and_customer_role(identity, db_session):
    user = identity.sign_up('Dana@Example.com ', {'full_name': 'Dana'})

    assert user.email == 'dana@example.com'
    profiles = db_session.query(Profile).filter(Profile.id == user.id).all()
    roles = db_session.query(UserRole).filter(UserRole.user_id == user.id).all()
    assert len(profiles) == 1
    assert profiles[0].full_name == 'Dana'
    assert [r.role for r in roles] == [AppRole.CUSTOMER]


def test_sign_up_without_name_uses_placeholder(identity, db_session):
    user = identity.sign_up('nobody@example.com')

    assert db_session.get(Profile, user.id).full_name == 'User'


def test_sign_up_rejects_duplicate_email(identity, customer):
    with pytest.raises(ValidationError):
        identity.sign_up(customer.email.upper())


def test_sign_up_requires_email(identity):
    with pytest.raises(ValidationError):
        identity.sign_up('   ')


def test_grant_role_is_idempotent(db_session, customer):
    grant_role(db_session, customer.id, AppRole.RESTAURANT_OWNER)
    grant_role(db_session, customer.id, 'restaurant_owner')

    assert user_roles(db_session, customer.id) == {AppRole.CUSTOMER, AppRole.RESTAURANT_OWNER}
    assert db_session.query(UserRole).filter(UserRole.user_id == customer.id).count() == 2


def test_persona_prefers_owner_role():
    assert resolve_persona({AppRole.CUSTOMER}) == AppRole.CUSTOMER
    assert resolve_persona({AppRole.CUSTOMER, AppRole.RESTAURANT_OWNER}) == AppRole.RESTAURANT_OWNER


def test_deleting_user_cascades_profile_and_roles(identity, db_session, customer):
    user_id = customer.id
    db_session.delete(customer)
    db_session.commit()

    assert db_session.get(User, user_id) is None
    assert db_session.get(Profile, user_id) is None
    assert db_session.query(UserRole).filter(UserRole.user_id == user_id).count() == 0


def test_open_session_carries_principal(identity, customer):
    session = identity.open_session(customer)

    principal = session.current()
    assert principal.user_id == customer.id
    assert principal.email == customer.email
    assert principal.claims == {'full_name': 'Carol'}


def test_session_expires_and_refreshes():
    clock_value = {'now': utcnow()}

    def clock():
        return clock_value['now']

    session = AuthSession(Principal(user_id='u1'), ttl_seconds=60, clock=clock)
    assert session.current().user_id == 'u1'

    clock_value['now'] += timedelta(seconds=61)
    assert session.is_stale()
    with pytest.raises(SessionExpired):
        session.current()

    session.refresh()
    assert session.user_id == 'u1'


def test_anonymous_session_has_no_principal():
    session = AuthSession.anonymous()

    assert session.current() is None
    assert session.user_id is None
    assert not session.is_stale()
