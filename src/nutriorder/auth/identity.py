"""
Identity provider: principal creation, role grants and sessions.
"""
import logging
import traceback

from sqlalchemy.exc import SQLAlchemyError

from nutriorder.auth.session import AuthSession, Principal
from nutriorder.db.models import AppRole, Profile, User, UserRole, new_id
from nutriorder.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_FULL_NAME = 'User'


class IdentityProvider:
    """Creates principals and opens sessions for them."""

    def __init__(self, db_session, session_ttl=3600):
        self.db_session = db_session
        self.session_ttl = session_ttl

    def sign_up(self, email, metadata=None):
        """
        Create a principal. The profile and default customer role are
        written in the same transaction as the user row.
        """
        email = (email or '').strip().lower()
        if not email:
            raise ValidationError("Email is required")
        if self.find_user(email) is not None:
            raise ValidationError("An account with this email already exists")

        try:
            user = User(id=new_id(), email=email, raw_user_meta_data=dict(metadata or {}))
            self.db_session.add(user)
            self.db_session.flush()
            self._on_principal_created(user)
            self.db_session.commit()
            logger.info(f"Created principal {user.id}")
            return user
        except SQLAlchemyError as e:
            self.db_session.rollback()
            logger.error(f"Error creating principal: {str(e)}")
            logger.error(traceback.format_exc())
            raise

    def _on_principal_created(self, user):
        # Runs with system privilege: the insert policies would otherwise
        # require the principal to already hold a role.
        metadata = user.raw_user_meta_data or {}
        full_name = metadata.get('full_name') or DEFAULT_FULL_NAME
        self.db_session.add(Profile(id=user.id, full_name=full_name))
        self.db_session.add(UserRole(user_id=user.id, role=AppRole.CUSTOMER))
        self.db_session.flush()

    def find_user(self, email):
        email = (email or '').strip().lower()
        return self.db_session.query(User).filter(User.email == email).first()

    def open_session(self, user):
        principal = Principal(
            user_id=user.id,
            email=user.email,
            claims=dict(user.raw_user_meta_data or {})
        )
        return AuthSession(principal=principal, ttl_seconds=self.session_ttl)


def grant_role(db_session, user_id, role):
    """
    Assign a role out of band. Granting a role the principal already
    holds is a no-op.
    """
    role = AppRole(role)
    existing = db_session.query(UserRole).filter(
        UserRole.user_id == user_id,
        UserRole.role == role
    ).first()
    if existing is not None:
        logger.info(f"Principal {user_id} already holds role {role.value}")
        return existing

    grant = UserRole(user_id=user_id, role=role)
    db_session.add(grant)
    db_session.commit()
    logger.info(f"Granted role {role.value} to principal {user_id}")
    return grant


def user_roles(db_session, user_id):
    rows = db_session.query(UserRole).filter(UserRole.user_id == user_id).all()
    return {row.role for row in rows}


def resolve_persona(roles):
    """Principals may hold both roles; the owner persona wins."""
    if AppRole.RESTAURANT_OWNER in roles:
        return AppRole.RESTAURANT_OWNER
    return AppRole.CUSTOMER
