"""
Explicit auth session passed into every data-access call.
"""
from dataclasses import dataclass, field
from datetime import timedelta

from nutriorder.db.models import utcnow
from nutriorder.errors import SessionExpired


@dataclass(frozen=True)
class Principal:
    """An authenticated end user."""
    user_id: str
    email: str = None
    claims: dict = field(default_factory=dict)


class AuthSession:
    """
    Request-scoped session. ``current()`` returns the principal while the
    session is fresh and raises ``SessionExpired`` once ``ttl_seconds``
    have elapsed since ``issued_at``. An anonymous session carries no
    principal and never expires.
    """

    def __init__(self, principal=None, ttl_seconds=3600, issued_at=None, clock=utcnow):
        self.principal = principal
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.issued_at = issued_at or clock()

    @classmethod
    def anonymous(cls):
        return cls(principal=None)

    @property
    def expires_at(self):
        return self.issued_at + timedelta(seconds=self.ttl_seconds)

    def is_stale(self):
        if self.principal is None:
            return False
        return self._clock() >= self.expires_at

    def current(self):
        if self.is_stale():
            raise SessionExpired("Session expired, please sign in again")
        return self.principal

    def refresh(self):
        self.issued_at = self._clock()
        return self

    @property
    def user_id(self):
        principal = self.current()
        return principal.user_id if principal else None
