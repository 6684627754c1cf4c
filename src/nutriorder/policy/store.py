"""
Authorization middleware between application code and the database.

Every read and write goes through ``SecureStore``, which asks the policy
engine about each row before returning or persisting it.
"""
import logging
import traceback
from contextlib import contextmanager

from nutriorder.policy.engine import PolicyEngine
from nutriorder.policy.predicates import Operation, SessionPolicyContext

logger = logging.getLogger(__name__)


class ProposedRow:
    """Read-only view of ``row`` with ``changes`` applied on top."""

    def __init__(self, row, changes):
        self._row = row
        self._changes = changes

    def __getattr__(self, name):
        if name in self._changes:
            return self._changes[name]
        return getattr(self._row, name)


class SecureStore:

    def __init__(self, db_session, auth_session=None, engine=None):
        self.db_session = db_session
        self.auth_session = auth_session
        self.engine = engine or PolicyEngine()
        self.ctx = SessionPolicyContext(db_session)

    @property
    def principal_id(self):
        if self.auth_session is None:
            return None
        principal = self.auth_session.current()
        return principal.user_id if principal else None

    def _allowed(self, operation, row, new_row=None):
        return self.engine.is_allowed(
            self.ctx, self.principal_id, operation, row.__tablename__, row, new_row
        )

    def _enforce(self, operation, row, new_row=None):
        self.engine.enforce(
            self.ctx, self.principal_id, operation, row.__tablename__, row, new_row
        )

    # Reads

    def query(self, model, *criteria, order_by=None):
        q = self.db_session.query(model).filter(*criteria)
        if order_by is not None:
            q = q.order_by(*order_by) if isinstance(order_by, (list, tuple)) else q.order_by(order_by)
        rows = q.all()
        return self.engine.filter_visible(self.ctx, self.principal_id, model.__tablename__, rows)

    def first(self, model, *criteria, order_by=None):
        rows = self.query(model, *criteria, order_by=order_by)
        return rows[0] if rows else None

    def get(self, model, ident):
        row = self.db_session.get(model, ident)
        if row is None or not self._allowed(Operation.SELECT, row):
            return None
        return row

    def count(self, model, *criteria):
        return len(self.query(model, *criteria))

    # Writes

    def add(self, row):
        self._enforce(Operation.INSERT, row)
        self.db_session.add(row)
        self.db_session.flush()
        return row

    def add_all(self, rows):
        rows = list(rows)
        for row in rows:
            self._enforce(Operation.INSERT, row)
        self.db_session.add_all(rows)
        self.db_session.flush()
        return rows

    def update(self, row, **changes):
        self._enforce(Operation.UPDATE, row, ProposedRow(row, changes))
        for name, value in changes.items():
            setattr(row, name, value)
        self.db_session.flush()
        return row

    def delete(self, row):
        self._enforce(Operation.DELETE, row)
        self.db_session.delete(row)
        self.db_session.flush()

    # Transactions

    def commit(self):
        self.db_session.commit()

    def rollback(self):
        self.db_session.rollback()

    @contextmanager
    def transaction(self):
        try:
            yield self
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(f"Transaction rolled back: {str(e)}")
            logger.debug(traceback.format_exc())
            raise
