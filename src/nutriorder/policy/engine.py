"""
Policy evaluation: a request is allowed when at least one applicable
policy passes. Declaration order does not matter and adding a policy can
only widen access.
"""
import logging

from nutriorder.errors import AccessDenied
from nutriorder.policy.predicates import POLICIES, Operation

logger = logging.getLogger(__name__)


class PolicyEngine:

    def __init__(self, policies=None):
        self.policies = list(POLICIES if policies is None else policies)

    def policies_for(self, table, operation):
        operation = Operation(operation)
        return [p for p in self.policies if p.table == table and p.applies_to(operation)]

    def is_allowed(self, ctx, principal_id, operation, table, row, new_row=None):
        """
        Evaluate ``operation`` on ``table`` for ``principal_id``.

        Inserts are checked against the proposed ``row``. Updates need one
        policy to accept the existing ``row`` and one to accept ``new_row``
        (the existing row when omitted).
        """
        operation = Operation(operation)
        policies = self.policies_for(table, operation)
        if not policies:
            return False

        if operation == Operation.INSERT:
            return any(p.check(ctx, principal_id, row) for p in policies if p.check)

        if operation == Operation.UPDATE:
            if not any(p.using(ctx, principal_id, row) for p in policies if p.using):
                return False
            target = row if new_row is None else new_row
            return any(p.check(ctx, principal_id, target) for p in policies if p.check)

        return any(p.using(ctx, principal_id, row) for p in policies if p.using)

    def enforce(self, ctx, principal_id, operation, table, row, new_row=None):
        if not self.is_allowed(ctx, principal_id, operation, table, row, new_row):
            logger.warning(f"Denied {Operation(operation).value} on {table} for principal {principal_id}")
            raise AccessDenied()

    def filter_visible(self, ctx, principal_id, table, rows):
        return [
            row for row in rows
            if self.is_allowed(ctx, principal_id, Operation.SELECT, table, row)
        ]
