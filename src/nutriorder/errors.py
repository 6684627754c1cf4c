"""
Exceptions raised by the food ordering back end.
"""


class NutriOrderError(Exception):
    """Base class for every error surfaced to the caller."""


class AccessDenied(NutriOrderError):
    """No policy permits the operation.

    The message never names the row, so callers cannot probe for rows
    they are not allowed to see.
    """

    def __init__(self, message="Access denied"):
        super().__init__(message)


class ValidationError(NutriOrderError):
    pass


class OrderPlacementError(NutriOrderError):
    """The order write failed and nothing was persisted."""


class InvalidStatusTransition(NutriOrderError):
    pass


class SessionExpired(NutriOrderError):
    pass
