# services/errors.py
from typing import Optional


class OrderEngineError(Exception):
    """Base of every rejection raised by the order engine.

    `invariant` names the rule that blocked the operation so the caller can
    render an actionable message. Nothing has been mutated when one of these
    is raised.
    """

    status_code = 400

    def __init__(self, message: str, *, invariant: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.invariant = invariant

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error": type(self).__name__,
            "invariant": self.invariant,
        }


class ValidationError(OrderEngineError):
    """Malformed input: bad quantity, half-specified geometry, empty item list."""
    status_code = 422


class IllegalTransitionError(OrderEngineError):
    status_code = 409


class OverpaymentError(OrderEngineError):
    status_code = 409


class UnresolvedReferenceError(OrderEngineError):
    status_code = 404


class ConcurrentModificationError(OrderEngineError):
    status_code = 409
