from __future__ import annotations


class DomainError(Exception):
    """Base class for every rule violation raised by the model."""


class ValidationError(DomainError, ValueError):
    """A required field is empty or a value is out of range."""


class DuplicateKeyError(DomainError):
    """A unique key is already taken by another live entity."""


class NotFoundError(DomainError, LookupError):
    """The relationship or key being removed does not exist."""


class CapacityExceededError(DomainError):
    """A cardinality cap has been reached."""


class MinimumViolationError(DomainError):
    """The removal would drop a collection below its lower bound."""


class InvalidStateError(DomainError):
    """The operation is not legal in the entity's current state."""


class InvalidTransitionError(InvalidStateError):
    """The requested lifecycle transition does not exist."""


class UnauthorizedError(DomainError, PermissionError):
    """The actor lacks the privilege the operation requires."""
