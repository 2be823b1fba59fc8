# backend/logic/errors.py


class EngineError(Exception):
    """Base class for errors raised by the gamification engine."""


class NotFoundError(EngineError):
    """A referenced lesson or score does not exist."""


class InvalidRequestError(EngineError):
    """A quiz submission cannot be graded as sent."""


class ValidationError(EngineError):
    """An argument is outside the range the engine accepts."""


class ConflictError(EngineError):
    """The operation was already applied and must not be repeated."""
