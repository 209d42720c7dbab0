"""Failure taxonomy for judging operations.

Routers map these to HTTP status codes at the boundary; the services never
retry a failed precondition.
"""


class JudgingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(JudgingError):
    """Referenced entity is absent"""
    status_code = 404


class Forbidden(JudgingError):
    """Caller lacks standing, e.g. not enrolled"""
    status_code = 403


class InvalidState(JudgingError):
    """Entity exists but is in the wrong lifecycle state"""
    status_code = 400


class Conflict(JudgingError):
    """A concurrent caller won the race"""
    status_code = 409


__all__ = ["JudgingError", "NotFound", "Forbidden", "InvalidState", "Conflict"]
