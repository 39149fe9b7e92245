"""Structured errors raised by election services and rendered by procedures.

Each error carries a machine-readable ``code`` and the HTTP status its
procedure responds with. Nothing here is retried automatically.
"""


class ProcedureError(Exception):
    code = "INTERNAL"
    status_code = 500
    default_message = "Something went wrong."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFoundError(ProcedureError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found."


class UnauthorizedError(ProcedureError):
    """Business-rule authorization failure (already voted, not a voter, ...)."""

    code = "UNAUTHORIZED"
    status_code = 403
    default_message = "Unauthorized."


class NotLoggedInError(UnauthorizedError):
    status_code = 401
    default_message = "Authentication required."


class BadRequestError(ProcedureError):
    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Invalid request."


class ConflictError(ProcedureError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Conflict."


class TooManyRequestsError(ProcedureError):
    code = "TOO_MANY_REQUESTS"
    status_code = 429
    default_message = "Too many requests. Please try again later."


class ElectionNotFoundError(NotFoundError):
    default_message = "Election not found."


class ElectionNotOngoingError(UnauthorizedError):
    default_message = "Election is not ongoing."


class AlreadyVotedError(UnauthorizedError):
    default_message = "You have already voted in this election."


class NotAVoterError(UnauthorizedError):
    default_message = "You are not a voter in this election."


class NotACommissionerError(UnauthorizedError):
    default_message = "You are not a commissioner of this election."


class InvalidBallotError(BadRequestError):
    pass


class BallotConflictError(ConflictError):
    default_message = "A ballot for this voter was already recorded."
