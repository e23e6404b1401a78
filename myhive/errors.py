"""Domain errors raised by service layers.

Services raise these instead of ``HTTPException`` so they stay usable from
the scheduler and the sync queue; ``myhive.main`` maps them to responses.
"""


class MyHiveError(Exception):
    """Base class for domain errors.

    Attributes:
        status_code: HTTP status the API layer responds with.
        message: Human-readable error message.
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MyHiveError):
    """Malformed input, rejected before any store access."""

    status_code = 400
    default_message = "Validation error"


class Forbidden(MyHiveError):
    """Role or ownership check failed."""

    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(MyHiveError):
    """Entity absent or outside the caller's organisation."""

    status_code = 404
    default_message = "Not found"


class Conflict(MyHiveError):
    """Uniqueness violation not absorbed by dedup logic."""

    status_code = 409
    default_message = "Duplicate entry"


class Locked(MyHiveError):
    """Mutation attempted on a locked inspection."""

    status_code = 403
    default_message = "Inspection is locked and cannot be modified"


class NoFieldsToUpdate(MyHiveError):
    """Patch request carried no recognized fields."""

    status_code = 400
    default_message = "No fields to update"


class UpstreamUnavailable(MyHiveError):
    """An external dependency could not serve the request."""

    status_code = 503
    default_message = "Upstream service unavailable"
