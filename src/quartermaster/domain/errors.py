"""Error taxonomy for logistics operations.

Every error carries the HTTP status the API surfaces it with and a
single-sentence message that is safe to show to users.
"""

from __future__ import annotations


class QuartermasterError(RuntimeError):
    """Base class for all domain failures."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(QuartermasterError):
    """Malformed or missing input."""

    default_message = "Invalid request"


class AuthenticationRequired(QuartermasterError):
    """No identity was supplied by the identity provider."""

    status_code = 401
    default_message = "Not signed in"


class AuthorizationError(QuartermasterError):
    """Role below the operation's minimum."""

    status_code = 403
    default_message = "Forbidden"

    def __init__(self, message: str | None = None) -> None:
        # Detail is never leaked beyond the generic message.
        super().__init__(self.default_message)


class MembershipRequired(QuartermasterError):
    """Identity is known but holds no membership yet."""

    status_code = 403
    default_message = "Membership pending"


class ApplicationRejected(QuartermasterError):
    """A rejected applicant tried to apply again."""

    status_code = 403
    default_message = "Your application was rejected. Contact an officer if you want to appeal."


class NotFound(QuartermasterError):
    """Missing entity, or a child id that does not belong to its parent."""

    status_code = 404
    default_message = "Not found"


class CapacityExceeded(QuartermasterError):
    """Container line set does not fit the container."""

    default_message = "Container limit is 60 crates/slots"


class PreconditionFailed(QuartermasterError):
    """The entity is not in a state that allows the operation."""

    default_message = "Operation not allowed in the current state"


class ReferenceDataMissing(QuartermasterError):
    """Required reference data (regiment, catalog) is absent."""

    status_code = 500
    default_message = "Reference data missing"


class ExternalUnavailable(QuartermasterError):
    """The data store or an upstream feed failed or timed out."""

    default_message = "Upstream service unavailable"
