# app/exceptions.py
"""
Domain error taxonomy.
Services raise these; app/main.py maps each one to an HTTP status.
"""


class FleetError(Exception):
    """Base class for every error the fleet services raise on purpose."""

    status_code = 400
    error = "fleet_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(FleetError):
    """Malformed input caught before any persistence attempt."""

    status_code = 422
    error = "validation_error"


class ConflictError(FleetError):
    """The request clashes with state committed by someone else (e.g. an overlapping booking)."""

    status_code = 409
    error = "conflict"

    def __init__(self, detail: str, conflicting_ids=None):
        super().__init__(detail)
        self.conflicting_ids = list(conflicting_ids or [])


class NotFoundError(FleetError):
    status_code = 404
    error = "not_found"


class PermissionDeniedError(FleetError):
    """Actor is authenticated but not allowed to perform this mutation."""

    status_code = 403
    error = "permission_denied"


class IntegrityError(FleetError):
    """
    Storage accepted a write but handed back no record.
    Points at an expired session or row-level policy, so the caller should
    refresh the session rather than retry the business operation.
    """

    status_code = 401
    error = "session_refresh_required"
