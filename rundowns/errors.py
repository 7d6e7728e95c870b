from __future__ import annotations


class RundownError(Exception):
    """Base for every failure the rundown core raises.

    ``kind`` is a stable machine-readable code; ``status_code`` is the HTTP
    status the API layer answers with.
    """

    kind = "rundown_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def as_detail(self) -> dict:
        return {"error": self.kind, "message": self.message}


class ValidationError(RundownError):
    kind = "validation_error"
    status_code = 422


class CapacityExceeded(RundownError):
    kind = "capacity_exceeded"
    status_code = 409


class DuplicateName(RundownError):
    kind = "duplicate_name"
    status_code = 409


class AlreadyLinked(RundownError):
    kind = "already_linked"
    status_code = 409


class ProtectedSegment(RundownError):
    kind = "protected_segment"
    status_code = 409


class InvalidPosition(RundownError):
    kind = "invalid_position"
    status_code = 409


class EmptyRundown(RundownError):
    kind = "empty_rundown"
    status_code = 409


class InvalidTransition(RundownError):
    kind = "invalid_transition"
    status_code = 409


class PermissionDenied(RundownError):
    kind = "permission_denied"
    status_code = 403


class SelfApproval(RundownError):
    kind = "self_approval"
    status_code = 403


class NotFound(RundownError):
    kind = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: object) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found: {resource_id}")
