from typing import Any, Dict, List, Optional


class EmergencyHubError(Exception):
    """Base class for errors surfaced to API clients as an error envelope."""
    status_code = 500

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(EmergencyHubError):
    """Bad input; rejected before anything reaches the store."""
    status_code = 400


class PermissionDenied(EmergencyHubError):
    status_code = 403


class NotFound(EmergencyHubError):
    status_code = 404


class InvalidTransition(EmergencyHubError):
    """The report's current status does not allow the requested action."""
    status_code = 409

    def __init__(self, action: str, current_status: str, allowed: List[str]):
        super().__init__(
            f"Cannot {action} an emergency that is {current_status}",
            {"action": action, "current_status": current_status, "allowed_from": allowed},
        )
        self.action = action
        self.current_status = current_status
        self.allowed = allowed


class ConcurrentUpdate(EmergencyHubError):
    """Another write changed the report between our read and our write."""
    status_code = 409


class OperationTimeout(EmergencyHubError):
    """A store or blob call exceeded its time budget. The client may retry."""
    status_code = 504


class PartialUploadFailure:
    """Photos that were skipped during a submission. Returned, never raised."""

    def __init__(self):
        self.skipped: List[Dict[str, Any]] = []

    def add(self, index: int, filename: str, reason: str) -> None:
        self.skipped.append({"index": index, "filename": filename, "reason": reason})

    def __bool__(self) -> bool:
        return bool(self.skipped)

    def to_dict(self) -> List[Dict[str, Any]]:
        return list(self.skipped)


class AuthenticationFailed(EmergencyHubError):
    status_code = 401
