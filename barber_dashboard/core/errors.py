"""
Error taxonomy shared by the store wrapper, the services and the API layer.

Every error carries a user-facing `message`; the API maps the classes to
HTTP status codes in `barber_dashboard.main`.
"""
from typing import Optional


class DashboardError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DashboardError):
    status_code = 404

    def __init__(self, collection: str, identifier: str):
        super().__init__(f"{collection} '{identifier}' was not found.")
        self.collection = collection
        self.identifier = identifier


class ValidationError(DashboardError):
    status_code = 422


class TransitionError(ValidationError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move a booking from '{current}' to '{target}'.")
        self.current = current
        self.target = target


class StoreError(DashboardError):
    status_code = 502

    def __init__(self, operation: str, cause: Optional[Exception] = None):
        super().__init__(f"Failed to {operation}. Please try again.")
        self.operation = operation
        self.cause = cause
