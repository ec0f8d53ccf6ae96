"""
Error taxonomy for the canteen API.

Each error carries the HTTP status class it maps to, so route handlers can
raise them freely and a single exception handler renders their body.
"""


class CanteenError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"message": self.message}


class ValidationError(CanteenError):
    """Missing or malformed input. The caller must fix the request."""
    status_code = 400


class AuthenticationError(CanteenError):
    status_code = 401


class NotFoundError(CanteenError):
    status_code = 404


class ConflictError(CanteenError):
    """Stock or state changed underneath the request. Re-fetch and retry."""
    status_code = 409

    def __init__(self, message: str, item_ids=None):
        super().__init__(message)
        self.item_ids = list(item_ids or [])

    def to_body(self) -> dict:
        body = super().to_body()
        if self.item_ids:
            body["itemIds"] = self.item_ids
        return body


class InfrastructureError(CanteenError):
    """The store is unreachable or failed. Safe to resubmit later."""
    status_code = 500
