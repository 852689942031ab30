"""
Error taxonomy for the signup service.

Every error carries the HTTP status it maps to and a client-safe message.
The message is the only text that ever reaches a response body; details stay
in the server log.
"""


class SignupServiceError(Exception):
    """Base class for errors raised by the signup pipeline."""

    status_code = 500
    public_message = "An error occurred. Please try again."

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message

    def to_dict(self) -> dict:
        return {"success": False, "message": self.public_message}


class RateLimited(SignupServiceError):
    """Client exceeded its signup budget for the current window."""

    status_code = 429
    public_message = "Too many requests, please try again later."

    def __init__(self, detail: str | None = None, retry_after: int | None = None):
        super().__init__(detail)
        self.retry_after = retry_after


class InvalidInput(SignupServiceError):
    """Email failed validation. Which rule failed is intentionally not exposed."""

    status_code = 400
    public_message = "Invalid email format"


class StorageUnavailable(SignupServiceError):
    """The signup store could not be read or written."""


class InternalFailure(SignupServiceError):
    """Unexpected failure inside the pipeline."""


class HashingError(InternalFailure):
    """A privacy digest could not be computed."""


class PayloadTooLarge(SignupServiceError):
    """Request body exceeded the configured size limit."""

    status_code = 413
    public_message = "Request body too large"
