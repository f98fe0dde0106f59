class ApiError(Exception):
    """Base class for errors that map onto a JSON error response."""

    status = 400
    code = "invalid_request"

    def __init__(self, description: str = "", *, fields: dict | None = None):
        super().__init__(description or self.code)
        self.description = description
        self.fields = fields or {}

    def as_payload(self) -> dict:
        payload = {"error": self.code}
        if self.description:
            payload["error_description"] = self.description
        if self.fields:
            payload["fields"] = self.fields
        return payload


class ValidationError(ApiError):
    status = 400
    code = "invalid_request"


class InvalidReference(ApiError):
    """The request names ids that do not match what the caller owns."""

    status = 400
    code = "invalid_reference"


class Unauthorized(ApiError):
    status = 401
    code = "unauthorized"


class Forbidden(ApiError):
    status = 403
    code = "forbidden"


class NotFound(ApiError):
    status = 404
    code = "not_found"


class Conflict(ApiError):
    status = 409
    code = "conflict"
