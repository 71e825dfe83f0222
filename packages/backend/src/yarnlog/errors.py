"""Error taxonomy shared by services and routes.

Learn: Services raise these; one exception handler in main.py turns them
into `{"error": message}` JSON bodies. Routes never build error responses
themselves, so every failure path has the same shape.

    ValidationError      400  bad or missing input
    ConflictError        400  uniqueness violation
    AuthenticationError  401  missing or incorrect credentials
    AuthorizationError   403  token present but invalid/expired
    NotFoundError        404  absent OR not owned by the requester
    ServerError          500  unexpected store/signing failure
"""


class YarnlogError(Exception):
    """Base class. Carries the HTTP status and the public message."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(YarnlogError):
    status_code = 400
    default_message = "Invalid request"


class ConflictError(YarnlogError):
    status_code = 400
    default_message = "Email or username already exists"


class AuthenticationError(YarnlogError):
    status_code = 401
    default_message = "Access token required"


class AuthorizationError(YarnlogError):
    status_code = 403
    default_message = "Invalid or expired token"


class NotFoundError(YarnlogError):
    status_code = 404
    default_message = "Not found"


class ServerError(YarnlogError):
    """Unexpected failure. The message is generic; details go to the log."""

    status_code = 500
