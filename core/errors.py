"""
core/errors.py -- Error taxonomy shared by every Calendarium process.

Each exception carries a stable machine-readable `code` and the HTTP status
it maps to. The apps render any ServiceError into the same envelope:

    {"error": {"code": "...", "message": "...", "fields": {...} | null}}

and the RPC clients turn that envelope back into the same exception class on
the calling side, so a ValidationError raised inside the account service
reaches gateway code as a ValidationError with the same field map.

Trust boundary: InternalError always renders with a generic message. The
detail passed to the constructor is for local logs only and never crosses
a service boundary.

Layer rule: core/ is the kernel. No imports from api/, auth/, account/, events/.
"""

from __future__ import annotations

GENERIC_INTERNAL_MESSAGE = "the server encountered a problem and could not process your request"


class ServiceError(Exception):
    """Base class for every error the services expect to produce."""

    code = "error"
    status = 500
    message = "request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message

    def public_message(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.public_message(), "fields": None}


class ValidationError(ServiceError):
    """One or more input fields are invalid. `errors` maps field -> message."""

    code = "validation_error"
    status = 400
    message = "request validation failed"

    def __init__(self, errors: dict[str, str], message: str | None = None) -> None:
        super().__init__(message)
        self.errors = dict(errors)

    def __str__(self) -> str:
        details = ", ".join(f"{field}: {msg}" for field, msg in sorted(self.errors.items()))
        return f"{self.message} ({details})" if details else self.message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "fields": dict(self.errors)}


class AuthenticationError(ServiceError):
    """Missing, malformed, expired or unknown token, or bad credentials."""

    code = "invalid_token"
    status = 401
    message = "invalid or missing authentication token"


class SessionNotFound(AuthenticationError):
    """No live session for the token: never issued, logged out, or TTL-expired.

    The three cases are deliberately indistinguishable.
    """

    message = "session is not available"


class InvalidCredentials(AuthenticationError):
    code = "bad_credentials"
    message = "invalid email or password"


class AuthenticationRequired(AuthenticationError):
    """An anonymous identity reached a route that needs a user."""

    code = "authentication_required"
    message = "you must be authenticated to access this resource"


class DuplicateError(ServiceError):
    code = "duplicate_email"
    status = 409
    message = "a user with this email address already exists"


class RecordNotFoundError(ServiceError):
    code = "not_found"
    status = 404
    message = "the requested resource could not be found"


class InternalError(ServiceError):
    """Store/RPC unreachable or malformed internal state."""

    code = "internal_error"
    status = 500
    message = GENERIC_INTERNAL_MESSAGE

    def public_message(self) -> str:
        return GENERIC_INTERNAL_MESSAGE


class RandomSourceError(InternalError):
    """The OS CSPRNG could not supply bytes. Never degrade to a weaker source."""


_BY_CODE: dict[str, type[ServiceError]] = {
    ValidationError.code: ValidationError,
    AuthenticationError.code: AuthenticationError,
    InvalidCredentials.code: InvalidCredentials,
    AuthenticationRequired.code: AuthenticationRequired,
    DuplicateError.code: DuplicateError,
    RecordNotFoundError.code: RecordNotFoundError,
    InternalError.code: InternalError,
}


def error_from_payload(payload: dict | None) -> ServiceError:
    """Rebuild a ServiceError from a decoded error envelope.

    Unknown or malformed envelopes become InternalError.
    """
    body = (payload or {}).get("error") if isinstance(payload, dict) else None
    if not isinstance(body, dict):
        return InternalError("malformed error envelope from upstream service")
    code = body.get("code")
    message = body.get("message") or None
    cls = _BY_CODE.get(code) if isinstance(code, str) else None
    if cls is None:
        return InternalError(f"unknown upstream error code {code!r}")
    if cls is ValidationError:
        fields = body.get("fields")
        if not isinstance(fields, dict):
            fields = {}
        return ValidationError({str(k): str(v) for k, v in fields.items()}, message)
    if cls is InternalError:
        return InternalError()
    return cls(message)
