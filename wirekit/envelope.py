"""Standard API response envelope.

An envelope separates transport errors from application errors and
carries machine-readable error codes with positional format arguments,
so that clients can localise messages themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as _field

__all__ = [
    "FieldError",
    "AppError",
    "Envelope",
    "ok",
    "err",
    "transport_err",
    "new_app_error",
]


@dataclass
class FieldError:
    """A validation error on one specific field."""

    field: str
    code: str
    message: str = ""
    args: list[str] = _field(default_factory=list)


@dataclass
class AppError:
    """An application-level error."""

    code: str
    message: str = ""
    args: list[str] = _field(default_factory=list)
    details: list[FieldError] = _field(default_factory=list)
    metadata: dict[str, str] = _field(default_factory=dict)

    def with_field(self, field: str, code: str, message: str, *args: str) -> AppError:
        """Append a field error and return self for chaining."""
        self.details.append(FieldError(field=field, code=code, message=message, args=list(args)))
        return self

    def with_meta(self, key: str, value: str) -> AppError:
        """Set a metadata entry and return self for chaining."""
        self.metadata[key] = value
        return self


@dataclass
class Envelope:
    """An API response: status, optional payload and optional errors."""

    status: int = 0
    transport_error: str = ""
    data: bytes = b""
    error: AppError | None = None

    def is_ok(self) -> bool:
        """True when there is neither a transport nor an application error."""
        return not self.transport_error and self.error is None

    def is_transport_error(self) -> bool:
        """True when the envelope carries a transport-level error."""
        return bool(self.transport_error)

    def is_app_error(self) -> bool:
        """True when the envelope carries an application-level error."""
        return self.error is not None

    def error_code(self) -> str:
        """The application error code, or an empty string."""
        return self.error.code if self.error is not None else ""

    def field_errors(self) -> dict[str, FieldError]:
        """Field errors keyed by field name; later entries win on duplicates."""
        if self.error is None:
            return {}
        return {fe.field: fe for fe in self.error.details}


def ok(status: int, data: bytes) -> Envelope:
    """Build a success envelope carrying a raw payload."""
    return Envelope(status=status, data=data)


def err(status: int, code: str, message: str, *args: str) -> Envelope:
    """Build an application-error envelope."""
    return Envelope(status=status, error=AppError(code=code, message=message, args=list(args)))


def transport_err(error: str) -> Envelope:
    """Build a transport-error envelope."""
    return Envelope(transport_error=error)


def new_app_error(code: str, message: str, *args: str) -> AppError:
    """Build an application error with optional format arguments."""
    return AppError(code=code, message=message, args=list(args))