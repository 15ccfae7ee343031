"""
Error taxonomy for reconciliation and template generation.

Every error carries a machine-readable ``error_type`` and, where it
applies, the request ``field`` that failed and a ``suggestion`` for
the operator.
"""

from typing import Optional


class NginxRegistryError(Exception):
    """Base exception for nginx registry operations."""

    def __init__(
        self,
        message: str,
        error_type: str,
        field: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.field = field
        self.suggestion = suggestion
        super().__init__(message)

    def to_detail(self) -> dict:
        return {
            "error": self.error_type,
            "message": self.message,
            "field": self.field,
            "suggestion": self.suggestion,
        }


class PreconditionError(NginxRegistryError):
    """The call cannot start: host not registered, directory unreadable."""

    pass


class SiteValidationError(NginxRegistryError):
    """A site specification field is missing or malformed."""

    def __init__(self, message: str, check: str, field: str, missing_fields: Optional[list] = None):
        self.check = check
        self.missing_fields = missing_fields or []
        super().__init__(message, error_type="validation_error", field=field)

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["check"] = self.check
        if self.missing_fields:
            detail["missingFields"] = self.missing_fields
        return detail


class NotFoundError(NginxRegistryError):
    """A referenced machine or template does not exist."""

    pass


class MachineNotFoundError(NotFoundError):
    pass


class TemplateNotFoundError(NotFoundError):
    pass


class DataIntegrityError(NginxRegistryError):
    """Stored data is inconsistent (e.g. a machine without an address)."""

    pass


class WriteFailureError(NginxRegistryError):
    """Template rendering or the file write failed; nothing was recorded."""

    pass


class SiteRegistryError(NginxRegistryError):
    """The site registry rejected a write."""

    pass
