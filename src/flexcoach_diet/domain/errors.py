"""Error taxonomy shared by services, adapters and the HTTP layer."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FieldError:
    """A single offending input field."""

    field: str
    message: str


class DietPlanError(Exception):
    """Base class for errors with a stable machine-readable code."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str, details: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationError(DietPlanError):
    """Malformed or missing input."""

    code = "VALIDATION_FAILED"
    status_code = 400

    @classmethod
    def from_fields(cls, details: list[FieldError]) -> "ValidationError":
        """Build an error whose message enumerates the offending fields."""
        names = ", ".join(detail.field for detail in details)
        return cls(f"Validation failed: {names}", details)


class NotFoundError(DietPlanError):
    """The id or owner does not resolve to an active record."""

    code = "RESOURCE_NOT_FOUND"
    status_code = 404


class OwnershipError(NotFoundError):
    """The record exists but belongs to another owner.

    Rendered exactly like ``NotFoundError`` so callers cannot probe for ids.
    """


class ConflictError(DietPlanError):
    """A concurrent write lost the race on the active-name constraint."""

    code = "DUPLICATE_RESOURCE"
    status_code = 409


class InternalError(DietPlanError):
    """Storage or transport failure."""


class StorageError(InternalError):
    """The persistence driver rejected or failed an operation."""

    code = "DATABASE_ERROR"


class CatalogUnavailableError(DietPlanError):
    """The external food catalog is not configured or not reachable."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503


@dataclass
class FieldErrors:
    """Collects field errors while parsing a payload."""

    items: list[FieldError] = field(default_factory=list)

    def add(self, name: str, message: str) -> None:
        self.items.append(FieldError(field=name, message=message))

    def raise_if_any(self) -> None:
        if self.items:
            raise ValidationError.from_fields(self.items)
