"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


def connection_not_found(connection_id: int) -> str:
    """Return message for missing data connection."""
    return f"Connection {connection_id} not found"


def mapping_not_configured(connection_id: int) -> str:
    """Return message for a connection without column mappings."""
    return f"Column mapping is not configured for connection {connection_id}"


def wrong_provider(connection_id: int, expected: str, actual: str) -> str:
    """Return message when a connection is used through the wrong entry point."""
    return (
        f"Connection {connection_id} is a '{actual}' connection, "
        f"expected '{expected}'"
    )


def invalid_choice(label: str, value: str, choices: tuple[str, ...]) -> str:
    """Return message for a value outside an allowed set."""
    return f"Invalid {label} '{value}'. Must be one of: {', '.join(choices)}"


def kpi_code_exists(code: str) -> str:
    """Return message for duplicate KPI definition code."""
    return f"KPI definition with code '{code}' already exists"
