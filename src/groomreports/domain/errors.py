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


class UnknownReportError(ValidationError):
    """Report id is not part of the report registry."""


def unknown_report(report_id: str) -> str:
    """Return message for a report id outside the registry."""
    return f"Unknown report '{report_id}'"


def unknown_metric(metric_id: str) -> str:
    """Return message for a metric id outside the registry."""
    return f"Unknown metric '{metric_id}'"


def invalid_custom_range(start, end) -> str:
    """Return message for a custom date range that cannot be resolved."""
    if start is None or end is None:
        return "Custom date range requires both a start and an end date"
    return f"Start date ({start}) must be on or before end date ({end})"


def unsupported_group_by(report_id: str, group_by: str, allowed) -> str:
    """Return message when a report cannot be grouped by a dimension."""
    options = ", ".join(option.value for option in allowed)
    return f"Report '{report_id}' cannot be grouped by '{group_by}' (choose from: {options})"


def unknown_column(report_id: str, column: str) -> str:
    """Return message for a visible column the report does not offer."""
    return f"Report '{report_id}' has no column '{column}'"


def saved_view_not_found(name: str) -> str:
    """Return message for missing saved view."""
    return f"Saved view '{name}' not found"


def duplicate_saved_view(name: str) -> str:
    """Return message when a saved view name is already taken."""
    return f"Saved view '{name}' already exists"


def empty_dataset() -> str:
    """Return message when no raw records have been loaded."""
    return "No records loaded. Run 'groomreports load FILE' first."
