"""Saved view domain service."""

from typing import Optional, Union

from groomreports.database.base import Database
from groomreports.domain.entities import FilterState, ReportId, SavedView
from groomreports.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_saved_view,
    saved_view_not_found,
)
from groomreports.domain.filters import filter_state_to_dict
from groomreports.domain.reports import get_report


class SavedViewService:
    """Service for storing and restoring report filter selections."""

    def __init__(self, db: Database):
        """Initialize saved view service.

        Args:
            db: Database instance
        """
        self.db = db

    def save_view(
        self,
        name: str,
        report_id: Union[ReportId, str],
        state: FilterState,
        overwrite: bool = False,
    ) -> int:
        """Save a filter selection under a name.

        Args:
            name: View name (unique)
            report_id: Report the view belongs to
            state: Filter selections to store (unset fields stay unset)
            overwrite: Replace an existing view with the same name

        Returns:
            Saved view ID

        Raises:
            ValidationError: If the name is empty
            UnknownReportError: If the report id is not registered
            ConflictError: If the name is taken and overwrite is False
        """
        name = name.strip()
        if not name:
            raise ValidationError("Saved view name cannot be empty")
        report = get_report(report_id)
        filters = filter_state_to_dict(state)

        existing = self.db.get_saved_view_by_name(name)
        if existing is not None:
            if not overwrite:
                raise ConflictError(duplicate_saved_view(name))
            self.db.update_saved_view(existing.id, report_id=report.id.value, filters=filters)
            return existing.id

        return self.db.create_saved_view(name=name, report_id=report.id.value, filters=filters)

    def get_view(self, name: str) -> SavedView:
        """Get a saved view by name.

        Raises:
            NotFoundError: If no view has that name
        """
        view = self.db.get_saved_view_by_name(name)
        if view is None:
            raise NotFoundError(saved_view_not_found(name))
        return view

    def list_views(self, report_id: Optional[Union[ReportId, str]] = None) -> list[SavedView]:
        """List saved views, optionally only those of one report."""
        if report_id is None:
            return self.db.list_saved_views()
        return self.db.list_saved_views(report_id=get_report(report_id).id.value)

    def delete_view(self, name: str) -> None:
        """Delete a saved view by name.

        Raises:
            NotFoundError: If no view has that name
        """
        view = self.get_view(name)
        self.db.delete_saved_view(view.id)
