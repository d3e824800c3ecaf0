"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from groomreports.domain.entities import SavedView


class Database(ABC):
    """Abstract database interface for groomreports."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Raw record operations
    @abstractmethod
    def replace_collections(self, collections: Mapping[str, Sequence[Mapping[str, Any]]]) -> int:
        """Replace the stored records of each given collection.

        Collections not present in ``collections`` are left untouched.
        Returns the new dataset revision.
        """
        pass

    @abstractmethod
    def list_records(self, collection: str) -> list[dict[str, Any]]:
        """List raw records of a collection in their original order."""
        pass

    @abstractmethod
    def count_records(self, collection: str) -> int:
        """Count raw records of a collection."""
        pass

    @abstractmethod
    def get_revision(self) -> int:
        """Get the current dataset revision (0 before any load)."""
        pass

    # Saved view operations
    @abstractmethod
    def create_saved_view(self, name: str, report_id: str, filters: Mapping[str, Any]) -> int:
        """Create a saved view. Returns saved view ID."""
        pass

    @abstractmethod
    def get_saved_view(self, view_id: int) -> Optional[SavedView]:
        """Get saved view by ID."""
        pass

    @abstractmethod
    def get_saved_view_by_name(self, name: str) -> Optional[SavedView]:
        """Get saved view by name."""
        pass

    @abstractmethod
    def list_saved_views(self, report_id: Optional[str] = None) -> list[SavedView]:
        """List saved views, optionally filtered by report."""
        pass

    @abstractmethod
    def update_saved_view(
        self, view_id: int, report_id: Optional[str] = None, filters: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Update a saved view's report and/or filters."""
        pass

    @abstractmethod
    def delete_saved_view(self, view_id: int) -> None:
        """Delete a saved view."""
        pass
