"""Mapper functions to convert between domain models and SQLAlchemy models."""

import json
from typing import Any

from groomreports.domain import entities as domain
from groomreports.domain.filters import filter_state_from_dict
from groomreports.database.models import (
    RawRecord as ORMRawRecord,
    SavedView as ORMSavedView,
)


def raw_record_to_dict(orm_record: ORMRawRecord) -> dict[str, Any]:
    """Decode a stored raw record back into the mapping it was loaded from."""
    return json.loads(orm_record.payload)


def saved_view_to_domain(orm_view: ORMSavedView) -> domain.SavedView:
    """Convert SQLAlchemy SavedView model to domain SavedView entity."""
    return domain.SavedView(
        id=orm_view.id,
        name=orm_view.name,
        report_id=domain.ReportId(orm_view.report_id),
        filters=filter_state_from_dict(json.loads(orm_view.filters or "{}")),
        created_at=orm_view.created_at,
        updated_at=orm_view.updated_at,
    )
