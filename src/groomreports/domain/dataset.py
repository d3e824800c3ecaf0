"""Dataset domain service: raw record supply for the reporting engine."""

import logging
from typing import Any, Mapping, Optional, Sequence

from groomreports.database.base import Database
from groomreports.domain.entities import NormalizedDataset, RecordType
from groomreports.domain.errors import ValidationError
from groomreports.domain.normalization import NormalizationService

logger = logging.getLogger(__name__)

COLLECTIONS = tuple(record_type.value for record_type in RecordType)


class DatasetService:
    """Service for loading raw records and producing normalized datasets."""

    def __init__(self, db: Database, normalizer: Optional[NormalizationService] = None):
        """Initialize dataset service.

        Args:
            db: Database instance
            normalizer: Normalization service to reuse across calls
        """
        self.db = db
        self.normalizer = normalizer or NormalizationService()

    def load_collections(self, data: Mapping[str, Any]) -> int:
        """Replace stored raw records with the collections in ``data``.

        Args:
            data: Mapping of collection name to a list of raw records. Only
                the collections present are replaced.

        Returns:
            The new dataset revision

        Raises:
            ValidationError: If a key is not a known collection or a value is
                not a list
        """
        unknown = sorted(set(data) - set(COLLECTIONS))
        if unknown:
            raise ValidationError(
                f"Unknown collection(s): {', '.join(unknown)}. Expected: {', '.join(COLLECTIONS)}"
            )
        for name, records in data.items():
            if not isinstance(records, Sequence) or isinstance(records, (str, bytes)):
                raise ValidationError(f"Collection '{name}' must be a list of records")
        if not data:
            raise ValidationError("No collections to load")

        revision = self.db.replace_collections({name: list(records) for name, records in data.items()})
        logger.info(
            "Loaded %s as revision %d",
            ", ".join(f"{len(records)} {name}" for name, records in data.items()),
            revision,
        )
        return revision

    def raw_collections(self) -> dict[str, list[dict[str, Any]]]:
        """Return every stored raw collection."""
        return {name: self.db.list_records(name) for name in COLLECTIONS}

    def has_records(self) -> bool:
        return self.db.get_revision() > 0

    def record_counts(self) -> dict[str, int]:
        """Return the stored record count per collection."""
        return {name: self.db.count_records(name) for name in COLLECTIONS}

    def get_dataset(self) -> NormalizedDataset:
        """Normalize the stored raw records.

        The normalized dataset is reused while the stored records are
        unchanged; otherwise a new version is produced.
        """
        return self.normalizer.load(self.raw_collections(), revision=self.db.get_revision())
