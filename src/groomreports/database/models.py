"""SQLAlchemy models for the groomreports database."""

from datetime import datetime, UTC

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class RawRecord(Base):
    """One raw record of a collection, stored as the JSON the app exported."""

    __tablename__ = "raw_records"

    id = Column(Integer, primary_key=True)
    collection = Column(String, nullable=False)
    position = Column(Integer, nullable=False)
    record_id = Column(String, nullable=True)
    payload = Column(Text, nullable=False)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_raw_records_collection_position", "collection", "position"),)


class DatasetRevision(Base):
    """Row appended whenever raw records change; the max id is the dataset revision."""

    __tablename__ = "dataset_revisions"

    id = Column(Integer, primary_key=True)
    collections = Column(String, nullable=False)
    record_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class SavedView(Base):
    """Named filter selection for a report."""

    __tablename__ = "saved_views"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    report_id = Column(String, nullable=False)
    filters = Column(Text, nullable=False, default="{}")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
