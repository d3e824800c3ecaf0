"""Database layer for groomreports."""

from groomreports.database.base import Database
from groomreports.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
