"""Database layer for cashrecon application."""

from cashrecon.database.base import Database
from cashrecon.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
