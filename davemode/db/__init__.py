"""
DaveMode Database Package

Database layer with dual SQLite and PostgreSQL support.
"""

from davemode.db.database import (
    Database,
    DatabaseProtocol,
    SQLiteDatabase,
    PostgresDatabase,
    get_database,
)
from davemode.db.schema import SCHEMA_SQLITE, SCHEMA_POSTGRES

__all__ = [
    "Database",
    "DatabaseProtocol",
    "SQLiteDatabase",
    "PostgresDatabase",
    "get_database",
    "SCHEMA_SQLITE",
    "SCHEMA_POSTGRES",
]
