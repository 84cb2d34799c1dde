"""
Database Layer for CorruptionWatch

Provides:
- PostgreSQL schema (schema.sql) including the get_defaulters procedure
- ReportStore abstraction (InMemory for dev, Postgres for prod)
- Environment-based configuration
"""

from .store import (
    ReportStore,
    ReportFilter,
    InMemoryReportStore,
    PostgresReportStore,
    StoreError,
    StoreTimeoutError,
)
from .config import DatabaseConfig, StoreDriver, get_database_url, get_store_driver

__all__ = [
    "ReportStore",
    "ReportFilter",
    "InMemoryReportStore",
    "PostgresReportStore",
    "StoreError",
    "StoreTimeoutError",
    "DatabaseConfig",
    "StoreDriver",
    "get_database_url",
    "get_store_driver",
]
