"""
Shared Report Store

Builds the process-wide ReportStore from configuration.
Supports both in-memory (development) and PostgreSQL (production) modes.

Mode is determined by environment variables:
- REPORTSTORE_DRIVER: Explicit driver selection (memory, psycopg2)
- DATABASE_URL or DATABASE_HOST: Database connection (auto-selects psycopg2)
- Neither set: Use in-memory (default for development)

SEEDING:
- Seeding only happens if the store is empty
- Auto-seeding is DISABLED by default
- Set ENABLE_AUTO_SEED=1 to enable demo data seeding
"""

import os
import random
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Optional

import psycopg2

from corruptionwatch.db.config import DatabaseConfig, StoreDriver, get_database_url, get_store_driver
from corruptionwatch.db.store import InMemoryReportStore, PostgresReportStore, ReportStore
from corruptionwatch.observability import get_logger
from corruptionwatch.schemas import Category, ReportCreate, ReportStatus

logger = get_logger(__name__)

_store: Optional[ReportStore] = None
_store_lock = Lock()


def _create_report_store() -> ReportStore:
    driver = get_store_driver()

    if driver == StoreDriver.MEMORY:
        logger.info("Using in-memory report store (no persistence)")
        return InMemoryReportStore()

    db_url = get_database_url()
    if db_url is None:
        logger.warning(f"Driver is {driver.value} but no database configured; using in-memory store")
        return InMemoryReportStore()

    config = DatabaseConfig.from_url(db_url) if "://" in db_url else DatabaseConfig.from_env()

    def connection_factory():
        return psycopg2.connect(config.to_dsn())

    # Fail at startup rather than on the first request
    connection_factory().close()

    logger.info(
        "PostgreSQL report store ready",
        database=config.to_url(include_password=False),
    )
    return PostgresReportStore(connection_factory, statement_timeout_ms=config.statement_timeout_ms)


def get_report_store() -> ReportStore:
    """Process-wide store, created on first use."""
    global _store
    with _store_lock:
        if _store is None:
            _store = _create_report_store()
        return _store


# ============================================================
# DEMO DATA
# ============================================================

DEMO_PEOPLE = [
    ("R. K. Verma", "Tehsildar", "Lucknow"),
    ("S. Iyer", "Sub-Registrar", "Chennai"),
    ("A. Deshmukh", "Municipal Engineer", "Pune"),
    ("M. Banerjee", "Ration Inspector", "Kolkata"),
    ("P. Singh", "Traffic Inspector", "Delhi"),
    ("N. Reddy", "Revenue Officer", "Hyderabad"),
    ("K. Patel", "Building Inspector", "Ahmedabad"),
    ("J. Fernandes", "Excise Officer", "Goa"),
]


def seed_demo_reports(store: ReportStore, count: int = 120, seed: int = 7) -> int:
    """
    Fill an empty store with reproducible demo reports.

    Returns the number of reports created (0 if the store already had data).
    """
    if store.count_reports() > 0:
        return 0

    rng = random.Random(seed)
    categories = list(Category)
    now = datetime.now(timezone.utc)
    created_ids: list[str] = []

    for i in range(count):
        # Skew towards the first few people so the directory has repeat offenders
        name, designation, region = DEMO_PEOPLE[min(int(rng.expovariate(0.45)), len(DEMO_PEOPLE) - 1)]
        anonymous = rng.random() < 0.4
        report = store.create_report(ReportCreate(
            corrupt_person_name=name,
            designation=designation,
            area_region=region,
            description=f"Demo report #{i + 1} filed {(now - timedelta(days=i)).date().isoformat()}.",
            category=rng.choice(categories),
            approached_authorities=rng.random() < 0.3,
            was_resolved=rng.random() < 0.1,
            is_anonymous=anonymous,
            reporter_name=None if anonymous else f"Citizen {i + 1}",
            reporter_email=None if anonymous else f"citizen{i + 1}@example.org",
        ))
        created_ids.append(report.id)

    # Spread moderation states so the dashboards have something to show
    verified = created_ids[: count // 4]
    resolved = created_ids[count // 4: count // 4 + count // 10]
    if verified:
        store.update_status(verified, ReportStatus.VERIFIED.value)
    if resolved:
        store.update_status(resolved, ReportStatus.RESOLVED.value)

    logger.info("Seeded demo reports", report_count=len(created_ids))
    return len(created_ids)


def seed_demo_data(store: ReportStore) -> int:
    """Seed only when ENABLE_AUTO_SEED=1."""
    if os.environ.get("ENABLE_AUTO_SEED", "").lower() not in ("1", "true", "yes"):
        return 0
    return seed_demo_reports(store)
