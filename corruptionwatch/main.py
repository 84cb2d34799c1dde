"""
CorruptionWatch - Report Aggregation & Analytics

Main application entry point.

Citizens file corruption reports; the public browses the defaulter
directory, the heat map and the statistics; administrators moderate.
Every view is recomputed from the report store on each request.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from corruptionwatch import __version__
from corruptionwatch.api import routes_admin, routes_public
from corruptionwatch.core import AnalyticsService
from corruptionwatch.observability import (
    RequestContextMiddleware,
    check_health,
    get_logger,
    get_metrics,
    setup_logging,
)
from corruptionwatch.web.shared_store import get_report_store, seed_demo_data

# Setup logging at import time
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Tests may install their own store before startup
    if getattr(app.state, "report_store", None) is None:
        app.state.report_store = get_report_store()
    app.state.analytics = AnalyticsService(app.state.report_store)

    seeded = seed_demo_data(app.state.report_store)

    logger.info(
        "Application startup complete",
        store_type=type(app.state.report_store).__name__,
        seeded_reports=seeded,
    )

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    title="CorruptionWatch",
    version=__version__,
    description="""
## Corruption Report Analytics

Aggregated, read-only views over citizen corruption reports, and
moderation tools for administrators.

### Views

- **Defaulter directory**: people with repeated reports, with a severity tier
- **Heat map**: report density per region, with coordinates where known
- **Statistics**: headline totals, top regions and the category split

### Severity tiers

| Reports | Tier |
|---|---|
| 40+ | critical |
| 20-39 | high |
| 10-19 | medium |
| below 10 | low |

### Failure behaviour

Read endpoints degrade to empty views carrying an `error` or `warnings`
field. Bulk moderation reports per-batch success and failure counts.
""",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o for o in os.environ.get("CORRUPTIONWATCH_CORS_ORIGINS", "").split(",") if o],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(routes_public.router)
app.include_router(routes_admin.router)


@app.get("/health", tags=["Operations"])
def health():
    status = check_health(report_store=getattr(app.state, "report_store", None))
    return JSONResponse(
        status_code=200 if status.healthy else 503,
        content={
            "healthy": status.healthy,
            "checks": status.checks,
            "duration_ms": status.duration_ms,
        },
    )


@app.get("/metrics", tags=["Operations"])
def metrics():
    return get_metrics().get_summary()
