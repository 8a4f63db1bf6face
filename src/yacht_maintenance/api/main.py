import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from yacht_maintenance.api.dependencies import STAFF_PREFIX
from yacht_maintenance.api.routes import (
    assessments,
    components,
    notifications,
    records,
    schedules,
    trips,
    usage,
    valuation,
    yachts,
)
from yacht_maintenance.config.settings import get_settings
from yacht_maintenance.errors import YachtMaintenanceError
from yacht_maintenance.models.database import get_engine, init_db

logger = logging.getLogger("yacht_maintenance.api")

ROUTERS = [
    yachts.router,
    components.router,
    trips.router,
    records.router,
    assessments.router,
    usage.router,
    schedules.router,
    valuation.router,
    notifications.router,
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=get_settings().log_level.upper())
    logger.info("Starting yacht-maintenance API")
    engine = get_engine()
    init_db(engine)
    yield
    logger.info("Shutting down yacht-maintenance API")


app = FastAPI(
    title="yacht-maintenance API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed = time.time() - start
    logger.info(
        "%s %s %d %.3fs",
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    return response


@app.exception_handler(YachtMaintenanceError)
async def handle_domain_error(request: Request, exc: YachtMaintenanceError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    else:
        logger.info("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "error_code": exc.error_code,
            "details": exc.details,
        },
    )


# Members and owners use /api/v1; staff tools use the same resources under
# the staff prefix, which puts the request in the staff policy scope.
for router in ROUTERS:
    app.include_router(router, prefix="/api/v1")
    app.include_router(router, prefix=STAFF_PREFIX)


@app.get("/api/v1/health")
def health():
    """Root-level health check."""
    return {"status": "ok", "service": "yacht-maintenance"}
