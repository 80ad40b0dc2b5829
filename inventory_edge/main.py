import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from inventory_edge.api.v1.routes_backup import router as backup_router
from inventory_edge.api.v1.routes_connectivity import router as connectivity_router
from inventory_edge.api.v1.routes_entities import router as entities_router
from inventory_edge.api.v1.routes_remote import router as remote_router
from inventory_edge.api.v1.routes_scan import router as scan_router
from inventory_edge.api.v1.routes_stock import router as stock_router
from inventory_edge.api.v1.routes_sync import router as sync_router
from inventory_edge.core.config import settings
from inventory_edge.core.errors import (
    DatabaseIOFailure,
    DuplicateNaturalKey,
    InvalidHierarchy,
    NotFoundError,
    PolicyViolation,
    ReferentialConflict,
    RemoteRejected,
    RemoteUnavailable,
)
from inventory_edge.core.logging import configure_logging
from inventory_edge.core.state import ConnectivityState
from inventory_edge.db.base import create_db_and_tables
from inventory_edge.domain.scan.service import ScanQueue
from inventory_edge.domain.sync.monitor import ConnectivityMonitor
from inventory_edge.domain.sync.service import SyncEngine
from inventory_edge.remote.client import RemoteStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    await create_db_and_tables()

    # offline until the first check, so a reachable remote at boot triggers a catch-up sync
    connectivity = ConnectivityState(online=False, offline_mode=settings.OFFLINE_MODE)
    remote = RemoteStore()
    app.state.connectivity = connectivity
    app.state.remote = remote
    app.state.scan_queue = ScanQueue(connectivity, remote)
    app.state.sync_engine = SyncEngine(remote, connectivity, scan_queue=app.state.scan_queue)
    app.state.connectivity_monitor = ConnectivityMonitor(connectivity, remote, app.state.sync_engine)

    checker = None
    if settings.CONNECTIVITY_CHECK_SECONDS > 0:
        checker = asyncio.create_task(app.state.connectivity_monitor.run_forever())
    yield
    if checker is not None:
        checker.cancel()
        with suppress(asyncio.CancelledError):
            await checker
    await remote.close()


app = FastAPI(title="Inventory Edge", version="0.1.0", lifespan=lifespan)

app.include_router(scan_router)
app.include_router(stock_router)
app.include_router(entities_router)
app.include_router(sync_router)
app.include_router(backup_router)
app.include_router(connectivity_router)
app.include_router(remote_router)


def _error(status_code: int, exc: Exception, **extra):
    return JSONResponse(status_code=status_code, content={"error": str(exc), **extra})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(ReferentialConflict)
async def referential_conflict_handler(request: Request, exc: ReferentialConflict):
    return _error(status.HTTP_409_CONFLICT, exc, dependents=exc.dependents)


@app.exception_handler(DuplicateNaturalKey)
async def duplicate_handler(request: Request, exc: DuplicateNaturalKey):
    return _error(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(PolicyViolation)
async def policy_handler(request: Request, exc: PolicyViolation):
    return _error(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(InvalidHierarchy)
async def hierarchy_handler(request: Request, exc: InvalidHierarchy):
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)


@app.exception_handler(ValidationError)
async def payload_handler(request: Request, exc: ValidationError):
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(DatabaseIOFailure)
async def database_handler(request: Request, exc: DatabaseIOFailure):
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


@app.exception_handler(RemoteUnavailable)
async def remote_unavailable_handler(request: Request, exc: RemoteUnavailable):
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


@app.exception_handler(RemoteRejected)
async def remote_rejected_handler(request: Request, exc: RemoteRejected):
    return _error(status.HTTP_502_BAD_GATEWAY, exc, remote_status=exc.status)


@app.get("/health")
async def health():
    return {"status": "ok"}
