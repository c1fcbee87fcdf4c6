from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .dependencies import get_pipeline, get_sms_source, get_store
from .errors import StorageError
from .logging_config import configure_logging, get_logger
from .routers import insights, sms, transactions
from .services.ingestion import PendingQueuePoller
from .services.sms_source import LocalSmsSource

logger = get_logger(__name__)


def _provider(app: FastAPI, dependency):
    # Honour app.dependency_overrides outside of request handling too.
    return app.dependency_overrides.get(dependency, dependency)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    store = _provider(app, get_store)()

    # Drain the background capture queue periodically when there is one.
    app.state.poller = None
    source = _provider(app, get_sms_source)()
    if isinstance(source, LocalSmsSource) and settings.poll_interval_seconds > 0:
        pipeline_override = app.dependency_overrides.get(get_pipeline)
        pipeline = pipeline_override() if pipeline_override else get_pipeline(store)
        app.state.poller = PendingQueuePoller(pipeline, source, settings.poll_interval_seconds)
        app.state.poller.start()
    try:
        yield
    finally:
        if app.state.poller is not None:
            app.state.poller.stop(timeout=settings.poll_interval_seconds)


app = FastAPI(title="Xpentrik SMS Expense Backend", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("[DB] %s", exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


app.include_router(transactions.router, prefix="/api", tags=["transactions"])
app.include_router(sms.router, prefix="/api", tags=["sms"])
app.include_router(insights.router, prefix="/api", tags=["insights"])


@app.get("/")
async def root():
    return {"message": "Xpentrik backend is running"}
