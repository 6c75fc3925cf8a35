from contextlib import asynccontextmanager
from typing import Optional
import asyncio
import time
from fastapi import FastAPI, Request
from .routers import health, listener as listener_router
from .config import Settings
from .listener import SqsListener
from .worker import build_listener
from .logger import configure_logging, get_logger

logger = get_logger(__name__)

QUIET_PATHS = {"/health"}

async def log_requests(request: Request, call_next):
    """Logs one line per request; successful health probes are skipped."""
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} raised {type(e).__name__}: {e}", exc_info=True)
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    if request.url.path not in QUIET_PATHS or response.status_code >= 300:
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
    return response

def _log_listener_exit(task: asyncio.Task):
    if task.cancelled():
        return
    if task.exception() is not None:
        logger.error(f"Listener thread died: {task.exception()}")
    else:
        logger.info("Listener thread exited")

def create_app(listener: Optional[SqsListener] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if listener is None:
            settings = Settings()
            configure_logging(settings.LOG_LEVEL)
            app.state.listener = build_listener(settings)
        else:
            app.state.listener = listener

        # The poll loop blocks, so it gets its own thread
        logger.info("Starting listener thread...")
        task = asyncio.create_task(asyncio.to_thread(app.state.listener.listen))
        task.add_done_callback(_log_listener_exit)
        app.state.listener_task = task

        yield

        # Let the batch in flight finish before shutting down
        logger.info("Stopping listener; waiting for the current batch...")
        app.state.listener.stop()
        try:
            await task
        except Exception as e:
            logger.warning(f"Listener had already failed: {e}")

    app = FastAPI(
        title="SQS Listener",
        description="Lease-aware SQS consumer with a control API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.middleware("http")(log_requests)

    app.include_router(health.router, tags=["Health"])
    app.include_router(listener_router.router, tags=["Listener"])
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info(f"Starting control API on port {settings.API_PORT} (Env: {settings.APP_ENV})")
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
