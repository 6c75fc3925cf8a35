from fastapi import APIRouter, Request
from ..models.listener import ListenerStatus
from ..logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

def listener_status(request: Request) -> ListenerStatus:
    listener = request.app.state.listener
    task = getattr(request.app.state, "listener_task", None)

    running = task is not None and not task.done()
    error = None
    if task is not None and task.done() and not task.cancelled() and task.exception():
        error = str(task.exception())

    return ListenerStatus(
        queue_url=listener.config.queue_url,
        listening=listener.listening,
        running=running,
        error=error,
        **listener.stats.as_dict(),
    )

@router.get("/listener", response_model=ListenerStatus)
async def get_listener(request: Request):
    return listener_status(request)

@router.post("/listener/stop", response_model=ListenerStatus)
async def stop_listener(request: Request):
    """Asks the listener to stop after the batch in flight."""
    logger.info("Stop requested via API")
    request.app.state.listener.stop()
    return listener_status(request)
