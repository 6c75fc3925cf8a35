from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()

@router.get("/health")
async def health(request: Request):
    """Reports 503 once the poll loop has died so the supervisor can restart us."""
    task = getattr(request.app.state, "listener_task", None)
    if task is not None and task.done():
        error = task.exception() if not task.cancelled() else None
        return JSONResponse(
            status_code=503,
            content={"status": "stopped", "error": str(error) if error else None},
        )
    return {"status": "ok"}
