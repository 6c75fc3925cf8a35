from pydantic import BaseModel, Field
from typing import Optional


class ListenerStatus(BaseModel):
    """Snapshot of a running listener, as reported by the control API."""
    queue_url: Optional[str] = None
    listening: bool = Field(..., description="False once a stop was requested")
    running: bool = Field(..., description="Whether the poll loop thread is still alive")
    error: Optional[str] = Field(None, description="Error that ended the poll loop, if any")

    batches_received: int = 0
    messages_received: int = 0
    messages_processed: int = 0
    messages_deferred: int = Field(0, description="Messages left in the queue because the lease budget ran out")
    last_batch_at: Optional[float] = Field(None, description="Unix time of the last fetch")
