from .base import Worker
from ..logger import get_logger

logger = get_logger(__name__)

class LogWorker(Worker):
    """Logs each message body. Handy for smoke-testing a queue."""

    def __init__(self, max_chars: int = 200):
        self.max_chars = max_chars

    def work(self, body: str) -> None:
        preview = body if len(body) <= self.max_chars else body[:self.max_chars] + "..."
        logger.info(f"Received message body ({len(body)} chars): {preview}")
