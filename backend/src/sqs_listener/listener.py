import threading
import time
from typing import Callable, Optional
from .budget import LeaseBudgetTracker
from .config import ListenerConfig
from .processor import MessageProcessor
from .services.queue import QueueService
from .workers.base import Worker
from .logger import get_logger

logger = get_logger(__name__)

class ListenerStats:
    def __init__(self):
        self.batches_received = 0
        self.messages_received = 0
        self.messages_processed = 0
        self.messages_deferred = 0
        self.last_batch_at: Optional[float] = None

    def as_dict(self) -> dict:
        return {
            "batches_received": self.batches_received,
            "messages_received": self.messages_received,
            "messages_processed": self.messages_processed,
            "messages_deferred": self.messages_deferred,
            "last_batch_at": self.last_batch_at,
        }

class SqsListener:
    """
    Polls a queue in batches and processes each message sequentially.

    The stop flag is only checked between batches: a listener asked to stop
    always finishes the batch in flight, and a listener stopped before
    `listen()` is called still polls once.
    """

    def __init__(
        self,
        config: ListenerConfig,
        queue: QueueService,
        worker: Worker,
        clock: Callable[[], float] = time.monotonic,
    ):
        config.ensure_valid_queue_url()
        self.config = config
        self.queue = queue
        self.processor = MessageProcessor(config, queue, worker)
        self.budget = LeaseBudgetTracker(config.visibility_timeout)
        self.stats = ListenerStats()
        self._clock = clock
        self._stop_requested = threading.Event()

    @property
    def listening(self) -> bool:
        return not self._stop_requested.is_set()

    @listening.setter
    def listening(self, value: bool):
        if value:
            self._stop_requested.clear()
        else:
            self._stop_requested.set()

    def stop(self):
        """Requests a graceful stop once the current batch is done."""
        if self.listening:
            logger.info("Stop requested; finishing current batch")
        self.listening = False

    def listen(self):
        """
        Runs the poll loop until stopped.

        Worker, transport and configuration errors end the run and are re-raised.
        """
        logger.info(
            f"Listening on {self.config.queue_url} (batch_size={self.config.batch_size}, "
            f"visibility_timeout={self.config.visibility_timeout}s, wait_time={self.config.wait_time}s)"
        )
        try:
            while True:
                self.poll_once()
                if not self.listening:
                    break
        except Exception as e:
            logger.error(f"Listener stopped on error: {e}", exc_info=True)
            raise
        logger.info(f"Listener stopped after {self.stats.batches_received} batches")

    def poll_once(self) -> int:
        """
        Fetches one batch and processes as much of it as the lease allows.

        Returns:
            int: Number of messages processed and deleted.
        """
        messages = self._receive_messages()

        processed = 0
        for index, message in enumerate(messages):
            now = self._clock()
            if not self.budget.check_budget(now):
                deferred = len(messages) - index
                self.stats.messages_deferred += deferred
                logger.info(
                    f"Not enough visibility time left ({self.budget.time_remaining(now):.2f}s remaining, "
                    f"longest message took {self.budget.longest_elapsed:.2f}s); "
                    f"leaving {deferred} message(s) for redelivery"
                )
                break

            self.processor.handle(message)
            processed += 1
            self.stats.messages_processed += 1

        self.budget.reset()
        return processed

    def _receive_messages(self):
        self.config.ensure_valid_queue_url()

        messages = self.queue.receive_messages(
            self.config.queue_url,
            max_messages=self.config.batch_size,
            visibility_timeout=self.config.visibility_timeout,
            wait_time=self.config.wait_time,
        )
        self.stats.batches_received += 1
        self.stats.messages_received += len(messages)
        self.stats.last_batch_at = time.time()
        if messages:
            logger.info(f"Received batch of {len(messages)} message(s)")
        return messages
