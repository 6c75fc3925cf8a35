from .config import ListenerConfig
from .services.queue import QueueMessage, QueueService
from .workers.base import MissingWorkerError, Worker
from .logger import get_logger

logger = get_logger(__name__)

class MessageProcessor:
    def __init__(self, config: ListenerConfig, queue: QueueService, worker: Worker):
        if worker is None:
            raise MissingWorkerError("A worker is required to process messages")
        self.config = config
        self.queue = queue
        self.worker = worker

    def handle(self, message: QueueMessage):
        """
        Processes one message while holding its lease.

        1. Validates the queue URL before touching the queue.
        2. Extends the message's visibility so it doesn't expire mid-work.
        3. Hands the body to the worker.
        4. Deletes the message once the worker returns.

        Errors from any step propagate. If the worker raises, the message is
        not deleted and becomes visible again when its lease runs out.

        Args:
            message (QueueMessage): The message to process.
        """
        self.config.ensure_valid_queue_url()

        self.queue.change_message_visibility(
            self.config.queue_url, message.receipt_handle, self.config.visibility_timeout
        )

        logger.debug(f"Working on message {message.message_id} (receive #{message.receive_count})")
        self.worker.work(message.body)

        # Remove the message now that we're done
        self.queue.delete_message(self.config.queue_url, message.receipt_handle)
        logger.debug(f"Message {message.message_id} processed and deleted")
