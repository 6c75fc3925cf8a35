from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import urlparse
import json
import os
import time
import glob
import uuid
import boto3
from pathlib import Path
from ..config import Settings
from ..logger import get_logger

logger = get_logger(__name__)

class QueueMessage:
    def __init__(self, message_id: str, body: str, receipt_handle: str, receive_count: int = 1):
        self.message_id = message_id
        self.body = body
        self.receipt_handle = receipt_handle
        self.receive_count = receive_count

    def __repr__(self):
        return f"QueueMessage(message_id={self.message_id!r}, receive_count={self.receive_count})"

class LocalQueueError(RuntimeError):
    pass

class QueueService(ABC):
    @abstractmethod
    def receive_messages(self, queue_url: str, max_messages: int, visibility_timeout: int, wait_time: int) -> List[QueueMessage]:
        """Fetches up to max_messages, hiding each for visibility_timeout seconds."""
        pass

    @abstractmethod
    def change_message_visibility(self, queue_url: str, receipt_handle: str, visibility_timeout: int):
        """Resets the lease of a received message to visibility_timeout seconds from now."""
        pass

    @abstractmethod
    def delete_message(self, queue_url: str, receipt_handle: str):
        pass

    @abstractmethod
    def send_message(self, queue_url: str, body: str) -> str:
        pass

class LocalQueueService(QueueService):
    """File-based queue for local development.

    Each message is a JSON file holding the body, when it was sent, when it
    becomes visible again and how many times it was received.
    """
    def __init__(self, base_dir: str, poll_interval: float = 0.5):
        self.base_dir = Path(base_dir)
        self.poll_interval = poll_interval

    def _queue_dir(self, queue_url: str) -> Path:
        name = urlparse(queue_url).path.rstrip("/").rsplit("/", 1)[-1] or "default"
        queue_dir = self.base_dir / name
        queue_dir.mkdir(parents=True, exist_ok=True)
        return queue_dir

    def _read(self, path: str) -> dict:
        with open(path, "r") as f:
            return json.load(f)

    def _write(self, path: str, record: dict):
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w") as f:
            json.dump(record, f)
        os.replace(tmp_path, path)

    def send_message(self, queue_url: str, body: str) -> str:
        """
        Writes a message to a JSON file in the queue directory.

        Args:
            queue_url (str): The queue address; its last path segment names the directory.
            body (str): The message body.

        Returns:
            str: The unique ID of the created message.
        """
        msg_id = str(uuid.uuid4())
        file_path = self._queue_dir(queue_url) / f"{msg_id}.json"
        self._write(str(file_path), {"body": body, "sent_at": time.time_ns(), "visible_at": 0.0, "receive_count": 0})
        logger.info(f"Queued local message {msg_id}")
        return msg_id

    def receive_messages(self, queue_url: str, max_messages: int, visibility_timeout: int, wait_time: int) -> List[QueueMessage]:
        """
        Reads visible messages in the order they were sent and hides them for visibility_timeout.
        Long-polls for up to wait_time seconds when nothing is visible.

        Args:
            queue_url (str): The queue address.
            max_messages (int): The maximum number of messages to retrieve.
            visibility_timeout (int): Seconds each received message stays hidden.
            wait_time (int): Seconds to wait for a message before returning empty.

        Returns:
            List[QueueMessage]: A list of retrieved messages.
        """
        queue_dir = self._queue_dir(queue_url)
        deadline = time.time() + wait_time
        while True:
            messages = self._receive_visible(queue_dir, max_messages, visibility_timeout)
            if messages or time.time() >= deadline:
                return messages
            time.sleep(min(self.poll_interval, max(deadline - time.time(), 0)))

    def _receive_visible(self, queue_dir: Path, max_messages: int, visibility_timeout: int) -> List[QueueMessage]:
        records = []
        for fpath in glob.glob(str(queue_dir / "*.json")):
            try:
                records.append((fpath, self._read(fpath)))
            except FileNotFoundError:
                # Deleted by another consumer between glob and open
                continue
        records.sort(key=lambda item: item[1]["sent_at"])

        now = time.time()
        messages = []
        for fpath, record in records:
            if len(messages) >= max_messages:
                break
            if record["visible_at"] > now:
                continue
            record["visible_at"] = now + visibility_timeout
            record["receive_count"] += 1
            self._write(fpath, record)
            messages.append(QueueMessage(Path(fpath).stem, record["body"], receipt_handle=fpath,
                                         receive_count=record["receive_count"]))
        return messages

    def change_message_visibility(self, queue_url: str, receipt_handle: str, visibility_timeout: int):
        """
        Moves the visibility deadline of a received message.

        Args:
            queue_url (str): The queue address.
            receipt_handle (str): The file path of the message.
            visibility_timeout (int): Seconds from now until the message is visible again.

        Raises:
            LocalQueueError: If the message no longer exists.
        """
        try:
            record = self._read(receipt_handle)
        except FileNotFoundError:
            raise LocalQueueError(f"Message {receipt_handle} does not exist or was already deleted")
        record["visible_at"] = time.time() + visibility_timeout
        self._write(receipt_handle, record)

    def delete_message(self, queue_url: str, receipt_handle: str):
        """
        Deletes the message file (simulating SQS delete).

        Args:
            queue_url (str): The queue address.
            receipt_handle (str): The file path of the message to delete.
        """
        if os.path.exists(receipt_handle):
            os.remove(receipt_handle)
        else:
            logger.warning(f"Message to delete not found: {receipt_handle}")

class SQSQueueService(QueueService):
    def __init__(self, region_name: str = "us-east-1", endpoint_url: Optional[str] = None, client=None):
        self.sqs = client or boto3.client("sqs", region_name=region_name, endpoint_url=endpoint_url)

    def receive_messages(self, queue_url: str, max_messages: int, visibility_timeout: int, wait_time: int) -> List[QueueMessage]:
        """
        Long-polls the AWS SQS queue for new messages.

        Args:
            queue_url (str): The SQS queue URL.
            max_messages (int): The maximum number of messages to retrieve (1-10).
            visibility_timeout (int): Seconds the received messages stay hidden.
            wait_time (int): Long polling wait in seconds (0-20).

        Returns:
            List[QueueMessage]: A list of retrieved messages, in the order SQS returned them.
        """
        response = self.sqs.receive_message(
            QueueUrl=queue_url,
            MaxNumberOfMessages=max_messages,
            VisibilityTimeout=visibility_timeout,
            WaitTimeSeconds=wait_time,
            AttributeNames=["ApproximateReceiveCount"],
        )

        if "Messages" not in response:
            return []

        messages = []
        for msg in response["Messages"]:
            attributes = msg.get("Attributes", {})
            messages.append(QueueMessage(
                message_id=msg["MessageId"],
                body=msg["Body"],
                receipt_handle=msg["ReceiptHandle"],
                receive_count=int(attributes.get("ApproximateReceiveCount", 1)),
            ))
        return messages

    def change_message_visibility(self, queue_url: str, receipt_handle: str, visibility_timeout: int):
        """
        Extends the lease of a received message.

        Args:
            queue_url (str): The SQS queue URL.
            receipt_handle (str): The receipt handle provided when receiving the message.
            visibility_timeout (int): New visibility timeout, counted from now.
        """
        self.sqs.change_message_visibility(
            QueueUrl=queue_url,
            ReceiptHandle=receipt_handle,
            VisibilityTimeout=visibility_timeout,
        )

    def delete_message(self, queue_url: str, receipt_handle: str):
        """
        Deletes a message from the AWS SQS queue using its receipt handle.

        Args:
            queue_url (str): The SQS queue URL.
            receipt_handle (str): The receipt handle provided when receiving the message.
        """
        self.sqs.delete_message(
            QueueUrl=queue_url,
            ReceiptHandle=receipt_handle,
        )

    def send_message(self, queue_url: str, body: str) -> str:
        """
        Sends a message to an AWS SQS queue.

        Args:
            queue_url (str): The SQS queue URL.
            body (str): The message body.

        Returns:
            str: The SQS MessageId.
        """
        response = self.sqs.send_message(QueueUrl=queue_url, MessageBody=body)

        msg_id = response.get("MessageId")
        logger.info(f"Queued SQS message {msg_id}")
        return msg_id

def get_queue(settings: Settings) -> QueueService:
    if settings.APP_ENV == "local" or settings.APP_ENV == "local_mock":
        return LocalQueueService(base_dir=os.path.join(settings.WORK_DIR, "queue"))
    return SQSQueueService(region_name=settings.AWS_REGION, endpoint_url=settings.SQS_ENDPOINT_URL)
