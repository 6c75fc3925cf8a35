import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from fakes import QUEUE_URL
from sqs_listener.services.queue import SQSQueueService


@pytest.fixture
def sqs_client():
    return boto3.client(
        "sqs",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_receive_messages_maps_response(sqs_client):
    service = SQSQueueService(client=sqs_client)
    with Stubber(sqs_client) as stubber:
        stubber.add_response(
            "receive_message",
            {
                "Messages": [
                    {"MessageId": "id-1", "ReceiptHandle": "rh-1", "Body": '{"job": 1}',
                     "Attributes": {"ApproximateReceiveCount": "3"}},
                    {"MessageId": "id-2", "ReceiptHandle": "rh-2", "Body": "plain text"},
                ]
            },
            {
                "QueueUrl": QUEUE_URL,
                "MaxNumberOfMessages": 10,
                "VisibilityTimeout": 10,
                "WaitTimeSeconds": 20,
                "AttributeNames": ["ApproximateReceiveCount"],
            },
        )
        messages = service.receive_messages(QUEUE_URL, max_messages=10, visibility_timeout=10, wait_time=20)
        stubber.assert_no_pending_responses()

    assert [m.message_id for m in messages] == ["id-1", "id-2"]
    assert messages[0].body == '{"job": 1}'
    assert messages[0].receipt_handle == "rh-1"
    assert messages[0].receive_count == 3
    assert messages[1].receive_count == 1


def test_receive_messages_empty_response(sqs_client):
    service = SQSQueueService(client=sqs_client)
    with Stubber(sqs_client) as stubber:
        stubber.add_response("receive_message", {})
        assert service.receive_messages(QUEUE_URL, 1, 10, 0) == []


def test_change_visibility_and_delete(sqs_client):
    service = SQSQueueService(client=sqs_client)
    with Stubber(sqs_client) as stubber:
        stubber.add_response(
            "change_message_visibility",
            {},
            {"QueueUrl": QUEUE_URL, "ReceiptHandle": "rh-1", "VisibilityTimeout": 10},
        )
        stubber.add_response("delete_message", {}, {"QueueUrl": QUEUE_URL, "ReceiptHandle": "rh-1"})

        service.change_message_visibility(QUEUE_URL, "rh-1", 10)
        service.delete_message(QUEUE_URL, "rh-1")
        stubber.assert_no_pending_responses()


def test_send_message_returns_id(sqs_client):
    service = SQSQueueService(client=sqs_client)
    with Stubber(sqs_client) as stubber:
        stubber.add_response(
            "send_message",
            {"MessageId": "id-9", "MD5OfMessageBody": "d41d8cd98f00b204e9800998ecf8427e"},
            {"QueueUrl": QUEUE_URL, "MessageBody": "hello"},
        )
        assert service.send_message(QUEUE_URL, "hello") == "id-9"


def test_client_errors_propagate_unmodified(sqs_client):
    service = SQSQueueService(client=sqs_client)
    with Stubber(sqs_client) as stubber:
        stubber.add_client_error(
            "change_message_visibility",
            service_error_code="ReceiptHandleIsInvalid",
            http_status_code=400,
        )
        with pytest.raises(ClientError) as exc_info:
            service.change_message_visibility(QUEUE_URL, "stale", 10)

    assert exc_info.value.response["Error"]["Code"] == "ReceiptHandleIsInvalid"
