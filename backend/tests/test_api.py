import logging
import time

from fastapi.testclient import TestClient

from fakes import QUEUE_URL, FakeQueue, RecordingWorker, make_messages
from sqs_listener.listener import SqsListener
from sqs_listener.main import create_app


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


def test_health_status_and_stop(config):
    queue = FakeQueue([make_messages(2)], idle_sleep=0.01)
    listener = SqsListener(config, queue, RecordingWorker())

    with TestClient(create_app(listener)) as client:
        assert client.get("/health").json() == {"status": "ok"}
        assert wait_for(lambda: client.get("/listener").json()["messages_processed"] == 2)

        status = client.get("/listener").json()
        assert status["queue_url"] == QUEUE_URL
        assert status["listening"] is True
        assert status["running"] is True
        assert status["error"] is None

        stopped = client.post("/listener/stop").json()
        assert stopped["listening"] is False

        assert wait_for(lambda: client.get("/listener").json()["running"] is False)
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json() == {"status": "stopped", "error": None}


def test_health_reports_dead_listener(config):
    queue = FakeQueue([make_messages(1)], idle_sleep=0.01)
    listener = SqsListener(config, queue, RecordingWorker(fail_on="body-m1"))

    with TestClient(create_app(listener)) as client:
        assert wait_for(lambda: client.get("/health").status_code == 503)

        assert client.get("/health").json() == {"status": "stopped", "error": "failed on body-m1"}
        status = client.get("/listener").json()
        assert status["running"] is False
        assert status["error"] == "failed on body-m1"
        assert status["messages_processed"] == 0


def test_requests_are_logged_except_healthy_probes(config, caplog):
    queue = FakeQueue(idle_sleep=0.01)
    listener = SqsListener(config, queue, RecordingWorker())

    with caplog.at_level(logging.INFO, logger="sqs_listener.main"):
        with TestClient(create_app(listener)) as client:
            client.get("/health")
            client.get("/listener")

    request_lines = [r.getMessage() for r in caplog.records if r.name == "sqs_listener.main" and "->" in r.getMessage()]
    assert len(request_lines) == 1
    assert request_lines[0].startswith("GET /listener -> 200")
