"""Integration tests for the /ws/tasks real-time channel."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.src.api.main import create_app
from backend.src.services import config as config_module


@pytest.fixture(autouse=True)
def restore_config_cache():
    """Restore config cache after each test."""
    config_module.reload_config()
    yield
    config_module.reload_config()


@pytest.fixture
def client(monkeypatch, tmp_path: Path):
    """Create FastAPI test client backed by a temporary task database."""
    monkeypatch.setenv("TASKS_DB_PATH", str(tmp_path / "tasks.db"))
    config_module.reload_config()

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.mark.integration
class TestConnect:
    """The first frame on a new connection is the full list."""

    def test_empty_list_on_connect(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            assert ws.receive_json() == {"event": "taskList", "data": []}

    def test_existing_tasks_on_connect(self, client: TestClient):
        ids = [client.post("/tasks", json={"text": t}).json()["task"]["id"] for t in "ABC"]

        with client.websocket_connect("/ws/tasks") as ws:
            frame = ws.receive_json()

        assert frame["event"] == "taskList"
        assert [t["id"] for t in frame["data"]] == ids

    def test_observer_count_tracks_connections(self, client: TestClient):
        assert client.get("/health").json()["observers"] == 0

        with client.websocket_connect("/ws/tasks") as first, client.websocket_connect(
            "/ws/tasks"
        ) as second:
            first.receive_json()
            second.receive_json()
            assert client.get("/health").json()["observers"] == 2


@pytest.mark.integration
class TestRealtimeMutations:
    """Inbound events route through the same mutation path as HTTP."""

    def test_add_task(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            ws.send_json({"event": "addTask", "data": {"text": "buy milk"}})
            added = ws.receive_json()
            refreshed = ws.receive_json()

        assert added["event"] == "taskAdded"
        assert added["data"]["text"] == "buy milk"
        assert added["data"]["completed"] is False
        assert refreshed == {"event": "taskList", "data": [added["data"]]}
        assert client.get("/tasks").json() == [added["data"]]

    def test_task_complete_reaches_all_observers(self, client: TestClient):
        task = client.post("/tasks", json={"text": "buy milk"}).json()["task"]

        with client.websocket_connect("/ws/tasks") as sender, client.websocket_connect(
            "/ws/tasks"
        ) as other:
            sender.receive_json()
            other.receive_json()

            sender.send_json({"event": "taskComplete", "data": task["id"]})

            expected = {"event": "taskUpdated", "data": {**task, "completed": True}}
            assert sender.receive_json() == expected
            assert other.receive_json() == expected

    def test_delete_task(self, client: TestClient):
        task = client.post("/tasks", json={"text": "drop"}).json()["task"]

        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            ws.send_json({"event": "deleteTask", "data": task["id"]})

            assert ws.receive_json() == {"event": "taskDeleted", "data": task["id"]}
            assert ws.receive_json() == {"event": "taskList", "data": []}

    def test_delete_nonexistent_still_broadcasts(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            ws.send_json({"event": "deleteTask", "data": "never-existed"})

            assert ws.receive_json() == {"event": "taskDeleted", "data": "never-existed"}
            assert ws.receive_json() == {"event": "taskList", "data": []}


@pytest.mark.integration
class TestCrossChannel:
    """HTTP and WebSocket mutations are indistinguishable to observers."""

    def test_http_add_is_pushed_to_observers(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            task = client.post("/tasks", json={"text": "from http"}).json()["task"]

            assert ws.receive_json() == {"event": "taskAdded", "data": task}
            assert ws.receive_json() == {"event": "taskList", "data": [task]}

    def test_adds_from_both_channels(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            http_task = client.post("/tasks", json={"text": "A"}).json()["task"]
            ws.receive_json()
            ws.receive_json()

            ws.send_json({"event": "addTask", "data": {"text": "B"}})
            ws_added = ws.receive_json()
            final_list = ws.receive_json()

        assert ws_added["event"] == "taskAdded"
        assert ws_added["data"]["id"] != http_task["id"]
        assert final_list["event"] == "taskList"
        assert {t["text"] for t in final_list["data"]} == {"A", "B"}

    def test_http_toggle_is_pushed_to_observers(self, client: TestClient):
        task = client.post("/tasks", json={"text": "buy milk"}).json()["task"]

        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            client.put(f"/tasks/{task['id']}")

            assert ws.receive_json() == {
                "event": "taskUpdated",
                "data": {**task, "completed": True},
            }


@pytest.mark.integration
class TestRealtimeErrors:
    """Failures are reported to the sender only and never broadcast."""

    def test_toggle_unknown_sends_error_to_sender_only(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as sender, client.websocket_connect(
            "/ws/tasks"
        ) as other:
            sender.receive_json()
            other.receive_json()

            sender.send_json({"event": "taskComplete", "data": "missing"})
            error = sender.receive_json()

            # The next frame the other observer sees comes from a later add.
            task = client.post("/tasks", json={"text": "later"}).json()["task"]
            assert other.receive_json() == {"event": "taskAdded", "data": task}

        assert error == {
            "event": "taskError",
            "data": {"message": "Task not found", "event": "taskComplete"},
        }

    def test_malformed_frame(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            ws.send_text("not json")
            error = ws.receive_json()

        assert error["event"] == "taskError"
        assert error["data"]["message"] == "Malformed message"

    def test_unknown_event(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            ws.send_json({"event": "renameTask", "data": "x"})
            error = ws.receive_json()

        assert error == {
            "event": "taskError",
            "data": {"message": "Unknown event: renameTask", "event": "renameTask"},
        }

    def test_missing_id(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            ws.send_json({"event": "deleteTask", "data": None})
            error = ws.receive_json()

        assert error["event"] == "taskError"
        assert error["data"]["event"] == "deleteTask"

    def test_connection_survives_errors(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()
            ws.send_json({"event": "taskComplete", "data": "missing"})
            ws.receive_json()

            ws.send_json({"event": "addTask", "data": "still here"})

            assert ws.receive_json()["event"] == "taskAdded"

    def test_binary_frame_gets_error_and_connection_stays_open(self, client: TestClient):
        with client.websocket_connect("/ws/tasks") as ws:
            ws.receive_json()

            ws.send_bytes(b'{"event":"addTask","data":"x"}')
            error = ws.receive_json()

            ws.send_json({"event": "addTask", "data": "after binary"})
            added = ws.receive_json()

        assert error == {
            "event": "taskError",
            "data": {"message": "Malformed message: expected a text frame", "event": None},
        }
        assert added["event"] == "taskAdded"
        assert added["data"]["text"] == "after binary"
        assert client.get("/tasks").json() == [added["data"]]
