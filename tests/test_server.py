"""Tests for the chat relay server."""

import random
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketTestSession

from relay_bot.chat import ChatHub
from relay_bot.chat.server import PLACEHOLDER_PAGE, create_app
from relay_bot.config import Config, GateConfig, TypingConfig
from relay_bot.coordinator import WELCOME_TEMPLATE, Coordinator
from relay_bot.core import LocalResponder, ResponseCategory


def receive_until(
    ws: WebSocketTestSession,
    predicate: Callable[[dict], bool],
    limit: int = 20,
) -> list[dict]:
    """Read frames until one matches. Returns every frame read."""
    frames = []
    for _ in range(limit):
        frame = ws.receive_json()
        frames.append(frame)
        if predicate(frame):
            return frames
    raise AssertionError(f"No matching frame in {frames}")


def is_assistant_message(frame: dict) -> bool:
    return frame["event"] == "chat message" and bool(frame["data"].get("is_assistant"))


def join(ws: WebSocketTestSession, username: str) -> list[dict]:
    """Join and wait for the assistant's welcome."""
    ws.send_json({"event": "join", "data": username})
    return receive_until(ws, is_assistant_message)


@pytest.fixture
def hub() -> ChatHub:
    return ChatHub()


@pytest.fixture
def coordinator(hub: ChatHub, no_delay_typing: TypingConfig) -> Coordinator:
    config = Config(gate=GateConfig(idle_prob=0.0), typing=no_delay_typing)
    return Coordinator.from_config(config, transport=hub, rng=random.Random(7))


@pytest.fixture
def client(hub: ChatHub, coordinator: Coordinator) -> Iterator[TestClient]:
    app = create_app(coordinator, hub, welcome_delay=0, run_sweeper=False)
    with TestClient(app) as client:
        yield client


class TestHttpRoutes:
    def test_placeholder_page(self, client: TestClient):
        """Without a static directory the root serves a placeholder."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == PLACEHOLDER_PAGE

    def test_static_index(self, hub: ChatHub, coordinator: Coordinator, tmp_path: Path):
        """A static index.html is served when present."""
        (tmp_path / "index.html").write_text("<p>chat</p>")
        app = create_app(coordinator, hub, static_dir=tmp_path, run_sweeper=False)
        with TestClient(app) as client:
            assert client.get("/").text == "<p>chat</p>"
            assert client.get("/static/index.html").status_code == 200

    def test_shutdown_settles_pending_tasks(self, hub: ChatHub, coordinator: Coordinator):
        """Replies still scheduled at shutdown are cancelled and awaited."""
        app = create_app(coordinator, hub, welcome_delay=60, run_sweeper=False)
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"event": "join", "data": "Alice"})
                receive_until(ws, lambda f: f["event"] == "chat message")
            assert len(app.state.background_tasks) == 1

        assert app.state.background_tasks == set()

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "online": 0, "contexts": 0}


class TestChatSocket:
    def test_join_flow(self, client: TestClient):
        """Joining yields the count, a system welcome and the assistant's welcome."""
        with client.websocket_connect("/ws") as ws:
            frames = join(ws, "Alice")

        assert frames[0] == {"event": "online users", "data": 1}
        system = frames[1]
        assert system["event"] == "chat message"
        assert system["data"]["is_system"] is True
        assert "Alice" in system["data"]["text"]
        assert frames[-1]["data"]["text"] == WELCOME_TEMPLATE.format(sender="Alice")
        assert frames[-1]["data"]["sender"] == "ChatBot AI"

    def test_join_accepts_object_payload(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join", "data": {"username": "Bob"}})
            assert ws.receive_json() == {"event": "online users", "data": 1}

    def test_greeting_gets_answered(self, client: TestClient):
        """A greeting is answered with typing indicators around the reply."""
        with client.websocket_connect("/ws") as ws:
            join(ws, "Alice")
            ws.send_json({"event": "chat message", "data": "hi"})
            frames = receive_until(ws, is_assistant_message)

        events = [f["event"] for f in frames]
        assert events == ["typing", "stop typing", "chat message"]
        assert frames[0]["data"] == "ChatBot AI"
        reply = frames[-1]["data"]["text"]
        assert reply in LocalResponder().templates(ResponseCategory.GREETING, "Alice")

    def test_quiet_message_not_answered(self, client: TestClient):
        """Messages the gate rejects are relayed but never answered."""
        with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
            join(alice, "Alice")
            join(bob, "Bob")
            receive_until(alice, lambda f: f["event"] == "user joined")

            bob.send_json({"event": "chat message", "data": "just lurking"})
            relayed = alice.receive_json()
            assert relayed["event"] == "chat message"
            assert relayed["data"] == {
                "sender": "Bob",
                "text": "just lurking",
                "timestamp": relayed["data"]["timestamp"],
            }

            # Next thing Alice sees is the answer to her own question
            alice.send_json({"event": "chat message", "data": "anyone here?"})
            frames = receive_until(alice, is_assistant_message)
            assert [f["event"] for f in frames] == ["typing", "stop typing", "chat message"]

    def test_presence_broadcast(self, client: TestClient):
        """Others hear about joins and departures."""
        with client.websocket_connect("/ws") as alice:
            join(alice, "Alice")
            with client.websocket_connect("/ws") as bob:
                join(bob, "Bob")
                joined = receive_until(alice, lambda f: f["event"] == "user joined")[-1]
                assert joined["data"] == {"username": "Bob", "online": 2}

            left = receive_until(alice, lambda f: f["event"] == "user left")[-1]
            assert left["data"] == {"username": "Bob", "online": 1}

    def test_typing_relayed_to_others(self, client: TestClient):
        with client.websocket_connect("/ws") as alice:
            join(alice, "Alice")
            with client.websocket_connect("/ws") as bob:
                join(bob, "Bob")
                receive_until(alice, lambda f: f["event"] == "user joined")

                bob.send_json({"event": "typing"})
                assert alice.receive_json() == {"event": "typing", "data": "Bob"}
                bob.send_json({"event": "stop typing"})
                assert alice.receive_json() == {"event": "stop typing", "data": None}

    def test_malformed_frames_ignored(self, client: TestClient):
        """Garbage frames do not close the connection."""
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json at all")
            ws.send_json(["a", "list"])
            ws.send_json({"event": ["unhashable"]})
            ws.send_json({"event": "no such event"})
            ws.send_json({"event": "chat message", "data": "before joining"})
            ws.send_json({"event": "join", "data": "Alice"})
            assert ws.receive_json() == {"event": "online users", "data": 1}

    def test_disconnect_forgets_context(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            join(ws, "Alice")
            ws.send_json({"event": "chat message", "data": "hello"})
            receive_until(ws, is_assistant_message)
            assert client.get("/health").json()["contexts"] == 1

        # Cleanup runs on the server after the socket closes
        for _ in range(100):
            if client.get("/health").json()["contexts"] == 0:
                break
            time.sleep(0.01)
        assert client.get("/health").json() == {"status": "ok", "online": 0, "contexts": 0}
