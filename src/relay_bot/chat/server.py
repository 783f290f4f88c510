"""FastAPI app serving the chat page and the WebSocket relay."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.staticfiles import StaticFiles

from relay_bot.chat.hub import ChatHub
from relay_bot.chat.models import OutboundMessage

if TYPE_CHECKING:
    from relay_bot.coordinator import Coordinator

logger = logging.getLogger(__name__)

PLACEHOLDER_PAGE = """<!doctype html>
<html><head><title>relay-bot</title></head>
<body><p>Chat relay is running. Connect a client to <code>/ws</code>.</p></body></html>
"""


def _frame_text(data: Any, key: str) -> str:
    """Accept either a bare string or ``{key: "..."}`` as frame data."""
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        value = data.get(key)
        if isinstance(value, str):
            return value
    return ""


def create_app(
    coordinator: Coordinator,
    hub: ChatHub,
    static_dir: Path | None = None,
    welcome_delay: float = 2.0,
    run_sweeper: bool = True,
) -> FastAPI:
    """Create the chat relay FastAPI app.

    Args:
        coordinator: Handles assistant replies; its transport should be ``hub``.
        hub: Connection registry used for presence and broadcast.
        static_dir: Optional directory with ``index.html`` and assets.
        welcome_delay: Seconds before the assistant greets a new participant.
        run_sweeper: Run the context store's periodic sweep while serving.

    Returns:
        A configured FastAPI application.
    """
    background: set[asyncio.Task] = set()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if run_sweeper:
            coordinator.store.start()
        yield
        await coordinator.store.stop()
        for task in list(background):
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)

    app = FastAPI(title="relay-bot", lifespan=lifespan)
    app.state.background_tasks = background

    if static_dir is not None and static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    def spawn(coro) -> None:
        task = asyncio.create_task(coro)
        background.add(task)
        task.add_done_callback(background.discard)

    async def delayed_welcome(session: str, username: str) -> None:
        await asyncio.sleep(welcome_delay)
        await hub.send_to(session, "chat message", coordinator.welcome_message(username).to_dict())

    @app.get("/")
    async def index():
        """Serve the chat page."""
        if static_dir is not None:
            page = static_dir / "index.html"
            if page.exists():
                return FileResponse(page)
        return HTMLResponse(PLACEHOLDER_PAGE)

    @app.get("/health")
    async def health():
        return {"status": "ok", "online": hub.online_count, "contexts": len(coordinator.store)}

    async def on_join(session: str, data: Any) -> None:
        username = _frame_text(data, "username").strip()
        if not username:
            return
        count = await hub.join(session, username)
        await hub.emit("user joined", {"username": username, "online": count}, exclude=session)
        await hub.send_to(session, "online users", count)
        await hub.send_to(
            session,
            "chat message",
            OutboundMessage(
                sender="System",
                text=f"Welcome to the chat, {username}! 👋",
                is_system=True,
            ).to_dict(),
        )
        spawn(delayed_welcome(session, username))

    async def on_chat_message(session: str, data: Any) -> None:
        user = hub.user(session)
        text = _frame_text(data, "message").strip()
        if user is None or not text:
            return
        logger.info(f"{user.username}: {text}")
        await hub.emit(
            "chat message",
            OutboundMessage(sender=user.username, text=text).to_dict(),
            exclude=session,
        )
        spawn(coordinator.handle_message(text, user.username, session))

    async def on_typing(session: str, data: Any) -> None:
        user = hub.user(session)
        if user is not None:
            await hub.emit("typing", user.username, exclude=session)

    async def on_stop_typing(session: str, data: Any) -> None:
        await hub.emit("stop typing", exclude=session)

    handlers = {
        "join": on_join,
        "chat message": on_chat_message,
        "typing": on_typing,
        "stop typing": on_stop_typing,
    }

    @app.websocket("/ws")
    async def chat_socket(websocket: WebSocket):
        """One participant's connection."""
        await websocket.accept()
        session = uuid4().hex
        await hub.connect(session, websocket)

        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    frame = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning(f"Ignoring malformed frame from {session}")
                    continue
                event = frame.get("event") if isinstance(frame, dict) else None
                handler = handlers.get(event) if isinstance(event, str) else None
                if handler is None:
                    logger.debug(f"Unknown event from {session}: {event!r}")
                    continue
                await handler(session, frame.get("data"))
        except WebSocketDisconnect:
            pass
        finally:
            user = await hub.disconnect(session)
            await coordinator.end_session(session)
            if user is not None:
                await hub.emit("user left", {"username": user.username, "online": hub.online_count})

    return app
