"""
HTTP Chat Channel
=================

A FastAPI app that exposes the agent to a browser or any HTTP client.

Endpoints:
    POST /chat     {"message": "..."}  → 200 immediately; the agent runs
                   in a background task after the response is sent
    GET  /chat     → ["assistant text", ...], then the queue is cleared
    GET  /app      → a minimal web page that posts and polls
    GET  /health   → {"status": "ok", ...}

Run standalone with uvicorn, or through ``HttpChatChannel.start()`` which
embeds a uvicorn server in the current event loop.
"""

import uvicorn
from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from chatloop.channels import DeliveryChannel, UserMessageHandler
from chatloop.utils.logger import Logger

logger = Logger("HttpChannel")


class ChatRequest(BaseModel):
    """Inbound user message."""
    message: str = Field(..., min_length=1, max_length=10_000)


class ChatAccepted(BaseModel):
    status: str = "accepted"


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "chatloop"
    queued: int = 0


APP_PAGE = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>ChatLoop</title>
<style>
  body { font-family: sans-serif; max-width: 40rem; margin: 2rem auto; }
  #log div { margin: .3rem 0; white-space: pre-wrap; }
  .user { color: #555; } .agent { color: #075; }
</style></head>
<body>
<div id="log"></div>
<form id="form"><input id="text" autocomplete="off" size="60"><button>Send</button></form>
<script>
  const log = document.getElementById("log");
  function show(cls, text) {
    const div = document.createElement("div");
    div.className = cls; div.textContent = text; log.appendChild(div);
  }
  document.getElementById("form").onsubmit = async (e) => {
    e.preventDefault();
    const input = document.getElementById("text");
    if (!input.value) return;
    show("user", input.value);
    await fetch("/chat", {method: "POST", headers: {"Content-Type": "application/json"},
                          body: JSON.stringify({message: input.value})});
    input.value = "";
  };
  setInterval(async () => {
    const res = await fetch("/chat");
    for (const text of await res.json()) show("agent", text);
  }, 1000);
</script>
</body>
</html>
"""


class HttpChatChannel(DeliveryChannel):
    """
    Delivery channel served over HTTP.

    Example:
        channel = HttpChatChannel(host="0.0.0.0", port=3000)
        channel.set_message_handler(assistant.handle_user_message)
        await channel.start()
    """

    name = "http"

    def __init__(
        self,
        on_user_message: UserMessageHandler | None = None,
        host: str = "0.0.0.0",
        port: int = 3000
    ):
        super().__init__(on_user_message)
        self.host = host
        self.port = port
        self.app = self.create_app()
        self._server: uvicorn.Server | None = None

    def create_app(self) -> FastAPI:
        """Build the FastAPI application bound to this channel."""
        app = FastAPI(
            title="ChatLoop",
            description="Chat with the ChatLoop agent over HTTP.",
            version="1.0.0",
        )

        @app.post("/chat", response_model=ChatAccepted)
        async def post_chat(request: ChatRequest, background_tasks: BackgroundTasks):
            """Accept a user message; the agent answers asynchronously."""
            if self.on_user_message is None:
                raise HTTPException(
                    status_code=503,
                    detail="The agent is still starting up. Please try again in a moment.",
                )
            logger.info(f"Inbound message: {request.message[:50]}")
            background_tasks.add_task(self.on_user_message, request.message)
            return ChatAccepted()

        @app.get("/chat", response_model=list[str])
        async def get_chat():
            """Return queued assistant messages and clear the queue."""
            return self.drain()

        @app.get("/app", response_class=HTMLResponse)
        async def app_page():
            return APP_PAGE

        @app.get("/health", response_model=HealthResponse)
        async def health():
            return HealthResponse(queued=self.pending())

        return app

    async def start(self) -> None:
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_level="warning")
        self._server = uvicorn.Server(config)

        logger.info(f"Chat client listening on http://{self.host}:{self.port}/app")
        await self._server.serve()

    async def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
            logger.info("HTTP channel stopping")
