"""HTTP entry point for the FlipDish MCP server.

Serves MCP over SSE:
    GET  /mcp             opens the event stream (one MCP server per connection)
    POST /mcp/messages/   receives client messages for a stream

Usage:
    uv run python -m flipdish_mcp.main
"""

from contextlib import asynccontextmanager

import uvicorn
from loguru import logger
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route

from .client import FlipDishClient
from .config import Settings, get_settings
from .executor import ToolExecutor
from .logging import setup_logging
from .server import create_server
from .state import SessionStore
from .tracing import create_langfuse
from .widgets import WidgetResolver

SSE_PATH = "/mcp"
POST_PATH = "/mcp/messages/"


def create_app(settings: Settings) -> Starlette:
    """Build the Starlette app with shared client, widgets and session store."""
    client = FlipDishClient.from_settings(settings)
    widgets = WidgetResolver(settings.widgets_dir)
    langfuse = create_langfuse(settings)
    sse = SseServerTransport(POST_PATH)

    shared_store: SessionStore | None = None
    if not settings.session_per_connection:
        shared_store = SessionStore(settings.session_cache_path)

    async def handle_sse(request: Request) -> Response:
        store = shared_store if shared_store is not None else SessionStore()
        server = create_server(ToolExecutor(client, store), widgets, langfuse)
        logger.info("SSE connection opened from {}", request.client)
        async with sse.connect_sse(request.scope, request.receive, request._send) as streams:
            await server.run(streams[0], streams[1], server.create_initialization_options())
        logger.info("SSE connection closed")
        return Response()

    @asynccontextmanager
    async def lifespan(app: Starlette):
        yield
        await client.aclose()
        if langfuse is not None:
            langfuse.flush()

    app = Starlette(
        routes=[
            Route(SSE_PATH, endpoint=handle_sse, methods=["GET"]),
            Mount(POST_PATH, app=sse.handle_post_message),
        ],
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["content-type"],
    )
    return app


def main() -> None:
    """Run the FlipDish MCP server."""
    settings = get_settings()

    # Initialize logging first (stderr + rotating file)
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting FlipDish MCP server (app_id={}, store_id={})",
        settings.flipdish_app_id,
        settings.flipdish_store_id,
    )

    app = create_app(settings)

    logger.info("SSE stream: GET http://localhost:{}{}", settings.port, SSE_PATH)
    logger.info("Message endpoint: POST http://localhost:{}{}?session_id=...", settings.port, POST_PATH)
    # log_config=None keeps uvicorn on the loguru intercept set up above
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
