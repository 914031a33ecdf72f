"""Zodiac Cipher Server - Entry point.

Serves the MCP tools over streamable HTTP plus read-only leaderboard and
feed routes for the web client.
"""

import logging
import os

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from .core.errors import ZodiacCipherError
from .shell.mcp_server import get_game_service, mcp


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "healthy", "service": "zodiac-cipher"})


async def leaderboard(request: Request) -> JSONResponse:
    """Ranked leaderboard; ?q= filters by name without renumbering."""
    entries = get_game_service().leaderboard(request.query_params.get("q"))
    return JSONResponse({
        "entries": [e.model_dump(mode="json", exclude={"email"}) for e in entries],
    })


async def public_feed(request: Request) -> JSONResponse:
    """Photo-backed deeds; ?order=recent|likes."""
    service = get_game_service()
    try:
        entries = service.feed(request.query_params.get("order", "recent"))
    except ZodiacCipherError as e:
        return JSONResponse(e.to_dict(), status_code=400)

    return JSONResponse({
        "entries": [
            {**e.model_dump(mode="json"), "likes": service.like_count(e.entry_id)}
            for e in entries
        ],
    })


# ==================== Create ASGI App ====================


def create_app() -> Starlette:
    """Create the Starlette application with MCP mounted at root."""
    mcp_app = mcp.streamable_http_app()

    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/leaderboard", leaderboard, methods=["GET"]),
        Route("/feed", public_feed, methods=["GET"]),
        # MCP app handles /mcp/ internally
        Mount("/", app=mcp_app),
    ]

    return Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["http://localhost:5173", "http://localhost:3000"],
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
        ],
        lifespan=mcp_app.router.lifespan_context,
    )


app = create_app()


def main() -> None:
    """Run the server."""
    port = int(os.environ.get("PORT", 8080))
    host = os.environ.get("HOST", "127.0.0.1")

    logger.info("Starting Zodiac Cipher server on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
