"""FastAPI server exposing router status."""

from pathlib import Path
from typing import Optional
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel
import uvicorn

from ..engine.pipeline import Pipeline
from ..models import MoveRecord, ErrorRecord, RouterState
from ..settings import Settings
from ..watchers import WatchBackend

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# Response Models
# -------------------------------------------------------------------------

class StatsResponse(BaseModel):
    """Router statistics response."""
    running: bool
    config_path: str
    watched_directories: int
    moves_logged: int
    errors_reported: int
    state: str
    pending: int
    recently_processed: int
    batches_flushed: int
    files_routed: int
    reloads: int


class WatchResponse(BaseModel):
    """One configured or watched directory."""
    path: str
    role: str
    watched: bool
    path_exists: bool


# -------------------------------------------------------------------------
# App Factory
# -------------------------------------------------------------------------

def create_app(
    settings: Optional[Settings] = None,
    backend: Optional[WatchBackend] = None,
) -> FastAPI:
    """Create the FastAPI application with the pipeline in its lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting frouter API server...")
        pipeline = Pipeline(settings or Settings.from_env(), backend=backend)
        await pipeline.start()
        app.state.pipeline = pipeline
        logger.info("frouter API server started")

        yield

        logger.info("Shutting down frouter API server...")
        await pipeline.stop()
        logger.info("frouter API server stopped")

    app = FastAPI(
        title="frouter API",
        description="Status of the frouter file routing service",
        version="0.2.0",
        lifespan=lifespan,
    )

    def get_pipeline(request: Request) -> Pipeline:
        pipeline = getattr(request.app.state, "pipeline", None)
        if pipeline is None:
            raise HTTPException(status_code=503, detail="Pipeline not started")
        return pipeline

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        pipeline = getattr(request.app.state, "pipeline", None)
        healthy = (
            pipeline is not None
            and pipeline.is_running
            and pipeline.loop.state != RouterState.STOPPED
        )
        return {"status": "healthy" if healthy else "degraded"}

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    @app.get("/api/stats", response_model=StatsResponse)
    async def get_stats(request: Request):
        """Get router statistics."""
        return await get_pipeline(request).get_stats()

    # -------------------------------------------------------------------------
    # Moves and Errors
    # -------------------------------------------------------------------------

    @app.get("/api/moves", response_model=list[MoveRecord])
    async def list_moves(
        request: Request,
        limit: int = Query(100, ge=1, le=1000),
        filehash: Optional[str] = Query(None, description="Filter by content digest"),
    ):
        """List logged moves, most recent first."""
        move_log = get_pipeline(request).move_log
        if filehash:
            return await move_log.find_by_hash(filehash.lower())
        return await move_log.list_recent(limit)

    @app.get("/api/errors", response_model=list[ErrorRecord])
    async def list_errors(request: Request, limit: int = Query(50, ge=1, le=200)):
        """List reported errors, most recent first."""
        return get_pipeline(request).reporter.recent(limit)

    # -------------------------------------------------------------------------
    # Watches
    # -------------------------------------------------------------------------

    @app.get("/api/watches", response_model=list[WatchResponse])
    async def list_watches(request: Request):
        """List configured directories and whether each is being watched."""
        pipeline = get_pipeline(request)
        config = pipeline.loop.config
        watched = pipeline.watch_set.watched
        roles = {path: "source" for path in config.directories.values()}
        for ext in config.extensions:
            roles.setdefault(ext.path, f"destination:{ext.name}")
        return [_watch_to_response(path, role, path in watched) for path, role in sorted(roles.items())]

    @app.post("/api/reload", status_code=202)
    async def reload_config(request: Request):
        """Ask the router loop to reload its configuration file."""
        get_pipeline(request).request_reload()
        return {"queued": True}

    return app


def _watch_to_response(path: Path, role: str, watched: bool) -> dict:
    """Convert a directory entry to a response dict."""
    return {
        "path": str(path),
        "role": role,
        "watched": watched,
        "path_exists": path.exists(),
    }


# -------------------------------------------------------------------------
# Main Entry Point
# -------------------------------------------------------------------------

def main():
    """Run the API server."""
    import argparse

    parser = argparse.ArgumentParser(description="frouter API Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--config", help="Routing configuration file")
    parser.add_argument("--db", help="SQLite move log path")
    parser.add_argument("--log-level", default="info", help="Log level")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = Settings.from_env().with_overrides(config_path=args.config, db_path=args.db)
    uvicorn.run(
        create_app(settings),
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
