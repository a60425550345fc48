from __future__ import annotations
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from .logging_config import setup_logging
from .routers import sessions, ws
from .services.pipeline import IngestionPipeline
from .services.source import serial_lines
from .services.storage import SessionStore
from .services.stream import EventBroadcaster, StreamManager
from .services.tracker import SessionTracker
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

LineSource = Callable[[], AsyncGenerator[str, None]]


async def _ingest(pipeline: IngestionPipeline, line_source: LineSource) -> None:
    try:
        await pipeline.run(line_source())
    except asyncio.CancelledError:
        raise
    except Exception:
        # e.g. the serial port is missing or unplugged; the read API keeps serving
        logger.exception("line source stopped")


def create_app(settings: Optional[Settings] = None, line_source: Optional[LineSource] = None) -> FastAPI:
    settings = settings or default_settings
    if line_source is None and settings.serial_port:
        port, baud = settings.serial_port, settings.baud_rate
        line_source = lambda: serial_lines(port, baud)

    store = SessionStore(settings.log_file)
    tracker = SessionTracker()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        store.load_all()
        stream = StreamManager(send_timeout=settings.send_timeout)
        broadcaster = EventBroadcaster(stream, maxsize=settings.queue_len)
        pipeline = IngestionPipeline(tracker, store, broadcaster)
        app.state.stream = stream
        app.state.pipeline = pipeline
        broadcaster.start()

        task = None
        if line_source is not None:
            task = asyncio.create_task(_ingest(pipeline, line_source))
        else:
            logger.warning("no serial port configured, serving stored sessions only")
        app.state.ingest_task = task
        try:
            yield
        finally:
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            await broadcaster.stop()

    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.tracker = tracker

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sessions.router)
    app.include_router(ws.router)

    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        @app.get("/")
        def root():
            return {"ok": True, "name": settings.app_name, "routes": [
                "/api/logs",
                "/health",
                "/ws",
            ]}

    return app


app = create_app()
