"""Application factory and context for the CircuPlay API.

The app is built by ``create_app`` rather than at import time, and all
runtime state lives on an ``AppContext`` attached as ``app.state.context``.
Each test can build an app around its own context (a temporary data
directory, an autosave interval of its choosing) without touching
module-level state.

Usage:
------
    # Production (settings from environment)
    app = create_app()

    # Testing
    context = AppContext(store=CircuitStore(tmp_path), restore_autosave=False)
    app = create_app(context=context)
"""

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.auto_save_service import AutoSaveService
from backend.circuit_runner import CircuitRunner
from backend.circuit_store import CircuitStore
from backend.logging_config import configure_logging
from circuplay.config.server import AUTO_SAVE_INTERVAL_SECONDS, DEFAULT_API_PORT
from circuplay.config.simulation import SimulationConfig
from circuplay.exceptions import PersistenceError


@dataclass
class AppContext:
    """Runtime context holding all application state."""

    config: SimulationConfig = field(default_factory=SimulationConfig.from_env)
    store: CircuitStore = field(default_factory=CircuitStore)
    runner: Optional[CircuitRunner] = None

    api_port: int = field(
        default_factory=lambda: int(os.getenv("CIRCUPLAY_API_PORT", str(DEFAULT_API_PORT)))
    )
    production_mode: bool = field(
        default_factory=lambda: os.getenv("PRODUCTION", "false").lower() == "true"
    )
    allowed_origins: list = field(
        default_factory=lambda: os.getenv("ALLOWED_ORIGINS", "*").split(",")
    )
    auto_save_interval: float = AUTO_SAVE_INTERVAL_SECONDS
    restore_autosave: bool = True
    start_running: bool = True

    auto_save_service: Optional[AutoSaveService] = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("circuplay.backend"))

    def __post_init__(self) -> None:
        if self.runner is None:
            self.runner = CircuitRunner(config=self.config)


def _restore_autosave(ctx: AppContext) -> None:
    try:
        data = ctx.store.load_autosave()
    except PersistenceError as e:
        ctx.logger.warning(f"Ignoring unreadable autosave: {e}")
        return
    if data is None:
        return
    result = ctx.runner.locked(lambda ws: ws.import_circuit(data))
    if result.is_ok():
        ctx.logger.info(f"Restored autosaved circuit ({result.value} components)")
    else:
        ctx.logger.warning(f"Autosave could not be restored: {result.error}")


def create_app(
    *,
    production_mode: Optional[bool] = None,
    context: Optional[AppContext] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        production_mode: Override production mode (default: from PRODUCTION env var)
        context: Pre-configured AppContext (for testing). If None, creates a new one.

    Returns:
        Configured FastAPI application with context attached as app.state.context
    """
    logger = configure_logging()

    if context is None:
        context = AppContext()
    if production_mode is not None:
        context.production_mode = production_mode
    context.logger = logger

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the tick thread and autosave; stop them on shutdown."""
        ctx: AppContext = app.state.context
        try:
            if ctx.restore_autosave:
                _restore_autosave(ctx)

            ctx.runner.start(run_simulation=ctx.start_running)
            ctx.auto_save_service = AutoSaveService(
                ctx.runner, ctx.store, interval=ctx.auto_save_interval
            )
            await ctx.auto_save_service.start()

            ctx.logger.info("LIFESPAN: Startup complete - yielding control to app")
            yield
            ctx.logger.info("LIFESPAN: Received shutdown signal")
        except Exception as e:
            ctx.logger.error(f"Exception in lifespan startup: {e}", exc_info=True)
            raise
        finally:
            if ctx.auto_save_service:
                await ctx.auto_save_service.stop()
            ctx.runner.stop()

    app = FastAPI(
        title="CircuPlay API",
        lifespan=lifespan,
        docs_url=None if context.production_mode else "/docs",
        redoc_url=None if context.production_mode else "/redoc",
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=context.allowed_origins if context.production_mode else ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    _setup_routers(app, context)
    return app


def _setup_routers(app: FastAPI, ctx: AppContext) -> None:
    """Setup and include all API routers."""
    from backend.routers import circuit, storage, websocket

    app.include_router(circuit.setup_router(ctx.runner))
    app.include_router(storage.setup_router(ctx.runner, ctx.store))
    app.include_router(websocket.setup_router(ctx.runner))

    @app.get("/health")
    async def health():
        return {"status": "ok", "tick": ctx.runner.workspace.simulator.tick_count}

    ctx.logger.info("All API routers configured successfully")
