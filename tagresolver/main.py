"""tagresolver FastAPI application entry point.

Wires catalog providers, the library store, the analysis scheduler, and
the batch services together via constructor injection.  Loads settings
from ``.env`` and ``config/tagger.yaml`` and configures structured logging.

``build_services`` is also used by the CLI, which runs the same object
graph without the web server.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from tagresolver.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from tagresolver.api.routes import router as api_router
from tagresolver.api.websocket import websocket_progress
from tagresolver.config.loader import build_tagger_config, load_config
from tagresolver.config.settings import Settings
from tagresolver.interfaces.library_store import ILibraryStore
from tagresolver.models.config import TaggerConfig
from tagresolver.pipeline.batch_orchestrator import CandidateBatchOrchestrator
from tagresolver.pipeline.progress_tracker import ProgressTracker
from tagresolver.providers.analysis.queue_scheduler import QueueAnalysisScheduler
from tagresolver.providers.catalog.registry import build_providers, enabled_in_priority_order
from tagresolver.providers.library.sqlite_store import SQLiteLibraryStore
from tagresolver.services.apply_engine import ApplyEngine
from tagresolver.services.candidate_aggregator import CandidateAggregator
from tagresolver.services.scorer import CandidateScorer
from tagresolver.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


def build_services(
    app_settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    library_store: ILibraryStore | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = http_client or httpx.AsyncClient(
        timeout=app_settings.http_timeout, follow_redirects=True
    )

    # -- Configuration (snapshotted; replaced only through set_config) --
    raw_config = load_config(app_settings.tagger_config_path, app_settings)
    holder: dict[str, TaggerConfig] = {"config": build_tagger_config(raw_config)}

    def config_source() -> TaggerConfig:
        return holder["config"]

    def set_config(new_config: TaggerConfig) -> None:
        holder["config"] = new_config

    # -- Catalog providers (disabled ones too, for detail fetches) --
    catalog_providers, provider_warnings = build_providers(
        holder["config"], http_client, app_settings
    )

    def aggregator_factory(config: TaggerConfig) -> CandidateAggregator:
        return CandidateAggregator(
            providers=enabled_in_priority_order(config, catalog_providers),
            scorer=CandidateScorer(
                duration_tolerance=config.duration_tolerance,
                duration_decay=config.duration_decay,
            ),
            tie_break_epsilon=config.tie_break_epsilon,
            min_score=config.min_score,
            max_candidates=config.max_candidates,
        )

    # -- Library and analysis --
    library_store = library_store or SQLiteLibraryStore(db_path=app_settings.library_db_path)
    analysis_scheduler = QueueAnalysisScheduler()

    # -- Services --
    apply_engine = ApplyEngine(
        library_store=library_store,
        providers=catalog_providers,
        analysis_scheduler=analysis_scheduler,
    )
    progress_tracker = ProgressTracker()
    orchestrator = CandidateBatchOrchestrator(
        aggregator_factory=aggregator_factory,
        apply_engine=apply_engine,
        progress_tracker=progress_tracker,
        config_source=config_source,
    )

    return {
        "http_client": http_client,
        "config_source": config_source,
        "set_config": set_config,
        "catalog_providers": catalog_providers,
        "provider_warnings": provider_warnings,
        "library_store": library_store,
        "analysis_scheduler": analysis_scheduler,
        "apply_engine": apply_engine,
        "progress_tracker": progress_tracker,
        "orchestrator": orchestrator,
        "runs": {},
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_services(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    library_store = components["library_store"]
    if isinstance(library_store, SQLiteLibraryStore):
        await library_store.initialize()

    scheduler: QueueAnalysisScheduler = components["analysis_scheduler"]
    drain_task = asyncio.create_task(scheduler.run(library_store.enqueue_analysis))

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        providers=sorted(components["catalog_providers"]),
    )

    yield

    drain_task.cancel()
    with suppress(asyncio.CancelledError):
        await drain_task
    await scheduler.flush(library_store.enqueue_analysis)

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(lifespan: Any = _lifespan) -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="tagresolver API",
        version=_VERSION,
        description=(
            "Look up library tracks in online music catalogs, rank the "
            "candidates, and write confirmed metadata back to the library."
        ),
        lifespan=lifespan,
    )

    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)

    @application.websocket("/ws/progress/{run_id}")
    async def ws_progress(websocket: WebSocket, run_id: str) -> None:
        await websocket_progress(websocket, run_id)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "tagresolver.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
