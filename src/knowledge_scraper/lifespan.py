"""Application lifespan management (startup/shutdown hooks)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from .config.settings import ScraperSettings, get_settings
from .llm.content_organizer import ContentOrganizer, LLMContentOrganizer
from .llm.ollama_adapter import OllamaAdapter
from .llm.openai_adapter import OpenAIAdapter
from .models.requests import MAX_TIMEOUT_MS
from .observability.logger import configure_logging, get_logger
from .scraping.playwright_scraper import PlaywrightRenderer
from .services.content_filter import ContentFilter
from .services.export_renderer import ExportRenderer
from .services.extractor import ContentExtractor
from .services.job_manager import ScrapeJobManager
from .services.structured_content import StructuredContentAssembler
from .storage.database import build_engine, build_session_factory, close_db, init_db
from .storage.job_store import InMemoryJobStore
from .storage.repositories import SqlJobStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppServices:
    job_manager: ScrapeJobManager
    exporter: ExportRenderer
    recent_jobs_limit: int = 10


def build_organizer(settings: ScraperSettings) -> Optional[ContentOrganizer]:
    """LLM organizer for the configured provider, or None when it cannot be built."""
    provider = settings.llm_provider.lower()
    if provider == "openai":
        if not settings.openai_api_key:
            logger.warning("llm_organizer_disabled", reason="openai_api_key_missing")
            return None
        llm = OpenAIAdapter(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        model = settings.openai_default_model
    elif provider == "ollama":
        llm = OllamaAdapter(host=settings.ollama_host, port=settings.ollama_port)
        model = settings.ollama_default_model
    else:
        logger.info("llm_organizer_disabled", reason="llm_provider_none")
        return None

    return LLMContentOrganizer(
        llm,
        model=model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        # Per-job timeouts are enforced by the assembler; this is the adapter ceiling.
        timeout_seconds=MAX_TIMEOUT_MS / 1000.0,
        classify_content=settings.llm_classify_content,
    )


@asynccontextmanager
async def lifespan_manager() -> AsyncIterator[AppServices]:
    """Build layer dependencies, yield them, tear them down on exit."""
    settings = get_settings()

    configure_logging()
    logger.info("starting_application", service_name=settings.service_name)

    engine = None
    if settings.job_store_backend == "database":
        engine = build_engine(settings.database_url)
        await init_db(engine)
        store = SqlJobStore(build_session_factory(engine))
        logger.info("database_initialized")
    else:
        store = InMemoryJobStore()
    logger.info("job_store_configured", backend=settings.job_store_backend)

    content_filter = ContentFilter(extra_noise_selectors=settings.extra_noise_selectors)
    manager = ScrapeJobManager(
        store=store,
        renderer=PlaywrightRenderer(
            user_agent=settings.render_user_agent,
            headless=settings.render_headless,
            settle_ms=settings.render_settle_ms,
        ),
        extractor=ContentExtractor(content_filter),
        assembler=StructuredContentAssembler(build_organizer(settings)),
    )

    logger.info("application_started")
    try:
        yield AppServices(
            job_manager=manager,
            exporter=ExportRenderer(),
            recent_jobs_limit=settings.recent_jobs_limit,
        )
    finally:
        await manager.drain()
        if engine is not None:
            await close_db(engine)
        logger.info("application_shutdown_complete")
