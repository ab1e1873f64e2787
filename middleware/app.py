# middleware/app.py

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import Any, Optional
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ai.assistants import IcebreakerGenerator, ResumeMatcher
from ai.config import get_config as get_ai_config
from ai.generative_client import GenerativeClient
from database.cache_store import MemoryCacheStore, open_cache_store
from middleware.config import Settings, settings as default_settings
from middleware.api import assist, salary as salary_api
from salary.config import get_config as get_salary_config
from salary.lookup_service import build_lookup_service

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, transport: Any = None) -> FastAPI:
    """
    Build the API

    Args:
        settings: Middleware settings (module defaults if None)
        transport: Generation transport override (an OllamaClient is built if None)
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        salary_config = get_salary_config()
        if settings.salary_db_path:
            salary_config.salary_db_path = Path(settings.salary_db_path)
        if settings.cache_db_path:
            salary_config.cache_db_path = Path(settings.cache_db_path)
        if settings.use_ai_fallback is not None:
            salary_config.use_ai_fallback = settings.use_ai_fallback

        ai_config = get_ai_config()
        if settings.ollama_host:
            ai_config.base_url = settings.ollama_host
        if settings.ollama_model:
            ai_config.model = settings.ollama_model

        if settings.cache_backend == "memory":
            store = MemoryCacheStore()
        else:
            store = open_cache_store(salary_config.cache_db_path)

        client = GenerativeClient.from_config(ai_config, transport=transport)
        service = build_lookup_service(salary_config, ai_config, store=store, transport=client.transport)
        await service.start()

        app.state.lookup_service = service
        app.state.resume_matcher = ResumeMatcher(client, service.cache, ai_config)
        app.state.icebreaker = IcebreakerGenerator(client, ai_config)
        logger.info(f"{settings.app_name} started ({len(service.matcher.db)} salary entries)")

        yield

        close = getattr(client.transport, "close", None)
        if close is not None:
            await close()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(salary_api.router, prefix="/api", tags=["salary"])
    app.include_router(assist.router, prefix="/api", tags=["assist"])

    @app.get("/api/health")
    async def health(request: Request):
        """Liveness plus database size"""
        service = request.app.state.lookup_service
        return {
            "status": "ok",
            "salaryEntries": len(service.matcher.db),
            "dbVersion": service.matcher.db.version,
            "aiFallback": service.estimator is not None,
        }

    return app


app = create_app()


def main():
    """Run the API with uvicorn, logging at the configured level"""
    import uvicorn
    from salary.utils import setup_logging

    salary_config = get_salary_config()
    setup_logging(salary_config.log_dir, salary_config.log_level, prefix="middleware")
    uvicorn.run(
        "middleware.app:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )


if __name__ == "__main__":
    main()
