import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.logging import configure_logging
from .api.routes.v1.wizards import router as wizards_router
from .api.routes.v1.projects import router as projects_router
from .api.routes.v1.prompts import router as prompts_router
from .api.routes.v1.settings import router as settings_router
from .integrations.backend_client import get_backend_client


configure_logging(settings.log_level)
log = logging.getLogger("studio.main")


def create_app() -> FastAPI:
    app = FastAPI(title="Prompt Studio", version="0.1.0")

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers v1
    app.include_router(wizards_router, prefix=f"{settings.api_prefix}/v1", tags=["wizards"])
    app.include_router(projects_router, prefix=f"{settings.api_prefix}/v1", tags=["projects"])
    app.include_router(prompts_router, prefix=f"{settings.api_prefix}/v1", tags=["prompts"])
    app.include_router(settings_router, prefix=f"{settings.api_prefix}/v1", tags=["settings"])

    @app.on_event("startup")
    def _startup() -> None:
        settings.log_startup_summary()

    @app.on_event("shutdown")
    def _shutdown() -> None:
        if get_backend_client.cache_info().currsize:
            get_backend_client().close()
            log.info("Prompt backend client closed.")

    return app


app = create_app()
