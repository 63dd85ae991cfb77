from fastapi import FastAPI

from backend.api.routes.report import router
from backend.core.observability import configure_logging
from backend.core.observability import init_sentry
from backend.settings import Settings


def create_app() -> FastAPI:
    """Build the FastAPI application with logging and Sentry configured."""

    settings = Settings()
    configure_logging(settings)
    init_sentry(settings)

    application = FastAPI(title="User Provisioning History")
    application.include_router(router)
    return application


app = create_app()
