import os
import time
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from assetvault.core.config import Settings
from assetvault.core.logging import setup_logging, request_id_ctx
from assetvault.core.db import Database
from assetvault.core.errors import AppError, handle_app_error, handle_request_validation_error, handle_unexpected_error
from assetvault.platform.provider_registry import ProviderRegistry
from assetvault.api.router import api_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings)

    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.providers = ProviderRegistry(settings)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000
        logger.info(
            f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.2f}ms"
        )
        return response

    # registered last so it runs first and the request log line carries the id
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        token = request_id_ctx.set(request.headers.get("x-request-id", "-"))
        try:
            return await call_next(request)
        finally:
            request_id_ctx.reset(token)

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.on_event("startup")
    async def on_startup():
        os.makedirs(settings.UPLOAD_STAGING_DIR, exist_ok=True)
        await app.state.db.init_models()
        logger.info(f"{settings.APP_NAME} started (env={settings.ENV}, storage={settings.OBJECT_STORAGE_PROVIDER})")

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.db.dispose()

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
