import json
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Optional

import uvicorn
from fastapi import FastAPI, Response, Request, Depends, HTTPException, status, Query
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from contact_api.config import Settings, get_settings
from contact_api.cors import PermissiveCORSMiddleware
from contact_api.errors import ConfigError, InvalidContactError, StorageError
from contact_api.logging_utils import setup_logging, RequestLoggingMiddleware, log_submission_data
from contact_api.metrics import record_submission_outcome
from contact_api.repository import ContactRepository
from contact_api.storage import connect
from contact_api.utils import resolve_limit, resolve_page, total_pages
from contact_api.schemas import (
    ContactCreate,
    ContactCreatedResponse,
    ContactsListResponse,
    ErrorResponse,
    HealthResponse,
    Pagination,
    ReadinessResponse,
)


logger = logging.getLogger(__name__)


def get_repository(request: Request) -> ContactRepository:
    """Dependency returning the repository the app was started with."""
    return request.app.state.repository


def parse_contact(raw_body: bytes) -> ContactCreate:
    """
    Bind a raw request body to a ContactCreate.

    Raises:
        InvalidContactError: if the body is not JSON, not an object, or a
            field is missing, not a string, or empty
    """
    try:
        body = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidContactError(f"Invalid JSON: {e}") from e

    try:
        return ContactCreate.model_validate(body)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        if fields:
            raise InvalidContactError(f"Missing or empty fields: {', '.join(fields)}") from e
        raise InvalidContactError("Request body must be a JSON object") from e


def create_app(settings: Optional[Settings] = None, repository=None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to start with; loaded from the environment at
            startup when omitted
        repository: Repository to serve from. When given, no database is
            opened; otherwise one is connected during startup and released
            at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        - Startup: connect to the database and create the contacts table
        - Shutdown: release the connection pool
        """
        database = None
        if app.state.repository is None:
            config = settings or get_settings()
            database = connect(config.TURSO_DATABASE_URL, config.TURSO_AUTH_TOKEN)
            app.state.repository = ContactRepository(database)
        yield
        if database is not None:
            database.dispose()
            app.state.repository = None

    app = FastAPI(
        title="Contact API",
        description="Collects contact-form submissions and lists them for operators",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.repository = repository

    # Logging runs outermost so preflight responses are logged too
    app.add_middleware(PermissiveCORSMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    # =========================================================================
    # Health Check Routes
    # =========================================================================

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """
        Liveness probe - always returns 200 once the app is running.
        Does not touch the database.
        """
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))

    @app.get("/health/ready", response_model=ReadinessResponse)
    def health_ready(
        response: Response,
        repository: ContactRepository = Depends(get_repository),
    ) -> ReadinessResponse:
        """
        Readiness probe - returns 200 only if the database answers a
        trivial query, 503 otherwise.
        """
        if repository is None or not repository.ping():
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return ReadinessResponse(
                status="not_ready",
                reason="Database not reachable"
            )
        return ReadinessResponse(status="ready")

    # =========================================================================
    # Contact Routes
    # =========================================================================

    @app.post(
        "/contact",
        response_model=ContactCreatedResponse,
        status_code=status.HTTP_201_CREATED,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid or missing fields"},
            500: {"model": ErrorResponse, "description": "Contact could not be stored"},
        }
    )
    async def create_contact(
        request: Request,
        repository: ContactRepository = Depends(get_repository),
    ) -> ContactCreatedResponse:
        """
        Store a contact-form submission.

        Body (application/json):
            - name, email, message: required non-empty strings
        """
        raw_body = await request.body()
        logger.debug(f"Request body size: {len(raw_body)} bytes")

        try:
            contact = parse_contact(raw_body)
        except InvalidContactError as e:
            logger.warning(f"Rejected contact submission: {e}")
            record_submission_outcome("validation_error")
            log_submission_data(request, result="validation_error")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e)
            )

        try:
            contact_id = await run_in_threadpool(
                repository.insert, contact.name, contact.email, contact.message
            )
        except StorageError as e:
            logger.error(f"Error saving contact: {e}")
            record_submission_outcome("error")
            log_submission_data(request, result="error")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not save contact"
            )

        record_submission_outcome("created")
        log_submission_data(request, result="created", contact_id=contact_id)

        return ContactCreatedResponse(id=contact_id)

    @app.get(
        "/contacts",
        response_model=ContactsListResponse,
        responses={
            500: {"model": ErrorResponse, "description": "Contacts could not be read"},
        }
    )
    def list_contacts(
        page: Annotated[Optional[str], Query(description="Page number, 1-indexed (default 1)")] = None,
        limit: Annotated[Optional[str], Query(description="Page size, 1-100 (default 10)")] = None,
        repository: ContactRepository = Depends(get_repository),
    ) -> ContactsListResponse:
        """
        List stored contacts, most recent first.

        Query Parameters:
            - page: page number; missing, non-numeric or < 1 means 1
            - limit: page size; missing, non-numeric or < 1 means 10,
              values above 100 are capped at 100
        """
        page_number = resolve_page(page)
        page_size = resolve_limit(limit)

        logger.info(f"GET /contacts: page={page_number}, limit={page_size}")

        try:
            contacts, total = repository.list_page(page_number, page_size)
        except StorageError as e:
            logger.error(f"Error listing contacts: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not fetch contacts"
            )

        return ContactsListResponse(
            contacts=contacts,
            pagination=Pagination(
                current_page=page_number,
                total_pages=total_pages(total, page_size),
                total_items=total,
                items_per_page=page_size,
            )
        )

    # =========================================================================
    # Metrics Route
    # =========================================================================

    @app.get("/metrics")
    async def metrics() -> Response:
        """Expose Prometheus-style metrics."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    return app


def run() -> None:
    """Console entry point: load settings, configure logging and serve."""
    try:
        settings = get_settings()
    except ConfigError as e:
        setup_logging("INFO")
        logger.critical(str(e))
        sys.exit(1)

    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting server on port {settings.PORT}")

    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
