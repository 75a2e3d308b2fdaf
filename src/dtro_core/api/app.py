"""FastAPI application for the DTRO service.

Usage (from project root, after installing the package):

    uvicorn dtro_core.api.app:app --reload

The service is built from ``DTRO_*`` environment variables on the first
request, see ``dtro_core.config.settings``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response

from .. import __version__
from ..config.settings import ServiceSettings
from ..exceptions import (
    DtroError,
    DtroNotFoundError,
    InvalidRequestError,
    PageOutOfRangeError,
    SchemaNotFoundError,
    SemanticValidationFailedError,
    StructuralValidationError,
)
from ..models.search import DtroEventSearch, DtroSearch
from ..service import DtroService


logger = logging.getLogger(__name__)


def _error_response(exc: DtroError) -> JSONResponse:
    """Map a DtroError to a status code and ``{"message", "error"}`` body."""
    if isinstance(exc, StructuralValidationError):
        return JSONResponse(status_code=400, content={"message": "Bad request", "error": exc.errors})
    if isinstance(exc, SemanticValidationFailedError):
        return JSONResponse(
            status_code=400,
            content={"message": "Bad request", "error": [error.to_dict() for error in exc.errors]},
        )
    if isinstance(exc, SchemaNotFoundError):
        return JSONResponse(status_code=404, content={"message": "Not found", "error": "Schema version not found"})
    if isinstance(exc, DtroNotFoundError):
        return JSONResponse(status_code=404, content={"message": "Not found", "error": exc.message})
    if isinstance(exc, (PageOutOfRangeError, InvalidRequestError)):
        return JSONResponse(status_code=400, content={"message": "Bad request", "error": exc.message})

    logger.error(f"Unhandled DTRO error: {exc.to_dict()}")
    return JSONResponse(status_code=500, content={"message": "Internal server error", "error": exc.message})


def create_app(
    settings: Optional[ServiceSettings] = None,
    service: Optional[DtroService] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Service settings; read from the environment if None.
        service: Service to use; built lazily from ``settings`` if None.

    Returns:
        The configured application.
    """
    settings = settings or ServiceSettings.from_env()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="DTRO API", version=__version__)
    app.state.settings = settings
    app.state.service = service

    def get_service(request: Request) -> DtroService:
        if request.app.state.service is None:
            request.app.state.service = DtroService.from_settings(request.app.state.settings)
        return request.app.state.service

    def get_correlation_id(x_correlation_id: Optional[str] = Header(default=None)) -> str:
        return x_correlation_id or str(uuid.uuid4())

    @app.exception_handler(DtroError)
    async def handle_dtro_error(request: Request, exc: DtroError) -> JSONResponse:
        return _error_response(exc)

    @app.post("/v1/dtros", status_code=201)
    def create_dtro(
        body: Dict[str, Any] = Body(...),
        dtro_service: DtroService = Depends(get_service),
        correlation_id: str = Depends(get_correlation_id),
    ) -> JSONResponse:
        """Validate and store a new DTRO."""
        dtro_id = dtro_service.create_dtro(body, correlation_id)
        return JSONResponse(status_code=201, content={"id": dtro_id})

    @app.put("/v1/dtros/{dtro_id}")
    def update_dtro(
        dtro_id: str,
        body: Dict[str, Any] = Body(...),
        dtro_service: DtroService = Depends(get_service),
        correlation_id: str = Depends(get_correlation_id),
    ) -> JSONResponse:
        """Replace an existing DTRO with a full new submission."""
        dtro_service.update_dtro(dtro_id, body, correlation_id)
        return JSONResponse(status_code=200, content={"id": dtro_id})

    @app.get("/v1/dtros/{dtro_id}")
    def get_dtro(dtro_id: str, dtro_service: DtroService = Depends(get_service)) -> JSONResponse:
        dtro = dtro_service.get_dtro(dtro_id)
        return JSONResponse(
            status_code=200,
            content={"schemaVersion": str(dtro.schema_version), "data": dtro.data},
        )

    @app.delete("/v1/dtros/{dtro_id}", status_code=204)
    def delete_dtro(dtro_id: str, dtro_service: DtroService = Depends(get_service)) -> Response:
        dtro_service.delete_dtro(dtro_id)
        return Response(status_code=204)

    @app.post("/v1/search")
    def search_dtros(
        body: Dict[str, Any] = Body(...),
        dtro_service: DtroService = Depends(get_service),
    ) -> JSONResponse:
        """Find DTROs matching any of the queries in the body."""
        criteria = DtroSearch.from_dict(body)
        return JSONResponse(status_code=200, content=dtro_service.search(criteria).to_dict())

    @app.post("/v1/events")
    def list_events(
        body: Dict[str, Any] = Body(...),
        dtro_service: DtroService = Depends(get_service),
    ) -> JSONResponse:
        """List create, update and delete events."""
        search = DtroEventSearch.from_dict(body)
        return JSONResponse(status_code=200, content=dtro_service.events(search).to_dict())

    @app.get("/v1/schemas")
    def list_schemas(dtro_service: DtroService = Depends(get_service)) -> JSONResponse:
        schemas = [schema.to_dict() for schema in dtro_service.list_schemas()]
        return JSONResponse(status_code=200, content={"schemas": schemas})

    @app.get("/v1/schemas/{version}")
    def get_schema(version: str, dtro_service: DtroService = Depends(get_service)) -> JSONResponse:
        schema = dtro_service.get_schema(version)
        return JSONResponse(status_code=200, content={"schemaVersion": version.lower(), "schema": schema})

    return app


app = create_app()
