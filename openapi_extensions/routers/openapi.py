"""Routes serving the registered OpenAPI documents."""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import JSONResponse

from openapi_extensions.config import OPENAPI_ROUTE_PATTERN
from openapi_extensions.errors import MissingDocumentServiceError, api_error
from openapi_extensions.service import get_document_service

logger = logging.getLogger(__name__)


def build_router(pattern: str = OPENAPI_ROUTE_PATTERN) -> APIRouter:
    router = APIRouter(tags=["OpenAPI"])

    @router.get(pattern, include_in_schema=False)
    async def get_openapi_document(document_name: str, request: Request) -> JSONResponse:
        try:
            service = get_document_service(request.app, document_name)
        except MissingDocumentServiceError as exc:
            raise api_error(status.HTTP_404_NOT_FOUND, "document_not_found", str(exc))

        document = await service.get_openapi_document()
        return JSONResponse(document)

    return router


def map_openapi(app: FastAPI, pattern: str = OPENAPI_ROUTE_PATTERN) -> FastAPI:
    """Serve every document registered with ``add_openapi`` at ``pattern``."""
    app.include_router(build_router(pattern))
    logger.info("Serving OpenAPI documents at %s", pattern)
    return app
