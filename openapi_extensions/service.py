"""OpenAPI document generation for a FastAPI app.

Provides:
- OpenApiDocumentService: builds the draft with FastAPI and runs the transformer pipelines
- add_openapi(app, document_name, configure): register a named document on an app
- get_document_service(app, document_name): look up a registered document
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from fastapi.routing import APIRoute

from openapi_extensions.cancellation import CancellationToken
from openapi_extensions.config import DEFAULT_DOCUMENT_NAME
from openapi_extensions.endpoint import EndpointDescriptor
from openapi_extensions.errors import MissingDocumentServiceError
from openapi_extensions.options import DocumentTransformerContext, OpenApiOptions, OperationTransformerContext

logger = logging.getLogger(__name__)


class OpenApiDocumentService:
    """Generates one named OpenAPI document for ``app``.

    Every call builds a fresh draft with FastAPI's generator, then applies the
    document transformers followed by the operation transformers, one at a
    time and in registration order.
    """

    def __init__(self, app: FastAPI, document_name: str, options: OpenApiOptions) -> None:
        self.app = app
        self.document_name = document_name
        self.options = options

    def build_draft(self) -> Dict[str, Any]:
        app = self.app
        return get_openapi(
            title=f"{app.title} | {self.document_name}",
            version=app.version,
            openapi_version=app.openapi_version,
            summary=app.summary,
            description=app.description,
            routes=app.routes,
            tags=app.openapi_tags,
            servers=app.servers,
        )

    async def get_openapi_document(self, cancellation: Optional[CancellationToken] = None) -> Dict[str, Any]:
        cancellation = cancellation or CancellationToken()
        document = self.build_draft()

        context = DocumentTransformerContext(document_name=self.document_name, app=self.app, options=self.options)
        for transformer in self.options.document_transformers:
            cancellation.raise_if_cancelled()
            await _invoke(transformer, document, context, cancellation)

        if self.options.operation_transformers:
            await self._transform_operations(document, cancellation)
        return document

    async def _transform_operations(self, document: Dict[str, Any], cancellation: CancellationToken) -> None:
        paths = document.get("paths", {})
        for route in self.app.routes:
            if not isinstance(route, APIRoute) or not route.include_in_schema:
                continue
            path_item = paths.get(route.path_format)
            if not path_item:
                continue
            for method in sorted(route.methods):
                operation = path_item.get(method.lower())
                if operation is None:
                    continue
                context = OperationTransformerContext(
                    document_name=self.document_name,
                    description=EndpointDescriptor.from_route(route, method),
                    document=document,
                    options=self.options,
                )
                for transformer in self.options.operation_transformers:
                    cancellation.raise_if_cancelled()
                    await _invoke(transformer, operation, context, cancellation)


async def _invoke(transformer: Callable[..., Any], target: Dict[str, Any], context: Any, cancellation: CancellationToken) -> None:
    result = transformer(target, context, cancellation)
    if inspect.isawaitable(result):
        await result


def _services(app: FastAPI) -> Dict[str, OpenApiDocumentService]:
    services = getattr(app.state, "openapi_documents", None)
    if services is None:
        services = {}
        app.state.openapi_documents = services
    return services


def add_openapi(
    app: FastAPI,
    document_name: str = DEFAULT_DOCUMENT_NAME,
    configure: Optional[Callable[[OpenApiOptions], Any]] = None,
) -> OpenApiOptions:
    """Register an OpenAPI document named ``document_name`` on ``app``.

    ``configure`` receives the new options; the options are also returned so
    they can be configured directly.
    """
    services = _services(app)
    if document_name in services:
        raise ValueError(f"An OpenAPI document named {document_name!r} is already registered")

    options = OpenApiOptions(document_name=document_name)
    if configure is not None:
        configure(options)
    services[document_name] = OpenApiDocumentService(app, document_name, options)
    logger.info("Registered OpenAPI document %s", document_name)
    return options


def get_document_service(app: FastAPI, document_name: str) -> OpenApiDocumentService:
    service = _services(app).get(document_name)
    if service is None:
        raise MissingDocumentServiceError(document_name)
    return service
