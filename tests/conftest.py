"""Pytest fixtures for the OpenAPI extension tests.

Builds a small FastAPI app exercising router-level scopes, claims-bound
parameters and FastAPI's own OAuth2 dependency, plus helpers to generate a
document from it.
"""

import asyncio

import pytest
from fastapi import APIRouter, Depends, FastAPI
from fastapi.security import OAuth2PasswordBearer
from fastapi.testclient import TestClient

from openapi_extensions.cancellation import CancellationToken
from openapi_extensions.endpoint import EndpointDescriptor, ParameterDescription
from openapi_extensions.metadata import Authorize, Claim, Scopes, with_scopes
from openapi_extensions.options import OpenApiOptions, OperationTransformerContext
from openapi_extensions.routers.openapi import map_openapi
from openapi_extensions.service import add_openapi, get_document_service

DOCUMENT_NAME = "v1"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def build_app() -> FastAPI:
    app = FastAPI(title="Weather", version="2.3.0")

    router = APIRouter(prefix="/api/forecasts", tags=["Forecasts"])
    with_scopes(router, "forecasts:read")

    @router.get("/", dependencies=[Authorize(), Scopes("forecasts:list")])
    async def list_forecasts(days: int = 5) -> list:
        return []

    @router.get("/{forecast_id}", dependencies=[Authorize()])
    async def get_forecast(forecast_id: int, sub: str = Claim("sub"), units: str = "metric", tenant: str = Claim("tenant")) -> dict:
        return {"id": forecast_id, "sub": sub, "units": units, "tenant": tenant}

    app.include_router(router)

    @app.get("/api/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/api/me")
    async def me(token: str = Depends(oauth2_scheme)) -> dict:
        return {"token": token}

    return app


@pytest.fixture()
def app():
    return build_app()


@pytest.fixture()
def generate(app):
    """Register a document on ``app`` configured by ``configure`` and generate it."""
    def _generate(configure=None, cancellation=None):
        add_openapi(app, DOCUMENT_NAME, configure)
        service = get_document_service(app, DOCUMENT_NAME)
        return asyncio.run(service.get_openapi_document(cancellation))

    return _generate


@pytest.fixture()
def client(app):
    map_openapi(app)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def operation_context():
    """Return a helper building an operation context from explicit metadata."""
    def _context(metadata=(), parameters=(), document=None, options=None):
        description = EndpointDescriptor(
            path="/api/forecasts/{forecast_id}",
            method="get",
            metadata=list(metadata),
            parameters=[ParameterDescription(name, source) for name, source in parameters],
        )
        return OperationTransformerContext(
            document_name=DOCUMENT_NAME,
            description=description,
            document=document if document is not None else {},
            options=options or OpenApiOptions(DOCUMENT_NAME),
        )

    return _context


@pytest.fixture()
def cancellation():
    return CancellationToken()
