"""Endpoint metadata understood by the OpenAPI transformers.

Metadata is attached to routes as FastAPI dependencies so that it follows the
route through ``include_router`` and router-level ``dependencies=[...]``:

- Scopes(*scopes): declares the OAuth2/OpenID Connect scopes an endpoint needs
- Authorize(...): marks an endpoint as requiring an authorized caller
- with_scopes(builder, *scopes): attaches scopes to a route, a router or an app
- Claim(claim_type): a header parameter populated from a token claim upstream
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, TypeVar

from fastapi import Depends, FastAPI, params
from fastapi.dependencies.utils import get_parameterless_sub_dependant
from fastapi.routing import APIRoute, APIRouter

CLAIMS_BINDING_SOURCE = "ClaimsBindingSource"
CLAIM_HEADER_PREFIX = "X-Claim-"

Builder = TypeVar("Builder", APIRoute, APIRouter, FastAPI)


@dataclass(frozen=True)
class ScopesMetadata:
    """Scopes associated with an endpoint."""

    scopes: Tuple[str, ...] = ()

    def __call__(self) -> None:
        return None

    def __str__(self) -> str:
        return f"Scopes: {','.join(self.scopes)}"


@dataclass(frozen=True)
class AuthorizeMetadata:
    """Marks an endpoint as requiring authorization.

    Enforcement is left to the application's security dependencies; the marker
    only tells the OpenAPI transformers that 401/403 responses and a security
    requirement apply.
    """

    policy: Optional[str] = None
    roles: Tuple[str, ...] = ()

    def __call__(self) -> None:
        return None


def Scopes(*scopes: str) -> Any:
    """Dependency declaring the scopes an endpoint requires.

    ``@router.get("/items", dependencies=[Authorize(), Scopes("items:read")])``
    """
    return Depends(ScopesMetadata(tuple(scopes)))


def Authorize(policy: Optional[str] = None, roles: Tuple[str, ...] = ()) -> Any:
    return Depends(AuthorizeMetadata(policy=policy, roles=tuple(roles)))


def with_scopes(builder: Builder, *scopes: str) -> Builder:
    """Attach a ``ScopesMetadata`` to every endpoint produced by ``builder``.

    ``builder`` may be a single ``APIRoute``, an ``APIRouter`` or a ``FastAPI``
    app. Router-level scopes apply to routes already registered on the router
    and to routes added later; attach them before ``include_router`` so the
    including router sees them. Repeated calls accumulate.
    """
    dependency = Scopes(*scopes)
    if isinstance(builder, FastAPI):
        _add_router_dependency(builder.router, dependency)
    elif isinstance(builder, APIRouter):
        _add_router_dependency(builder, dependency)
    elif isinstance(builder, APIRoute):
        _add_route_dependency(builder, dependency)
    else:
        raise TypeError(f"Cannot attach scopes to {type(builder).__name__}")
    return builder


def _add_router_dependency(router: APIRouter, dependency: params.Depends) -> None:
    router.dependencies.append(dependency)
    for route in router.routes:
        if isinstance(route, APIRoute):
            _add_route_dependency(route, dependency)


def _add_route_dependency(route: APIRoute, dependency: params.Depends) -> None:
    # APIRoute resolves its dependency tree at construction time
    route.dependencies.append(dependency)
    route.dependant.dependencies.append(get_parameterless_sub_dependant(depends=dependency, path=route.path_format))


class ClaimsBinding(params.Header):
    """Header parameter whose value an upstream gateway copies from a validated token claim.

    FastAPI documents it like any other header; ``with_claims_binding_check``
    removes it from the published document.
    """

    binding_source = CLAIMS_BINDING_SOURCE


def Claim(claim_type: str, default: Any = ..., *, description: Optional[str] = None) -> Any:
    return ClaimsBinding(
        default=default,
        alias=f"{CLAIM_HEADER_PREFIX}{claim_type}",
        convert_underscores=False,
        description=description or f"Value of the '{claim_type}' claim",
    )
