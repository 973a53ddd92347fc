"""Read-only description of a FastAPI endpoint as seen by operation transformers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List

from fastapi.dependencies.models import Dependant
from fastapi.dependencies.utils import get_flat_dependant
from fastapi.routing import APIRoute
from fastapi.security.base import SecurityBase

from openapi_extensions.metadata import AuthorizeMetadata, ScopesMetadata


@dataclass(frozen=True)
class ParameterDescription:
    name: str
    source: str


@dataclass
class EndpointDescriptor:
    """Metadata and parameters declared for one operation.

    ``metadata`` lists every callable on the route's dependency tree in
    declaration order: router-level dependencies first, then route-level ones,
    then dependencies declared on the endpoint signature.
    """

    path: str
    method: str
    metadata: List[Any] = field(default_factory=list)
    parameters: List[ParameterDescription] = field(default_factory=list)

    def has_authorization(self) -> bool:
        return any(isinstance(item, (AuthorizeMetadata, SecurityBase)) for item in self.metadata)

    def scope_metadata(self) -> List[ScopesMetadata]:
        return [item for item in self.metadata if isinstance(item, ScopesMetadata)]

    def scopes(self) -> List[str]:
        aggregated: List[str] = []
        for item in self.scope_metadata():
            aggregated.extend(item.scopes)
        return aggregated

    @classmethod
    def from_route(cls, route: APIRoute, method: str) -> "EndpointDescriptor":
        return cls(
            path=route.path_format,
            method=method.lower(),
            metadata=list(_dependency_calls(route.dependant)),
            parameters=list(_parameter_descriptions(route.dependant)),
        )


def _dependency_calls(dependant: Dependant) -> Iterator[Any]:
    for sub_dependant in dependant.dependencies:
        if sub_dependant.call is not None:
            yield sub_dependant.call
        yield from _dependency_calls(sub_dependant)


def _parameter_descriptions(dependant: Dependant) -> Iterator[ParameterDescription]:
    flat = get_flat_dependant(dependant, skip_repeats=True)
    for fields in (flat.path_params, flat.query_params, flat.header_params, flat.cookie_params):
        for model_field in fields:
            field_info = model_field.field_info
            source = getattr(field_info, "binding_source", None) or field_info.in_.value
            yield ParameterDescription(name=model_field.alias, source=source)
