"""Built-in document and operation transformers.

Document transformers take ``(document, context, cancellation)``; operation
transformers take ``(operation, context, cancellation)``. Both mutate their
first argument in place.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple, Union

from fastapi import status
from fastapi.openapi.models import SecurityBase as SecuritySchemeModel

from openapi_extensions.cancellation import CancellationToken
from openapi_extensions.config import FORBIDDEN_DESCRIPTION, UNAUTHORIZED_DESCRIPTION
from openapi_extensions.helpers.openapi import add_or_update, get_entry_version
from openapi_extensions.metadata import CLAIMS_BINDING_SOURCE
from openapi_extensions.security import add_scheme_to_document, is_scoped, lookup_scheme, parse_scheme, scheme_name

if TYPE_CHECKING:
    from openapi_extensions.options import DocumentTransformerContext, OpenApiOptions, OperationTransformerContext

logger = logging.getLogger(__name__)

UNAUTHORIZED_KEY = str(status.HTTP_401_UNAUTHORIZED)
FORBIDDEN_KEY = str(status.HTTP_403_FORBIDDEN)

ResolvedScheme = Tuple[str, SecuritySchemeModel]
SchemeResolver = Callable[["OpenApiOptions", Dict[str, Any]], Optional[ResolvedScheme]]


# ----------------------------- Document --------------------------------
def set_info(title: str, version: Optional[str] = None, distribution: Optional[str] = None):
    def transform(document: Dict[str, Any], context: DocumentTransformerContext, cancellation: CancellationToken) -> None:
        info = document.setdefault("info", {})
        info["title"] = f"{title} | {version or context.document_name}"
        info["version"] = version or get_entry_version(distribution)

    return transform


def use_path_base(path_base: str):
    def transform(document: Dict[str, Any], context: DocumentTransformerContext, cancellation: CancellationToken) -> None:
        document["servers"] = [{"url": path_base}]

    return transform


def add_security_scheme(scheme: SecuritySchemeModel, name: str):
    def transform(document: Dict[str, Any], context: DocumentTransformerContext, cancellation: CancellationToken) -> None:
        add_scheme_to_document(document, scheme, name)

    return transform


# ----------------------------- Operation -------------------------------
def claims_binding_check(operation: Dict[str, Any], context: OperationTransformerContext, cancellation: CancellationToken) -> None:
    """Remove parameters FastAPI documents for claims-bound arguments."""
    names = {p.name for p in context.description.parameters if p.source == CLAIMS_BINDING_SOURCE}
    parameters: Optional[List[Dict[str, Any]]] = operation.get("parameters")
    if not names or not parameters:
        return

    for parameter in [p for p in parameters if p.get("name") in names]:
        cancellation.raise_if_cancelled()
        _remove_item(parameters, parameter)
        logger.debug("Removed claims-bound parameter %s from %s %s", parameter.get("name"), context.description.method.upper(), context.description.path)


def authorize_check(resolver: SchemeResolver):
    """Describe the authorization requirement of endpoints carrying an authorization marker.

    Adds 401/403 responses and, when ``resolver`` yields a scheme, appends a
    security requirement. Scopes are only listed for OAuth2 and OpenID Connect
    schemes.
    """

    def transform(operation: Dict[str, Any], context: OperationTransformerContext, cancellation: CancellationToken) -> None:
        description = context.description
        if not description.has_authorization():
            return

        responses = operation.setdefault("responses", {})
        _set_response_description(responses, UNAUTHORIZED_KEY, UNAUTHORIZED_DESCRIPTION)
        _set_response_description(responses, FORBIDDEN_KEY, FORBIDDEN_DESCRIPTION)

        resolved = resolver(context.options, context.document)
        if resolved is None:
            return

        name, scheme = resolved
        scopes = description.scopes() if is_scoped(scheme) else []
        operation.setdefault("security", []).append({name: scopes})

    return transform


def resolve_scheme(scheme_or_name: Union[SecuritySchemeModel, str, None]) -> SchemeResolver:
    """Build the resolver used by ``authorize_check``.

    A name is looked up in the document's ``components.securitySchemes`` and
    then in the options registry; a scheme model resolves to itself under its
    registered (or derived) name.
    """
    if scheme_or_name is None:
        return lambda options, document: None

    if isinstance(scheme_or_name, str):
        name = scheme_or_name

        def resolve_named(options: OpenApiOptions, document: Dict[str, Any]) -> Optional[ResolvedScheme]:
            found = lookup_scheme(document.get("components", {}).get("securitySchemes", {}), name)
            if found is not None:
                return found[0], parse_scheme(found[1])
            found = lookup_scheme(options.security_schemes, name)
            if found is None:
                logger.warning("Security scheme %s is not registered; skipping security requirement", name)
            return found

        return resolve_named

    scheme = scheme_or_name

    def resolve_model(options: OpenApiOptions, document: Dict[str, Any]) -> Optional[ResolvedScheme]:
        for key, value in options.security_schemes.items():
            if value is scheme:
                return key, scheme
        return scheme_name(scheme), scheme

    return resolve_model


def _set_response_description(responses: Dict[str, Any], key: str, description: str) -> None:
    def update(_key: str, response: Dict[str, Any]) -> Dict[str, Any]:
        response["description"] = description
        return response

    add_or_update(responses, key, lambda _key: {"description": description}, update)


def _remove_item(items: List[Any], item: Any) -> None:
    for index, candidate in enumerate(items):
        if candidate is item:
            del items[index]
            return
