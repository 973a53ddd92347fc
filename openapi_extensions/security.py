"""Security scheme registry for ``components.securitySchemes``.

Provides:
- scheme_name(scheme): the derived registry name of a scheme model
- register_scheme(schemes, scheme, name): add under a unique, case-insensitive name
- add_scheme_to_document(document, scheme, name): register a serialized scheme in a document
- lookup_scheme(schemes, name): case-insensitive lookup
- parse_scheme(data): rebuild a scheme model from its document form
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

from fastapi.encoders import jsonable_encoder
from fastapi.openapi.models import (
    APIKey,
    HTTPBase,
    HTTPBearer,
    OAuth2,
    OpenIdConnect,
    SecurityBase as SecuritySchemeModel,
    SecuritySchemeType,
)

from openapi_extensions.errors import DuplicateSchemeNameError
from openapi_extensions.helpers.openapi import ensure_security_schemes

logger = logging.getLogger(__name__)

SCHEME_TYPE_NAMES: Dict[SecuritySchemeType, str] = {
    SecuritySchemeType.apiKey: "ApiKey",
    SecuritySchemeType.http: "Http",
    SecuritySchemeType.oauth2: "OAuth2",
    SecuritySchemeType.openIdConnect: "OpenIdConnect",
}

# Only these scheme types carry scopes in a security requirement
SCOPED_SCHEME_TYPES = (SecuritySchemeType.oauth2, SecuritySchemeType.openIdConnect)


def scheme_name(scheme: Any) -> str:
    """Derive the registry name of ``scheme``.

    The first non-empty of: the scheme type identifier, the ``scheme``
    sub-field, the string form of the scheme.
    """
    scheme_type = getattr(scheme, "type_", None)
    candidates = (SCHEME_TYPE_NAMES.get(scheme_type), getattr(scheme, "scheme", None), str(scheme))
    return next(candidate for candidate in candidates if candidate)


def is_scoped(scheme: Any) -> bool:
    return getattr(scheme, "type_", None) in SCOPED_SCHEME_TYPES


def find_name(schemes: Mapping[str, Any], name: str) -> Optional[str]:
    folded = name.casefold()
    return next((key for key in schemes if key.casefold() == folded), None)


def lookup_scheme(schemes: Mapping[str, Any], name: str) -> Optional[Tuple[str, Any]]:
    key = find_name(schemes, name)
    if key is None:
        return None
    return key, schemes[key]


def register_scheme(schemes: MutableMapping[str, Any], scheme: Any, name: Optional[str] = None) -> str:
    """Add ``scheme`` to ``schemes`` and return the name it was registered under.

    Raises ``DuplicateSchemeNameError`` if the name is already taken; existing
    entries are never overwritten.
    """
    name = name or scheme_name(scheme)
    if find_name(schemes, name) is not None:
        raise DuplicateSchemeNameError(name)
    schemes[name] = scheme
    logger.debug("Registered security scheme %s", name)
    return name


def serialize_scheme(scheme: SecuritySchemeModel) -> Dict[str, Any]:
    return jsonable_encoder(scheme, by_alias=True, exclude_none=True)


def add_scheme_to_document(document: Dict[str, Any], scheme: SecuritySchemeModel, name: Optional[str] = None) -> str:
    return register_scheme(ensure_security_schemes(document), serialize_scheme(scheme), name or scheme_name(scheme))


def parse_scheme(data: Mapping[str, Any]) -> SecuritySchemeModel:
    scheme_type = data.get("type")
    if scheme_type == SecuritySchemeType.apiKey.value:
        return APIKey.model_validate(data)
    if scheme_type == SecuritySchemeType.http.value:
        model = HTTPBearer if data.get("scheme") == "bearer" else HTTPBase
        return model.model_validate(data)
    if scheme_type == SecuritySchemeType.oauth2.value:
        return OAuth2.model_validate(data)
    if scheme_type == SecuritySchemeType.openIdConnect.value:
        return OpenIdConnect.model_validate(data)
    raise ValueError(f"Unknown security scheme type: {scheme_type!r}")
