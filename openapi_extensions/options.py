"""Configuration of one OpenAPI document.

``OpenApiOptions`` owns the ordered document and operation transformer
collections. It is assembled once at startup (see ``service.add_openapi``) and
treated as read-only while documents are generated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar, Union

from fastapi.openapi.models import (
    APIKey,
    APIKeyIn,
    HTTPBase,
    HTTPBearer,
    OAuth2,
    OAuthFlows,
    OpenIdConnect,
    SecurityBase as SecuritySchemeModel,
)

from openapi_extensions import transformers
from openapi_extensions.cancellation import CancellationToken
from openapi_extensions.config import DEFAULT_DOCUMENT_NAME, OPENAPI_DISTRIBUTION
from openapi_extensions.endpoint import EndpointDescriptor
from openapi_extensions.security import register_scheme

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=SecuritySchemeModel)


@dataclass
class DocumentTransformerContext:
    document_name: str
    app: Any
    options: "OpenApiOptions"


@dataclass
class OperationTransformerContext:
    document_name: str
    description: EndpointDescriptor
    document: Dict[str, Any]
    options: "OpenApiOptions"


DocumentTransformer = Callable[[Dict[str, Any], DocumentTransformerContext, CancellationToken], Optional[Awaitable[None]]]
OperationTransformer = Callable[[Dict[str, Any], OperationTransformerContext, CancellationToken], Optional[Awaitable[None]]]


class OpenApiOptions:
    def __init__(self, document_name: str = DEFAULT_DOCUMENT_NAME, distribution: Optional[str] = OPENAPI_DISTRIBUTION) -> None:
        self.document_name = document_name
        self.distribution = distribution
        self.document_transformers: List[DocumentTransformer] = []
        self.operation_transformers: List[OperationTransformer] = []
        self.security_schemes: Dict[str, SecuritySchemeModel] = {}

    def add_document_transformer(self, transformer: DocumentTransformer) -> "OpenApiOptions":
        self.document_transformers.append(transformer)
        return self

    def add_operation_transformer(self, transformer: OperationTransformer) -> "OpenApiOptions":
        self.operation_transformers.append(transformer)
        return self

    # ----------------------------- Document ----------------------------
    def set_info(self, title: str, version: Optional[str] = None) -> "OpenApiOptions":
        """Set ``info.title`` to ``"{title} | {version}"``.

        Without ``version`` the document name is used in the title and
        ``info.version`` reports the running application's version.
        """
        return self.add_document_transformer(transformers.set_info(title, version, self.distribution))

    def use_path_base(self, path_base: str) -> "OpenApiOptions":
        return self.add_document_transformer(transformers.use_path_base(path_base))

    def add_security_scheme(self, scheme: S, name: Optional[str] = None) -> Tuple[S, str]:
        """Register ``scheme`` and add it to ``components.securitySchemes`` of every generated document.

        Raises ``DuplicateSchemeNameError`` if the name (explicit or derived) is
        already registered on these options.
        """
        name = register_scheme(self.security_schemes, scheme, name)
        self.add_document_transformer(transformers.add_security_scheme(scheme, name))
        logger.info("Security scheme %s added to OpenAPI document %s", name, self.document_name)
        return scheme, name

    def add_api_key(
        self,
        name: Optional[str] = None,
        *,
        key_name: str = "X-API-Key",
        location: APIKeyIn = APIKeyIn.header,
        configure: Optional[Callable[[APIKey], None]] = None,
    ) -> Tuple[APIKey, str]:
        return self._add_scheme(APIKey(**{"in": location}, name=key_name), name, configure)

    def add_http(
        self,
        name: Optional[str] = None,
        *,
        scheme: str = "bearer",
        configure: Optional[Callable[[HTTPBase], None]] = None,
    ) -> Tuple[HTTPBase, str]:
        model = HTTPBearer() if scheme == "bearer" else HTTPBase(scheme=scheme)
        return self._add_scheme(model, name, configure)

    def add_oauth2(
        self,
        flows: OAuthFlows,
        name: Optional[str] = None,
        *,
        configure: Optional[Callable[[OAuth2], None]] = None,
    ) -> Tuple[OAuth2, str]:
        return self._add_scheme(OAuth2(flows=flows), name, configure)

    def add_open_id_connect(
        self,
        open_id_connect_url: str,
        name: Optional[str] = None,
        *,
        configure: Optional[Callable[[OpenIdConnect], None]] = None,
    ) -> Tuple[OpenIdConnect, str]:
        return self._add_scheme(OpenIdConnect(openIdConnectUrl=open_id_connect_url), name, configure)

    def _add_scheme(self, scheme: S, name: Optional[str], configure: Optional[Callable[[S], None]]) -> Tuple[S, str]:
        if configure is not None:
            configure(scheme)
        return self.add_security_scheme(scheme, name)

    # ----------------------------- Operation ---------------------------
    def with_claims_binding_check(self) -> "OpenApiOptions":
        return self.add_operation_transformer(transformers.claims_binding_check)

    def with_authorize_check(self, scheme_or_name: Union[SecuritySchemeModel, str, None]) -> "OpenApiOptions":
        """Describe authorization on every endpoint carrying an authorization marker.

        ``scheme_or_name`` is a registered scheme name, a scheme model or
        ``None`` (responses only).
        """
        return self.add_operation_transformer(transformers.authorize_check(transformers.resolve_scheme(scheme_or_name)))
