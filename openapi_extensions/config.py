"""Environment-driven defaults for the OpenAPI extensions.

Reads:
- OPENAPI_DOCUMENT_NAME: name of the default document (``v1``)
- OPENAPI_ROUTE_PATTERN: route serving generated documents
- OPENAPI_DISTRIBUTION: distribution whose version is reported in ``info.version``
"""

from __future__ import annotations

import os
from typing import Optional

DEFAULT_DOCUMENT_NAME: str = os.getenv("OPENAPI_DOCUMENT_NAME", "v1")
OPENAPI_ROUTE_PATTERN: str = os.getenv("OPENAPI_ROUTE_PATTERN", "/openapi/{document_name}.json")
OPENAPI_DISTRIBUTION: Optional[str] = os.getenv("OPENAPI_DISTRIBUTION") or None

# Reported when no version can be resolved for the running application
FALLBACK_VERSION = "1.0.0"

UNAUTHORIZED_DESCRIPTION = "User is not authorised"
FORBIDDEN_DESCRIPTION = "User access to resource is forbidden"
