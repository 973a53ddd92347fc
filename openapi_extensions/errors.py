"""Error types raised while configuring or generating OpenAPI documents.

Provides:
- DuplicateSchemeNameError: a security scheme name is already registered
- CancellationError: a transformer observed a cancellation request
- MissingDocumentServiceError: no document is registered under a name
- api_error(...) -> HTTPException with JSON detail: {"error": {"code": str, "message": str, "details": ...}}
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import HTTPException


class OpenApiExtensionError(Exception):
    """Base class for errors raised by this package."""


class DuplicateSchemeNameError(OpenApiExtensionError, KeyError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"A security scheme named {self.name!r} is already registered"


class CancellationError(OpenApiExtensionError):
    """Raised when a cancellation request is observed mid-transformation."""


class MissingDocumentServiceError(OpenApiExtensionError, LookupError):
    def __init__(self, document_name: str) -> None:
        super().__init__(document_name)
        self.document_name = document_name

    def __str__(self) -> str:
        return f"No OpenAPI document is registered under {self.document_name!r}"


def api_error(status_code: int, code: str, message: str, details: Optional[Any] = None, headers: Optional[dict] = None) -> HTTPException:
    payload: dict = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return HTTPException(status_code=status_code, detail=payload, headers=headers)
