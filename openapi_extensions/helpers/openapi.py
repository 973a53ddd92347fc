"""Helpers for amending a generated OpenAPI document in place.

The document is the plain ``dict`` produced by ``fastapi.openapi.utils.get_openapi``.
"""
from __future__ import annotations

import importlib.metadata
import logging
import sys
from typing import Any, Callable, Dict, MutableMapping, Optional, TypeVar

from openapi_extensions.config import FALLBACK_VERSION

logger = logging.getLogger(__name__)

V = TypeVar("V")


def add_or_update(
    mapping: MutableMapping[str, V],
    key: str,
    add_value_factory: Callable[[str], V],
    update_value_factory: Callable[[str, V], V],
) -> V:
    """Add a value for an absent key or replace the value of an existing one.

    Returns the value stored under ``key``: the result of ``add_value_factory``
    if the key was absent, of ``update_value_factory`` if it was present.
    """
    if key in mapping:
        updated = update_value_factory(key, mapping[key])
        mapping[key] = updated
        return updated

    value = add_value_factory(key)
    mapping[key] = value
    return value


def ensure_security_schemes(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``components.securitySchemes``, creating the containers if needed."""
    components = document.setdefault("components", {})
    return components.setdefault("securitySchemes", {})


def get_entry_version(distribution: Optional[str] = None) -> str:
    """Resolve the version of the running application.

    Tries the installed metadata of ``distribution``, then of the package that
    ``__main__`` belongs to, then that package's ``__version__`` attribute, and
    finally falls back to ``FALLBACK_VERSION``.
    """
    package = _entry_package()
    for candidate in (distribution, package):
        if not candidate:
            continue
        try:
            return importlib.metadata.version(candidate)
        except importlib.metadata.PackageNotFoundError:
            logger.debug("No installed distribution named %s", candidate)

    module_version = getattr(sys.modules.get(package or ""), "__version__", None)
    if isinstance(module_version, str) and module_version:
        return module_version
    return FALLBACK_VERSION


def _entry_package() -> Optional[str]:
    main = sys.modules.get("__main__")
    package = getattr(main, "__package__", None)
    if not package:
        return None
    return package.split(".")[0]
