"""Generate a registered OpenAPI document and write it as JSON (default docs/openapi.json)."""
from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import logging
import os
import sys
from typing import List, Optional

from openapi_extensions.config import DEFAULT_DOCUMENT_NAME
from openapi_extensions.errors import MissingDocumentServiceError
from openapi_extensions.service import get_document_service

logger = logging.getLogger(__name__)


def load_app(target: str):
    module_name, _, attr = target.partition(":")
    module = importlib.import_module(module_name)
    return getattr(module, attr or "app")


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--app", required=True, help="FastAPI app as module:attribute")
    parser.add_argument("--document", default=DEFAULT_DOCUMENT_NAME, help="registered document name")
    parser.add_argument("--out", default=os.path.join("docs", "openapi.json"), help="output file")
    args = parser.parse_args(argv)

    app = load_app(args.app)
    try:
        service = get_document_service(app, args.document)
    except MissingDocumentServiceError as exc:
        logger.error("%s", exc)
        return 1

    document = asyncio.run(service.get_openapi_document())
    out_dir = os.path.dirname(args.out)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False, sort_keys=True)
    print(f"Wrote OpenAPI to {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
