"""Cooperative cancellation for transformer pipelines."""

from __future__ import annotations

import threading

from openapi_extensions.errors import CancellationError


class CancellationToken:
    """A cancellation signal shared between a generation request and its transformers.

    Transformers call :meth:`raise_if_cancelled` before each unit of work; once
    :meth:`cancel` has been called the next check raises ``CancellationError``.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError("OpenAPI document generation was cancelled")

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
