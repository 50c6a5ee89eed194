"""Cooperative cancellation for long-running store operations."""

import threading

from vectorsearch.core.errors import Cancelled


class CancellationToken:
    """Flag shared between a caller and a running query, rebuild or mutation.

    Operations poll the token and raise ``Cancelled`` at points where
    stopping leaves every structure in a valid state.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled("operation cancelled")


def check(token: CancellationToken | None) -> None:
    """Raise ``Cancelled`` if a token was given and has been cancelled."""
    if token is not None:
        token.raise_if_cancelled()
