"""WSGI lifecycle adapter.

Purpose
-------
Treat every WSGI request as one unit of work: begin it from the request
environ before the application runs, and end it (flushing buffered lines) when
the server closes the response iterable.

Handlers inside the wrapped application log with :func:`lib_devlogs.log`,
which finds the unit bound to the current context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core import DevLogs, UnitOfWork

WSGIApp = Callable[[dict[str, Any], Callable[..., Any]], Iterable[bytes]]


class DevLogsMiddleware:
    """Wrap *app* so each request runs inside its own unit of work."""

    def __init__(self, app: WSGIApp, devlogs: "DevLogs") -> None:
        self._app = app
        self._devlogs = devlogs

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        unit = self._devlogs.begin(environ)
        try:
            result = self._app(environ, start_response)
        except BaseException:
            unit.end()
            raise
        return _ClosingResponse(result, unit)


class _ClosingResponse:
    """Response iterable that ends the unit of work when the server closes it."""

    def __init__(self, result: Iterable[bytes], unit: "UnitOfWork") -> None:
        self._result = result
        self._unit = unit

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._result)

    def close(self) -> None:
        try:
            close = getattr(self._result, "close", None)
            if close is not None:
                close()
        finally:
            self._unit.end()
