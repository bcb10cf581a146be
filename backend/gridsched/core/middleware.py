from __future__ import annotations

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class UploadSizeLimitMiddleware(BaseHTTPMiddleware):
    """Refuse workbook uploads whose declared size exceeds ``max_bytes``.

    Only write requests under ``path_prefix`` are checked; reads and other
    routes pass straight through.
    """

    def __init__(self, app, *, max_bytes: int, path_prefix: str) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)
        self._path_prefix = path_prefix.rstrip("/")

    def _applies_to(self, request: Request) -> bool:
        return (
            request.scope.get("type") == "http"
            and request.method in {"POST", "PUT"}
            and request.url.path.startswith(self._path_prefix)
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        if not self._applies_to(request):
            return await call_next(request)

        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self._max_bytes:
            return JSONResponse(
                status_code=413,
                content={
                    "message": "Upload too large",
                    "details": {"declared_bytes": int(declared), "max_bytes": self._max_bytes},
                },
            )
        return await call_next(request)
