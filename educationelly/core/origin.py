import logging

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"]
ALLOWED_HEADERS = ["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"]
EXPOSED_HEADERS = ["Content-Length", "X-Requested-With"]


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Rejects browser requests from origins outside the allow-list.

    Requests without an Origin header (curl, mobile apps, server-to-server) are
    always admitted.
    """

    def __init__(self, app, allowed_origins: list[str], allow_all: bool = False) -> None:
        super().__init__(app)
        self.allowed_origins = frozenset(origin.rstrip("/") for origin in allowed_origins)
        self.allow_all = allow_all

    def is_allowed(self, origin: str | None) -> bool:
        if not origin or self.allow_all:
            return True
        return origin.rstrip("/") in self.allowed_origins

    async def dispatch(self, request: Request, call_next) -> Response:
        origin = request.headers.get("origin")
        if not self.is_allowed(origin):
            logger.info("CORS rejected origin: %s", origin)
            return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"error": "Not allowed by CORS"})
        return await call_next(request)


def install_origin_policy(app: FastAPI, allowed_origins: list[str], allow_all: bool = False) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else list(allowed_origins),
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=EXPOSED_HEADERS,
    )
    # Added after CORS so it runs first and rejected origins never reach a handler.
    app.add_middleware(OriginGuardMiddleware, allowed_origins=allowed_origins, allow_all=allow_all)
