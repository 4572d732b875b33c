from __future__ import annotations

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

_BODY_HEADERS = {"content-length", "content-type"}


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """Starlette's CORS handling, but pre-flight requests get an empty body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in _BODY_HEADERS
        }
        return Response(status_code=response.status_code, headers=headers)
