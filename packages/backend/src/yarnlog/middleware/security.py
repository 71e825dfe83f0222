"""Response hardening headers.

Learn: Every response gets a fixed set of browser-facing headers. Auth
responses additionally carry a bearer token in the body, so they must
never land in a browser or proxy cache.

HSTS is only meaningful over TLS; on plain HTTP it is ignored by browsers,
so it is added only when the request came in as https.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

AUTH_PATH_PREFIX = "/api/auth"

BASELINE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

TOKEN_RESPONSE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


def headers_for(path: str, scheme: str) -> dict[str, str]:
    """The hardening headers a response to `path` should carry."""
    headers = dict(BASELINE_HEADERS)
    if path.startswith(AUTH_PATH_PREFIX):
        headers.update(TOKEN_RESPONSE_HEADERS)
    if scheme == "https":
        headers["Strict-Transport-Security"] = HSTS_VALUE
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(headers_for(request.url.path, request.url.scheme))
        return response
