"""
Shared web security helpers (FastAPI-agnostic utilities for routes).

Contains the CSRF same-origin check used by every form POST (auth,
registration, contact, admin). Keeping a single implementation avoids
security drift between routers.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse
import os

from fastapi import Request
from fastapi.responses import Response


def _default_port(scheme: str) -> int:
    return 443 if scheme == "https" else 80


def _parse_origin(url: str) -> tuple[str, str, int]:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    host = p.hostname.lower()
    port = p.port if p.port is not None else _default_port(scheme)
    return scheme, host, int(port)


def _parse_server(req: Request) -> tuple[str, str, int]:
    trust_proxy = (os.getenv("ASPIRELINK_TRUST_PROXY", "false") or "").lower() == "true"
    if trust_proxy:
        xf_proto = (req.headers.get("x-forwarded-proto") or req.url.scheme or "").split(",")[0].strip()
        xf_host = (req.headers.get("x-forwarded-host") or req.headers.get("host") or "").split(",")[0].strip()
        scheme = (xf_proto or req.url.scheme or "http").lower()
        if ":" in xf_host:
            host_only, port_str = xf_host.rsplit(":", 1)
            try:
                port = int(port_str)
            except ValueError:
                port = _default_port(scheme)
            host = host_only.lower()
        else:
            host = (xf_host or (req.url.hostname or "")).lower()
            port = int(req.url.port) if req.url.port else _default_port(scheme)
        xf_port_raw = req.headers.get("x-forwarded-port") or ""
        if xf_port_raw:
            try:
                port = int(xf_port_raw.split(",")[0].strip())
            except ValueError:
                port = _default_port(scheme)
        return scheme, host, port

    scheme = (req.url.scheme or "http").lower()
    host = (req.url.hostname or "").lower()
    port = int(req.url.port) if req.url.port else _default_port(scheme)
    return scheme, host, port


def _is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow to not break non-browser clients.
    Proxy awareness: Only trust X-Forwarded-* when ASPIRELINK_TRUST_PROXY=true.
    """
    try:
        server = _parse_server(request)
        origin_val = request.headers.get("origin")
        if origin_val:
            return _parse_origin(origin_val) == server
        referer_val = request.headers.get("referer")
        if referer_val:
            return _parse_origin(referer_val) == server
        return True
    except ValueError:
        return False


def csrf_rejection(request: Request) -> Optional[Response]:
    """Return a 403 response for cross-origin form posts, else None."""
    if _is_same_origin(request):
        return None
    return Response(
        "cross-origin request rejected",
        status_code=403,
        media_type="text/plain",
        headers={"Cache-Control": "private, no-store", "Vary": "Origin"},
    )
