# HTTP Basic authentication gate.
# Created: 2026-10-16
#
# A single ``user:pass`` credential guards every route. Registered as HTTP
# middleware by dufs.server; no sessions, no per-path exemptions.

from __future__ import annotations

import base64
import binascii
import hmac
import logging

from fastapi import Request, Response

logger = logging.getLogger(__name__)

_SCHEME = "Basic "


def check_basic_auth(header: str | None, credential: str | None) -> bool:
    """Return True if *header* grants access for *credential*.

    With no credential configured everything passes. Otherwise the header must
    be ``Basic <base64(user:pass)>`` and decode to exactly the credential.
    """
    if credential is None:
        return True
    if not header or not header.startswith(_SCHEME):
        return False

    try:
        decoded = base64.b64decode(header[len(_SCHEME) :], validate=True)
    except (binascii.Error, ValueError):
        return False
    try:
        decoded.decode("utf-8")
    except UnicodeDecodeError:
        return False

    return hmac.compare_digest(decoded, credential.encode("utf-8"))


def unauthorized() -> Response:
    return Response(
        content="Unauthorized",
        status_code=401,
        headers={"WWW-Authenticate": "Basic"},
    )


async def auth_middleware(request: Request, call_next):
    settings = request.app.state.settings
    if not check_basic_auth(request.headers.get("Authorization"), settings.auth):
        logger.debug("Rejected credentials from %s", request.client.host if request.client else "-")
        return unauthorized()
    return await call_next(request)
