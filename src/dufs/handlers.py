# Request handlers: GET / PUT / DELETE against the served directory.
# Created: 2026-10-16
#
# dispatch() is mounted as the single catch-all route by dufs.server. Handlers
# return a response (including 4xx) or raise; dispatch() turns anything raised
# into a bare status response and logs it.

from __future__ import annotations

import asyncio
import logging
import shutil
import stat
from collections.abc import AsyncIterator
from http import HTTPStatus
from pathlib import Path
from urllib.parse import quote, unquote_plus

import aiofiles
import aiofiles.os
from fastapi import Request, Response
from fastapi.responses import HTMLResponse, StreamingResponse

from dufs.archive import stream_zip
from dufs.config import Settings
from dufs.index import render_index
from dufs.listing import PathEntry, list_directory, search_directory
from dufs.paths import BadRequest, breadcrumb, resolve_request_path

logger = logging.getLogger(__name__)

CHUNK_SIZE = 16 * 1024


def status_response(code: int) -> Response:
    """A response whose body is just the reason phrase."""
    status = HTTPStatus(code)
    return Response(content=status.phrase, status_code=status.value)


def raw_path(request: Request) -> str:
    """The request path exactly as sent, still percent-encoded."""
    raw = request.scope.get("raw_path")
    if raw:
        return raw.decode("latin-1")
    return quote(request.scope["path"])


def raw_query(request: Request) -> str:
    return request.scope.get("query_string", b"").decode("latin-1")


async def dispatch(request: Request) -> Response:
    settings: Settings = request.app.state.settings
    try:
        if request.method == "GET":
            return await handle_get(request, settings)
        if request.method == "PUT":
            if settings.readonly:
                return status_response(403)
            return await handle_upload(request, settings)
        if request.method == "DELETE":
            return await handle_delete(request, settings)
        return status_response(404)
    except BadRequest as e:
        logger.warning("Bad request %s: %s", request.url.path, e)
        return status_response(400)
    except Exception:
        logger.exception("Failed to handle %s %s", request.method, request.url.path)
        return status_response(500)


async def handle_get(request: Request, settings: Settings) -> Response:
    req_path = raw_path(request)
    path = resolve_request_path(settings.path, req_path)
    if path is None:
        return status_response(403)

    try:
        meta = await aiofiles.os.stat(path)
    except (OSError, ValueError):
        # ValueError: embedded null byte, same as a missing path.
        if req_path.endswith("/"):
            return await send_listing(settings, path, exists=False)
        return status_response(404)

    if not stat.S_ISDIR(meta.st_mode):
        return await send_file(path)

    query = raw_query(request)
    if query == "zip":
        return StreamingResponse(stream_zip(path))
    if query.startswith("q="):
        entries = await search_directory(path, unquote_plus(query[2:]))
        return send_index(settings, path, entries)
    return await send_listing(settings, path, exists=True)


async def send_file(path: Path) -> Response:
    # Opened up front so a failure still maps to a status code.
    f = await aiofiles.open(path, "rb")

    async def _chunks() -> AsyncIterator[bytes]:
        try:
            while chunk := await f.read(CHUNK_SIZE):
                yield chunk
        finally:
            await f.close()

    return StreamingResponse(_chunks())


async def send_listing(settings: Settings, path: Path, exists: bool) -> Response:
    entries = await list_directory(path, exists=exists)
    return send_index(settings, path, entries)


def send_index(settings: Settings, path: Path, entries: list[PathEntry]) -> Response:
    html = render_index(breadcrumb(settings.path, path), entries, settings.readonly)
    return HTMLResponse(html)


async def handle_upload(request: Request, settings: Settings) -> Response:
    path = resolve_request_path(settings.path, raw_path(request))
    if path is None:
        return status_response(403)

    parent = path.parent
    if parent == path:
        return status_response(403)
    try:
        parent_meta = await aiofiles.os.stat(parent)
    except OSError:
        await aiofiles.os.makedirs(parent, exist_ok=True)
    else:
        if not stat.S_ISDIR(parent_meta.st_mode):
            return status_response(403)

    async with aiofiles.open(path, "wb") as f:
        async for chunk in request.stream():
            if chunk:
                await f.write(chunk)

    return status_response(200)


async def handle_delete(request: Request, settings: Settings) -> Response:
    # Not gated on settings.readonly: only uploads are refused in read-only mode.
    path = resolve_request_path(settings.path, raw_path(request))
    if path is None or path == settings.path:
        return status_response(403)

    try:
        meta = await aiofiles.os.stat(path)
        link_meta = await aiofiles.os.stat(path, follow_symlinks=False)
    except ValueError as e:
        # Embedded null byte: reported like any other missing target.
        raise FileNotFoundError(str(e)) from e
    if stat.S_ISDIR(meta.st_mode) and not stat.S_ISLNK(link_meta.st_mode):
        await asyncio.to_thread(shutil.rmtree, path)
    else:
        await aiofiles.os.remove(path)

    return status_response(200)
