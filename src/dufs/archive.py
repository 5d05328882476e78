"""Streaming ZIP download of a directory tree.

The archive is produced by a background task that walks the tree and writes
ZIP frames into a :class:`BoundedPipe`; the HTTP response drains the other end.
The pipe holds at most ``PIPE_SIZE`` bytes, so a slow client suspends the
producer instead of letting the archive pile up in memory.

``zipfile`` is given a write-only sink without ``seek``/``tell``, which makes it
emit data descriptors after each member so nothing has to be patched
retroactively.
"""

from __future__ import annotations

import asyncio
import logging
import stat
import zipfile
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os

from dufs.listing import walk
from dufs.paths import normalize_path

logger = logging.getLogger(__name__)

PIPE_SIZE = 16 * 1024
CHUNK_SIZE = 16 * 1024


class BoundedPipe:
    """In-memory byte pipe with a fixed buffer between two asyncio tasks.

    ``write`` suspends while the buffer is full; ``read`` suspends while it is
    empty and returns ``b""`` once the write side is closed and drained.
    Closing the read side makes pending and future writes raise
    ``BrokenPipeError``.
    """

    def __init__(self, capacity: int = PIPE_SIZE):
        self.capacity = capacity
        self._buffer = bytearray()
        self._cond = asyncio.Condition()
        self._write_closed = False
        self._read_closed = False

    async def write(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            async with self._cond:
                await self._cond.wait_for(
                    lambda: self._read_closed or len(self._buffer) < self.capacity
                )
                if self._read_closed:
                    raise BrokenPipeError("pipe reader closed")
                room = self.capacity - len(self._buffer)
                self._buffer += view[:room]
                view = view[room:]
                self._cond.notify_all()

    async def read(self, n: int = -1) -> bytes:
        async with self._cond:
            await self._cond.wait_for(lambda: self._buffer or self._write_closed)
            if n < 0 or n >= len(self._buffer):
                data = bytes(self._buffer)
                self._buffer.clear()
            else:
                data = bytes(self._buffer[:n])
                del self._buffer[:n]
            self._cond.notify_all()
            return data

    async def close_writer(self) -> None:
        async with self._cond:
            self._write_closed = True
            self._cond.notify_all()

    async def close_reader(self) -> None:
        async with self._cond:
            self._read_closed = True
            self._buffer.clear()
            self._cond.notify_all()


class _ZipSink:
    """Write-only file object collecting what ``zipfile`` emits."""

    def __init__(self):
        self._pending = bytearray()

    def write(self, data: bytes) -> int:
        self._pending += data
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = bytes(self._pending)
        self._pending.clear()
        return data


async def write_zip(pipe: BoundedPipe, directory: Path) -> None:
    """Write every regular file under *directory* to *pipe* as a ZIP archive."""
    sink = _ZipSink()
    with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        async for path in walk(directory):
            try:
                link_meta = await aiofiles.os.stat(path, follow_symlinks=False)
            except OSError:
                continue
            if not stat.S_ISREG(link_meta.st_mode):
                continue

            arcname = normalize_path(path.relative_to(directory))
            try:
                info = await asyncio.to_thread(
                    zipfile.ZipInfo.from_file, path, arcname, strict_timestamps=False
                )
                src = await aiofiles.open(path, "rb")
            except OSError as e:
                logger.debug("Skipping %s: %s", path, e)
                continue
            info.compress_type = zipfile.ZIP_DEFLATED

            try:
                with zf.open(info, mode="w") as dest:
                    while chunk := await src.read(CHUNK_SIZE):
                        # DEFLATE runs off the event loop.
                        await asyncio.to_thread(dest.write, chunk)
                        await pipe.write(sink.drain())
            finally:
                await src.close()
            await pipe.write(sink.drain())

    # Central directory, written by ZipFile.close().
    await pipe.write(sink.drain())


async def _produce(pipe: BoundedPipe, directory: Path) -> None:
    try:
        await write_zip(pipe, directory)
    except Exception as e:
        logger.error("Fail to zip %s, %s", directory, e)
    finally:
        await pipe.close_writer()


# Strong references to running producers; the event loop only keeps weak ones.
_producers: set[asyncio.Task] = set()


async def stream_zip(directory: Path) -> AsyncIterator[bytes]:
    """Body iterator for the response; the producer starts on the first read.

    A body closed before it was ever iterated never runs this generator, so
    no producer is left blocked on a pipe nobody reads.
    """
    pipe = BoundedPipe(PIPE_SIZE)
    producer = asyncio.create_task(_produce(pipe, directory))
    _producers.add(producer)
    producer.add_done_callback(_producers.discard)
    try:
        while chunk := await pipe.read():
            yield chunk
    finally:
        # The producer sees BrokenPipeError on its next write.
        await pipe.close_reader()
