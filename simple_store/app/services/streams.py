import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterable, AsyncIterator, Optional

import aiofiles
import aiofiles.os

from simple_store import config


class LookupStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    IO_FAILURE = "io_failure"


@dataclass
class FileLookup:
    """Outcome of opening a stored value for reading."""
    status: LookupStatus
    path: Path
    handle: Any = None
    stat: Optional[os.stat_result] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is LookupStatus.OK


async def stat_file(path: Path) -> Optional[os.stat_result]:
    """Return stat info if ``path`` is an existing regular file, else None."""
    try:
        st = await aiofiles.os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    return st


async def open_value(path: Path) -> FileLookup:
    """Open an existing regular file for reading.

    The caller owns the returned handle and must close it.
    """
    try:
        st = await stat_file(path)
        if st is None:
            return FileLookup(LookupStatus.NOT_FOUND, path)
        handle = await aiofiles.open(path, 'rb')
    except FileNotFoundError:
        # removed between stat and open
        return FileLookup(LookupStatus.NOT_FOUND, path)
    except OSError as e:
        return FileLookup(LookupStatus.IO_FAILURE, path, error=e)
    return FileLookup(LookupStatus.OK, path, handle=handle, stat=st)


async def iter_file(handle, chunk_size: int = config.CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield fixed-size chunks from an open file, closing it when done."""
    try:
        while chunk := await handle.read(chunk_size):
            yield chunk
    finally:
        await handle.close()


async def copy_stream(chunks: AsyncIterable[bytes], destination) -> int:
    """Write every chunk to ``destination`` as it arrives, then flush."""
    copied = 0
    async for chunk in chunks:
        if not chunk:
            continue
        await destination.write(chunk)
        copied += len(chunk)
    await destination.flush()
    return copied
