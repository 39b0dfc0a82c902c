import json
import mimetypes
from datetime import timezone
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
import aiofiles.os
from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from simple_store import config
from simple_store.app.services.key_resolver import InvalidKey, KeyResolver, PathEscape, StoreError
from simple_store.app.services.streams import LookupStatus, copy_stream, iter_file, open_value, stat_file
from simple_store.logger_config import setup_logger

logger = setup_logger()


def no_cache_headers() -> Dict[str, str]:
    return {"Cache-Control": config.NO_CACHE, "Pragma": "no-cache"}


def light_cache_headers() -> Dict[str, str]:
    return {"Cache-Control": config.LIGHT_CACHE, "Pragma": "no-cache"}


def envelope(status_code: int, message: str) -> Response:
    """Build the compact JSON status response used for everything but file bodies."""
    status = "error" if 400 <= status_code <= 599 else "success"
    body = (json.dumps({"status": status, "message": message}, separators=(",", ":")) + "\r\n").encode()
    headers = no_cache_headers()
    headers["Content-Length"] = str(len(body))
    return Response(content=body, status_code=status_code, media_type="application/json", headers=headers)


def bad_request() -> Response:
    return envelope(400, "Bad request")


def not_found() -> Response:
    return envelope(404, "Not Found")


def parse_http_date(value: Optional[str]) -> Optional[int]:
    """Parse an HTTP-date header into epoch seconds. Raises ValueError if malformed."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, IndexError) as e:
        raise ValueError(f"Invalid date header: {value!r}") from e
    if parsed is None:
        raise ValueError(f"Invalid date header: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


class StoreHandler:
    """Executes GET/HEAD/PUT/DELETE for one key against the storage root.

    Holds no per-request state; every call opens, streams and closes its
    own file handle.
    """

    def __init__(self, root: Union[str, Path]):
        self.resolver = KeyResolver(root)
        self.mime_types = mimetypes.MimeTypes()

    @property
    def root(self) -> Path:
        return self.resolver.root

    async def resolve(self, raw_key: Optional[str]) -> Path:
        # canonicalization touches the filesystem
        return await run_in_threadpool(self.resolver.resolve, raw_key)

    def content_type(self, name: str) -> Optional[str]:
        """MIME type from the registry first, then the built-in fallback table.

        A compression suffix wins over the inner type: ``x.tar.gz`` is gzip.
        """
        mime_type, encoding = self.mime_types.guess_type(name, strict=False)
        if encoding:
            return config.ENCODING_MIME_TYPES.get(encoding)
        if mime_type:
            return mime_type
        for extension, fallback in config.FALLBACK_MIME_TYPES.items():
            if name.endswith(extension):
                return fallback
        return None

    async def get(self, request: Request, raw_key: Optional[str]) -> Response:
        return await self._get_head(request, raw_key, want_body=True)

    async def head(self, request: Request, raw_key: Optional[str]) -> Response:
        return await self._get_head(request, raw_key, want_body=False)

    async def _get_head(self, request: Request, raw_key: Optional[str], want_body: bool) -> Response:
        try:
            path = await self.resolve(raw_key)
        except InvalidKey:
            logger.warning(f"Invalid request: key={raw_key!r}")
            return bad_request()
        except PathEscape:
            return not_found()
        except Exception as e:
            logger.error(f"Invalid request: {e}", exc_info=True)
            return bad_request()

        lookup = await open_value(path)
        if lookup.status is LookupStatus.NOT_FOUND:
            logger.info(f"Invalid request: file not found ({path.name})")
            return not_found()
        if lookup.status is LookupStatus.IO_FAILURE:
            logger.error(f"Invalid request: {lookup.error}", exc_info=lookup.error)
            return bad_request()

        streaming = False
        try:
            last_modified = int(lookup.stat.st_mtime)
            if_modified_since = parse_http_date(request.headers.get("if-modified-since"))
            if if_modified_since is not None and last_modified <= if_modified_since:
                headers = light_cache_headers()
                headers["Content-Length"] = "0"
                return Response(status_code=304, headers=headers)

            headers = light_cache_headers()
            headers["Last-Modified"] = formatdate(last_modified, usegmt=True)
            headers["Content-Length"] = str(lookup.stat.st_size)
            mime_type = self.content_type(path.name)
            if mime_type:
                headers["Content-Type"] = mime_type

            if not want_body:
                return Response(status_code=200, headers=headers)
            response = StreamingResponse(
                iter_file(lookup.handle),
                status_code=200,
                headers=headers,
                background=BackgroundTask(lookup.handle.close),
            )
            streaming = True
            return response
        except Exception as e:
            logger.error(f"Invalid request: {e}", exc_info=True)
            return bad_request()
        finally:
            if not streaming:
                await lookup.handle.close()

    async def put(self, request: Request, raw_key: Optional[str]) -> Response:
        """Replace the whole value of a key with the request body."""
        try:
            path = await self.resolve(raw_key)
        except StoreError as e:
            logger.warning(f"Invalid request: {e}")
            return bad_request()
        except Exception as e:
            logger.error(f"Invalid request: {e}", exc_info=True)
            return bad_request()

        try:
            async with aiofiles.open(path, 'wb') as f:
                size = await copy_stream(request.stream(), f)
        except Exception as e:
            logger.error(f"Invalid request: {e}", exc_info=True)
            return bad_request()

        logger.debug(f"Stored {size} bytes at {path}")
        return envelope(200, "updated")

    async def delete(self, raw_key: Optional[str]) -> Response:
        try:
            path = await self.resolve(raw_key)
        except InvalidKey:
            logger.warning(f"Invalid request: key={raw_key!r}")
            return bad_request()
        except PathEscape:
            return not_found()
        except Exception as e:
            logger.error(f"Invalid request: {e}", exc_info=True)
            return bad_request()

        try:
            if await stat_file(path) is None:
                return not_found()
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            # removed by a concurrent request after the check
            return not_found()
        except Exception as e:
            logger.error(f"Invalid request: {e}", exc_info=True)
            return bad_request()
        return envelope(200, "deleted")
