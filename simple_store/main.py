from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Mapping, Optional, Sequence

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from simple_store import config
from simple_store.app.services.store_handler import StoreHandler, envelope
from simple_store.config_loader import resolve_storage_root
from simple_store.logger_config import setup_logger

# Logger setup
logger = setup_logger()

router = APIRouter()


def start(app: FastAPI, context: Optional[Mapping[str, str]] = None,
          sources: Sequence[str] = config.CONFIG_SOURCES) -> None:
    """Resolve the storage root and attach a handler to the app."""
    root = resolve_storage_root(context=context, sources=sources)
    logger.info(f"Storage path: {root}")
    app.state.store_handler = StoreHandler(root)


def stop(app: FastAPI) -> None:
    app.state.store_handler = None
    logger.info("Simple Store stopped")


@router.api_route("/{key:path}", methods=["GET", "HEAD"])
async def get_value(key: str, request: Request):
    """Return the stored bytes for a key (headers only for HEAD)."""
    store_handler = request.app.state.store_handler
    logger.info(f"Receiving {request.method} request for key: {key}")
    if request.method == "HEAD":
        return await store_handler.head(request, key)
    return await store_handler.get(request, key)


@router.put("/{key:path}")
async def put_value(key: str, request: Request):
    """Create or fully replace the value of a key with the request body."""
    store_handler = request.app.state.store_handler
    logger.info(f"Receiving PUT request for key: {key}")
    return await store_handler.put(request, key)


@router.delete("/{key:path}")
async def delete_value(key: str, request: Request):
    store_handler = request.app.state.store_handler
    logger.info(f"Receiving DELETE request for key: {key}")
    return await store_handler.delete(key)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
    response = envelope(exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request: {exc.errors()}")
    return envelope(400, "Bad request")


def create_app(context: Optional[Mapping[str, str]] = None,
               sources: Sequence[str] = config.CONFIG_SOURCES) -> FastAPI:
    """Build the application. The storage root is resolved at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        start(app, context=context, sources=sources)
        yield
        stop(app)

    app = FastAPI(title="Simple Store", lifespan=lifespan)
    app.include_router(router, prefix=config.URL_PREFIX)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    return app


app = create_app()


if __name__ == "__main__":
    logger.info("Starting Simple Store...")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
