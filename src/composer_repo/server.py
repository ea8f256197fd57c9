"""HTTP surface of the repository.

Local mode:
  GET  /packages.json                  global registry
  GET  /p/<vendor>/<package>.json      per-package registry
  PUT  /?version=<v>                   publish a raw composer.json
  PUT  /<name>-<version>.zip           publish an archive
  GET  /artifacts/<file>               download a published archive

Proxy mode:
  GET  /packages.json                  empty registry
  GET  /p/<vendor>/<package>.json      local versions merged with upstream
  GET  /p2/<vendor>/<package>.json     same as /p/
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog
from fastapi import APIRouter, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.models.archive import ArchiveName
from composer_repo.name import PackageName
from composer_repo.packages import PackageRegistry
from composer_repo.proxy.remote import build_http_client
from composer_repo.repository import ALL_PACKAGES
from composer_repo.state import AppState, build_state
from composer_repo.storage.memory import InMemoryStorage
from composer_repo.storage.sqlite import SqliteStorage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from composer_repo.config import Settings

log = structlog.get_logger()

JSON = "application/json"

_STATUS_BY_CODE = {
    ErrorCode.INVALID_PACKAGE_NAME: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_ARCHIVE_NAME: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BAD_MANIFEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BAD_ARCHIVE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MANIFEST_NOT_FOUND: status.HTTP_400_BAD_REQUEST,
    ErrorCode.KEY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BAD_REGISTRY: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DIST_PREFIX_MISSING: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.UPSTREAM_FETCH_FAILED: status.HTTP_502_BAD_GATEWAY,
}


def _state(request: Request) -> AppState:
    return request.app.state.composer


async def _stored(request: Request, key: str) -> Response:
    storage = _state(request).storage
    if not await storage.exists(key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=await storage.value(key), media_type=JSON)


# ---------------------------------------------------------------------------
# Local repository
# ---------------------------------------------------------------------------

local_router = APIRouter()


@local_router.get("/packages.json")
async def all_packages(request: Request) -> Response:
    return await _stored(request, ALL_PACKAGES)


@local_router.get("/p/{vendor}/{package}.json")
async def package_metadata(request: Request, vendor: str, package: str) -> Response:
    return await _stored(request, PackageName(f"{vendor}/{package}").key)


@local_router.put("/", status_code=status.HTTP_201_CREATED)
async def add_package(request: Request, version: str | None = None) -> Response:
    await _state(request).repository.add_json(await request.body(), version)
    return Response(status_code=status.HTTP_201_CREATED)


@local_router.put("/{filename}", status_code=status.HTTP_201_CREATED)
async def add_archive(request: Request, filename: str) -> Response:
    name = ArchiveName.from_path(filename)
    state = _state(request)
    await state.repository.add_archive(state.archive, name, await request.body())
    return Response(status_code=status.HTTP_201_CREATED)


@local_router.get("/artifacts/{filename}")
async def download_archive(request: Request, filename: str) -> Response:
    storage = _state(request).storage
    key = f"artifacts/{filename}"
    if not await storage.exists(key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=await storage.value(key), media_type="application/zip")


# ---------------------------------------------------------------------------
# Proxy
# ---------------------------------------------------------------------------

proxy_router = APIRouter()


@proxy_router.get("/packages.json")
async def empty_all_packages() -> Response:
    return Response(content=PackageRegistry().content(), media_type=JSON)


@proxy_router.get("/p/{vendor}/{package}.json")
@proxy_router.get("/p2/{vendor}/{package}.json")
async def proxied_package(request: Request) -> Response:
    proxy = _state(request).proxy
    if proxy is None:
        raise RuntimeError("proxy routes need proxy mode state")
    content = await proxy.package(request.url.path)
    if content is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=content, media_type=JSON)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


async def _composer_error(request: Request, exc: ComposerRepoError) -> JSONResponse:
    code = _STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    log.warning("request_failed", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=code, content=exc.to_dict())


def create_app(settings: Settings, state: AppState | None = None) -> FastAPI:
    """Build the application.

    With ``state`` given (tests), it is used as is. Otherwise storage and the
    upstream client are opened by the lifespan and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if state is not None:
            app.state.composer = state
            yield
            return
        async with build_http_client(settings.proxy.timeout_seconds) as client:
            if settings.storage.backend == "memory":
                app.state.composer = build_state(settings, InMemoryStorage(), client)
                yield
                return
            db_path = Path(settings.storage.db_path).expanduser()
            db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(db_path) as db:
                storage = SqliteStorage(db)
                await storage.init_db()
                app.state.composer = build_state(settings, storage, client)
                log.info("storage_opened", path=str(db_path))
                yield

    app = FastAPI(title="composer-repo", lifespan=lifespan)
    if state is not None:
        app.state.composer = state
    app.add_exception_handler(ComposerRepoError, _composer_error)  # type: ignore[arg-type]
    if settings.server.mode == "proxy":
        app.include_router(proxy_router)
    else:
        app.include_router(local_router)
    return app
