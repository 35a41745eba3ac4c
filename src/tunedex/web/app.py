"""FastAPI application serving an indexed audio library."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, PlainTextResponse
from pydantic import BaseModel

from tunedex import __version__
from tunedex.config import AppConfig
from tunedex.errors import TunedexError
from tunedex.index.indexer import Indexer
from tunedex.index.library import Library
from tunedex.index.search import list_files, random_entry
from tunedex.models import AudioFile
from tunedex.utils.files import display_path, mime_for_path

LOGGER = logging.getLogger(__name__)

router = APIRouter()


class PingResponse(BaseModel):
    status: str
    version: str


def get_library(request: Request) -> Library:
    return request.app.state.library


def _content_disposition(path: Path) -> str:
    return f"inline; filename*=UTF-8''{quote(os.fsencode(path.name))}"


def _file_response(path: Path) -> FileResponse:
    if not path.is_file():
        raise HTTPException(status_code=404, detail=f"File not found: {display_path(path.name)}")
    return FileResponse(
        path,
        media_type=mime_for_path(path),
        headers={"Content-Disposition": _content_disposition(path)},
    )


@router.get("/")
async def random_file(library: Library = Depends(get_library)) -> FileResponse:
    index = library.snapshot()
    entry = random_entry(index)
    if entry is None:
        raise HTTPException(status_code=404, detail="No audio files indexed")
    return _file_response(index[entry.id])


@router.get("/ping")
async def ping() -> PingResponse:
    return PingResponse(status="ok", version=__version__)


@router.get("/scan", response_class=PlainTextResponse)
async def scan(force: bool = False, library: Library = Depends(get_library)) -> PlainTextResponse:
    try:
        result = await asyncio.to_thread(library.rescan, force=force)
    except TunedexError as exc:
        LOGGER.error("Rescan of %s failed: %s", library.base_dir, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    body = "".join(f"{entry.path}\n" for entry in list_files(result.index))
    return PlainTextResponse(body, media_type="text/plain; charset=utf-8")


@router.get("/files")
async def get_files(library: Library = Depends(get_library)) -> List[AudioFile]:
    return library.list_files()


@router.get("/file/{file_id}")
async def get_file_by_id(file_id: str, library: Library = Depends(get_library)) -> FileResponse:
    path = library.lookup(file_id)
    if path is None:
        raise HTTPException(status_code=404, detail=f"Unknown file id: {file_id}")
    return _file_response(path)


def create_app(config: AppConfig) -> FastAPI:
    """Build the application and run the initial scan of ``config.base_dir``.

    Raises:
        DirectoryUnreadable: if the music directory cannot be listed.
    """
    indexer = Indexer(
        config.resolve_workers(),
        chunk_size=config.chunk_size,
        on_hash_error=config.on_hash_error,
    )
    library = Library(config.resolve_base_dir(), indexer)
    try:
        library.rescan()
    except TunedexError:
        library.close()
        raise

    app = FastAPI(title="tunedex", version=__version__)
    app.state.library = library
    app.include_router(router)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        library.close()

    return app
