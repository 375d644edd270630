"""Listing and download endpoints for the reference and output directories."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from ..config import GatewayConfig
from ..core.file_gateway import list_directory, open_file
from .dependencies import get_config
from .schemas import DirectoryEntryResponse

router = APIRouter(prefix="/api", tags=["files"])


async def _listing(root: Path) -> list[DirectoryEntryResponse]:
    entries = await run_in_threadpool(list_directory, root)
    return [DirectoryEntryResponse.from_entry(entry) for entry in entries]


async def _download(root: Path, file: str) -> FileResponse:
    path = await run_in_threadpool(open_file, root, file)
    # Media type is guessed from the extension by FileResponse.
    return FileResponse(path)


@router.get("/refs", response_model=list[DirectoryEntryResponse])
async def list_refs(config: GatewayConfig = Depends(get_config)):
    """List reference audio, newest first."""
    return await _listing(config.ref_dir)


@router.get("/outs", response_model=list[DirectoryEntryResponse])
async def list_outs(config: GatewayConfig = Depends(get_config)):
    """List generated audio, newest first."""
    return await _listing(config.out_dir)


@router.get("/refs/{file}")
async def get_ref(file: str, config: GatewayConfig = Depends(get_config)) -> FileResponse:
    return await _download(config.ref_dir, file)


@router.get("/outs/{file}")
async def get_out(file: str, config: GatewayConfig = Depends(get_config)) -> FileResponse:
    return await _download(config.out_dir, file)
