"""Archive listing, retrieval and monthly zip endpoints."""

import asyncio
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from modbus_ethermon.api.dependencies import get_archive
from modbus_ethermon.archive import ArchiveInfo, ArchiveStore
from modbus_ethermon.schemas.api_models import ZipCreateResponse

router = APIRouter()


@router.get("")
async def list_archives(archive: ArchiveStore = Depends(get_archive)) -> List[ArchiveInfo]:
    return await asyncio.to_thread(archive.list_archives)


@router.get("/zip/{month}")
async def download_zip(month: str, archive: ArchiveStore = Depends(get_archive)):
    zip_file = archive.get_zip_path(month)
    return FileResponse(zip_file, media_type="application/zip", filename=zip_file.name)


@router.post("/create-zip/{month}", response_model=ZipCreateResponse)
async def create_zip(month: str, archive: ArchiveStore = Depends(get_archive)):
    """Build (or rebuild) the zip of a month's daily files."""
    info = await asyncio.to_thread(archive.create_monthly_zip, month)
    return ZipCreateResponse(
        success=True,
        message=f"ZIP archive for {month} created",
        **info
    )


@router.get("/{date}")
async def get_archive_by_date(date: str, archive: ArchiveStore = Depends(get_archive)) -> Dict[str, Any]:
    return await asyncio.to_thread(archive.get_archive_by_date, date)
