from functools import lru_cache
from pathlib import Path
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
import logging

from tvepg_sync.config import settings
from tvepg_sync.schemas import HealthResponse, IdentifierMappingResponse
from tvepg_sync.services import (
    IdentifierMapper,
    run_sync,
    sync_scheduler
)
from tvepg_sync.services.fetch_coordinator import get_sync_coordinator
from tvepg_sync.services.identifier_mapper import base_identifier


logger = logging.getLogger(__name__)

main_router = APIRouter()


@lru_cache(maxsize=1)
def get_identifier_mapper() -> IdentifierMapper:
    """Mapper built once from the configured table"""
    return IdentifierMapper.from_settings(settings.id_map_path)


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    next_run = sync_scheduler.next_run_time()

    return {
        "service": "tvepg-sync",
        "version": "0.1.0",
        "next_scheduled_sync": next_run.isoformat() if next_run else None,
        "endpoints": {
            "sync": "/sync - Manually trigger playlist import and guide scrape (POST)",
            "playlist": "/playlist.m3u - Last written playlist",
            "epg": "/epg.xml - Last written XMLTV guide",
            "map": "/map/{identifier} - Show how a stream identifier maps to a guide slug",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint"""
    coordinator = get_sync_coordinator()
    next_run = sync_scheduler.next_run_time()
    return HealthResponse(
        status="ok",
        scheduler_running=sync_scheduler.running,
        sync_running=coordinator.is_running(),
        next_sync=next_run.isoformat() if next_run else None,
        last_sync=coordinator.last_record.to_dict() if coordinator.last_record else None,
    )


@main_router.post("/sync")
async def trigger_sync() -> dict:
    """
    Manually trigger a sync

    Fetches the stream playlist, scrapes the guide and rewrites both artifacts
    """
    logger.info("Manual sync triggered via API")
    result = await run_sync()

    if "error" in result:
        raise HTTPException(status_code=500, detail=result["error"])

    return result


@main_router.get("/playlist.m3u")
async def get_playlist() -> FileResponse:
    """Serve the last written playlist"""
    return _artifact_response(settings.playlist_output_path, "audio/x-mpegurl")


@main_router.get("/epg.xml")
async def get_guide() -> FileResponse:
    """Serve the last written XMLTV guide"""
    return _artifact_response(settings.guide_output_path, "application/xml")


@main_router.get("/map/{identifier}", response_model=IdentifierMappingResponse)
async def map_identifier(
    identifier: str,
    mapper: Annotated[IdentifierMapper, Depends(get_identifier_mapper)]
) -> IdentifierMappingResponse:
    """Resolve one stream identifier the way the playlist import does"""
    slug, source = mapper.resolve(identifier)
    return IdentifierMappingResponse(
        identifier=identifier,
        base_identifier=base_identifier(identifier),
        slug=slug,
        source=source,
    )


def _artifact_response(path: str, media_type: str) -> FileResponse:
    artifact = Path(path)
    if not artifact.is_file():
        raise HTTPException(status_code=404, detail=f"{artifact.name} has not been generated yet")
    return FileResponse(artifact, media_type=media_type, filename=artifact.name)
