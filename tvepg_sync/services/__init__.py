"""
Services package for tvepg-sync

This package contains the identifier mapping, playlist import, guide scraping
and sync orchestration logic.
"""
from tvepg_sync.services.identifier_mapper import IdentifierMapper
from tvepg_sync.services.playlist_importer import rewrite_playlist
from tvepg_sync.services.guide_scraper import GuideScraper
from tvepg_sync.services.sync_service import SyncError, SyncPipeline, run_sync
from tvepg_sync.services.scheduler_service import sync_scheduler

__all__ = [
    'IdentifierMapper',
    'rewrite_playlist',
    'GuideScraper',
    'SyncError',
    'SyncPipeline',
    'run_sync',
    'sync_scheduler',
]
