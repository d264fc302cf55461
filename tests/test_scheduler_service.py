import tempfile
import unittest
from datetime import date
from pathlib import Path
import sys

import httpx

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_DIR = TESTS_DIR.parent
if str(PROJECT_DIR) not in sys.path:
    sys.path.insert(0, str(PROJECT_DIR))

from tvepg_sync.config import CustomSettings
from tvepg_sync.services.fetch_coordinator import get_sync_coordinator, reset_sync_coordinator
from tvepg_sync.services.scheduler_service import SyncScheduler
from tvepg_sync.services.sync_service import SyncPipeline

PLAYLIST = (
    '#EXTM3U\n'
    '#EXTINF:-1 tvg-id="SRF1.ch@SD",SRF 1\n'
    'https://example.com/srf1.m3u8\n'
)

INDEX_HTML = '<html><body><a href="/de/switzerland/c/srf-1">SRF 1</a></body></html>'

SRF1_HTML = (
    '<html><head><title>SRF 1</title></head><body>'
    '<a href="/de/switzerland/c/srf-1/081430/x" title="14:30 Tagesschau">x</a>'
    '</body></html>'
)


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "iptv-org.github.io":
        return httpx.Response(200, text=PLAYLIST)
    if request.url.path == "/de/switzerland":
        return httpx.Response(200, text=INDEX_HTML)
    if request.url.path == "/de/switzerland/c/srf-1":
        return httpx.Response(200, text=SRF1_HTML)
    return httpx.Response(404)


class SyncSchedulerTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.out_dir = Path(tmp.name)
        self.config = CustomSettings(
            playlist_output_path=str(self.out_dir / "swiss.m3u"),
            guide_output_path=str(self.out_dir / "epg_swiss.xml"),
            courtesy_delay_sec=0,
        )
        reset_sync_coordinator()
        self.addCleanup(reset_sync_coordinator)

    def _scheduler(self, handler=_handler) -> SyncScheduler:
        def factory(config):
            return SyncPipeline(config, transport=httpx.MockTransport(handler), today=date(2024, 6, 1))

        scheduler = SyncScheduler(self.config, pipeline_factory=factory)
        self.addCleanup(scheduler.shutdown)
        return scheduler

    async def test_start_disabled(self):
        self.config.scheduler_enabled = False
        scheduler = self._scheduler()

        self.assertFalse(scheduler.start())
        self.assertFalse(scheduler.running)
        self.assertIsNone(scheduler.next_run_time())

    async def test_start_registers_cron_job(self):
        scheduler = self._scheduler()

        self.assertTrue(scheduler.start())
        self.assertTrue(scheduler.running)
        next_time = scheduler.next_run_time()
        self.assertIsNotNone(next_time)
        self.assertEqual((next_time.hour, next_time.minute), (5, 0))

        scheduler.shutdown()
        self.assertFalse(scheduler.running)
        self.assertIsNone(scheduler.next_run_time())

    async def test_scheduled_run_writes_artifacts(self):
        scheduler = self._scheduler()

        result = await scheduler.run_scheduled_sync()

        self.assertEqual(result["streams_written"], 1)
        self.assertIs(scheduler.last_result, result)
        self.assertTrue((self.out_dir / "swiss.m3u").exists())
        self.assertTrue((self.out_dir / "epg_swiss.xml").exists())
        record = get_sync_coordinator().last_record
        self.assertEqual((record.trigger, record.status), ("scheduled", "success"))

    async def test_scheduled_run_failure_keeps_previous_artifacts(self):
        playlist = self.out_dir / "swiss.m3u"
        playlist.write_text("#EXTM3U\n", encoding="utf-8")
        scheduler = self._scheduler(lambda request: httpx.Response(503))

        with self.assertLogs("tvepg_sync.services.scheduler_service", level="ERROR"):
            result = await scheduler.run_scheduled_sync()

        self.assertIn("Stream playlist unavailable", result["error"])
        self.assertEqual(playlist.read_text(encoding="utf-8"), "#EXTM3U\n")
        self.assertFalse((self.out_dir / "epg_swiss.xml").exists())
        self.assertEqual(get_sync_coordinator().last_record.status, "failed")

    async def test_scheduled_run_skipped_while_manual_sync_runs(self):
        coordinator = get_sync_coordinator()
        scheduler = self._scheduler()

        async def manual_sync():
            return await scheduler.run_scheduled_sync()

        result = await coordinator.execute(manual_sync, trigger="manual")

        self.assertEqual(result["status"], "skipped")
        self.assertEqual(result["message"], "A manual sync is already in progress")
        self.assertFalse((self.out_dir / "swiss.m3u").exists())
        self.assertEqual(coordinator.last_record.trigger, "manual")


if __name__ == "__main__":
    unittest.main()
