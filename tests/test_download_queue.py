import threading
import unittest
from pathlib import Path

from francetvpy.schemas.types import Job, StreamFormat
from francetvpy.services.download_queue import DownloadQueue
from francetvpy.services.hls_downloader import HlsDownloader


def make_job(name: str, fmt: StreamFormat = StreamFormat.HLS, subs_only=False) -> Job:
    return Job(
        url=f"https://cdn/{name}.m3u8",
        dest_dir=Path("/tmp/out"),
        filename=name,
        format=fmt,
        subs_only=subs_only,
    )


class TestDownloadQueue(unittest.TestCase):
    def test_all_jobs_processed_after_close(self):
        seen = []
        lock = threading.Lock()

        def runner(job, stop_event):
            with lock:
                seen.append(job.filename)
            return [job.output_path]

        queue = DownloadQueue(workers=3, runner=runner)
        queue.start()
        for i in range(10):
            queue.submit(make_job(f"ep{i}"))
        queue.close()
        queue.wait(timeout=5)

        self.assertEqual(sorted(seen), sorted(f"ep{i}" for i in range(10)))
        self.assertEqual(len(queue.completed), 10)
        self.assertEqual(queue.failed, {})

    def test_failure_does_not_stop_other_jobs(self):
        def runner(job, stop_event):
            if job.filename == "bad":
                raise RuntimeError("ffmpeg exploded")
            return [job.output_path]

        queue = DownloadQueue(workers=1, runner=runner)
        queue.start()
        for name in ("a", "bad", "b"):
            queue.submit(make_job(name))
        queue.close()
        queue.wait(timeout=5)

        self.assertEqual(set(queue.completed), {"a", "b"})
        self.assertIsInstance(queue.failed["bad"], RuntimeError)

    def test_single_worker_keeps_order(self):
        order = []
        queue = DownloadQueue(workers=1, runner=lambda job, ev: order.append(job.filename) or [])
        queue.start()
        for name in ("1", "2", "3"):
            queue.submit(make_job(name))
        queue.close()
        queue.wait(timeout=5)
        self.assertEqual(order, ["1", "2", "3"])

    def test_submit_after_close(self):
        queue = DownloadQueue(workers=1, runner=lambda job, ev: [])
        queue.start()
        queue.close()
        with self.assertRaises(RuntimeError):
            queue.submit(make_job("late"))
        queue.wait(timeout=5)

    def test_cancel_skips_pending_jobs(self):
        started = threading.Event()
        release = threading.Event()
        ran = []

        def runner(job, stop_event):
            ran.append(job.filename)
            started.set()
            release.wait(5)
            return []

        queue = DownloadQueue(workers=1, runner=runner)
        queue.start()
        queue.submit(make_job("first"))
        queue.submit(make_job("second"))
        started.wait(5)
        queue.cancel()
        release.set()
        queue.wait(timeout=5)

        self.assertEqual(ran, ["first"])
        self.assertTrue(queue.stop_event.is_set())


class TestHlsDownloader(unittest.TestCase):
    def test_video_command(self):
        job = make_job("Show - S1E1 - Pilot")
        cmd = HlsDownloader(job, timeout=10).build_command()
        self.assertEqual(cmd[0], "ffmpeg")
        self.assertIn("https://cdn/Show - S1E1 - Pilot.m3u8", cmd)
        self.assertEqual(cmd[-1], str(Path("/tmp/out/Show - S1E1 - Pilot.mp4")))
        self.assertIn("10000000", cmd)

    def test_subtitles_command(self):
        job = make_job("ep", subs_only=True)
        cmd = HlsDownloader(job).build_command()
        self.assertIn("0:s:0", cmd)
        self.assertEqual(cmd[-1], str(Path("/tmp/out/ep.vtt")))


if __name__ == "__main__":
    unittest.main()
