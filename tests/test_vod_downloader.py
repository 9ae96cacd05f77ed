import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fakes import FakeResponse, FakeSession

from francetvpy.errors import DownloadError
from francetvpy.schemas.types import Job, StreamFormat
from francetvpy.services.processor import PostProcessor
from francetvpy.services.vod_downloader import VodDownloader

BASE = "https://cdn.ftven.fr/ep/"
MANIFEST = BASE + "manifest.mpd"

MPD = """<?xml version="1.0" encoding="UTF-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011" mediaPresentationDuration="PT10S">
  <Period id="0">
    <AdaptationSet mimeType="video/mp4">
      <SegmentTemplate timescale="1" startNumber="1"
                       initialization="$RepresentationID$/init.mp4"
                       media="$RepresentationID$/seg_$Number$.m4s">
        <SegmentTimeline><S t="0" d="5" r="1"/></SegmentTimeline>
      </SegmentTemplate>
      <Representation id="v" bandwidth="3000000" width="1280" height="720"/>
    </AdaptationSet>
    <AdaptationSet mimeType="audio/mp4" lang="fr">
      <SegmentTemplate timescale="1" startNumber="1"
                       initialization="$RepresentationID$/init.mp4"
                       media="$RepresentationID$/seg_$Number$.m4s">
        <SegmentTimeline><S t="0" d="5" r="1"/></SegmentTimeline>
      </SegmentTemplate>
      <Representation id="a" bandwidth="128000"/>
    </AdaptationSet>
    <AdaptationSet contentType="text" mimeType="text/vtt" lang="fr">
      <Representation id="s" bandwidth="100"><BaseURL>subs/fr.vtt</BaseURL></Representation>
    </AdaptationSet>
  </Period>
</MPD>
"""

NO_SUBS_MPD = MPD.split("<AdaptationSet contentType")[0] + "</Period>\n</MPD>\n"


def media_routes():
    routes = {MANIFEST: FakeResponse(MPD)}
    for track in ("v", "a"):
        routes[f"{BASE}{track}/init.mp4"] = FakeResponse(f"{track}I")
        for n in (1, 2):
            routes[f"{BASE}{track}/seg_{n}.m4s"] = FakeResponse(f"{track}{n}")
    routes[BASE + "subs/fr.vtt"] = FakeResponse("WEBVTT\n")
    return routes


class TestVodDownloader(unittest.TestCase):
    def setUp(self):
        self.out_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.out_dir, ignore_errors=True)

    def job(self, subs_only=False):
        return Job(
            url=MANIFEST,
            dest_dir=self.out_dir,
            filename="Show - S1E1 - Pilot",
            format=StreamFormat.DASH,
            subs_only=subs_only,
        )

    def test_extract_info_selects_tracks(self):
        vod = VodDownloader(self.job(), session=FakeSession(media_routes()))
        vod.extract_info()
        self.assertEqual(vod._video_rep.id, "v")
        self.assertEqual(vod._audio_rep.id, "a")
        self.assertEqual([lang for lang, _ in vod._text_reps], ["fr"])

    def test_manifest_error(self):
        vod = VodDownloader(self.job(), session=FakeSession())
        with self.assertRaises(DownloadError):
            vod.extract_info()

    def test_subs_only_requires_text_tracks(self):
        session = FakeSession({MANIFEST: FakeResponse(NO_SUBS_MPD)})
        with self.assertRaises(DownloadError):
            VodDownloader(self.job(subs_only=True), session=session).extract_info()

    @patch.object(PostProcessor, "verify_integrity", return_value=True)
    @patch("francetvpy.services.processor.subprocess.run")
    def test_download_muxes_all_tracks(self, run, _verify):
        joined = {}

        def fake_ffmpeg(cmd, **kwargs):
            for i, arg in enumerate(cmd):
                if arg == "-i":
                    path = Path(cmd[i + 1])
                    joined[path.name] = path.read_bytes()

        run.side_effect = fake_ffmpeg
        vod = VodDownloader(self.job(), session=FakeSession(media_routes()))
        outputs = vod.download(max_workers=2)

        self.assertEqual(outputs, [self.out_dir / "Show - S1E1 - Pilot.mkv"])
        self.assertEqual(joined["temp_video.mp4"], b"vIv1v2")
        self.assertEqual(joined["temp_audio.mp4"], b"aIa1a2")
        self.assertEqual(joined["temp_text_fr"], b"WEBVTT\n")

        cmd = run.call_args.args[0]
        self.assertEqual(cmd.count("-map"), 3)
        self.assertIn("language=fr", cmd)
        self.assertEqual(cmd[-1], str(self.out_dir / "Show - S1E1 - Pilot.mkv"))
        self.assertFalse(vod.working_dir.exists())

    @patch("francetvpy.services.processor.subprocess.run")
    def test_subs_only_skips_media(self, run):
        session = FakeSession(media_routes())
        vod = VodDownloader(self.job(subs_only=True), session=session)
        outputs = vod.download()

        self.assertEqual(outputs, [self.out_dir / "Show - S1E1 - Pilot.fr.vtt"])
        self.assertNotIn(BASE + "v/seg_1.m4s", [url for url, _ in session.calls])
        self.assertEqual(run.call_args.args[0][-1], str(outputs[0]))


if __name__ == "__main__":
    unittest.main()
