import unittest

from bs4 import BeautifulSoup

from fakes import FakeResponse, FakeSession, episode_html
from francetvpy.errors import (
    BadPlayerJSONData,
    HTTPError,
    MissingPlayerJSONData,
    NoPlayerData,
)
from francetvpy.extractor import VideoDataExtractor
from francetvpy.page import PageFetcher
from francetvpy.schemas.types import PageSchema


def soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestVideoDataExtractor(unittest.TestCase):
    def setUp(self):
        self.extractor = VideoDataExtractor(fetcher=PageFetcher(FakeSession()))

    def test_let_declaration(self):
        doc = soup(episode_html('let FTVPlayerVideos = [{"videoId":"abc","contentId":7}];'))
        data = self.extractor.extract(doc)
        self.assertEqual(data.videoId, "abc")
        self.assertEqual(data.contentId, 7)

    def test_window_declaration_with_full_payload(self):
        script = (
            "window.FTVPlayerVideos = [{"
            '"contentId": 4521, "videoId": "f2d1-77aa", "videoTitle": "Episode 3",'
            '"programName": "Les Minikeums", "originUrl": "/france-4/les-minikeums/ep3.html",'
            '"endDate": "2030-01-01T00:00:00+01:00", "tracking": {"offre": "replay"},'
            '"someNewField": [1, 2]'
            "}, {\"videoId\": \"ignored\"}];"
        )
        data = self.extractor.extract(soup(episode_html(script)))
        self.assertEqual(data.videoId, "f2d1-77aa")
        self.assertEqual(data.programName, "Les Minikeums")
        self.assertEqual(data.origin_path, "/france-4/les-minikeums/ep3.html")
        self.assertEqual(data.tracking.offre, "replay")
        self.assertEqual(data.endDate.year, 2030)

    def test_non_string_origin_url(self):
        doc = soup(episode_html('let FTVPlayerVideos = [{"videoId":"abc","originUrl":null}];'))
        self.assertEqual(self.extractor.extract(doc).origin_path, "")

    def test_null_optional_fields(self):
        doc = soup(
            episode_html(
                'let FTVPlayerVideos = [{"videoId":"abc","contentId":7,'
                '"videoTitle":null,"programName":null,"isSponsored":null}];'
            )
        )
        data = self.extractor.extract(doc)
        self.assertEqual(data.videoTitle, "")
        self.assertEqual(data.programName, "")
        self.assertFalse(data.isSponsored)

    def test_unknown_prefix(self):
        doc = soup(episode_html('var somethingElse = [{"videoId":"abc"}];'))
        with self.assertRaises(NoPlayerData):
            self.extractor.extract(doc)

    def test_missing_script_node(self):
        with self.assertRaises(NoPlayerData):
            self.extractor.extract(soup("<html><body><p>hola</p></body></html>"))

    def test_empty_document(self):
        with self.assertRaises(NoPlayerData):
            self.extractor.extract(soup(""))

    def test_malformed_markup(self):
        with self.assertRaises(NoPlayerData):
            self.extractor.extract(soup("<div><div class='l-column-left'><script>"))

    def test_missing_json_span(self):
        doc = soup(episode_html("let FTVPlayerVideos = null;"))
        with self.assertRaises(MissingPlayerJSONData):
            self.extractor.extract(doc)

    def test_missing_semicolon(self):
        doc = soup(episode_html('let FTVPlayerVideos = [{"videoId":"abc"}]'))
        with self.assertRaises(MissingPlayerJSONData):
            self.extractor.extract(doc)

    def test_bad_json_reports_fragment(self):
        doc = soup(episode_html("let FTVPlayerVideos = [{videoId: abc}];"))
        with self.assertRaises(BadPlayerJSONData) as ctx:
            self.extractor.extract(doc)
        self.assertEqual(ctx.exception.fragment, "[{videoId: abc}]")

    def test_empty_array(self):
        doc = soup(episode_html("let FTVPlayerVideos = [];"))
        with self.assertRaises(BadPlayerJSONData):
            self.extractor.extract(doc)

    def test_empty_video_id(self):
        doc = soup(episode_html('let FTVPlayerVideos = [{"videoId":"","contentId":7}];'))
        with self.assertRaises(BadPlayerJSONData):
            self.extractor.extract(doc)

    def test_custom_schema(self):
        schema = PageSchema(
            player_script_selector="main script.player",
            player_prefixes=["const PlayerData"],
        )
        extractor = VideoDataExtractor(schema, PageFetcher(FakeSession()))
        html = (
            '<main><script class="player">const PlayerData = '
            '[{"videoId":"xyz","contentId":1}];</script></main>'
        )
        self.assertEqual(extractor.extract(soup(html)).videoId, "xyz")

    def test_extract_from_url(self):
        url = "https://www.france.tv/france-2/show/ep1.html"
        session = FakeSession(
            {url: FakeResponse(episode_html('let FTVPlayerVideos = [{"videoId":"abc"}];'))}
        )
        extractor = VideoDataExtractor(fetcher=PageFetcher(session))
        self.assertEqual(extractor.extract_from_url(url).videoId, "abc")
        self.assertEqual(session.urls(), [url])


class TestPageFetcher(unittest.TestCase):
    def test_bad_status(self):
        session = FakeSession()
        with self.assertRaises(HTTPError) as ctx:
            PageFetcher(session).fetch("https://www.france.tv/nope")
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.reason, "Not Found")

    def test_transport_error(self):
        import requests

        url = "https://www.france.tv/down"
        session = FakeSession({url: requests.ConnectionError("boom")})
        with self.assertRaises(HTTPError) as ctx:
            PageFetcher(session).fetch(url)
        self.assertIsNone(ctx.exception.status_code)

    def test_response_is_closed(self):
        url = "https://www.france.tv/ok"
        resp = FakeResponse("<html></html>")
        PageFetcher(FakeSession({url: resp}), timeout=5).fetch(url)
        self.assertTrue(resp.closed)


if __name__ == "__main__":
    unittest.main()
