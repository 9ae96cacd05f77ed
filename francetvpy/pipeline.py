import logging
from typing import Callable, List, Optional

import requests

from francetvpy.crawler import AcceptAll, CollectionCrawler, PromptEachWithLabel
from francetvpy.dispatcher import FormatDispatcher
from francetvpy.errors import ExtractionError, FranceTVError, UnsupportedFormat
from francetvpy.extractor import VideoDataExtractor
from francetvpy.francetv import FranceTVClient
from francetvpy.page import USER_AGENT, PageFetcher
from francetvpy.schemas.types import RunConfig
from francetvpy.services.download_queue import DownloadQueue

logger = logging.getLogger(__name__)


class Pipeline:
    """
    Orquesta la resolución de una URL dada por el usuario:
    colección -> episodios -> Job en la cola de descargas.
    """

    def __init__(
        self,
        config: RunConfig,
        dispatcher: FormatDispatcher,
        crawler: CollectionCrawler,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.crawler = crawler

    @classmethod
    def from_config(
        cls,
        config: RunConfig,
        queue: Optional[DownloadQueue] = None,
        input_func: Callable[[str], str] = input,
    ) -> "Pipeline":
        session = requests.Session()
        session.headers.update({"User-Agent": USER_AGENT})
        fetcher = PageFetcher(session, timeout=config.timeout)

        if config.download_all:
            policy = AcceptAll()
        else:
            policy = PromptEachWithLabel(input_func)

        crawler = CollectionCrawler(
            policy, config.page_schema, fetcher, max_pages=config.max_pages
        )
        dispatcher = FormatDispatcher(
            config,
            VideoDataExtractor(config.page_schema, fetcher),
            FranceTVClient(session, timeout=config.timeout),
            queue,
        )
        return cls(config, dispatcher, crawler)

    def run(self, url: str) -> int:
        """Procesa la URL y devuelve el código de salida (0 ok, 1 error)."""
        if self.crawler.is_collection_url(url):
            logger.info("Buscando todos los videos")
            try:
                episode_urls = self.crawler.crawl(url)
            except FranceTVError as e:
                logger.error(str(e))
                return 1
            return self.process_episodes(episode_urls)
        return self.process_single(url)

    def process_single(self, url: str) -> int:
        try:
            self.dispatcher.dispatch(url)
        except UnsupportedFormat as e:
            logger.warning(str(e))
        except ExtractionError as e:
            # Puede que sea una página de colección y no de un episodio
            try:
                episode_urls = self.crawler.crawl(url)
            except FranceTVError as crawl_error:
                logger.debug(f"Tampoco es una colección: {crawl_error}")
                episode_urls = []
            if episode_urls:
                return self.process_episodes(episode_urls)
            logger.error(
                f"{e}\nContenido inesperado, asegúrate de haber elegido la página de un episodio."
            )
            return 1
        except FranceTVError as e:
            logger.error(str(e))
            return 1
        return 0

    def process_episodes(self, episode_urls: List[str]) -> int:
        for page_url in episode_urls:
            try:
                self.dispatcher.dispatch(page_url)
            except UnsupportedFormat as e:
                logger.warning(str(e))
            except FranceTVError as e:
                logger.error(f"{page_url}: {e}")
                if not self.config.download_all:
                    return 1
        return 0
