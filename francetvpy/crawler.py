import logging
from typing import Callable, List, Optional
from urllib.parse import urljoin

from francetvpy.errors import HTTPError, PaginationParseError
from francetvpy.page import PageFetcher
from francetvpy.schemas.types import PageSchema

logger = logging.getLogger(__name__)


class SelectionPolicy:
    """Decide si un episodio encontrado en la colección se descarga."""

    def accept(self, label: str, url: str) -> bool:
        raise NotImplementedError


class AcceptAll(SelectionPolicy):
    def accept(self, label: str, url: str) -> bool:
        logger.info(f"Agregando {label} ({url})")
        return True


class PromptEachWithLabel(SelectionPolicy):
    """Pregunta por consola por cada episodio. Solo `y`/`Y` acepta."""

    def __init__(self, input_func: Callable[[str], str] = input):
        self.input_func = input_func

    def accept(self, label: str, url: str) -> bool:
        try:
            answer = self.input_func(f"¿Descargar {label}? (escribe y para sí) ")
        except EOFError:
            return False
        return answer.strip() in ("y", "Y")


def next_page_url(url: str) -> str:
    """
    La primera página no tiene `?page`, la siguiente es `/?page=1`.
    Después se incrementa el número que sigue al último `page=`.
    """
    if "?page" not in url:
        return url + "/?page=1"

    idx = url.rfind("page=")
    try:
        current_page = int(url[idx + 5 :])
    except ValueError:
        raise PaginationParseError(url)
    return f"{url[: idx + 5]}{current_page + 1}"


class CollectionCrawler:
    """
    Recorre una página de colección (replay-videos, toutes-les-videos) y
    devuelve las URLs de los episodios seleccionados, siguiendo la paginación
    hasta encontrar una página vacía.
    """

    def __init__(
        self,
        policy: SelectionPolicy,
        schema: Optional[PageSchema] = None,
        fetcher: Optional[PageFetcher] = None,
        max_pages: int = 50,
    ):
        self.policy = policy
        self.schema = schema or PageSchema()
        self.fetcher = fetcher or PageFetcher()
        self.max_pages = max_pages

    def is_collection_url(self, url: str) -> bool:
        return any(marker in url for marker in self.schema.collection_markers)

    def _collect_page(self, url: str, episode_urls: List[str]) -> int:
        """Agrega los episodios aceptados de una página y devuelve cuántos había."""
        doc = self.fetcher.fetch(url)
        cards = doc.select(self.schema.card_selector)
        for card in cards:
            href = card.get("href")
            if not href:
                continue
            video_page_url = urljoin(self.schema.site_url, href)
            label_node = card.select_one(self.schema.card_label_selector)
            label = label_node.get_text(strip=True) if label_node else video_page_url
            if self.policy.accept(label, video_page_url):
                episode_urls.append(video_page_url)
        return len(cards)

    def crawl(self, listing_url: str) -> List[str]:
        episode_urls: List[str] = []
        url = listing_url

        for page_number in range(self.max_pages):
            try:
                count = self._collect_page(url, episode_urls)
            except HTTPError as e:
                # La primera página es obligatoria, las siguientes no
                if page_number == 0:
                    raise
                logger.warning(f"Paginación interrumpida: {e}")
                break
            if count == 0:
                if page_number == 0:
                    logger.info(f"No se encontraron videos en {url}")
                break

            try:
                url = next_page_url(url)
            except PaginationParseError as e:
                logger.warning(str(e))
                break
            logger.debug(f"Revisando paginación: {url}")
        else:
            logger.warning(
                f"Se alcanzó el límite de {self.max_pages} páginas en {listing_url}"
            )

        logger.info(f"{len(episode_urls)} videos encontrados en {listing_url}")
        return episode_urls
