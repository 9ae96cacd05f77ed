import json
import logging
from typing import Optional

from bs4 import BeautifulSoup
from pydantic import ValidationError

from francetvpy.errors import BadPlayerJSONData, MissingPlayerJSONData, NoPlayerData
from francetvpy.page import PageFetcher
from francetvpy.schemas.types import PageSchema
from francetvpy.schemas.video_data import VideoData

logger = logging.getLogger(__name__)


class VideoDataExtractor:
    """
    Extrae los identificadores del video desde la página de un episodio.

    Los datos viven en un <script> como `let FTVPlayerVideos = [...];`.
    La ubicación del script y el nombre de la variable cambian seguido, por
    eso ambos vienen del PageSchema. Las tres excepciones de extracción son
    condiciones esperadas (por ejemplo, la URL era una página de colección).
    """

    def __init__(
        self,
        schema: Optional[PageSchema] = None,
        fetcher: Optional[PageFetcher] = None,
    ):
        self.schema = schema or PageSchema()
        self.fetcher = fetcher or PageFetcher()

    def _script_text(self, document: BeautifulSoup) -> str:
        nodes = document.select(self.schema.player_script_selector)
        return "".join(node.get_text() for node in nodes).strip()

    def extract(self, document: BeautifulSoup) -> VideoData:
        script_text = self._script_text(document)
        if not any(script_text.startswith(p) for p in self.schema.player_prefixes):
            raise NoPlayerData()

        start_idx = script_text.find("[")
        end_idx = script_text.rfind(";")
        if start_idx < 0 or end_idx <= start_idx:
            logger.warning(f"No se encontró el JSON esperado en: {script_text}")
            raise MissingPlayerJSONData()

        logger.debug("Parseando los datos JSON del reproductor")
        json_string = script_text[start_idx:end_idx]
        try:
            raw = json.loads(json_string)
        except json.JSONDecodeError as e:
            logger.error(f"JSON del video inválido:\n{json_string}\nerr: {e}")
            raise BadPlayerJSONData(json_string, str(e)) from e

        if not isinstance(raw, list) or not raw:
            raise BadPlayerJSONData(json_string, "se esperaba una lista no vacía")

        try:
            return VideoData.model_validate(raw[0])
        except ValidationError as e:
            logger.error(f"Datos del video inválidos:\n{json_string}\nerr: {e}")
            raise BadPlayerJSONData(json_string, str(e)) from e

    def extract_from_url(self, url: str) -> VideoData:
        return self.extract(self.fetcher.fetch(url))
