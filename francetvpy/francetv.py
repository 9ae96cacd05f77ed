import json
import logging
from typing import Dict, Optional
from urllib.parse import parse_qs, urlsplit

import requests
from pydantic import ValidationError

from francetvpy.errors import APIError, DecodeError, TokenError
from francetvpy.page import USER_AGENT
from francetvpy.schemas.stream_data import StreamData
from francetvpy.schemas.types import StreamFormat

logger = logging.getLogger(__name__)


class FranceTVClient:
    """
    Cliente de la API de lectura de France Télévisions.
    Obtiene la información del stream de un video y resuelve la URL final
    del manifiesto (intercambiando el token firmado si hace falta).
    """

    SITE_URL = "https://www.france.tv"
    DASH_API_URL = "https://k7.ftven.fr/videos"
    HLS_API_URL = "https://player.webservices.francetelevisions.fr/v1/videos"

    def __init__(
        self, session: Optional[requests.Session] = None, timeout: float = 30.0
    ):
        self.session = session or requests.Session()
        self.timeout = timeout

    def _dash_params(self, content_id: int) -> Dict[str, str]:
        return {
            "country_code": "FR",
            "w": "955",
            "h": "537",
            "screen_w": "1680",
            "screen_h": "1050",
            "player_version": "5.71.7",
            "domain": "www.france.tv",
            "device_type": "desktop",
            "browser": "chrome",
            "browser_version": "108",
            "os": "macos",
            "os_version": "10_15_7",
            "diffusion_mode": "tunnel_first",
            "gmt": "0100",
            "video_product_id": str(content_id),
        }

    def _hls_params(self) -> Dict[str, str]:
        return {
            "country_code": "FR",
            "w": "1024",
            "h": "768",
            "version": "5.29.4",
            "domain": "www.france.tv",
            "device_type": "desktop",
            "browser": "safari",
            "browser_version": "13",
            "os": "macos",
            "os_version": "10_14_6",
            "diffusion_mode": "tunnel_first",
            "gmt": "+1",
        }

    def _headers(self, origin_url: str) -> Dict[str, str]:
        return {
            "Accept": "*/*",
            "Accept-Language": "fr-FR;q=0.9,fr;q=0.8",
            "Dnt": "1",
            "Origin": self.SITE_URL,
            "Referer": f"{self.SITE_URL}{origin_url or '/'}",
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "cross-site",
            "User-Agent": USER_AGENT,
            "Sec-Ch-Ua": '"Chromium";v="108", "Google Chrome";v="108"',
            "Sec-Ch-Ua-Platform": '"macOS"',
        }

    def fetch_stream_info(
        self,
        video_id: str,
        content_id: int,
        origin_url: str = "",
        mode: StreamFormat = StreamFormat.DASH,
    ) -> StreamData:
        """
        Consulta la API de lectura. El endpoint depende del modo: la API de
        DASH necesita el content_id (video_product_id), la de HLS no.
        """
        if mode is StreamFormat.DASH:
            url = f"{self.DASH_API_URL}/{video_id}"
            params = self._dash_params(content_id)
        else:
            url = f"{self.HLS_API_URL}/{video_id}"
            params = self._hls_params()

        logger.debug(f"Consultando la API de lectura: {url}")
        try:
            resp = self.session.get(
                url,
                params=params,
                headers=self._headers(origin_url),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise APIError(url, reason=str(e)) from e

        with resp:
            if resp.status_code != 200:
                raise APIError(resp.url or url, resp.status_code, resp.reason or "")
            # Guardamos el cuerpo crudo para poder reportarlo si falla el parseo
            body = resp.text

        try:
            return StreamData.model_validate(json.loads(body))
        except (json.JSONDecodeError, ValidationError) as e:
            raise DecodeError(body, str(e)) from e

    @staticmethod
    def build_token_url(token_url: str, video_url: str) -> str:
        """
        El endpoint del token responde JSON por defecto; pedimos `format=text`
        para recibir la URL firmada directamente en el cuerpo.
        """
        token_url = token_url.replace("format=json", "format=text", 1)
        if "url" in parse_qs(urlsplit(token_url).query):
            return token_url
        return f"{token_url}&url={video_url}"

    def get_manifest_url(self, stream: StreamData) -> str:
        """Obtiene la URL final del manifiesto."""
        token = stream.video.token_url
        if not token:
            logger.debug("El video no tiene token")
            return stream.video.url

        token_url = self.build_token_url(token, stream.video.url)
        try:
            resp = self.session.get(token_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TokenError(token_url, reason=str(e)) from e

        with resp:
            if resp.status_code != 200:
                raise TokenError(token_url, resp.status_code, resp.reason or "")
            manifest_url = resp.text

        logger.debug(f"URL del manifiesto: {manifest_url}")
        return manifest_url

    def resolve(
        self,
        video_id: str,
        content_id: int,
        origin_url: str = "",
        mode: StreamFormat = StreamFormat.DASH,
    ) -> str:
        stream = self.fetch_stream_info(video_id, content_id, origin_url, mode)
        return self.get_manifest_url(stream)
