import logging
from typing import Optional

import requests
from bs4 import BeautifulSoup

from francetvpy.errors import HTTPError

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36"
)


class PageFetcher:
    """Descarga páginas de france.tv y las devuelve como documento navegable."""

    def __init__(
        self, session: Optional[requests.Session] = None, timeout: float = 30.0
    ):
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": USER_AGENT})
        self.session = session
        self.timeout = timeout

    def fetch(self, url: str) -> BeautifulSoup:
        logger.debug(f"GET {url}")
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise HTTPError(url, reason=str(e)) from e

        with resp:
            if resp.status_code != 200:
                logger.warning(
                    f"No se puede descargar {url}: {resp.status_code} {resp.reason}"
                )
                raise HTTPError(url, resp.status_code, resp.reason or "")
            html = resp.text

        return BeautifulSoup(html, "html.parser")
