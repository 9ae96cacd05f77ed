import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urlparse

import requests

from francetvpy.errors import DownloadError
from francetvpy.page import USER_AGENT

logger = logging.getLogger(__name__)


class SegmentDownloader:
    def __init__(
        self,
        output_dir: Union[Path, str],
        max_workers: int = 4,
        timeout: float = 30.0,
        stop_event: Optional[threading.Event] = None,
        session: Optional[requests.Session] = None,
    ):
        output_dir = Path(output_dir) if isinstance(output_dir, str) else output_dir

        self.output_dir = output_dir
        self.max_workers = max_workers
        self.timeout = timeout
        self.stop_event = stop_event or threading.Event()
        self.session = session or requests.Session()
        self.session.headers.update(
            {"User-Agent": USER_AGENT, "Accept-Encoding": "gzip, deflate, br"}
        )

    def download_file(self, url: str, subdir: str = "", name: str = "") -> bool:
        """Descarga un archivo si no existe. Retorna True si se descargó."""
        if self.stop_event.is_set():
            return False

        filename = name or Path(urlparse(url).path).name
        target_dir = self.output_dir / subdir
        target_dir.mkdir(parents=True, exist_ok=True)
        target_path = target_dir / filename

        if target_path.exists():
            return False

        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Fallo descargando {filename}: {e}")
            raise DownloadError(f"Fallo descargando {url}: {e}") from e

        target_path.write_bytes(resp.content)
        return True

    def download_batch(self, urls: List[str], subdir: str = ""):
        """
        Descarga una lista de URLs en paralelo.
        Los archivos se nombran por posición para conservar el orden al unirlos.
        """
        if not urls:
            return

        width = len(str(len(urls)))
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(
                    self.download_file,
                    url,
                    subdir,
                    f"segment_{str(i).zfill(width)}{Path(urlparse(url).path).suffix}",
                )
                for i, url in enumerate(urls)
            ]
            for f in futures:
                f.result()

        if self.stop_event.is_set():
            raise DownloadError("Descarga cancelada")
