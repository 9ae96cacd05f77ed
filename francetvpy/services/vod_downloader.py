import logging
import threading
from pathlib import Path
from typing import List, Optional, Tuple

import requests

from francetvpy.dash import AdaptationSet, DashManifest, Representation
from francetvpy.errors import DownloadError
from francetvpy.schemas.types import Job
from francetvpy.services.downloader import SegmentDownloader
from francetvpy.services.processor import PostProcessor

logger = logging.getLogger(__name__)


class VodDownloader:
    def __init__(
        self,
        job: Job,
        timeout: float = 30.0,
        stop_event: Optional[threading.Event] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        :param job: Job con la URL del .mpd y el destino
        """
        self.job = job
        self.timeout = timeout
        self.stop_event = stop_event or threading.Event()
        self.session = session or requests.Session()

        # Estado interno para no parsear dos veces
        self._dash: Optional[DashManifest] = None
        self._video_rep: Optional[Representation] = None
        self._audio_rep: Optional[Representation] = None
        self._text_reps: List[Tuple[str, Representation]] = []

    @property
    def working_dir(self) -> Path:
        return self.job.dest_dir / f".{self.job.filename}.parts"

    def extract_info(self) -> DashManifest:
        """
        Descarga el manifiesto, lo analiza y selecciona las mejores pistas.
        """
        logger.info("--- Analizando Manifiesto ---")

        try:
            resp = self.session.get(
                self.job.url,
                headers={"Accept": "application/dash+xml,video/vnd.mpeg.dash.mpd"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise DownloadError(f"No se pudo descargar el manifiesto {self.job.url}: {e}") from e

        self._dash = DashManifest(resp.text, source_url=self.job.url)
        period = self._dash.get_content_period()

        self._text_reps = self._select_text_tracks(period.get_adaptation_sets("text"))
        if self.job.subs_only:
            if not self._text_reps:
                raise DownloadError("El manifiesto no contiene subtítulos.")
            return self._dash

        video_sets = period.get_adaptation_sets(type_filter="video")
        audio_sets = period.get_adaptation_sets(type_filter="audio")
        if not video_sets:
            raise DownloadError("El manifiesto no contiene pistas de video.")

        self._video_rep = video_sets[0].get_best_representation()
        self._audio_rep = audio_sets[0].get_best_representation() if audio_sets else None
        if not self._video_rep:
            raise DownloadError("Fallo seleccionando calidades.")

        logger.info(
            f"Calidad seleccionada: {self._video_rep.height}p ({self._video_rep.bandwidth} bps)"
        )
        return self._dash

    def _select_text_tracks(
        self, text_sets: List[AdaptationSet]
    ) -> List[Tuple[str, Representation]]:
        tracks = []
        seen = set()
        for adaptation in text_sets:
            rep = adaptation.get_best_representation()
            if rep is None:
                continue
            # Dos pistas con el mismo idioma (ej: subtítulos normales y SDH)
            lang = adaptation.lang
            if lang in seen:
                lang = f"{lang}{len(seen)}"
            seen.add(lang)
            tracks.append((lang, rep))
        return tracks

    def _download_representation(
        self, downloader: SegmentDownloader, rep: Representation, subdir: str
    ):
        init_url = rep.initialization_url
        segments = rep.get_segments()
        if init_url:
            downloader.download_file(init_url, subdir, "init.mp4")
        if segments:
            downloader.download_batch(segments, subdir)
        elif rep.media_url:
            # Pista en un solo archivo (típico de subtítulos)
            downloader.download_file(rep.media_url, subdir, "segment_0")

    def download(self, max_workers: int = 8) -> List[Path]:
        """
        Ejecuta la descarga de los segmentos y arma el archivo final.
        Devuelve los archivos generados.
        """
        if not self._dash:
            self.extract_info()

        seg_downloader = SegmentDownloader(
            self.working_dir,
            max_workers=max_workers,
            timeout=self.timeout,
            stop_event=self.stop_event,
            session=self.session,
        )
        processor = PostProcessor(self.working_dir, self.job.dest_dir)
        text_langs = [lang for lang, _ in self._text_reps]

        logger.info(f"--- Descargando Segmentos en: {self.working_dir} ---")
        for lang, rep in self._text_reps:
            self._download_representation(seg_downloader, rep, f"text_{lang}")

        if self.job.subs_only:
            return processor.extract_subtitles(self.job.filename, text_langs)

        self._download_representation(seg_downloader, self._video_rep, "video")  # type: ignore
        if self._audio_rep:
            self._download_representation(seg_downloader, self._audio_rep, "audio")

        final_file = processor.process(self.job.output_path.name, text_langs)
        if not processor.verify_integrity(final_file, self._dash.duration_seconds):  # type: ignore
            logger.warning(f"Descarga posiblemente incompleta: {final_file}")
        return [final_file]
