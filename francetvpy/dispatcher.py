import logging
from typing import Optional

from francetvpy.extractor import VideoDataExtractor
from francetvpy.errors import UnsupportedFormat
from francetvpy.francetv import FranceTVClient
from francetvpy.schemas.types import Job, RunConfig, StreamFormat
from francetvpy.services.download_queue import DownloadQueue
from francetvpy.utils import build_filename, safe_filename

logger = logging.getLogger(__name__)


class FormatDispatcher:
    """
    Convierte la URL de un episodio en un Job para la cola de descarga.

    El modo (HLS o DASH) se elige antes de empezar. Si en modo HLS la API
    declara un stream DASH, se reinicia toda la resolución en modo DASH una
    sola vez; el modo DASH nunca vuelve a HLS.
    """

    def __init__(
        self,
        config: RunConfig,
        extractor: VideoDataExtractor,
        client: FranceTVClient,
        queue: Optional[DownloadQueue] = None,
    ):
        self.config = config
        self.extractor = extractor
        self.client = client
        self.queue = queue

    def resolve(
        self, page_url: str, mode: StreamFormat, allow_fallback: bool = True
    ) -> Optional[Job]:
        """
        Devuelve el Job listo para encolar, o None si el archivo ya existe.
        Lanza UnsupportedFormat si el formato del stream no corresponde al modo.
        """
        # 0. Buscar los IDs del video en la página
        data = self.extractor.extract_from_url(page_url)

        # 1. Pedir la información del stream a la API
        stream = self.client.fetch_stream_info(
            data.videoId, data.contentId, data.origin_path, mode
        )
        stream_format = stream.video.format

        if (
            mode is StreamFormat.HLS
            and stream_format == StreamFormat.DASH.value
            and allow_fallback
        ):
            logger.info(f"{page_url} solo está disponible en DASH, cambiando de modo")
            return self.resolve(page_url, StreamFormat.DASH, allow_fallback=False)

        pre_title = stream.meta.pre_title or data.videoTitle
        filename = build_filename(
            stream.meta.title, pre_title, stream.meta.additional_title
        )
        filename = safe_filename(filename, self.config)

        if stream_format != mode.value:
            raise UnsupportedFormat(filename, stream_format)

        dest_path = self.config.output_dir / f"{filename}{mode.extension}"
        if dest_path.exists():
            logger.info(f"{dest_path} ya existe")
            return None

        # 2. Obtener la URL final del manifiesto (m3u8 o mpd)
        manifest_url = self.client.get_manifest_url(stream)
        return Job(
            url=manifest_url,
            dest_dir=self.config.output_dir,
            filename=filename,
            format=mode,
            subs_only=self.config.subs_only,
        )

    def dispatch(self, page_url: str) -> Optional[Job]:
        job = self.resolve(page_url, self.config.mode)
        if job is None:
            return None

        logger.info(f"Encolando {job.output_path}")
        if self.queue is not None:
            self.queue.submit(job)
        return job
