import logging
import queue
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

from francetvpy.schemas.types import Job, StreamFormat
from francetvpy.services.hls_downloader import HlsDownloader
from francetvpy.services.vod_downloader import VodDownloader

logger = logging.getLogger(__name__)

JobRunner = Callable[[Job, threading.Event], List[Path]]


class DownloadQueue:
    """
    Pool fijo de workers que consume Jobs desde un único canal ordenado.

    Ciclo de vida: start() una vez, submit() por cada Job, close() cuando ya
    no hay más Jobs y wait() para esperar a que terminen los workers.
    """

    _STOP = None

    def __init__(
        self,
        workers: int = 4,
        timeout: float = 30.0,
        runner: Optional[JobRunner] = None,
    ):
        self.workers = workers
        self.timeout = timeout
        self.runner = runner or self._run_job
        self.stop_event = threading.Event()
        self.completed: Dict[str, List[Path]] = {}
        self.failed: Dict[str, Exception] = {}

        self._queue: "queue.Queue[Optional[Job]]" = queue.Queue()
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._closed = False

    def _run_job(self, job: Job, stop_event: threading.Event) -> List[Path]:
        if job.format is StreamFormat.HLS:
            return HlsDownloader(job, timeout=self.timeout).download()
        return VodDownloader(job, timeout=self.timeout, stop_event=stop_event).download()

    def start(self):
        if self._threads:
            return
        for i in range(self.workers):
            t = threading.Thread(
                target=self._worker, name=f"download-worker-{i}", daemon=True
            )
            t.start()
            self._threads.append(t)
        logger.debug(f"{self.workers} workers de descarga iniciados")

    def submit(self, job: Job):
        if self._closed:
            raise RuntimeError("La cola de descargas ya está cerrada.")
        self._queue.put(job)

    def close(self):
        """Señal de 'no hay más Jobs': un centinela por worker."""
        if self._closed:
            return
        self._closed = True
        for _ in self._threads:
            self._queue.put(self._STOP)

    def cancel(self):
        logger.warning("Cancelando las descargas pendientes...")
        self.stop_event.set()
        self.close()

    def wait(self, timeout: Optional[float] = None):
        for t in self._threads:
            t.join(timeout)

    def _worker(self):
        while True:
            job = self._queue.get()
            try:
                if job is self._STOP:
                    return
                if self.stop_event.is_set():
                    logger.info(f"Descarga cancelada: {job.filename}")
                    continue
                self._process(job)
            finally:
                self._queue.task_done()

    def _process(self, job: Job):
        logger.info(f"Descargando {job.filename}")
        try:
            outputs = self.runner(job, self.stop_event)
        except Exception as e:
            logger.error(f"Fallo la descarga de {job.filename}: {e}")
            with self._lock:
                self.failed[job.filename] = e
            return

        with self._lock:
            self.completed[job.filename] = outputs
        logger.info(f"Descarga completa: {job.filename}")
