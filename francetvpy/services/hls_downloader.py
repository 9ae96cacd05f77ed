import logging
import subprocess
from pathlib import Path
from typing import List

from francetvpy.errors import DownloadError
from francetvpy.page import USER_AGENT
from francetvpy.schemas.types import Job

logger = logging.getLogger(__name__)


class HlsDownloader:
    """m3u8 -> mp4 con ffmpeg (copy, sin recodificar)."""

    def __init__(self, job: Job, timeout: float = 30.0):
        self.job = job
        self.timeout = timeout

    def build_command(self) -> List[str]:
        cmd = [
            "ffmpeg",
            "-y",
            "-loglevel",
            "error",
            "-user_agent",
            USER_AGENT,
            # ffmpeg espera microsegundos
            "-rw_timeout",
            str(int(self.timeout * 1_000_000)),
            "-i",
            self.job.url,
        ]
        if self.job.subs_only:
            cmd.extend(["-map", "0:s:0", "-c:s", "webvtt", str(self.subtitles_path)])
        else:
            cmd.extend(
                [
                    "-map",
                    "0:v?",
                    "-map",
                    "0:a?",
                    "-c",
                    "copy",
                    "-bsf:a",
                    "aac_adtstoasc",
                    str(self.job.output_path),
                ]
            )
        return cmd

    @property
    def subtitles_path(self) -> Path:
        return self.job.dest_dir / f"{self.job.filename}.vtt"

    def download(self) -> List[Path]:
        output = self.subtitles_path if self.job.subs_only else self.job.output_path
        output.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"[ffmpeg] inicio: {self.job.url} -> {output}")
        try:
            subprocess.run(
                self.build_command(),
                check=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError:
            raise DownloadError(
                "ffmpeg no encontrado. Asegúrate de tenerlo instalado y en el PATH."
            ) from None
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="ignore") if e.stderr else ""
            raise DownloadError(f"ffmpeg falló (exit={e.returncode}): {stderr}") from e

        logger.info(f"[ffmpeg] listo: {output}")
        return [output]
